"""Outbox relay exports."""
from .relay import OutboxRelay, UnknownTopicError

__all__ = ["OutboxRelay", "UnknownTopicError"]
