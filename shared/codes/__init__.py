"""
Shared business codes used across layers (Domain/Core/API).

This package exposes BusinessCode at `shared.codes`; it is the single source
of truth so the HTTP mapping in core never drifts from the domain.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006  # Generic resource not found

    # Reservations (21xxx)
    RESERVATION_NOT_FOUND = 21001
    RESERVATION_INVALID_TRANSITION = 21002
    RESERVATION_ALREADY_RATED = 21003

    # Meals (22xxx)
    MEAL_NOT_FOUND = 22001
    MEAL_QUANTITY_INSUFFICIENT = 22002

    # Wallet / ledger (23xxx)
    WALLET_NOT_FOUND = 23001
    INSUFFICIENT_FUNDS = 23002
    RECIPIENT_WALLET_NOT_FOUND = 23003
    TRANSACTION_NOT_FOUND = 23004
    TRANSACTION_INVALID_STATE = 23005
    IDEMPOTENCY_CONFLICT = 23006

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    DATABASE_ERROR = 40001
    SERVICE_UNAVAILABLE = 40003
    RESOURCE_BUSY = 40004


__all__ = ["BusinessCode"]
