"""Reservation list cache port.

Values are JSON-ready dicts; the database stays the source of truth, so
implementations log and swallow their own backend errors.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Protocol


class ListScope(str, Enum):
    CUSTOMER = "customer"
    COOK = "cook"


class ReservationListCache(Protocol):

    async def get(self, scope: ListScope, user_id: str) -> Optional[list[dict[str, Any]]]: ...

    async def set(self, scope: ListScope, user_id: str, items: list[dict[str, Any]]) -> None: ...

    async def invalidate(self, scope: ListScope, user_id: str) -> None: ...


__all__ = ["ListScope", "ReservationListCache"]
