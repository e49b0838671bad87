"""Application-owned lock port.

Reservation transitions and rating submissions are serialized per
reservation id; implementations may be in-process or distributed.
"""
from __future__ import annotations

from typing import AsyncContextManager, Protocol


def reservation_lock_key(reservation_id: str) -> str:
    return f"reservation:{reservation_id}"


class LockManager(Protocol):

    def acquire(self, key: str) -> AsyncContextManager[None]:
        """Hold ``key`` for the duration of the ``async with`` block.

        Raises ``ResourceBusyException`` when the lock cannot be obtained
        in time.
        """
        ...


__all__ = ["LockManager", "reservation_lock_key"]
