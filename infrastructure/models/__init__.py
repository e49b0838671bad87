"""Infrastructure models package exports."""
from .base import Base, metadata
from .meal import MealModel
from .outbox import OutboxMessageModel
from .reservation import ReservationModel
from .user import UserProfileModel
from .wallet import WalletModel, WalletTransactionModel

__all__ = [
    "Base",
    "metadata",
    "MealModel",
    "OutboxMessageModel",
    "ReservationModel",
    "UserProfileModel",
    "WalletModel",
    "WalletTransactionModel",
]
