"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class ResourceBusyException(BusinessException):
    def __init__(self, key: str):
        super().__init__(
            code=BusinessCode.RESOURCE_BUSY,
            message="Resource is busy, please retry",
            error_type="ResourceBusy",
            details={"key": key},
        )


# ----------------------------------------------------------------------
# Reservations
# ----------------------------------------------------------------------
class ReservationNotFoundException(BusinessException):
    def __init__(self, reservation_id: str):
        super().__init__(
            code=BusinessCode.RESERVATION_NOT_FOUND,
            message="Reservation not found",
            error_type="ReservationNotFound",
            details={"reservation_id": reservation_id},
        )


class InvalidReservationTransitionException(BusinessException):
    def __init__(self, current: str, target: str, *, reason: Optional[str] = None):
        details = {"current": current, "target": target}
        if reason:
            details["reason"] = reason
        super().__init__(
            code=BusinessCode.RESERVATION_INVALID_TRANSITION,
            message=f"Cannot move reservation from {current} to {target}",
            error_type="InvalidReservationTransition",
            details=details,
            field="status",
        )


class ReservationAlreadyRatedException(BusinessException):
    def __init__(self, reservation_id: str):
        super().__init__(
            code=BusinessCode.RESERVATION_ALREADY_RATED,
            message="Reservation already rated",
            error_type="ReservationAlreadyRated",
            details={"reservation_id": reservation_id},
        )


# ----------------------------------------------------------------------
# Meals
# ----------------------------------------------------------------------
class MealNotFoundException(BusinessException):
    def __init__(self, meal_id: str):
        super().__init__(
            code=BusinessCode.MEAL_NOT_FOUND,
            message="Meal not found",
            error_type="MealNotFound",
            details={"meal_id": meal_id},
        )


class InsufficientMealQuantityException(BusinessException):
    def __init__(self, meal_id: str, requested: int, available: int):
        super().__init__(
            code=BusinessCode.MEAL_QUANTITY_INSUFFICIENT,
            message=f"Only {available} portion(s) available",
            error_type="InsufficientMealQuantity",
            details={"meal_id": meal_id, "requested": requested, "available": available},
            field="quantity",
        )


# ----------------------------------------------------------------------
# Wallet / ledger
# ----------------------------------------------------------------------
class WalletNotFoundException(BusinessException):
    def __init__(self, user_id: str):
        super().__init__(
            code=BusinessCode.WALLET_NOT_FOUND,
            message="Wallet not found",
            error_type="WalletNotFound",
            details={"user_id": user_id},
        )


class InsufficientFundsException(BusinessException):
    def __init__(self, user_id: str, amount: Decimal, balance: Optional[Decimal]):
        super().__init__(
            code=BusinessCode.INSUFFICIENT_FUNDS,
            message="Insufficient funds",
            error_type="InsufficientFunds",
            details={
                "user_id": user_id,
                "amount": str(amount),
                "balance": str(balance) if balance is not None else None,
            },
        )


class RecipientWalletNotFoundException(BusinessException):
    def __init__(self, user_id: str):
        super().__init__(
            code=BusinessCode.RECIPIENT_WALLET_NOT_FOUND,
            message="Recipient wallet not found",
            error_type="RecipientWalletNotFound",
            details={"user_id": user_id},
        )


class TransactionNotFoundException(BusinessException):
    def __init__(self, transaction_id: str):
        super().__init__(
            code=BusinessCode.TRANSACTION_NOT_FOUND,
            message="Transaction not found",
            error_type="TransactionNotFound",
            details={"transaction_id": transaction_id},
        )


class InvalidTransactionStateException(BusinessException):
    def __init__(self, transaction_id: str, status: str, action: str):
        super().__init__(
            code=BusinessCode.TRANSACTION_INVALID_STATE,
            message=f"Cannot {action} transaction in status {status}",
            error_type="InvalidTransactionState",
            details={"transaction_id": transaction_id, "status": status, "action": action},
        )


class IdempotencyConflictException(BusinessException):
    def __init__(self, idempotency_key: str, transaction_id: str, reason: str):
        super().__init__(
            code=BusinessCode.IDEMPOTENCY_CONFLICT,
            message=f"Idempotency key already used: {reason}",
            error_type="IdempotencyConflict",
            details={"idempotency_key": idempotency_key, "transaction_id": transaction_id},
            field="idempotency_key",
        )
