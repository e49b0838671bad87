"""
钱包API路由
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from api.dependencies import get_wallet_service
from application.dtos.wallets import (
    EarningsSummaryDTO,
    PaymentRequestDTO,
    RefundRequestDTO,
    TransactionResponseDTO,
    WalletInitDTO,
    WalletResponseDTO,
)
from application.services.wallet_service import WalletApplicationService
from core.response import Response as ApiResponse, success_response

router = APIRouter(
    prefix="/wallets",
    tags=["钱包"]
)


@router.post(
    "/payments",
    summary="发起支付（付款方扣款，收款方在途）",
    response_model=ApiResponse[TransactionResponseDTO],
    status_code=status.HTTP_201_CREATED,
)
async def process_payment(
    data: PaymentRequestDTO,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    """非预订支付必须携带 idempotency_key；同一键重复提交返回原流水"""
    transaction = await service.process_payment(
        from_user_id=data.from_user_id,
        to_user_id=data.to_user_id,
        amount=data.amount,
        reservation_id=data.reservation_id,
        description=data.description,
        idempotency_key=data.idempotency_key,
    )
    return success_response(data=transaction, message="Payment processed")


@router.post(
    "/transactions/{transaction_id}/complete",
    summary="完成支付（在途转余额）",
    response_model=ApiResponse[TransactionResponseDTO],
)
async def complete_payment(
    transaction_id: str,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    transaction = await service.complete_payment(transaction_id)
    return success_response(data=transaction, message="Payment completed")


@router.post(
    "/transactions/{transaction_id}/refund",
    summary="退款",
    response_model=ApiResponse[TransactionResponseDTO],
)
async def refund_payment(
    transaction_id: str,
    data: Optional[RefundRequestDTO] = None,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    """返回新生成的退款流水"""
    reason = (data or RefundRequestDTO()).reason
    refund = await service.refund_payment(transaction_id, reason)
    return success_response(data=refund, message="Payment refunded")


@router.post(
    "/{user_id}",
    summary="初始化钱包",
    response_model=ApiResponse[WalletResponseDTO],
)
async def initialize_wallet(
    user_id: str,
    data: Optional[WalletInitDTO] = None,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    """幂等：钱包已存在时原样返回"""
    initial_balance = data.initial_balance if data else None
    wallet = await service.initialize_wallet(user_id, initial_balance)
    return success_response(data=wallet)


@router.get(
    "/{user_id}",
    summary="查询钱包",
    response_model=ApiResponse[WalletResponseDTO],
)
async def get_wallet(
    user_id: str,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    return success_response(data=await service.get_wallet(user_id))


@router.get(
    "/{user_id}/transactions",
    summary="流水历史",
    response_model=ApiResponse[List[TransactionResponseDTO]],
)
async def get_transaction_history(
    user_id: str,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    return success_response(data=await service.get_transaction_history(user_id))


@router.get(
    "/{user_id}/earnings",
    summary="收入汇总",
    response_model=ApiResponse[EarningsSummaryDTO],
)
async def get_earnings_summary(
    user_id: str,
    service: WalletApplicationService = Depends(get_wallet_service),
):
    return success_response(data=await service.get_earnings_summary(user_id))
