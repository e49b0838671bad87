"""
预订API路由 - FastAPI表现层
"""
from typing import List

from fastapi import APIRouter, Depends, status

from api.dependencies import get_reservation_service
from application.dtos.reservations import (
    RatingSubmitDTO,
    ReservationCreateDTO,
    ReservationResponseDTO,
    ReservationStatusUpdateDTO,
)
from application.services.reservation_service import ReservationApplicationService
from core.response import Response as ApiResponse, success_response
from domain.user.entity import UserType

router = APIRouter(
    prefix="/reservations",
    tags=["预订"]
)


@router.post(
    "",
    summary="创建预订",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[ReservationResponseDTO],
)
async def create_reservation(
    data: ReservationCreateDTO,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    """
    创建预订

    - 总价按下单时单价冻结
    - 库存立即扣减
    - 通知厨师（异步）
    """
    reservation = await service.create_reservation(data)
    return success_response(data=reservation, message="Reservation created")


@router.get(
    "/customer/{customer_id}",
    summary="顾客预订列表",
    response_model=ApiResponse[List[ReservationResponseDTO]],
)
async def list_customer_reservations(
    customer_id: str,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    return success_response(data=await service.list_customer_reservations(customer_id))


@router.get(
    "/cook/{cook_id}",
    summary="厨师预订列表",
    response_model=ApiResponse[List[ReservationResponseDTO]],
)
async def list_cook_reservations(
    cook_id: str,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    return success_response(data=await service.list_cook_reservations(cook_id))


@router.post(
    "/{user_type}/{user_id}/refresh",
    summary="刷新预订列表缓存",
    response_model=ApiResponse[List[ReservationResponseDTO]],
)
async def refresh_reservations(
    user_type: UserType,
    user_id: str,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    return success_response(data=await service.refresh_reservations(user_id, user_type))


@router.get(
    "/{reservation_id}",
    summary="预订详情",
    response_model=ApiResponse[ReservationResponseDTO],
)
async def get_reservation(
    reservation_id: str,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    return success_response(data=await service.get_reservation(reservation_id))


@router.patch(
    "/{reservation_id}/status",
    summary="更新预订状态",
    response_model=ApiResponse[ReservationResponseDTO],
)
async def update_reservation_status(
    reservation_id: str,
    data: ReservationStatusUpdateDTO,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    """
    推进预订状态

    - **ready_for_pickup**: 向厨师付款（资金在途），余额不足时转换失败
    - **completed**: 在途资金入账
    - **cancelled**: 仅 pending/confirmed 可取消，已付款则自动退款
    - 重复提交当前状态视为无操作
    """
    reservation = await service.update_reservation_status(reservation_id, data.status)
    return success_response(data=reservation, message="Reservation status updated")


@router.post(
    "/{reservation_id}/cancel",
    summary="取消预订",
    response_model=ApiResponse[ReservationResponseDTO],
)
async def cancel_reservation(
    reservation_id: str,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    reservation = await service.cancel_reservation(reservation_id)
    return success_response(data=reservation, message="Reservation cancelled")


@router.post(
    "/{reservation_id}/rating",
    summary="提交评价",
    response_model=ApiResponse[ReservationResponseDTO],
)
async def submit_rating(
    reservation_id: str,
    data: RatingSubmitDTO,
    service: ReservationApplicationService = Depends(get_reservation_service),
):
    """仅已完成的预订可评价，且只能评价一次；评分范围 1-5"""
    reservation = await service.submit_rating(reservation_id, data)
    return success_response(data=reservation, message="Rating submitted")
