"""
餐品API路由
"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_meal_service
from application.dtos.meals import MealCreateDTO, MealPriceUpdateDTO, MealResponseDTO
from application.services.meal_service import MealApplicationService
from core.response import Response as ApiResponse, success_response

router = APIRouter(
    prefix="/meals",
    tags=["餐品"]
)


@router.post(
    "",
    summary="创建餐品",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[MealResponseDTO],
)
async def create_meal(
    data: MealCreateDTO,
    service: MealApplicationService = Depends(get_meal_service),
):
    return success_response(data=await service.create_meal(data), message="Meal created")


@router.get(
    "/{meal_id}",
    summary="餐品详情",
    response_model=ApiResponse[MealResponseDTO],
)
async def get_meal(
    meal_id: str,
    service: MealApplicationService = Depends(get_meal_service),
):
    return success_response(data=await service.get_meal(meal_id))


@router.patch(
    "/{meal_id}/price",
    summary="修改价格",
    response_model=ApiResponse[MealResponseDTO],
)
async def update_price(
    meal_id: str,
    data: MealPriceUpdateDTO,
    service: MealApplicationService = Depends(get_meal_service),
):
    """只影响之后的预订，已有预订总价不变"""
    return success_response(data=await service.update_price(meal_id, data.price))
