"""
预订相关 DTO
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from domain.reservation.entity import (
    MAX_RATING,
    MIN_RATING,
    ReservationPaymentStatus,
    ReservationStatus,
)
from .base import DTOBase


class ReservationCreateDTO(DTOBase):
    """创建预订"""
    meal_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="预订份数")
    pickup_time: datetime
    cook_id: Optional[str] = Field(None, description="可选；必须与餐品所属厨师一致")


class ReservationStatusUpdateDTO(DTOBase):
    status: ReservationStatus


class RatingSubmitDTO(DTOBase):
    """提交评价（仅 completed 预订，且只能一次）"""
    meal_rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    cook_rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    review_text: str = Field("", max_length=2000)
    customer_name: Optional[str] = Field(None, max_length=100)


class ReservationRatingDTO(DTOBase):
    meal_rating: int
    cook_rating: int
    review_text: str
    customer_id: str
    customer_name: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationResponseDTO(DTOBase):
    """预订响应DTO"""
    id: str
    meal_id: str
    customer_id: str
    cook_id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    pickup_time: datetime
    status: ReservationStatus
    payment_id: Optional[str]
    payment_status: Optional[ReservationPaymentStatus]
    rating: Optional[ReservationRatingDTO]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
