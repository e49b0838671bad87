"""
餐品 DTO
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from .base import DTOBase


class MealCreateDTO(DTOBase):
    cook_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., gt=0)
    available_quantity: int = Field(..., ge=0)
    id: Optional[str] = Field(None, description="可选；缺省自动生成")


class MealPriceUpdateDTO(DTOBase):
    price: Decimal = Field(..., gt=0)


class MealResponseDTO(DTOBase):
    id: str
    cook_id: str
    name: str
    price: Decimal
    available_quantity: int
    rating: Optional[float]
    review_count: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
