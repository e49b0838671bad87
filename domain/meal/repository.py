"""
餐品仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Meal


class MealRepository(ABC):
    """餐品仓储抽象接口"""

    @abstractmethod
    async def create(self, meal: Meal) -> Meal:
        """创建餐品"""
        pass

    @abstractmethod
    async def get_by_id(self, meal_id: str, *, for_update: bool = False) -> Optional[Meal]:
        """根据ID获取餐品"""
        pass

    @abstractmethod
    async def update(self, meal: Meal) -> Meal:
        """更新餐品"""
        pass
