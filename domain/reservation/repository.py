"""
预订仓储接口 - 远端持久化边界
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Reservation


class ReservationRepository(ABC):
    """预订仓储抽象接口"""

    @abstractmethod
    async def insert(self, reservation: Reservation) -> Reservation:
        """新增预订"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """更新预订（状态、支付、评价）"""
        pass

    @abstractmethod
    async def get_by_id(self, reservation_id: str, *, for_update: bool = False) -> Optional[Reservation]:
        """根据ID获取预订"""
        pass

    @abstractmethod
    async def list_by_customer_id(self, customer_id: str) -> List[Reservation]:
        """顾客的预订列表，按创建时间倒序"""
        pass

    @abstractmethod
    async def list_by_cook_id(self, cook_id: str) -> List[Reservation]:
        """厨师的预订列表，按创建时间倒序"""
        pass
