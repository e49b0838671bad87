"""
Outbox 仓储接口
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from .entity import OutboxMessage


class OutboxRepository(ABC):

    @abstractmethod
    async def add(self, message: OutboxMessage) -> OutboxMessage:
        """写入待投递消息"""
        pass

    @abstractmethod
    async def list_due(self, now: datetime, limit: int = 100) -> List[OutboxMessage]:
        """获取到期的待投递消息（按创建时间正序）"""
        pass

    @abstractmethod
    async def update(self, message: OutboxMessage) -> OutboxMessage:
        """更新投递结果"""
        pass
