"""
用户仓储接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional
from .entity import UserProfile


class UserProfileRepository(ABC):
    """用户资料仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        """根据ID获取用户资料"""
        pass

    @abstractmethod
    async def create(self, profile: UserProfile) -> UserProfile:
        """创建用户资料"""
        pass

    @abstractmethod
    async def update(self, profile: UserProfile) -> UserProfile:
        """更新用户资料"""
        pass
