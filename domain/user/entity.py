"""
用户资料实体 - 只保留评分聚合相关字段
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from dataclasses import dataclass


class UserType(str, Enum):
    COOK = "cook"
    CUSTOMER = "customer"


@dataclass
class UserProfile:
    """用户资料

    rating/rating_count 是作为厨师收到的评分；reviews_written 是作为顾客写过的评价数。
    同一个用户可以既做饭又点餐，两个计数互不影响。
    """

    id: str
    user_type: UserType
    name: Optional[str] = None
    rating: Optional[float] = None
    rating_count: int = 0
    reviews_written: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def record_cook_rating(self, new_rating: float) -> None:
        """业务规则：加权滚动平均 (old_avg * old_count + new) / (old_count + 1)"""
        count = self.rating_count or 0
        current = self.rating or 0.0
        self.rating = round((current * count + new_rating) / (count + 1), 1)
        self.rating_count = count + 1
        self.updated_at = datetime.now(timezone.utc)

    def increment_review_count(self) -> None:
        """业务规则：顾客每提交一次评价计数加一"""
        self.reviews_written = (self.reviews_written or 0) + 1
        self.updated_at = datetime.now(timezone.utc)
