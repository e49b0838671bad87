"""
用户资料数据库模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String

from .base import Base


class UserProfileModel(Base):
    __tablename__ = "user_profiles"

    id = Column(String(64), primary_key=True, comment="用户ID")
    user_type = Column(String(16), nullable=False, comment="用户类型: cook/customer")
    name = Column(String(100), nullable=True, comment="名称")
    rating = Column(Float, nullable=True, comment="平均评分（厨师）")
    rating_count = Column(Integer, nullable=False, default=0, comment="作为厨师收到的评分数")
    reviews_written = Column(Integer, nullable=False, default=0, comment="作为顾客写过的评价数")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间",
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间",
    )

    def __repr__(self):
        return f"<UserProfileModel(id='{self.id}', user_type='{self.user_type}')>"
