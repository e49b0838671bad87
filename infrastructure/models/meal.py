"""
餐品数据库模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, Numeric, String

from .base import Base


class MealModel(Base):
    __tablename__ = "meals"

    id = Column(String(64), primary_key=True, comment="餐品ID")
    cook_id = Column(String(64), nullable=False, index=True, comment="厨师ID")
    name = Column(String(200), nullable=False, comment="名称")
    price = Column(Numeric(precision=15, scale=2), nullable=False, comment="单价")
    available_quantity = Column(Integer, nullable=False, default=0, comment="可售数量")
    rating = Column(Float, nullable=True, comment="平均评分")
    review_count = Column(Integer, nullable=False, default=0, comment="评价数")

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
        return f"<MealModel(id='{self.id}', available_quantity={self.available_quantity})>"
