"""
预订数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, JSON, Numeric, String

from .base import Base


class ReservationModel(Base):
    """
    预订数据库模型

    所有业务规则都在 domain.reservation.entity.Reservation 中
    """
    __tablename__ = "reservations"

    id = Column(String(64), primary_key=True, comment="预订ID")
    meal_id = Column(String(64), nullable=False, index=True, comment="餐品ID")
    customer_id = Column(String(64), nullable=False, index=True, comment="顾客ID")
    cook_id = Column(String(64), nullable=False, index=True, comment="厨师ID")

    quantity = Column(Integer, nullable=False, comment="数量")
    unit_price = Column(Numeric(precision=15, scale=2), nullable=False, comment="下单时单价")
    total_price = Column(Numeric(precision=15, scale=2), nullable=False, comment="总价（创建后不可变）")
    pickup_time = Column(DateTime(timezone=True), nullable=False, comment="取餐时间")

    status = Column(
        String(32),
        nullable=False,
        default="pending",
        index=True,
        comment="状态: pending/confirmed/ready_for_pickup/completed/cancelled",
    )
    payment_id = Column(String(64), nullable=True, comment="账本流水ID")
    payment_status = Column(String(16), nullable=True, comment="支付状态: pending/paid/refunded/failed")
    rating = Column(JSON, nullable=True, comment="评价")

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

    __table_args__ = (
        Index("ix_reservations_customer_created", "customer_id", "created_at"),
        Index("ix_reservations_cook_created", "cook_id", "created_at"),
    )

    def __repr__(self):
        return f"<ReservationModel(id='{self.id}', status='{self.status}', total_price={self.total_price})>"
