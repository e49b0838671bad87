"""
Outbox 消息表
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text

from .base import Base


class OutboxMessageModel(Base):
    __tablename__ = "outbox_messages"

    id = Column(String(64), primary_key=True, comment="消息ID")
    topic = Column(String(100), nullable=False, comment="主题")
    payload = Column(JSON, nullable=False, comment="消息体")
    status = Column(String(16), nullable=False, default="pending", comment="状态: pending/sent/dead")
    attempts = Column(Integer, nullable=False, default=0, comment="已尝试次数")
    last_error = Column(Text, nullable=True, comment="最近一次错误")
    next_attempt_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="下次投递时间",
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间",
    )
    sent_at = Column(DateTime(timezone=True), nullable=True, comment="投递成功时间")

    __table_args__ = (
        Index("ix_outbox_messages_status_next", "status", "next_attempt_at"),
    )
