"""
Outbox 仓储实现
"""
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.outbox.entity import OutboxMessage, OutboxStatus
from domain.outbox.repository import OutboxRepository
from infrastructure.models.outbox import OutboxMessageModel


class SQLAlchemyOutboxRepository(OutboxRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OutboxMessageModel) -> OutboxMessage:
        return OutboxMessage(
            id=model.id,
            topic=model.topic,
            payload=dict(model.payload or {}),
            status=OutboxStatus(model.status),
            attempts=model.attempts or 0,
            last_error=model.last_error,
            next_attempt_at=model.next_attempt_at,
            created_at=model.created_at,
            sent_at=model.sent_at,
        )

    async def add(self, message: OutboxMessage) -> OutboxMessage:
        self.session.add(
            OutboxMessageModel(
                id=message.id,
                topic=message.topic,
                payload=message.payload,
                status=message.status.value,
                attempts=message.attempts,
                last_error=message.last_error,
                next_attempt_at=message.next_attempt_at,
                created_at=message.created_at,
                sent_at=message.sent_at,
            )
        )
        await self.session.flush()
        return message

    async def list_due(self, now: datetime, limit: int = 100) -> List[OutboxMessage]:
        query = (
            select(OutboxMessageModel)
            .where(
                OutboxMessageModel.status == OutboxStatus.PENDING.value,
                OutboxMessageModel.next_attempt_at <= now,
            )
            .order_by(OutboxMessageModel.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def update(self, message: OutboxMessage) -> OutboxMessage:
        result = await self.session.execute(
            select(OutboxMessageModel).where(OutboxMessageModel.id == message.id)
        )
        db_message = result.scalar_one()
        db_message.status = message.status.value
        db_message.attempts = message.attempts
        db_message.last_error = message.last_error
        db_message.next_attempt_at = message.next_attempt_at
        db_message.sent_at = message.sent_at
        await self.session.flush()
        return message
