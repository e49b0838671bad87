"""
预订仓储实现 - 使用SQLAlchemy实现数据访问
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import ReservationNotFoundException
from domain.reservation.entity import (
    Reservation,
    ReservationPaymentStatus,
    ReservationRating,
    ReservationStatus,
)
from domain.reservation.repository import ReservationRepository
from infrastructure.models.reservation import ReservationModel


logger = get_logger(__name__)


class SQLAlchemyReservationRepository(ReservationRepository):
    """预订仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ReservationModel) -> Reservation:
        """将数据库模型转换为领域实体"""
        return Reservation(
            id=model.id,
            meal_id=model.meal_id,
            customer_id=model.customer_id,
            cook_id=model.cook_id,
            quantity=model.quantity,
            unit_price=Decimal(str(model.unit_price)),
            total_price=Decimal(str(model.total_price)),
            pickup_time=model.pickup_time,
            status=ReservationStatus(model.status),
            payment_id=model.payment_id,
            payment_status=ReservationPaymentStatus(model.payment_status) if model.payment_status else None,
            rating=ReservationRating.from_dict(model.rating) if model.rating else None,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Reservation) -> ReservationModel:
        """将领域实体转换为数据库模型"""
        return ReservationModel(
            id=entity.id,
            meal_id=entity.meal_id,
            customer_id=entity.customer_id,
            cook_id=entity.cook_id,
            quantity=entity.quantity,
            unit_price=entity.unit_price,
            total_price=entity.total_price,
            pickup_time=entity.pickup_time,
            status=entity.status.value,
            payment_id=entity.payment_id,
            payment_status=entity.payment_status.value if entity.payment_status else None,
            rating=entity.rating.to_dict() if entity.rating else None,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _get_model(self, reservation_id: str, *, for_update: bool = False) -> Optional[ReservationModel]:
        query = select(ReservationModel).where(ReservationModel.id == reservation_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def insert(self, reservation: Reservation) -> Reservation:
        """新增预订"""
        db_reservation = self._to_model(reservation)
        self.session.add(db_reservation)
        await self.session.flush()
        logger.info(
            "reservation_inserted",
            reservation_id=db_reservation.id,
            meal_id=db_reservation.meal_id,
            quantity=db_reservation.quantity,
        )
        return self._to_entity(db_reservation)

    async def update(self, reservation: Reservation) -> Reservation:
        """更新预订

        单价、数量与总价在创建后不可变，这里不回写。
        """
        db_reservation = await self._get_model(reservation.id)
        if not db_reservation:
            raise ReservationNotFoundException(reservation.id)

        db_reservation.status = reservation.status.value
        db_reservation.payment_id = reservation.payment_id
        db_reservation.payment_status = (
            reservation.payment_status.value if reservation.payment_status else None
        )
        db_reservation.rating = reservation.rating.to_dict() if reservation.rating else None
        db_reservation.updated_at = reservation.updated_at

        await self.session.flush()
        return self._to_entity(db_reservation)

    async def get_by_id(self, reservation_id: str, *, for_update: bool = False) -> Optional[Reservation]:
        """根据ID获取预订"""
        db_reservation = await self._get_model(reservation_id, for_update=for_update)
        return self._to_entity(db_reservation) if db_reservation else None

    async def list_by_customer_id(self, customer_id: str) -> List[Reservation]:
        """顾客的预订列表"""
        query = (
            select(ReservationModel)
            .where(ReservationModel.customer_id == customer_id)
            .order_by(ReservationModel.created_at.desc(), ReservationModel.id.desc())
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_by_cook_id(self, cook_id: str) -> List[Reservation]:
        """厨师的预订列表"""
        query = (
            select(ReservationModel)
            .where(ReservationModel.cook_id == cook_id)
            .order_by(ReservationModel.created_at.desc(), ReservationModel.id.desc())
        )
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]
