"""
餐品应用服务 - 库存与评分
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional
import uuid

from application.dtos.meals import MealCreateDTO, MealResponseDTO
from core.logging_config import get_logger
from domain.common.exceptions import MealNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.meal.entity import Meal


logger = get_logger(__name__)


class MealApplicationService:

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def create_meal(self, data: MealCreateDTO) -> MealResponseDTO:
        now = datetime.now(timezone.utc)
        meal = Meal(
            id=data.id or f"meal-{uuid.uuid4().hex}",
            cook_id=data.cook_id,
            name=data.name,
            price=data.price,
            available_quantity=data.available_quantity,
            created_at=now,
            updated_at=now,
        )
        async with self._uow_factory() as uow:
            meal = await uow.meal_repository.create(meal)
        logger.info("meal_created", meal_id=meal.id, cook_id=meal.cook_id, price=str(meal.price))
        return MealResponseDTO.model_validate(meal)

    async def get_meal(self, meal_id: str) -> MealResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            meal = await uow.meal_repository.get_by_id(meal_id)
        if meal is None:
            raise MealNotFoundException(meal_id)
        return MealResponseDTO.model_validate(meal)

    async def decrease_quantity(self, meal_id: str, amount: int) -> Optional[MealResponseDTO]:
        """扣减库存（最低为0）；未知餐品只记录警告"""
        async with self._uow_factory() as uow:
            meal = await uow.meal_repository.get_by_id(meal_id, for_update=True)
            if meal is None:
                logger.warning("meal_quantity_decrease_unknown_meal", meal_id=meal_id, amount=amount)
                return None
            previous = meal.decrease_quantity(amount)
            meal = await uow.meal_repository.update(meal)
        logger.info(
            "meal_quantity_decreased",
            meal_id=meal_id,
            previous=previous,
            available_quantity=meal.available_quantity,
        )
        return MealResponseDTO.model_validate(meal)

    async def update_meal_rating(self, meal_id: str, new_rating: float) -> MealResponseDTO:
        async with self._uow_factory() as uow:
            meal = await uow.meal_repository.get_by_id(meal_id, for_update=True)
            if meal is None:
                raise MealNotFoundException(meal_id)
            meal.add_rating(new_rating)
            meal = await uow.meal_repository.update(meal)
        return MealResponseDTO.model_validate(meal)

    async def update_price(self, meal_id: str, price: Decimal) -> MealResponseDTO:
        """改价只影响之后的预订"""
        async with self._uow_factory() as uow:
            meal = await uow.meal_repository.get_by_id(meal_id, for_update=True)
            if meal is None:
                raise MealNotFoundException(meal_id)
            meal.change_price(price)
            meal = await uow.meal_repository.update(meal)
        logger.info("meal_price_updated", meal_id=meal_id, price=str(meal.price))
        return MealResponseDTO.model_validate(meal)
