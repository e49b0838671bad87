"""
餐品仓储实现
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import MealNotFoundException
from domain.meal.entity import Meal
from domain.meal.repository import MealRepository
from infrastructure.models.meal import MealModel


class SQLAlchemyMealRepository(MealRepository):
    """餐品仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: MealModel) -> Meal:
        return Meal(
            id=model.id,
            cook_id=model.cook_id,
            name=model.name,
            price=Decimal(str(model.price)),
            available_quantity=model.available_quantity,
            rating=model.rating,
            review_count=model.review_count or 0,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Meal) -> MealModel:
        return MealModel(
            id=entity.id,
            cook_id=entity.cook_id,
            name=entity.name,
            price=entity.price,
            available_quantity=entity.available_quantity,
            rating=entity.rating,
            review_count=entity.review_count,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def create(self, meal: Meal) -> Meal:
        db_meal = self._to_model(meal)
        self.session.add(db_meal)
        await self.session.flush()
        await self.session.refresh(db_meal)
        return self._to_entity(db_meal)

    async def get_by_id(self, meal_id: str, *, for_update: bool = False) -> Optional[Meal]:
        query = select(MealModel).where(MealModel.id == meal_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_meal = result.scalar_one_or_none()
        return self._to_entity(db_meal) if db_meal else None

    async def update(self, meal: Meal) -> Meal:
        result = await self.session.execute(select(MealModel).where(MealModel.id == meal.id))
        db_meal = result.scalar_one_or_none()
        if not db_meal:
            raise MealNotFoundException(meal.id)

        db_meal.name = meal.name
        db_meal.price = meal.price
        db_meal.available_quantity = meal.available_quantity
        db_meal.rating = meal.rating
        db_meal.review_count = meal.review_count
        if meal.updated_at is not None:
            db_meal.updated_at = meal.updated_at

        await self.session.flush()
        return self._to_entity(db_meal)
