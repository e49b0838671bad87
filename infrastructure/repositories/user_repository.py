"""
用户资料仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import BusinessException
from domain.user.entity import UserProfile, UserType
from domain.user.repository import UserProfileRepository
from infrastructure.models.user import UserProfileModel
from shared.codes import BusinessCode


class SQLAlchemyUserProfileRepository(UserProfileRepository):
    """用户资料仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: UserProfileModel) -> UserProfile:
        return UserProfile(
            id=model.id,
            user_type=UserType(model.user_type),
            name=model.name,
            rating=model.rating,
            rating_count=model.rating_count or 0,
            reviews_written=model.reviews_written or 0,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: UserProfile) -> UserProfileModel:
        return UserProfileModel(
            id=entity.id,
            user_type=entity.user_type.value,
            name=entity.name,
            rating=entity.rating,
            rating_count=entity.rating_count,
            reviews_written=entity.reviews_written,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        result = await self.session.execute(
            select(UserProfileModel).where(UserProfileModel.id == user_id)
        )
        db_profile = result.scalar_one_or_none()
        return self._to_entity(db_profile) if db_profile else None

    async def create(self, profile: UserProfile) -> UserProfile:
        db_profile = self._to_model(profile)
        self.session.add(db_profile)
        await self.session.flush()
        await self.session.refresh(db_profile)
        return self._to_entity(db_profile)

    async def update(self, profile: UserProfile) -> UserProfile:
        result = await self.session.execute(
            select(UserProfileModel).where(UserProfileModel.id == profile.id)
        )
        db_profile = result.scalar_one_or_none()
        if not db_profile:
            raise BusinessException(
                code=BusinessCode.NOT_FOUND,
                message=f"用户不存在: {profile.id}",
                error_type="UserNotFound",
                details={"user_id": profile.id},
            )

        db_profile.name = profile.name
        db_profile.rating = profile.rating
        db_profile.rating_count = profile.rating_count
        db_profile.reviews_written = profile.reviews_written
        if profile.updated_at is not None:
            db_profile.updated_at = profile.updated_at

        await self.session.flush()
        return self._to_entity(db_profile)
