"""
User Repository

Data access layer for User model.
All user-related database operations, including hearts.
"""

from typing import Optional, Set
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert

from storefinder.repositories.base import BaseRepository
from storefinder.models import User, user_hearts
from storefinder.schemas.auth import UserRegister
from storefinder.core.security import get_password_hash

class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    # =================
    # Get by email
    # =================
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address."""
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    # =================
    # Create user
    # =================
    async def create_user(self, user_data: UserRegister) -> User:
        """Create a new user."""

        # Create new user
        user = User(
           email=user_data.email,
           name=user_data.name,
           password_hash=get_password_hash(user_data.password),
        )

        # Save to database
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        return user

    # =================
    # Update user
    # =================
    async def update_user(self, user_id, **kwargs) -> Optional[User]:
        """Update user fields."""
        return await self.update(user_id, **kwargs)

    # =================
    # Hearts
    # =================
    async def get_heart_ids(self, user_id: UUID) -> Set[UUID]:
        """Read the user's current heart set straight from the table."""
        result = await self.db.execute(
            select(user_hearts.c.store_id).where(user_hearts.c.user_id == user_id)
        )
        return set(result.scalars().all())

    async def toggle_heart(self, user_id: UUID, store_id: UUID) -> Set[UUID]:
        """
        Flip membership of a store in the user's hearts.

        The presence check reads the current set; the change itself is a
        single DELETE or a single INSERT ... ON CONFLICT DO NOTHING, so two
        concurrent toggles can neither duplicate nor corrupt the set.

        Returns:
            The heart set after the change
        """
        hearts = await self.get_heart_ids(user_id)

        if store_id in hearts:
            stmt = delete(user_hearts).where(
                user_hearts.c.user_id == user_id,
                user_hearts.c.store_id == store_id,
            )
        else:
            stmt = (
                insert(user_hearts)
                .values(user_id=user_id, store_id=store_id)
                .on_conflict_do_nothing()
            )

        await self.db.execute(stmt)
        await self.db.commit()

        return await self.get_heart_ids(user_id)
