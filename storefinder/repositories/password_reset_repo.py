"""
Password Reset Repository

Data access for the reset token embedded on the User record.
"""

from typing import Optional
from datetime import datetime, timezone, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from storefinder.repositories.base import BaseRepository
from storefinder.models.user import User
from storefinder.core.config import settings
from storefinder.core.security import generate_reset_token


class PasswordResetRepository(BaseRepository[User]):
    """Repository for the (token, expiry) pair stored on users."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    # =================
    # Issue token
    # =================
    async def issue_token(self, user: User) -> User:
        """
        Set a fresh reset token and expiry on the user.

        Any previous token is overwritten.

        Args:
            user: The user requesting the reset

        Returns:
            The user with token and expiry set
        """
        user.reset_password_token = generate_reset_token()
        user.reset_password_expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
        )

        await self.db.commit()
        await self.db.refresh(user)

        return user

    # =================
    # Find live token
    # =================
    async def get_user_by_token(
        self,
        token: str,
        now: Optional[datetime] = None
    ) -> Optional[User]:
        """
        Find the user owning a live reset token.

        A token only matches while its expiry is still in the future.

        Args:
            token: The token from the reset URL
            now: Reference time (defaults to the current UTC time)

        Returns:
            User if the token is live, None otherwise
        """
        now = now or datetime.now(timezone.utc)

        result = await self.db.execute(
            select(User).where(
                and_(
                    User.reset_password_token == token,
                    User.reset_password_expires > now
                )
            )
        )

        return result.scalar_one_or_none()

    # =================
    # Consume token
    # =================
    async def consume_token(self, user: User, password_hash: str) -> User:
        """
        Store the new credential and clear the token in one commit.

        Args:
            user: The user whose token was matched
            password_hash: Hash of the new password

        Returns:
            The updated user
        """
        user.password_hash = password_hash
        user.reset_password_token = None
        user.reset_password_expires = None

        await self.db.commit()
        await self.db.refresh(user)

        return user
