import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.models import User
from storefinder.repositories.user_repo import UserRepository
from storefinder.repositories.password_reset_repo import PasswordResetRepository
from storefinder.schemas.auth import UserRegister, UserLogin, AccountUpdate
from storefinder.core.security import verify_password, get_password_hash
from storefinder.utils.email import send_password_reset_email

logger = logging.getLogger(__name__)

# Shown for every reset attempt without a live token, whatever the cause
RESET_INVALID_MESSAGE = "Password reset is invalid or has expired"
LOGIN_FAILED_MESSAGE = "Failed Login!"


def confirmed_passwords(password: Optional[str], password_confirm: Optional[str]) -> bool:
    """Both submitted passwords must be present and equal."""
    return bool(password) and password == password_confirm


def is_reset_token_live(user: User, token: str, now: Optional[datetime] = None) -> bool:
    """A reset token is live while it matches and its expiry is still ahead."""
    now = now or datetime.now(timezone.utc)
    return (
        user.reset_password_token is not None
        and user.reset_password_token == token
        and user.reset_password_expires is not None
        and user.reset_password_expires > now
    )


class AuthService:
    """
    Service class for authentication operations.

    """
    def __init__(self, db: AsyncSession):
        """
        Initialize with database session.

        Args:
            db: AsyncSession instance
        """
        self.db = db
        self.user_repo = UserRepository(db)
        self.password_reset_repo = PasswordResetRepository(db)

    # ============================================================
    # User Registration
    # ============================================================
    async def register(self, user_data: UserRegister) -> User:
        """
        Register a new user.

        Args:
            user_data: Validated registration data

        Returns:
            The created user

        Raises:
            ValueError: If email already exists
        """
        existing_user = await self.user_repo.get_by_email(user_data.email)

        if existing_user:
            raise ValueError("A user with this email already exists")

        user = await self.user_repo.create_user(user_data)
        logger.info(f"Registered user {user.id}")
        return user


    # ============================================================
    # User Login
    # ============================================================
    async def authenticate(self, login_data: UserLogin) -> User:
        """
        Check credentials.

        Args:
            login_data: Email and password

        Returns:
            The authenticated user

        Raises:
            ValueError: If credentials are invalid
        """
        user = await self.user_repo.get_by_email(login_data.email)

        if not user or not verify_password(login_data.password, user.password_hash):
            raise ValueError(LOGIN_FAILED_MESSAGE)

        return user

    # ============================================================
    # Account
    # ============================================================
    async def update_account(self, user: User, account_data: AccountUpdate) -> User:
        """
        Update name and email of the current user.

        Raises:
            ValueError: If the new email belongs to someone else
        """
        if account_data.email != user.email:
            other = await self.user_repo.get_by_email(account_data.email)
            if other and other.id != user.id:
                raise ValueError("A user with this email already exists")

        return await self.user_repo.update_user(
            user.id,
            name=account_data.name,
            email=account_data.email,
        )

    # ============================================================
    # Password Reset - Request
    # ============================================================

    async def request_password_reset(self, email: str, base_url: str) -> None:
        """
        Issue a reset token for a known email and mail the reset link.

        Unknown emails are silently ignored so callers respond the same
        way whether or not the account exists.

        Args:
            email: Email typed into the forgot-password form
            base_url: Scheme and host of the current request,
                e.g. "http://localhost:7777"
        """
        user = await self.user_repo.get_by_email(email)

        if not user:
            logger.info("Password reset requested for an unknown email")
            return

        user = await self.password_reset_repo.issue_token(user)

        reset_url = f"{base_url.rstrip('/')}/account/reset/{user.reset_password_token}"
        await send_password_reset_email(
            email=user.email,
            name=user.name,
            reset_url=reset_url,
        )

    # ============================================================
    # Password Reset - Verify Token
    # ============================================================

    async def get_user_for_reset(self, token: str) -> Optional[User]:
        """
        Find the user owning a live reset token.

        Returns:
            The user, or None for wrong, expired or never-issued tokens
        """
        now = datetime.now(timezone.utc)
        user = await self.password_reset_repo.get_user_by_token(token, now=now)

        if user is None or not is_reset_token_live(user, token, now):
            return None

        return user

    # ============================================================
    # Password Reset - Reset Password
    # ============================================================

    async def reset_password(self, token: str, new_password: str) -> User:
        """
        Reset user's password using a live reset token.

        The token and its expiry are cleared in the same commit as the
        new credential.

        Args:
            token: Reset token from the emailed link
            new_password: New password to set

        Returns:
            The updated user, ready to be logged in

        Raises:
            ValueError: If the token is wrong, expired or was never issued
        """
        user = await self.get_user_for_reset(token)

        if not user:
            raise ValueError(RESET_INVALID_MESSAGE)

        user = await self.password_reset_repo.consume_token(
            user,
            get_password_hash(new_password),
        )
        logger.info(f"Password reset for user {user.id}")

        return user
