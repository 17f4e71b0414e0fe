from fastapi import HTTPException, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid
import logging

from storefinder.db.database import get_db
from storefinder.models import User
from storefinder.core.security import verify_access_token
from storefinder.repositories.user_repo import UserRepository
from storefinder.services.auth_service import AuthService
from storefinder.services.photo_service import PhotoService
from storefinder.services.review_service import ReviewService
from storefinder.services.store_service import StoreService
from storefinder.web.context import PageContext, LoginRequired, SESSION_TOKEN_KEY

logger = logging.getLogger(__name__)


# =====================================================
# Session user
# =====================================================
async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Resolve the logged-in user from the session cookie.

    A stale or tampered token is dropped from the session and the
    request continues anonymously.
    """
    token = request.session.get(SESSION_TOKEN_KEY)
    if not token:
        return None

    user_id = verify_access_token(token)
    user = None
    if user_id:
        try:
            user = await UserRepository(db).get_by_id(uuid.UUID(user_id))
        except ValueError:
            user = None

    if user is None:
        logger.info("Dropping invalid session token")
        request.session.pop(SESSION_TOKEN_KEY, None)

    return user


# =====================================================
# Page context
# =====================================================
async def get_page_context(
    request: Request,
    user: Optional[User] = Depends(get_optional_user)
) -> PageContext:
    return PageContext(request=request, user=user)


async def require_login(
    ctx: PageContext = Depends(get_page_context)
) -> PageContext:
    """
    Page context for handlers that need a logged-in user.

    Raises:
        LoginRequired: Handled globally with a flash and a redirect to /login
    """
    if ctx.user is None:
        raise LoginRequired()
    return ctx


# =====================================================
# Get Current user (JSON API)
# =====================================================
async def get_current_api_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """
    Dependency for JSON endpoints that need a logged-in user.

    Raises:
        HTTPException 401: If nobody is logged in
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user


# =====================================================
# Services
# =====================================================
def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_store_service(db: AsyncSession = Depends(get_db)) -> StoreService:
    return StoreService(db)


def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_photo_service() -> PhotoService:
    return PhotoService()
