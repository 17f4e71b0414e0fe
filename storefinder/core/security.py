from datetime import datetime, timezone, timedelta
from typing import Any, Union, Optional, Dict
import secrets
import uuid

from jose import JWTError, jwt

# bcrypt directly, no passlib
import bcrypt

from storefinder.core.config import settings


# =====================================================
# Constants
# =====================================================
TOKEN_TYPE_ACCESS = "access"

# Password reset tokens are 20 random bytes, hex encoded (40 chars)
RESET_TOKEN_BYTES = 20


# =====================================================
# Login token (kept in the session cookie)
# =====================================================
def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Signed JWT naming the logged-in user.

    Args:
        subject: User id
        expires_delta: Lifetime, ACCESS_TOKEN_EXPIRE_MINUTES by default
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": str(subject),
        "type": TOKEN_TYPE_ACCESS,
        "iat": now,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(
    token: str,
    token_type: str = TOKEN_TYPE_ACCESS
) -> Optional[Dict[str, Any]]:
    """
    Decoded payload of a valid, unexpired token of `token_type`, else None.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None

    return payload


def verify_access_token(token: str) -> Optional[str]:
    """User id named by a login token, or None."""
    payload = verify_token(token, TOKEN_TYPE_ACCESS)
    return payload.get("sub") if payload else None


# =====================================================
# Passwords
# =====================================================
def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


# =====================================================
# Password reset
# =====================================================
def generate_reset_token() -> str:
    """Random hex token for the emailed reset link."""
    return secrets.token_hex(RESET_TOKEN_BYTES)
