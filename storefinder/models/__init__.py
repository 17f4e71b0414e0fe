from storefinder.models.base import Base
from storefinder.models.user import User, user_hearts
from storefinder.models.store import Store
from storefinder.models.review import Review

__all__ = [
    "Base",
    "User",
    "user_hearts",
    "Store",
    "Review",
]
