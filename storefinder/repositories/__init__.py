from storefinder.repositories.base import BaseRepository
from storefinder.repositories.user_repo import UserRepository
from storefinder.repositories.password_reset_repo import PasswordResetRepository
from storefinder.repositories.store_repo import StoreRepository
from storefinder.repositories.review_repo import ReviewRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PasswordResetRepository",
    "StoreRepository",
    "ReviewRepository",
]
