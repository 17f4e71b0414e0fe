"""
Review Repository

Data access layer for Review model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.repositories.base import BaseRepository
from storefinder.models.review import Review


class ReviewRepository(BaseRepository[Review]):
    """Repository for Review model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)
