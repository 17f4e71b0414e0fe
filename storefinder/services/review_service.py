import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.models import Review, User
from storefinder.repositories.review_repo import ReviewRepository
from storefinder.repositories.store_repo import StoreRepository
from storefinder.schemas.review import ReviewCreate
from storefinder.services.store_service import StoreNotFoundError

logger = logging.getLogger(__name__)


class ReviewService:
    """Service class for store reviews."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.review_repo = ReviewRepository(db)
        self.store_repo = StoreRepository(db)

    async def add_review(self, store_id: UUID, author: User, review_data: ReviewCreate) -> Review:
        """
        Attach a review by `author` to a store.

        Raises:
            StoreNotFoundError: If the store doesn't exist
        """
        store = await self.store_repo.get_by_id(store_id)
        if not store:
            raise StoreNotFoundError(f"Store {store_id} not found")

        review = await self.review_repo.create(
            store_id=store.id,
            author_id=author.id,
            text=review_data.text,
            rating=review_data.rating,
        )
        logger.info(f"Review {review.id} added to store {store.slug}")
        return review
