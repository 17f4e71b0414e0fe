"""
Store Service

Business logic for stores: creation with slugs, ownership checks,
pagination, tags, search, proximity, hearts and the top list.
"""

import logging
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.models import Store, User
from storefinder.repositories.store_repo import StoreRepository
from storefinder.repositories.user_repo import UserRepository
from storefinder.schemas.auth import UserResponse
from storefinder.schemas.store import StoreForm, StoreSearchResult, StoreMapPin, Location

logger = logging.getLogger(__name__)

STORES_PER_PAGE = 4
SEARCH_RESULT_LIMIT = 5
NEAR_MAX_DISTANCE_METERS = 10_000
NEAR_RESULT_LIMIT = 10
TOP_STORES_MIN_REVIEWS = 2
TOP_STORES_LIMIT = 10


# ============================================================
# Exceptions
# ============================================================

class StoreServiceError(Exception):
    """Base exception for store service errors."""
    pass


class StoreNotFoundError(StoreServiceError):
    """Raised when a store doesn't exist."""
    pass


class StoreOwnershipError(StoreServiceError):
    """Raised when a user edits a store they did not create."""
    pass


# ============================================================
# Helpers
# ============================================================

def slugify(name: str) -> str:
    """
    URL-safe slug from a store name.

    Example:
        slugify("Café Olé & Co!")  # "cafe-ole-and-co"
    """
    value = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    value = value.replace("&", " and ")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    value = re.sub(r"[-_\s]+", "-", value).strip("-")
    return value or "store"


def confirm_owner(store: Store, user: User) -> None:
    """
    Only the author may edit a store.

    Raises:
        StoreOwnershipError: If `user` did not create `store`
    """
    if store.author_id != user.id:
        raise StoreOwnershipError("You must own a store in order to edit it!")


@dataclass
class StorePage:
    """One page of the store listing."""

    stores: List[Store]
    page: int
    pages: int
    count: int
    skip: int

    @property
    def is_past_end(self) -> bool:
        """True when a page beyond the last one was requested."""
        return not self.stores and self.skip > 0


def paginate(page: int, count: int, limit: int = STORES_PER_PAGE) -> Tuple[int, int]:
    """
    Offset and page count for a 1-based page number.

    Returns:
        (skip, pages)
    """
    skip = (page * limit) - limit
    pages = math.ceil(count / limit)
    return skip, pages


# ============================================================
# Service
# ============================================================

class StoreService:
    """Service class for store operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store_repo = StoreRepository(db)
        self.user_repo = UserRepository(db)

    # ============================================================
    # Listing
    # ============================================================
    async def get_stores_page(self, page: int = 1) -> StorePage:
        """
        Fetch one page of stores, newest first.

        The page items and the total count are fetched one after the
        other on the same session.
        """
        count = await self.store_repo.count()
        skip, pages = paginate(page, count)
        stores = await self.store_repo.get_page(skip=skip, limit=STORES_PER_PAGE)

        return StorePage(stores=stores, page=page, pages=pages, count=count, skip=skip)

    # ============================================================
    # Create / Update
    # ============================================================
    async def _unique_slug(self, name: str, exclude_id: Optional[UUID] = None) -> str:
        """
        Slug for `name`, suffixed one past the highest number in use when
        the plain slug is taken ("coffee", "coffee-2", "coffee-3").
        """
        base_slug = slugify(name)
        taken = await self.store_repo.get_slug_family(base_slug, exclude_id=exclude_id)
        if base_slug not in taken:
            return base_slug

        suffixes = [1]
        for slug in taken:
            suffix = slug[len(base_slug) + 1:]
            if suffix.isdigit():
                suffixes.append(int(suffix))
        return f"{base_slug}-{max(suffixes) + 1}"

    async def create_store(self, form: StoreForm, author: User) -> Store:
        """
        Persist a new store owned by `author`.

        Args:
            form: Validated form data (photo already resized, if any)
            author: The logged-in user

        Returns:
            The created store
        """
        slug = await self._unique_slug(form.name)

        store = await self.store_repo.create(
            name=form.name,
            slug=slug,
            description=form.description,
            tags=form.tags,
            address=form.address,
            lng=form.lng,
            lat=form.lat,
            photo=form.photo,
            author_id=author.id,
        )
        logger.info(f"Store {store.slug} created by user {author.id}")
        return store

    async def get_store_for_edit(self, store_id: UUID, user: User) -> Store:
        """
        Load a store the user is about to edit.

        Raises:
            StoreNotFoundError: If the store doesn't exist
            StoreOwnershipError: If the user isn't its author
        """
        store = await self.store_repo.get_by_id(store_id)
        if not store:
            raise StoreNotFoundError(f"Store {store_id} not found")

        confirm_owner(store, user)
        return store

    async def update_store(self, store_id: UUID, form: StoreForm, user: User) -> Store:
        """
        Apply the edit form to a store and return the updated record.

        The stored photo is kept when no new one was uploaded. The slug is
        regenerated only when the name changes.

        Raises:
            StoreNotFoundError: If the store doesn't exist
            StoreOwnershipError: If the user isn't its author
        """
        store = await self.get_store_for_edit(store_id, user)

        updates: Dict[str, Any] = form.model_dump()
        if updates["photo"] is None:
            updates.pop("photo")

        if form.name != store.name:
            updates["slug"] = await self._unique_slug(form.name, exclude_id=store.id)

        store = await self.store_repo.update(store.id, **updates)
        logger.info(f"Store {store.slug} updated by user {user.id}")
        return store

    # ============================================================
    # Lookups
    # ============================================================
    async def get_store_by_slug(self, slug: str) -> Store:
        store = await self.store_repo.get_by_slug(slug)
        if not store:
            raise StoreNotFoundError(f"Store {slug} not found")
        return store

    async def get_stores_by_tag(
        self,
        tag: Optional[str] = None
    ) -> Tuple[List[Tuple[str, int]], List[Store]]:
        """
        The tag cloud and the stores for the selected tag.

        With no tag, every store that has at least one tag is returned.
        """
        tags = await self.store_repo.get_tags_list()
        stores = await self.store_repo.get_by_tag(tag)
        return tags, stores

    async def get_top_stores(self) -> List[Dict[str, Any]]:
        return await self.store_repo.get_top_stores(
            min_reviews=TOP_STORES_MIN_REVIEWS,
            limit=TOP_STORES_LIMIT,
        )

    # ============================================================
    # Search
    # ============================================================
    async def search_stores(self, query: Optional[str]) -> List[StoreSearchResult]:
        """
        Full-text search on name and description, at most five hits.

        An empty query matches nothing.
        """
        query = (query or "").strip()
        if not query:
            return []

        rows = await self.store_repo.search(query, limit=SEARCH_RESULT_LIMIT)
        return [
            StoreSearchResult(
                id=store.id,
                slug=store.slug,
                name=store.name,
                description=store.description,
                photo=store.photo,
                score=score,
            )
            for store, score in rows
        ]

    async def map_stores(self, lng: float, lat: float) -> List[StoreMapPin]:
        """Up to ten stores within ten kilometers of (lng, lat), closest first."""
        rows = await self.store_repo.near(
            lng=lng,
            lat=lat,
            max_distance=NEAR_MAX_DISTANCE_METERS,
            limit=NEAR_RESULT_LIMIT,
        )
        return [
            StoreMapPin(
                id=row["id"],
                slug=row["slug"],
                name=row["name"],
                description=row["description"],
                photo=row["photo"],
                location=Location(
                    coordinates=[row["lng"], row["lat"]],
                    address=row["address"],
                ),
            )
            for row in rows
        ]

    # ============================================================
    # Hearts
    # ============================================================
    async def toggle_heart(self, user: User, store_id: UUID) -> UserResponse:
        """
        Add the store to the user's hearts, or remove it if present.

        Returns:
            The user with the heart set after the change

        Raises:
            StoreNotFoundError: If the store doesn't exist
        """
        store = await self.store_repo.get_by_id(store_id)
        if not store:
            raise StoreNotFoundError(f"Store {store_id} not found")

        hearts = await self.user_repo.toggle_heart(user.id, store.id)

        return UserResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            hearts=sorted(hearts, key=str),
            created_at=user.created_at,
        )

    async def get_hearted_stores(self, user: User) -> List[Store]:
        hearts = await self.user_repo.get_heart_ids(user.id)
        return await self.store_repo.get_by_ids(hearts)
