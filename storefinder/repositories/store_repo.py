"""
Store Repository

Data access layer for Store model: listing, slug lookups, tags,
full-text search and proximity queries.
"""

import re
from typing import Any, Dict, List, Optional, Set, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from sqlalchemy.orm import selectinload

from storefinder.repositories.base import BaseRepository
from storefinder.models.store import Store, store_search_document
from storefinder.models.review import Review

# Mean Earth radius used for great-circle distances
EARTH_RADIUS_METERS = 6_371_000


class StoreRepository(BaseRepository[Store]):
    """Repository for Store model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Store, db)

    # =================
    # Listing
    # =================
    async def get_page(self, skip: int = 0, limit: int = 4) -> List[Store]:
        """Get stores newest first."""
        stmt = (
            select(Store)
            .order_by(Store.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # =================
    # Slug lookups
    # =================
    async def get_by_slug(self, slug: str) -> Optional[Store]:
        """Get a store with its author and reviews loaded."""
        stmt = (
            select(Store)
            .where(Store.slug == slug)
            .options(
                selectinload(Store.author),
                selectinload(Store.reviews),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_slug_family(self, base_slug: str, exclude_id: Optional[UUID] = None) -> Set[str]:
        """
        Slugs already taken that are `base_slug` or `base_slug-<digits>`.
        """
        pattern = f"^{re.escape(base_slug)}(-[0-9]+)?$"
        stmt = select(Store.slug).where(Store.slug.regexp_match(pattern))
        if exclude_id is not None:
            stmt = stmt.where(Store.id != exclude_id)
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    # =================
    # Tags
    # =================
    async def get_tags_list(self) -> List[Tuple[str, int]]:
        """Distinct tags with the number of stores carrying each, most common first."""
        tags = select(func.unnest(Store.tags).label("tag")).subquery()
        stmt = (
            select(tags.c.tag, func.count().label("count"))
            .group_by(tags.c.tag)
            .order_by(desc("count"), tags.c.tag)
        )
        result = await self.db.execute(stmt)
        return [(row.tag, row.count) for row in result.all()]

    async def get_by_tag(self, tag: Optional[str] = None) -> List[Store]:
        """Stores carrying `tag`, or every store with at least one tag."""
        stmt = select(Store)
        if tag:
            stmt = stmt.where(Store.tags.any(tag))
        else:
            stmt = stmt.where(func.cardinality(Store.tags) > 0)
        result = await self.db.execute(stmt.order_by(Store.created_at.desc()))
        return list(result.scalars().all())

    async def get_by_ids(self, ids: Set[UUID]) -> List[Store]:
        """Stores whose id is in `ids`."""
        if not ids:
            return []
        result = await self.db.execute(
            select(Store).where(Store.id.in_(ids)).order_by(Store.created_at.desc())
        )
        return list(result.scalars().all())

    # =================
    # Search
    # =================
    async def search(self, query: str, limit: int = 5) -> List[Tuple[Store, float]]:
        """
        Full-text search over name and description.

        Returns:
            (store, relevance score) pairs, best match first
        """
        document = store_search_document()
        ts_query = func.plainto_tsquery("english", query)
        score = func.ts_rank(document, ts_query).label("score")

        stmt = (
            select(Store, score)
            .where(document.op("@@")(ts_query))
            .order_by(desc("score"))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [(row.Store, row.score) for row in result.all()]

    async def near(
        self,
        lng: float,
        lat: float,
        max_distance: float = 10_000,
        limit: int = 10
    ) -> List[Dict[str, Any]]:
        """
        Stores within `max_distance` meters of a point, closest first.

        Only the fields a map pin needs are selected.
        """
        # Spherical law of cosines; least() guards acos against rounding above 1
        distance = (
            EARTH_RADIUS_METERS
            * func.acos(
                func.least(
                    1.0,
                    func.cos(func.radians(lat))
                    * func.cos(func.radians(Store.lat))
                    * func.cos(func.radians(Store.lng) - func.radians(lng))
                    + func.sin(func.radians(lat)) * func.sin(func.radians(Store.lat)),
                )
            )
        ).label("distance")

        stmt = (
            select(
                Store.id,
                Store.slug,
                Store.name,
                Store.description,
                Store.address,
                Store.lng,
                Store.lat,
                Store.photo,
                distance,
            )
            .where(distance <= max_distance)
            .order_by(distance)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [dict(row._mapping) for row in result.all()]

    # =================
    # Top stores
    # =================
    async def get_top_stores(self, min_reviews: int = 2, limit: int = 10) -> List[Dict[str, Any]]:
        """Stores with at least `min_reviews` reviews, best average rating first."""
        average = func.avg(Review.rating).label("average_rating")
        review_count = func.count(Review.id).label("review_count")

        stmt = (
            select(Store, average, review_count)
            .join(Review, Review.store_id == Store.id)
            .group_by(Store.id)
            .having(func.count(Review.id) >= min_reviews)
            .order_by(desc("average_rating"))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "store": row.Store,
                "average_rating": float(row.average_rating),
                "review_count": row.review_count,
            }
            for row in result.all()
        ]
