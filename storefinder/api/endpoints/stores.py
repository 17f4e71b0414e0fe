"""
Store API Endpoints

JSON endpoints used by the typeahead, the map page and the heart buttons.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefinder.api.deps import get_current_api_user, get_store_service
from storefinder.models.user import User
from storefinder.schemas.auth import UserResponse, ErrorResponse
from storefinder.schemas.store import StoreSearchResult, StoreMapPin
from storefinder.services.store_service import StoreService, StoreNotFoundError

logger = logging.getLogger(__name__)

# ============================================================
# Router Setup
# ============================================================

router = APIRouter(tags=["Stores API"])


# ============================================================
# Search
# ============================================================

@router.get(
    "/search",
    response_model=List[StoreSearchResult],
)
async def search_stores(
    q: str = Query("", max_length=200, description="Text to search for"),
    store_service: StoreService = Depends(get_store_service)
):
    """
    Full-text search on store name and description.

    At most five stores, most relevant first. An empty query returns [].
    """
    return await store_service.search_stores(q)


# ============================================================
# Near
# ============================================================

@router.get(
    "/stores/near",
    response_model=List[StoreMapPin],
)
async def map_stores(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    store_service: StoreService = Depends(get_store_service)
):
    """Up to ten stores within 10 km of the point, closest first."""
    return await store_service.map_stores(lng=lng, lat=lat)


# ============================================================
# Hearts
# ============================================================

@router.post(
    "/stores/{store_id}/heart",
    response_model=UserResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not logged in"},
        404: {"model": ErrorResponse, "description": "Store not found"},
    }
)
async def heart_store(
    store_id: UUID,
    current_user: User = Depends(get_current_api_user),
    store_service: StoreService = Depends(get_store_service)
):
    """
    Toggle the store in the current user's hearts.

    Returns the user with the updated heart list.
    """
    try:
        return await store_service.toggle_heart(current_user, store_id)
    except StoreNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
