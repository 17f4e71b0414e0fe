from fastapi import APIRouter
from storefinder.api.endpoints import stores

# ============================================================
# JSON API Router
# ============================================================

api_router = APIRouter()

# Search, proximity and heart routes at /search and /stores/...
api_router.include_router(
    stores.router,
    prefix=""
)
