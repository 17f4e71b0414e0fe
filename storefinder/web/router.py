from fastapi import APIRouter
from storefinder.web import stores, accounts, reviews

# ============================================================
# Page Router
# ============================================================

page_router = APIRouter(include_in_schema=False)

page_router.include_router(stores.router)
page_router.include_router(accounts.router)
page_router.include_router(reviews.router)
