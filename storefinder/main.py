"""
FastAPI Application Entry Point

This module initializes the FastAPI application with:
- Session, CORS and logging middleware
- Static files and uploaded photos
- Page and JSON API route registration
- Exception handlers that turn errors into pages or redirects
- Health check endpoint
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from storefinder.core.config import settings
from storefinder.db.database import check_db_connection, dispose_engine
from storefinder.middleware.logging import LoggingMiddleware
from storefinder.services.store_service import StoreNotFoundError, StoreOwnershipError
from storefinder.storage import get_storage
from storefinder.web.context import (
    PageContext,
    LoginRequired,
    FormValidationError,
    flash,
    redirect_back,
)
from storefinder.api.router import api_router
from storefinder.web.router import page_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# ============================================================
# Application Lifespan Events
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Check database connection
    - Prepare photo storage

    Shutdown:
    - Close pooled database connections
    """
    # ========== STARTUP ==========
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    logger.info(f"Debug mode: {settings.DEBUG}")

    db_healthy = await check_db_connection()
    if db_healthy:
        logger.info("Database connection established successfully")
    else:
        logger.warning("Database connection check failed")

    get_storage()

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")
    await dispose_engine()
    logger.info("Shutdown complete")


# ============================================================
# Create FastAPI Application
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    Store Finder

    Features:
    - Stores with photos, tags and locations
    - Full-text and proximity search
    - Hearts, reviews and top stores
    - Accounts with email password reset
    """,
    version="1.0.0",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan
)

# ----------------------------------------------------
# Middleware Configuration
# ----------------------------------------------------
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    same_site="lax",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=not settings.DEBUG,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

if settings.DEBUG:
    app.add_middleware(LoggingMiddleware)


# ----------------------------------------------------
# Static files
# ----------------------------------------------------
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# ----------------------------------------------------
# Health Check Endpoint
# ----------------------------------------------------
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Checks:
    - Database connectivity
    """
    db_healthy = await check_db_connection()

    if not db_healthy:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected"}
        )

    return {"status": "healthy", "database": "connected"}


# ============================================================
# Include Routers
# ============================================================
app.include_router(
    api_router,
    prefix=settings.API_PREFIX
)

app.include_router(page_router)


# ----------------------------------------------------
# Exception Handlers
# ----------------------------------------------------
def _wants_json(request: Request) -> bool:
    return request.url.path.startswith(settings.API_PREFIX)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    """Anonymous visitor on a members-only page."""
    flash(request, "error", "Oops you must be logged in to do that!")
    return PageContext(request).redirect("/login")


@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError):
    """Flash every validation message and send the user back to the form."""
    for message in exc.messages:
        flash(request, "error", message)
    return redirect_back(request)


@app.exception_handler(StoreOwnershipError)
async def store_ownership_handler(request: Request, exc: StoreOwnershipError):
    logger.info(f"Rejected edit: {exc}")
    return PageContext(request).render(
        "error.html",
        status_code=403,
        title="Forbidden",
        message=str(exc),
    )


@app.exception_handler(StoreNotFoundError)
async def store_not_found_handler(request: Request, exc: StoreNotFoundError):
    if _wants_json(request):
        return JSONResponse(status_code=404, content={"detail": "Not found"})
    return PageContext(request).render("not_found.html", status_code=404, title="Not Found")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """JSON for the API, pages for everything else."""
    if _wants_json(request):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    if exc.status_code == 404:
        return PageContext(request).render("not_found.html", status_code=404, title="Not Found")

    return PageContext(request).render(
        "error.html",
        status_code=exc.status_code,
        title="Error",
        message=str(exc.detail),
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Handle 500 errors."""
    logger.error(f"Internal server error: {exc}")
    if _wants_json(request):
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )
    return PageContext(request).render(
        "error.html",
        status_code=500,
        title="Error",
        message="Something went wrong.",
    )
