"""
Store Pages

Server-rendered pages for listing, viewing, adding and editing stores,
plus tags, hearts, the top list, the map and the no-JS search page.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, Request
from starlette.datastructures import FormData, UploadFile

from storefinder.api.deps import (
    get_page_context,
    require_login,
    get_store_service,
    get_photo_service,
)
from storefinder.schemas.store import StoreForm, TAG_CHOICES
from storefinder.services.photo_service import PhotoService, PhotoValidationError
from storefinder.services.store_service import StoreService
from storefinder.utils.file_utils import check_photo_type, check_photo_size
from storefinder.web.context import PageContext, form_to_dict, validate_form
from storefinder.web.pipeline import Respond, run_steps
from storefinder.web.typeahead import ResultCursor, render_results, result_links

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Stores"])


# ============================================================
# Store form pipeline
# ============================================================

@dataclass
class StoreSubmission:
    """State shared by the steps of an add/edit store request."""

    ctx: PageContext
    form: FormData
    store_service: StoreService
    photo_service: PhotoService
    store_id: Optional[UUID] = None
    upload: Optional[UploadFile] = None
    photo: Optional[str] = None
    store_form: Optional[StoreForm] = None


async def accept_upload(sub: StoreSubmission) -> Optional[Respond]:
    """Pick the single `photo` file, if any, and check its declared type."""
    uploads = [
        value for value in sub.form.getlist("photo")
        if isinstance(value, UploadFile) and value.filename
    ]
    if not uploads:
        return None

    if len(uploads) > 1:
        sub.ctx.flash("error", "Only one photo can be uploaded at a time.")
        return Respond(sub.ctx.back())

    upload = uploads[0]
    ok, error = check_photo_type(upload.content_type)
    if not ok:
        sub.ctx.flash("error", error)
        return Respond(sub.ctx.back())

    sub.upload = upload
    return None


async def resize_upload(sub: StoreSubmission) -> Optional[Respond]:
    """Resize the accepted photo and remember its generated filename."""
    if sub.upload is None:
        return None

    content = await sub.upload.read()
    ok, error = check_photo_size(len(content))
    if not ok:
        sub.ctx.flash("error", error)
        return Respond(sub.ctx.back())

    try:
        sub.photo = await sub.photo_service.resize_and_store(content, sub.upload.content_type)
    except PhotoValidationError as e:
        sub.ctx.flash("error", str(e))
        return Respond(sub.ctx.back())

    return None


async def validate_fields(sub: StoreSubmission) -> Optional[Respond]:
    """Validate the text fields before any photo is written to disk."""
    data = form_to_dict(sub.form, list_fields=("tags",))
    data.pop("photo", None)
    sub.store_form = validate_form(StoreForm, data)
    return None


def _store_form(sub: StoreSubmission) -> StoreForm:
    return sub.store_form.model_copy(update={"photo": sub.photo})


async def save_new_store(sub: StoreSubmission) -> Respond:
    form = _store_form(sub)
    store = await sub.store_service.create_store(form, sub.ctx.user)
    sub.ctx.flash("success", f"Successfully Created {store.name}. Care to leave a review?")
    return Respond(sub.ctx.redirect(f"/store/{store.slug}"))


async def save_existing_store(sub: StoreSubmission) -> Respond:
    form = _store_form(sub)
    store = await sub.store_service.update_store(sub.store_id, form, sub.ctx.user)
    sub.ctx.flash("success", f"Successfully updated {store.name}.")
    return Respond(sub.ctx.redirect(f"/stores/{store.id}/edit"))


CREATE_STORE_STEPS = (accept_upload, validate_fields, resize_upload, save_new_store)
UPDATE_STORE_STEPS = (accept_upload, validate_fields, resize_upload, save_existing_store)


# ============================================================
# Listing
# ============================================================

@router.get("/")
@router.get("/stores")
async def list_stores(
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    return await _render_store_page(1, ctx, store_service)


@router.get("/stores/page/{page}")
async def list_stores_page(
    page: int = Path(..., ge=1),
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    return await _render_store_page(page, ctx, store_service)


async def _render_store_page(page: int, ctx: PageContext, store_service: StoreService):
    """Stores newest first, four per page."""
    store_page = await store_service.get_stores_page(page)

    if store_page.is_past_end:
        last_page = max(store_page.pages, 1)
        ctx.flash(
            "info",
            f"Hey! You asked for page {page}. But that doesn't exist. "
            f"So I put you on page {last_page}",
        )
        return ctx.redirect(f"/stores/page/{last_page}")

    return ctx.render(
        "stores.html",
        title="Stores",
        stores=store_page.stores,
        page=store_page.page,
        pages=store_page.pages,
        count=store_page.count,
    )


# ============================================================
# Add / Edit
# ============================================================

@router.get("/add")
async def add_store(ctx: PageContext = Depends(require_login)):
    return ctx.render("edit_store.html", title="Add Store", store=None, choices=TAG_CHOICES)


@router.post("/add")
async def create_store(
    request: Request,
    ctx: PageContext = Depends(require_login),
    store_service: StoreService = Depends(get_store_service),
    photo_service: PhotoService = Depends(get_photo_service)
):
    submission = StoreSubmission(
        ctx=ctx,
        form=await request.form(),
        store_service=store_service,
        photo_service=photo_service,
    )
    return await run_steps(submission, CREATE_STORE_STEPS)


@router.post("/add/{store_id}")
async def update_store(
    store_id: UUID,
    request: Request,
    ctx: PageContext = Depends(require_login),
    store_service: StoreService = Depends(get_store_service),
    photo_service: PhotoService = Depends(get_photo_service)
):
    # Ownership is checked before anything is uploaded or validated
    await store_service.get_store_for_edit(store_id, ctx.user)

    submission = StoreSubmission(
        ctx=ctx,
        form=await request.form(),
        store_service=store_service,
        photo_service=photo_service,
        store_id=store_id,
    )
    return await run_steps(submission, UPDATE_STORE_STEPS)


@router.get("/stores/{store_id}/edit")
async def edit_store(
    store_id: UUID,
    ctx: PageContext = Depends(require_login),
    store_service: StoreService = Depends(get_store_service)
):
    store = await store_service.get_store_for_edit(store_id, ctx.user)
    return ctx.render(
        "edit_store.html",
        title=f"Edit {store.name}",
        store=store,
        choices=TAG_CHOICES,
    )


# ============================================================
# Single store
# ============================================================

@router.get("/store/{slug}")
async def get_store_by_slug(
    slug: str,
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    store = await store_service.get_store_by_slug(slug)
    return ctx.render("store.html", title=store.name, store=store)


# ============================================================
# Tags
# ============================================================

@router.get("/tags")
async def get_tags(
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    return await _render_tag_page(None, ctx, store_service)


@router.get("/tags/{tag}")
async def get_stores_by_tag(
    tag: str,
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    return await _render_tag_page(tag, ctx, store_service)


async def _render_tag_page(tag: Optional[str], ctx: PageContext, store_service: StoreService):
    tags, stores = await store_service.get_stores_by_tag(tag)
    return ctx.render("tags.html", title="Tags", tags=tags, tag=tag, stores=stores)


# ============================================================
# Hearts / Top / Map / Search
# ============================================================

@router.get("/hearts")
async def get_hearts(
    ctx: PageContext = Depends(require_login),
    store_service: StoreService = Depends(get_store_service)
):
    stores = await store_service.get_hearted_stores(ctx.user)
    return ctx.render("stores.html", title="Hearted Stores", stores=stores, page=None)


@router.get("/top")
async def get_top_stores(
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    stores = await store_service.get_top_stores()
    return ctx.render("top_stores.html", title="Top Stores!", stores=stores)


@router.get("/map")
async def map_page(ctx: PageContext = Depends(get_page_context)):
    return ctx.render("map.html", title="Map")


@router.get("/search")
async def search_page(
    q: str = Query("", max_length=200),
    active: Optional[int] = Query(None, ge=0),
    key: Optional[str] = Query(None, max_length=20),
    ctx: PageContext = Depends(get_page_context),
    store_service: StoreService = Depends(get_store_service)
):
    """
    Search results without JavaScript, same markup as the dropdown.

    The arrow buttons submit `key` with the current `active` index and
    move the highlight; Enter follows the highlighted store.
    """
    results = await store_service.search_stores(q)

    links = result_links(results)
    if active is not None and active >= len(links):
        active = None
    cursor = ResultCursor(links, active=active)

    if key:
        link = cursor.press(key)
        if link:
            return ctx.redirect(link)

    return ctx.render(
        "search.html",
        title="Search",
        q=q,
        active=cursor.active,
        has_results=bool(results),
        results_html=render_results(results, q, active=cursor.active) if q.strip() else None,
    )
