from uuid import UUID

from fastapi import APIRouter, Depends, Request

from storefinder.api.deps import require_login, get_review_service
from storefinder.schemas.review import ReviewCreate
from storefinder.services.review_service import ReviewService
from storefinder.web.context import PageContext, form_to_dict, validate_form

router = APIRouter(tags=["Reviews"])


@router.post("/reviews/{store_id}")
async def add_review(
    store_id: UUID,
    request: Request,
    ctx: PageContext = Depends(require_login),
    review_service: ReviewService = Depends(get_review_service)
):
    review_data = validate_form(ReviewCreate, form_to_dict(await request.form()))
    await review_service.add_review(store_id, ctx.user, review_data)

    ctx.flash("success", "Review Saved!")
    return ctx.back()
