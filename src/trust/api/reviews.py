"""FastAPI routes for the review store.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts). Reads go straight to the
query functions in ``trust.review.queries``.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from trust.api.envelope import ok
from trust.api.schemas import (
    AddResponseRequest,
    FlagReviewRequest,
    ModerateReviewRequest,
    SubmitReviewRequest,
    UpdateReviewRequest,
    VoteRequest,
)
from trust.moderation.evaluation import ModerateReviewContent
from trust.projections.product_rating import product_rating_summary
from trust.review.deletion import DeleteReview
from trust.review.editing import UpdateReview
from trust.review.moderation import FlagReview, ModerateReview
from trust.review.queries import (
    DEFAULT_PAGE_SIZE,
    customer_reviews,
    get_review,
    list_responses,
    product_reviews,
    response_to_dict,
    review_statistics,
    review_to_dict,
    search_reviews,
)
from trust.review.responses import AddReviewResponse
from trust.review.submission import SubmitReview
from trust.review.voting import VoteOnReview

review_router = APIRouter(prefix="/reviews", tags=["reviews"])
product_router = APIRouter(prefix="/products", tags=["reviews"])
customer_router = APIRouter(prefix="/customers", tags=["reviews"])


def _dumps(values):
    return json.dumps(values) if values is not None else None


def _listing(result):
    return {**result, "reviews": [review_to_dict(review) for review in result["reviews"]]}


@review_router.post("", status_code=201)
async def submit_review(body: SubmitReviewRequest):
    """Submit a new review; optionally run auto-moderation on it straight away."""
    command = SubmitReview(
        product_id=body.product_id,
        customer_id=body.customer_id,
        rating=body.rating,
        content=body.content,
        title=body.title,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        verified=body.verified,
        recommend_product=body.recommend_product,
        photos=_dumps(body.photos),
        videos=_dumps(body.videos),
        pros=_dumps(body.pros),
        cons=_dumps(body.cons),
        source=body.source,
    )
    review_id = current_domain.process(command, asynchronous=False)

    moderation = None
    if body.auto_moderate:
        moderation = current_domain.process(ModerateReviewContent(review_id=review_id), asynchronous=False)

    data = review_to_dict(get_review(review_id))
    if moderation is not None:
        data["moderation"] = moderation
    return ok(data)


@review_router.get("/search")
async def search(
    q: str | None = None,
    product_id: str | None = None,
    status: str | None = None,
    rating: int | None = Query(default=None, ge=1, le=5),
    verified: bool | None = None,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=0),
    offset: int = Query(default=0, ge=0),
):
    result = search_reviews(
        query=q,
        product_id=product_id,
        status=status,
        rating=rating,
        verified=verified,
        limit=limit,
        offset=offset,
    )
    return ok(_listing(result))


@review_router.get("/statistics")
async def statistics(
    product_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    return ok(review_statistics(product_id=product_id, start_date=start_date, end_date=end_date))


@review_router.get("/{review_id}")
async def read_review(review_id: str):
    return ok(review_to_dict(get_review(review_id)))


@review_router.put("/{review_id}")
async def update_review(review_id: str, body: UpdateReviewRequest):
    """Patch review content. Status changes go through moderation instead."""
    command = UpdateReview(
        review_id=review_id,
        rating=body.rating,
        title=body.title,
        content=body.content,
        recommend_product=body.recommend_product,
        verified=body.verified,
        photos=_dumps(body.photos),
        videos=_dumps(body.videos),
        pros=_dumps(body.pros),
        cons=_dumps(body.cons),
    )
    current_domain.process(command, asynchronous=False)
    return ok(review_to_dict(get_review(review_id)))


@review_router.delete("/{review_id}")
async def delete_review(review_id: str, deleted_by: str | None = None):
    result = current_domain.process(DeleteReview(review_id=review_id, deleted_by=deleted_by), asynchronous=False)
    return ok(result)


@review_router.post("/{review_id}/votes")
async def vote_on_review(review_id: str, body: VoteRequest):
    command = VoteOnReview(review_id=review_id, voter_id=body.voter_id, helpful=body.helpful)
    return ok(current_domain.process(command, asynchronous=False))


@review_router.post("/{review_id}/responses", status_code=201)
async def add_response(review_id: str, body: AddResponseRequest):
    command = AddReviewResponse(
        review_id=review_id,
        responder_id=body.responder_id,
        content=body.content,
        responder_name=body.responder_name,
        responder_type=body.responder_type,
    )
    response_id = current_domain.process(command, asynchronous=False)
    review = get_review(review_id)
    return ok({"response_id": response_id, "response_count": review.response_count})


@review_router.get("/{review_id}/responses")
async def read_responses(review_id: str):
    return ok([response_to_dict(response) for response in list_responses(review_id)])


@review_router.put("/{review_id}/moderate")
async def moderate_review(review_id: str, body: ModerateReviewRequest):
    """Approve, reject or flag a review as a moderator."""
    command = ModerateReview(
        review_id=review_id,
        status=body.status,
        moderator_id=body.moderator_id,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return ok(review_to_dict(get_review(review_id)))


@review_router.post("/{review_id}/auto-moderate")
async def auto_moderate_review(review_id: str):
    verdict = current_domain.process(ModerateReviewContent(review_id=review_id), asynchronous=False)
    return ok(verdict)


@review_router.post("/{review_id}/flag")
async def flag_review(review_id: str, body: FlagReviewRequest):
    command = FlagReview(review_id=review_id, reason=body.reason, flagged_by=body.flagged_by)
    return ok(current_domain.process(command, asynchronous=False))


@product_router.get("/{product_id}/reviews")
async def read_product_reviews(
    product_id: str,
    status: str = "approved",
    sort_by: str = "recent",
    rating: int | None = Query(default=None, ge=1, le=5),
    verified: bool | None = None,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=0),
    offset: int = Query(default=0, ge=0),
):
    result = product_reviews(
        product_id,
        status=status,
        sort_by=sort_by,
        rating=rating,
        verified=verified,
        limit=limit,
        offset=offset,
    )
    return ok(_listing(result))


@product_router.get("/{product_id}/rating")
async def read_product_rating(product_id: str):
    return ok(product_rating_summary(product_id))


@customer_router.get("/{customer_id}/reviews")
async def read_customer_reviews(
    customer_id: str,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=0),
    offset: int = Query(default=0, ge=0),
):
    return ok(_listing(customer_reviews(customer_id, limit=limit, offset=offset)))
