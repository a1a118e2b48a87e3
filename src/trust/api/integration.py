"""FastAPI routes for batch review export and import."""

import json
from typing import Literal

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from protean.utils.globals import current_domain

from trust.api.envelope import ok
from trust.api.schemas import ImportReviewsRequest
from trust.integration.export import export_reviews, export_reviews_csv
from trust.review.importing import ImportReviews

router = APIRouter(prefix="/integration", tags=["integration"])


@router.get("/export")
async def export(
    product_id: str | None = None,
    status: str | None = None,
    format: Literal["json", "csv"] = "json",
):
    """Reviews in creation order, as JSON records or a CSV document."""
    if format == "csv":
        return PlainTextResponse(
            export_reviews_csv(product_id=product_id, status=status),
            media_type="text/csv",
        )
    records = export_reviews(product_id=product_id, status=status)
    return ok({"reviews": records, "total": len(records)})


@router.post("/import", status_code=201)
async def import_reviews(body: ImportReviewsRequest):
    records = json.dumps([record.model_dump(exclude_none=True) for record in body.reviews])
    review_ids = current_domain.process(ImportReviews(records=records), asynchronous=False)
    return ok({"imported": len(review_ids), "review_ids": review_ids})
