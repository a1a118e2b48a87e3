"""Batch export of reviews for the integration engine.

Records come out in creation order with a fixed field set; the CSV
rendering uses the same fields as its header row.
"""

import csv
import io

from trust.review.review import Review
from trust.utils.repository import fetch_all

EXPORT_FIELDS = (
    "id",
    "product_id",
    "customer_id",
    "rating",
    "title",
    "content",
    "verified",
    "status",
    "created_at",
    "updated_at",
)


def export_record(review):
    return {
        "id": str(review.id),
        "product_id": str(review.product_id),
        "customer_id": str(review.customer_id),
        "rating": review.rating,
        "title": review.title,
        "content": review.content,
        "verified": bool(review.verified),
        "status": review.status,
        "created_at": review.created_at.isoformat() if review.created_at else None,
        "updated_at": review.updated_at.isoformat() if review.updated_at else None,
    }


def export_reviews(product_id=None, status=None):
    filters = {}
    if product_id:
        filters["product_id"] = str(product_id)
    if status:
        filters["status"] = status

    reviews = sorted(fetch_all(Review, **filters), key=lambda review: review.created_at)
    return [export_record(review) for review in reviews]


def export_reviews_csv(product_id=None, status=None):
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    writer.writerows(export_reviews(product_id=product_id, status=status))
    return buffer.getvalue()
