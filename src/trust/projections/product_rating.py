"""ProductRating: derived rating aggregate per product.

Always recomputed from the full set of approved reviews for the product,
never incremented, so replaying the same events converges on the same row.
"""

import json
from datetime import UTC, datetime

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, Text
from protean.utils.globals import current_domain

from trust.domain import trust
from trust.review.events import (
    ReviewApproved,
    ReviewFlagged,
    ReviewRejected,
    ReviewUpdated,
)
from trust.review.review import Review, ReviewStatus
from trust.utils.numbers import round_half_up
from trust.utils.repository import fetch_all


@trust.projection
class ProductRating:
    product_id = Identifier(identifier=True, required=True)
    average_rating = Float(default=0.0)
    total_reviews = Integer(default=0)
    rating_distribution = Text()  # JSON: {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    verified_reviews = Integer(default=0)
    recommendation_rate = Integer(default=0)
    updated_at = DateTime()


def _empty_distribution():
    return {str(star): 0 for star in range(1, 6)}


def summarize_ratings(reviews):
    """Compute the rating aggregate for an iterable of approved reviews."""
    reviews = list(reviews)
    distribution = _empty_distribution()

    if not reviews:
        return {
            "average_rating": 0.0,
            "total_reviews": 0,
            "rating_distribution": distribution,
            "verified_reviews": 0,
            "recommendation_rate": 0,
        }

    for review in reviews:
        distribution[str(review.rating)] += 1

    total = len(reviews)
    recommended = sum(1 for review in reviews if review.recommend_product)

    return {
        "average_rating": round_half_up(sum(review.rating for review in reviews) / total, 1),
        "total_reviews": total,
        "rating_distribution": distribution,
        "verified_reviews": sum(1 for review in reviews if review.verified),
        "recommendation_rate": int(round_half_up(recommended / total * 100)),
    }


def refresh_product_rating(product_id, exclude_review_id=None):
    """Recompute and store the ProductRating row for ``product_id``.

    ``exclude_review_id`` leaves out a review that is being deleted in the
    current unit of work.
    """
    product_id = str(product_id)
    reviews = fetch_all(Review, product_id=product_id, status=ReviewStatus.APPROVED.value)
    approved = [r for r in reviews if exclude_review_id is None or str(r.id) != str(exclude_review_id)]

    summary = summarize_ratings(approved)

    repo = current_domain.repository_for(ProductRating)
    try:
        pr = repo.get(product_id)
    except ObjectNotFoundError:
        pr = ProductRating(product_id=product_id)

    pr.average_rating = summary["average_rating"]
    pr.total_reviews = summary["total_reviews"]
    pr.rating_distribution = json.dumps(summary["rating_distribution"])
    pr.verified_reviews = summary["verified_reviews"]
    pr.recommendation_rate = summary["recommendation_rate"]
    pr.updated_at = datetime.now(UTC)

    repo.add(pr)
    return pr


def product_rating_summary(product_id):
    """Read the stored aggregate for a product; unknown products read as zeroed."""
    try:
        pr = current_domain.repository_for(ProductRating).get(str(product_id))
    except ObjectNotFoundError:
        return {"product_id": str(product_id), **summarize_ratings([])}

    return {
        "product_id": str(pr.product_id),
        "average_rating": pr.average_rating,
        "total_reviews": pr.total_reviews,
        "rating_distribution": json.loads(pr.rating_distribution) if pr.rating_distribution else _empty_distribution(),
        "verified_reviews": pr.verified_reviews,
        "recommendation_rate": pr.recommendation_rate,
    }


@trust.projector(projector_for=ProductRating, aggregates=[Review])
class ProductRatingProjector:
    @on(ReviewApproved)
    def on_review_approved(self, event):
        refresh_product_rating(event.product_id)

    @on(ReviewRejected)
    def on_review_rejected(self, event):
        refresh_product_rating(event.product_id)

    @on(ReviewFlagged)
    def on_review_flagged(self, event):
        refresh_product_rating(event.product_id)

    @on(ReviewUpdated)
    def on_review_updated(self, event):
        if event.status == ReviewStatus.APPROVED.value:
            refresh_product_rating(event.product_id)
