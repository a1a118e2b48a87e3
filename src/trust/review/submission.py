"""SubmitReview: create a new review in the pending state.

Ratings outside 1–5 and blank content are rejected by the aggregate before
anything is persisted.
"""

import json

import structlog
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import Review, ReviewSource

logger = structlog.get_logger(__name__)


@trust.command(part_of="Review")
class SubmitReview:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    content = Text(required=True)
    title = String(max_length=200)
    customer_name = String(max_length=200)
    customer_email = String(max_length=254)
    verified = Boolean(default=False)
    recommend_product = Boolean(default=True)
    photos = Text()  # JSON array of URLs
    videos = Text()  # JSON array of URLs
    pros = Text()  # JSON array of strings
    cons = Text()  # JSON array of strings
    source = String(default=ReviewSource.WEBSITE.value)


def _loads(raw):
    return json.loads(raw) if raw else None


@trust.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        review = Review.submit(
            product_id=command.product_id,
            customer_id=command.customer_id,
            rating=command.rating,
            content=command.content,
            title=command.title,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            verified=command.verified,
            photos=_loads(command.photos),
            videos=_loads(command.videos),
            pros=_loads(command.pros),
            cons=_loads(command.cons),
            recommend_product=command.recommend_product,
            source=command.source,
        )
        current_domain.repository_for(Review).add(review)

        logger.info(
            "Review submitted",
            review_id=str(review.id),
            product_id=str(review.product_id),
            rating=review.rating,
            source=review.source,
        )
        return str(review.id)
