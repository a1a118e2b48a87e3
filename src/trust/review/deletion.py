"""DeleteReview: remove a review from the store.

The product's rating aggregate is recomputed without the deleted review and
a ``review_deleted`` entry is appended to the ledger, all in the same unit
of work as the removal.
"""

import structlog
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.analytics.event import EventType, record_event
from trust.domain import trust
from trust.projections.product_rating import refresh_product_rating
from trust.review.review import Review

logger = structlog.get_logger(__name__)


@trust.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    deleted_by = String(max_length=100)


@trust.command_handler(part_of=Review)
class DeleteReviewHandler:
    @handle(DeleteReview)
    def delete_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review_id = str(review.id)
        product_id = str(review.product_id)
        status = review.status

        repo._dao.delete(review)
        refresh_product_rating(product_id, exclude_review_id=review_id)

        record_event(
            event_type=EventType.REVIEW_DELETED.value,
            entity="review",
            entity_id=review_id,
            product_id=product_id,
            user_id=review.customer_id,
            rating=review.rating,
            extra={"status": status, "deleted_by": command.deleted_by} if command.deleted_by else {"status": status},
        )

        logger.info("Review deleted", review_id=review_id, product_id=product_id, status=status)
        return {"deleted_review_id": review_id}
