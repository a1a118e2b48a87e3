"""Ledger writer: appends review lifecycle events to the analytics ledger.

Runs after the review change has been committed, so the ledger never holds
an entry for a state change that did not happen.
"""

import structlog
from protean.utils.mixins import handle

from trust.analytics.event import AnalyticsEvent, EventType, record_event
from trust.domain import trust
from trust.review.events import (
    ReviewApproved,
    ReviewFlagged,
    ReviewRejected,
    ReviewSubmitted,
)

logger = structlog.get_logger(__name__)


@trust.event_handler(part_of=AnalyticsEvent, stream_category="trust::review")
class ReviewLedgerHandler:
    """Turns Review domain events into ledger entries."""

    @handle(ReviewSubmitted)
    def on_review_submitted(self, event: ReviewSubmitted) -> None:
        record_event(
            event_type=EventType.REVIEW_CREATED.value,
            entity="review",
            entity_id=event.review_id,
            product_id=event.product_id,
            user_id=event.customer_id,
            rating=event.rating,
            extra={"verified": event.verified, "has_media": event.has_media, "source": event.source},
            timestamp=event.submitted_at,
        )

    @handle(ReviewApproved)
    def on_review_approved(self, event: ReviewApproved) -> None:
        record_event(
            event_type=EventType.REVIEW_APPROVED.value,
            entity="review",
            entity_id=event.review_id,
            product_id=event.product_id,
            user_id=event.customer_id,
            rating=event.rating,
            extra={"moderator_id": event.moderator_id},
            timestamp=event.approved_at,
        )

    @handle(ReviewRejected)
    def on_review_rejected(self, event: ReviewRejected) -> None:
        record_event(
            event_type=EventType.REVIEW_REJECTED.value,
            entity="review",
            entity_id=event.review_id,
            product_id=event.product_id,
            user_id=event.customer_id,
            rating=event.rating,
            extra={"moderator_id": event.moderator_id},
            timestamp=event.rejected_at,
        )

    @handle(ReviewFlagged)
    def on_review_flagged(self, event: ReviewFlagged) -> None:
        record_event(
            event_type=EventType.REVIEW_FLAGGED.value,
            entity="review",
            entity_id=event.review_id,
            product_id=event.product_id,
            user_id=event.customer_id,
            rating=event.rating,
            extra={"flag_count": event.flag_count, "flagged_by": event.flagged_by},
            timestamp=event.flagged_at,
        )
        logger.info("Review flag recorded", review_id=str(event.review_id), flag_count=event.flag_count)
