"""Outbound webhooks: notifies the integration engine of new and approved reviews.

Payload shape: ``{"type": "review.created" | "review.approved", "data": {...}}``
where ``data`` is the review as exported. A failed delivery is logged and
does not undo the review change.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.integration.export import export_record
from trust.integration.webhook import get_webhook
from trust.review.events import ReviewApproved, ReviewSubmitted
from trust.review.review import Review

logger = structlog.get_logger(__name__)

REVIEW_CREATED = "review.created"
REVIEW_APPROVED = "review.approved"


def _notify(event_type, review_id):
    try:
        review = current_domain.repository_for(Review).get(review_id)
    except ObjectNotFoundError:
        logger.warning("Webhook skipped, review no longer exists", review_id=review_id, event_type=event_type)
        return

    payload = {"type": event_type, "data": export_record(review)}
    result = get_webhook().deliver(event_type, payload)

    if result.delivered:
        logger.info("Webhook delivered", event_type=event_type, review_id=review_id, delivery_id=result.delivery_id)
    else:
        logger.error(
            "Webhook delivery failed",
            event_type=event_type,
            review_id=review_id,
            reason=result.failure_reason,
        )


@trust.event_handler(part_of=Review)
class ReviewWebhookHandler:
    """Forwards review lifecycle events to the webhook sink."""

    @handle(ReviewSubmitted)
    def on_review_submitted(self, event: ReviewSubmitted) -> None:
        _notify(REVIEW_CREATED, str(event.review_id))

    @handle(ReviewApproved)
    def on_review_approved(self, event: ReviewApproved) -> None:
        _notify(REVIEW_APPROVED, str(event.review_id))
