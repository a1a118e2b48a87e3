"""Ledger writer for the moderation queue."""

from protean.utils.mixins import handle

from trust.analytics.event import AnalyticsEvent, EventType, record_event
from trust.domain import trust
from trust.moderation.queue import ContentQueued, QueueItemReviewed


@trust.event_handler(part_of=AnalyticsEvent, stream_category="trust::moderation_queue_item")
class ModerationQueueLedgerHandler:
    @handle(ContentQueued)
    def on_content_queued(self, event: ContentQueued) -> None:
        record_event(
            event_type=EventType.CONTENT_QUEUED.value,
            entity=event.content_type,
            entity_id=event.content_id,
            extra={"queue_item_id": str(event.queue_item_id), "score": event.score, "priority": event.priority},
            timestamp=event.added_at,
        )

    @handle(QueueItemReviewed)
    def on_queue_item_reviewed(self, event: QueueItemReviewed) -> None:
        record_event(
            event_type=EventType.QUEUE_ITEM_REVIEWED.value,
            entity="moderation_queue_item",
            entity_id=str(event.queue_item_id),
            extra={"content_id": event.content_id, "decision": event.decision, "reviewed_by": event.reviewed_by},
            timestamp=event.reviewed_at,
        )
