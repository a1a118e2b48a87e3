"""ModerationQueueItem: content waiting for a human decision.

Content lands here when its verdict is flagged or pending. Reviewing an
item records the decision on the item only; applying that decision to the
underlying review is a separate ``ModerateReview`` call.

State Machine:
    PENDING → REVIEWED (once)
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.repository import fetch_all

logger = structlog.get_logger(__name__)


class QueueStatus(Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"


class QueuePriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QueueDecision(Enum):
    APPROVE = "approve"
    REJECT = "reject"


_PRIORITY_RANK = {
    QueuePriority.HIGH.value: 3,
    QueuePriority.MEDIUM.value: 2,
    QueuePriority.LOW.value: 1,
}


@trust.event(part_of="ModerationQueueItem")
class ContentQueued:
    __version__ = 1

    queue_item_id = Identifier(required=True)
    content_id = String(required=True)
    content_type = String(required=True)
    score = Integer(required=True)
    priority = String(required=True)
    added_at = DateTime(required=True)


@trust.event(part_of="ModerationQueueItem")
class QueueItemReviewed:
    __version__ = 1

    queue_item_id = Identifier(required=True)
    content_id = String(required=True)
    decision = String(required=True)
    reviewed_by = String(required=True)
    reviewed_at = DateTime(required=True)


@trust.aggregate
class ModerationQueueItem:
    content_id = String(required=True, max_length=255)
    content_type = String(default="review", max_length=50)
    content = Text()  # JSON snapshot of the moderated content
    verdict = Text()  # JSON snapshot of the moderation verdict
    score = Integer(default=0)
    status = String(choices=QueueStatus, default=QueueStatus.PENDING.value)
    priority = String(choices=QueuePriority, default=QueuePriority.LOW.value)
    added_at = DateTime(required=True)
    reviewed_at = DateTime()
    reviewed_by = String(max_length=100)
    decision = String(choices=QueueDecision)
    notes = Text()

    @classmethod
    def enqueue(cls, content, verdict):
        """Queue a ``ContentUnderReview`` together with its ``ModerationVerdict``."""
        now = datetime.now(UTC)
        # Ad-hoc content without an id of its own is keyed by the queue item id.
        item_id = str(uuid4())
        item = cls(
            id=item_id,
            content_id=content.content_id or item_id,
            content_type=content.content_type,
            content=json.dumps(content.to_dict()),
            verdict=json.dumps(verdict.to_dict()),
            score=verdict.score,
            status=QueueStatus.PENDING.value,
            priority=verdict.queue_priority,
            added_at=now,
        )
        item.raise_(
            ContentQueued(
                queue_item_id=str(item.id),
                content_id=item.content_id,
                content_type=item.content_type,
                score=item.score,
                priority=item.priority,
                added_at=now,
            )
        )
        return item

    def review(self, action, reviewed_by, notes=None):
        if self.status == QueueStatus.REVIEWED.value:
            raise InvalidOperationError("Queue item has already been reviewed")
        try:
            decision = QueueDecision(action)
        except ValueError:
            raise ValidationError({"action": [f"Unknown review decision: {action}"]}) from None

        now = datetime.now(UTC)
        self.status = QueueStatus.REVIEWED.value
        self.decision = decision.value
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.notes = notes

        self.raise_(
            QueueItemReviewed(
                queue_item_id=str(self.id),
                content_id=self.content_id,
                decision=self.decision,
                reviewed_by=reviewed_by,
                reviewed_at=now,
            )
        )

    def to_dict(self):
        return {
            "id": str(self.id),
            "content_id": self.content_id,
            "content_type": self.content_type,
            "content": json.loads(self.content) if self.content else None,
            "moderation_results": json.loads(self.verdict) if self.verdict else None,
            "score": self.score,
            "status": self.status,
            "priority": self.priority,
            "added_at": self.added_at.isoformat() if self.added_at else None,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "reviewed_by": self.reviewed_by,
            "decision": self.decision,
            "notes": self.notes,
        }


def moderation_queue(status=QueueStatus.PENDING.value, priority=None, limit=50, offset=0):
    """Queue items by priority (high first), oldest first within a priority."""
    filters = {}
    if status:
        filters["status"] = status
    if priority:
        filters["priority"] = priority
    items = fetch_all(ModerationQueueItem, **filters)

    items.sort(key=lambda item: item.added_at)
    items.sort(key=lambda item: _PRIORITY_RANK.get(item.priority, 0), reverse=True)

    return {
        "items": items[offset : offset + limit],
        "total": len(items),
        "limit": limit,
        "offset": offset,
    }


@trust.command(part_of="ModerationQueueItem")
class ReviewQueueItem:
    queue_item_id = Identifier(required=True)
    action = String(required=True)  # "approve" or "reject"
    reviewed_by = String(required=True, max_length=100)
    notes = Text()


@trust.command_handler(part_of=ModerationQueueItem)
class ReviewQueueItemHandler:
    @handle(ReviewQueueItem)
    def review_queue_item(self, command):
        repo = current_domain.repository_for(ModerationQueueItem)
        item = repo.get(command.queue_item_id)

        item.review(action=command.action, reviewed_by=command.reviewed_by, notes=command.notes)
        repo.add(item)

        logger.info(
            "Queue item reviewed",
            queue_item_id=str(item.id),
            content_id=item.content_id,
            decision=item.decision,
        )
        return item.to_dict()
