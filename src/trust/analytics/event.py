"""AnalyticsEvent: one append-only entry of the event ledger.

Entries are created and never mutated. The well-known metadata keys are
first-class fields; anything else rides along in the ``extra`` JSON map.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust

logger = structlog.get_logger(__name__)


class EventType(Enum):
    """Event kinds the read models understand. The ledger accepts any string."""

    REVIEW_CREATED = "review_created"
    REVIEW_APPROVED = "review_approved"
    REVIEW_REJECTED = "review_rejected"
    REVIEW_FLAGGED = "review_flagged"
    REVIEW_DELETED = "review_deleted"
    REVIEW_SUBMITTED = "review_submitted"
    REQUEST_SENT = "request_sent"
    REQUEST_OPENED = "request_opened"
    REQUEST_CLICKED = "request_clicked"
    WIDGET_VIEW = "widget_view"
    WIDGET_INTERACTION = "widget_interaction"
    WIDGET_CONVERSION = "widget_conversion"
    SENTIMENT_ANALYZED = "sentiment_analyzed"
    CONTENT_QUEUED = "content_queued"
    QUEUE_ITEM_REVIEWED = "queue_item_reviewed"


class Sentiment(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


def _utc(value):
    return value if value.tzinfo else value.replace(tzinfo=UTC)


@trust.aggregate
class AnalyticsEvent:
    event_type = String(required=True, max_length=100)
    entity = String(required=True, max_length=100)
    entity_id = String(max_length=255)
    product_id = Identifier()
    user_id = Identifier()

    # Typed metadata
    rating = Integer()
    sentiment = String(max_length=20)
    campaign_id = Identifier()
    widget_id = Identifier()
    helpful_votes = Integer()
    extra = Text()  # JSON object for event kinds without typed fields

    timestamp = DateTime(required=True)

    @property
    def extra_data(self):
        return json.loads(self.extra) if self.extra else {}

    @classmethod
    def record(
        cls,
        event_type,
        entity,
        entity_id=None,
        product_id=None,
        user_id=None,
        rating=None,
        sentiment=None,
        campaign_id=None,
        widget_id=None,
        helpful_votes=None,
        extra=None,
        timestamp=None,
    ):
        """Build a ledger entry. ``event_type`` and ``entity`` are mandatory."""
        errors = {}
        if not event_type:
            errors["event_type"] = ["Event type is required"]
        if not entity:
            errors["entity"] = ["Event entity is required"]
        if errors:
            raise ValidationError(errors)

        return cls(
            event_type=event_type,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            product_id=str(product_id) if product_id else None,
            user_id=str(user_id) if user_id else None,
            rating=rating,
            sentiment=sentiment,
            campaign_id=campaign_id,
            widget_id=widget_id,
            helpful_votes=helpful_votes,
            extra=json.dumps(extra) if extra else None,
            timestamp=_utc(timestamp) if timestamp else datetime.now(UTC),
        )

    def to_dict_summary(self):
        return {
            "id": str(self.id),
            "type": self.event_type,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "product_id": str(self.product_id) if self.product_id else None,
            "user_id": str(self.user_id) if self.user_id else None,
            "metadata": {
                key: value
                for key, value in {
                    "rating": self.rating,
                    "sentiment": self.sentiment,
                    "campaign_id": str(self.campaign_id) if self.campaign_id else None,
                    "widget_id": str(self.widget_id) if self.widget_id else None,
                    "helpful_votes": self.helpful_votes,
                    **self.extra_data,
                }.items()
                if value is not None
            },
            "timestamp": self.timestamp.isoformat(),
        }


def record_event(**kwargs):
    """Append an entry to the ledger inside the current unit of work."""
    event = AnalyticsEvent.record(**kwargs)
    current_domain.repository_for(AnalyticsEvent).add(event)
    logger.debug(
        "Analytics event recorded",
        event_id=str(event.id),
        event_type=event.event_type,
        entity=event.entity,
    )
    return event


# ---------------------------------------------------------------------------
# TrackEvent
# ---------------------------------------------------------------------------
@trust.command(part_of="AnalyticsEvent")
class TrackEvent:
    event_type = String(max_length=100)
    entity = String(max_length=100)
    entity_id = String(max_length=255)
    product_id = Identifier()
    user_id = Identifier()
    rating = Integer()
    sentiment = String(max_length=20)
    campaign_id = Identifier()
    widget_id = Identifier()
    helpful_votes = Integer()
    extra = Text()  # JSON object
    timestamp = DateTime()


@trust.command_handler(part_of=AnalyticsEvent)
class TrackEventHandler:
    @handle(TrackEvent)
    def track_event(self, command):
        event = record_event(
            event_type=command.event_type,
            entity=command.entity,
            entity_id=command.entity_id,
            product_id=command.product_id,
            user_id=command.user_id,
            rating=command.rating,
            sentiment=command.sentiment,
            campaign_id=command.campaign_id,
            widget_id=command.widget_id,
            helpful_votes=command.helpful_votes,
            extra=json.loads(command.extra) if command.extra else None,
            timestamp=command.timestamp,
        )
        return str(event.id)
