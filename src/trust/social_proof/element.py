"""SocialProofElement: an on-page nudge (recent review, trending, customer count,
rating highlight) with its own impression, click and conversion counters.

Click-through rate is clicks over impressions as a percentage, and is 0
until the element has an impression.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.numbers import percentage
from trust.utils.repository import fetch_all

logger = structlog.get_logger(__name__)

DEFAULT_TRIGGERS = {"page_view": True, "time_on_page": 5, "scroll_depth": 0}


class ElementType(Enum):
    RECENT_REVIEW = "recent_review"
    TRENDING = "trending"
    CUSTOMER_COUNT = "customer_count"
    RATING_HIGHLIGHT = "rating_highlight"


class ElementDisplayType(Enum):
    NOTIFICATION = "notification"
    BANNER = "banner"
    INLINE = "inline"


class Interaction(Enum):
    IMPRESSION = "impression"
    CLICK = "click"
    CONVERSION = "conversion"


@trust.aggregate
class SocialProofElement:
    element_type = String(required=True, choices=ElementType)
    content = Text()
    display_type = String(choices=ElementDisplayType, default=ElementDisplayType.NOTIFICATION.value)
    triggers = Text()  # JSON object: page_view, time_on_page (seconds), scroll_depth (percent)
    frequency = String(max_length=50, default="once_per_session")
    style = Text()  # JSON object
    enabled = Boolean(default=True)
    impressions = Integer(default=0)
    clicks = Integer(default=0)
    conversions = Integer(default=0)
    ctr = Float(default=0.0)
    created_at = DateTime()

    def record(self, interaction):
        """Count one interaction and refresh the click-through rate."""
        if interaction == Interaction.IMPRESSION.value:
            self.impressions += 1
        elif interaction == Interaction.CLICK.value:
            self.clicks += 1
        elif interaction == Interaction.CONVERSION.value:
            self.conversions += 1
        else:
            raise ValidationError({"interaction": [f"Unknown interaction: {interaction}"]})

        self.ctr = percentage(self.clicks, self.impressions)
        return self.analytics

    @property
    def analytics(self):
        return {
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "ctr": self.ctr,
        }

    def to_dict(self):
        return {
            "id": str(self.id),
            "type": self.element_type,
            "content": self.content,
            "display_type": self.display_type,
            "triggers": json.loads(self.triggers) if self.triggers else dict(DEFAULT_TRIGGERS),
            "frequency": self.frequency,
            "style": json.loads(self.style) if self.style else {},
            "enabled": self.enabled,
            "analytics": self.analytics,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def list_social_proof_elements(enabled_only=True):
    elements = fetch_all(SocialProofElement, enabled=True) if enabled_only else fetch_all(SocialProofElement)
    return sorted(elements, key=lambda element: element.created_at)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="SocialProofElement")
class CreateSocialProofElement:
    element_type = String(required=True)
    content = Text()
    display_type = String()
    triggers = Text()  # JSON object
    frequency = String(max_length=50)
    style = Text()  # JSON object
    enabled = Boolean(default=True)


@trust.command(part_of="SocialProofElement")
class TrackSocialProofInteraction:
    element_id = Identifier(required=True)
    interaction = String(required=True)  # "impression", "click" or "conversion"


@trust.command_handler(part_of=SocialProofElement)
class SocialProofElementHandler:
    @handle(CreateSocialProofElement)
    def create_element(self, command):
        element = SocialProofElement(
            element_type=command.element_type,
            content=command.content,
            display_type=command.display_type or ElementDisplayType.NOTIFICATION.value,
            triggers=command.triggers or json.dumps(DEFAULT_TRIGGERS),
            frequency=command.frequency or "once_per_session",
            style=command.style,
            enabled=command.enabled is not False,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(SocialProofElement).add(element)
        return str(element.id)

    @handle(TrackSocialProofInteraction)
    def track_interaction(self, command):
        repo = current_domain.repository_for(SocialProofElement)
        element = repo.get(command.element_id)
        if not element.enabled:
            raise InvalidOperationError(f"Social proof element `{element.id}` is disabled")

        analytics = element.record(command.interaction)
        repo.add(element)

        logger.debug("Social proof interaction", element_id=str(element.id), interaction=command.interaction)
        return {"element_id": str(element.id), **analytics}
