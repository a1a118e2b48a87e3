"""TrustBadge: a badge shown when a product's rating aggregate meets its criteria.

Only criteria that are set are checked; a badge with no criteria qualifies
for every product.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text, ValueObject
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.repository import fetch_all

DEFAULT_DISPLAY_LOCATIONS = ["product_page", "search_results"]


class BadgeType(Enum):
    VERIFIED_REVIEWS = "verified_reviews"
    TOP_RATED = "top_rated"
    CUSTOMER_FAVORITE = "customer_favorite"
    AWARD = "award"


class BadgeSize(Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@trust.value_object(part_of="TrustBadge")
class BadgeCriteria:
    min_reviews = Integer(min_value=0)
    min_rating = Float(min_value=0.0, max_value=5.0)
    min_verified_reviews = Integer(min_value=0)
    min_recommendation_rate = Integer(min_value=0, max_value=100)

    def satisfied_by(self, aggregate):
        checks = (
            (self.min_reviews, aggregate.get("total_reviews", 0)),
            (self.min_rating, aggregate.get("average_rating", 0)),
            (self.min_verified_reviews, aggregate.get("verified_reviews", 0)),
            (self.min_recommendation_rate, aggregate.get("recommendation_rate", 0)),
        )
        return all(value >= minimum for minimum, value in checks if minimum is not None)

    def to_dict(self):
        return {
            "min_reviews": self.min_reviews,
            "min_rating": self.min_rating,
            "min_verified_reviews": self.min_verified_reviews,
            "min_recommendation_rate": self.min_recommendation_rate,
        }


@trust.value_object(part_of="TrustBadge")
class BadgeStyle:
    background_color = String(max_length=20, default="#4CAF50")
    text_color = String(max_length=20, default="#FFFFFF")
    border_color = String(max_length=20, default="#45A049")
    size = String(choices=BadgeSize, default=BadgeSize.MEDIUM.value)

    def to_dict(self):
        return {
            "background_color": self.background_color,
            "text_color": self.text_color,
            "border_color": self.border_color,
            "size": self.size,
        }


@trust.aggregate
class TrustBadge:
    name = String(required=True, max_length=200)
    badge_type = String(required=True, choices=BadgeType)
    icon = String(max_length=500)
    description = Text()
    criteria = ValueObject(BadgeCriteria)
    display_locations = Text()  # JSON array
    style = ValueObject(BadgeStyle)
    enabled = Boolean(default=True)
    created_at = DateTime()

    def qualifies(self, aggregate):
        return self.criteria is None or self.criteria.satisfied_by(aggregate)

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "type": self.badge_type,
            "icon": self.icon,
            "description": self.description,
            "criteria": self.criteria.to_dict() if self.criteria else {},
            "display_locations": json.loads(self.display_locations)
            if self.display_locations
            else list(DEFAULT_DISPLAY_LOCATIONS),
            "style": (self.style or BadgeStyle()).to_dict(),
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def list_trust_badges():
    return sorted(fetch_all(TrustBadge), key=lambda badge: badge.created_at)


def applicable_badges(aggregate):
    """Enabled badges whose criteria the rating aggregate meets."""
    return [badge for badge in list_trust_badges() if badge.enabled and badge.qualifies(aggregate)]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="TrustBadge")
class CreateTrustBadge:
    name = String(required=True, max_length=200)
    badge_type = String(required=True)
    icon = String(max_length=500)
    description = Text()
    min_reviews = Integer()
    min_rating = Float()
    min_verified_reviews = Integer()
    min_recommendation_rate = Integer()
    display_locations = Text()
    background_color = String(max_length=20)
    text_color = String(max_length=20)
    border_color = String(max_length=20)
    size = String()
    enabled = Boolean(default=True)


@trust.command(part_of="TrustBadge")
class UpdateTrustBadge:
    badge_id = Identifier(required=True)
    name = String(max_length=200)
    description = Text()
    enabled = Boolean()


@trust.command(part_of="TrustBadge")
class DeleteTrustBadge:
    badge_id = Identifier(required=True)


def _present(**values):
    return {key: value for key, value in values.items() if value is not None}


@trust.command_handler(part_of=TrustBadge)
class TrustBadgeHandler:
    @handle(CreateTrustBadge)
    def create_trust_badge(self, command):
        criteria = _present(
            min_reviews=command.min_reviews,
            min_rating=command.min_rating,
            min_verified_reviews=command.min_verified_reviews,
            min_recommendation_rate=command.min_recommendation_rate,
        )
        badge = TrustBadge(
            name=command.name,
            badge_type=command.badge_type,
            icon=command.icon,
            description=command.description,
            criteria=BadgeCriteria(**criteria) if criteria else None,
            display_locations=command.display_locations or json.dumps(DEFAULT_DISPLAY_LOCATIONS),
            style=BadgeStyle(
                **_present(
                    background_color=command.background_color,
                    text_color=command.text_color,
                    border_color=command.border_color,
                    size=command.size,
                )
            ),
            enabled=command.enabled is not False,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(TrustBadge).add(badge)
        return str(badge.id)

    @handle(UpdateTrustBadge)
    def update_trust_badge(self, command):
        repo = current_domain.repository_for(TrustBadge)
        badge = repo.get(command.badge_id)

        for attr in ("name", "description", "enabled"):
            value = getattr(command, attr)
            if value is not None:
                setattr(badge, attr, value)

        repo.add(badge)

    @handle(DeleteTrustBadge)
    def delete_trust_badge(self, command):
        repo = current_domain.repository_for(TrustBadge)
        repo._dao.delete(repo.get(command.badge_id))
        return {"deleted_badge_id": str(command.badge_id)}
