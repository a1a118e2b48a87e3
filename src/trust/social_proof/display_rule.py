"""DisplayRule: decides how reviews are presented in a given page context.

Enabled rules are scanned in descending priority and the first rule whose
conditions all match the context wins. A rule condition left empty matches
any context value.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, Integer, String, ValueObject
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.repository import fetch_all


class DisplaySort(Enum):
    HELPFUL = "helpful"
    RECENT = "recent"
    RATING_HIGH = "rating_high"
    RATING_LOW = "rating_low"


DEFAULT_DISPLAY_RULE = {
    "id": "default",
    "name": "Default",
    "display_settings": {
        "show_rating": True,
        "show_review_count": True,
        "show_stars": True,
        "review_count": 5,
        "sort_by": "helpful",
    },
}


@trust.value_object(part_of="DisplayRule")
class DisplayConditions:
    page_type = String(max_length=50)
    product_category = String(max_length=100)
    visitor_segment = String(max_length=100)

    def matches(self, page_type=None, product_category=None, visitor_segment=None):
        if self.page_type and self.page_type != page_type:
            return False
        if self.product_category and self.product_category != product_category:
            return False
        if self.visitor_segment and self.visitor_segment != visitor_segment:
            return False
        return True


@trust.value_object(part_of="DisplayRule")
class DisplaySettings:
    show_rating = Boolean(default=True)
    show_review_count = Boolean(default=True)
    show_stars = Boolean(default=True)
    show_trust_badges = Boolean(default=True)
    show_top_reviews = Boolean(default=True)
    review_count = Integer(default=5, min_value=0)
    sort_by = String(choices=DisplaySort, default=DisplaySort.HELPFUL.value)
    highlight_verified = Boolean(default=True)
    show_photos = Boolean(default=True)

    def to_dict(self):
        return {
            "show_rating": self.show_rating,
            "show_review_count": self.show_review_count,
            "show_stars": self.show_stars,
            "show_trust_badges": self.show_trust_badges,
            "show_top_reviews": self.show_top_reviews,
            "review_count": self.review_count,
            "sort_by": self.sort_by,
            "highlight_verified": self.highlight_verified,
            "show_photos": self.show_photos,
        }


def build_settings(data=None):
    """Fill in defaults for every setting the caller left out."""
    data = {key: value for key, value in (data or {}).items() if value is not None}
    return DisplaySettings(**data)


@trust.aggregate
class DisplayRule:
    name = String(required=True, max_length=200)
    conditions = ValueObject(DisplayConditions)
    display_settings = ValueObject(DisplaySettings)
    priority = Integer(default=0)
    enabled = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    def applies_to(self, page_type=None, product_category=None, visitor_segment=None):
        if self.conditions is None:
            return True
        return self.conditions.matches(page_type, product_category, visitor_segment)

    def to_dict(self):
        conditions = self.conditions
        return {
            "id": str(self.id),
            "name": self.name,
            "priority": self.priority,
            "conditions": {
                "page_type": conditions.page_type if conditions else None,
                "product_category": conditions.product_category if conditions else None,
                "visitor_segment": conditions.visitor_segment if conditions else None,
            },
            "display_settings": (self.display_settings or build_settings()).to_dict(),
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def list_display_rules():
    rules = fetch_all(DisplayRule)
    rules.sort(key=lambda rule: rule.created_at or datetime.min.replace(tzinfo=UTC))
    rules.sort(key=lambda rule: rule.priority or 0, reverse=True)
    return rules


def evaluate_display_rules(page_type=None, product_category=None, visitor_segment=None):
    """The display rule for a page context, as a plain dict. Falls back to the default rule."""
    for rule in list_display_rules():
        if rule.enabled and rule.applies_to(page_type, product_category, visitor_segment):
            return rule.to_dict()
    return {
        "id": DEFAULT_DISPLAY_RULE["id"],
        "name": DEFAULT_DISPLAY_RULE["name"],
        "display_settings": dict(DEFAULT_DISPLAY_RULE["display_settings"]),
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="DisplayRule")
class CreateDisplayRule:
    name = String(required=True, max_length=200)
    priority = Integer(default=0)
    enabled = Boolean(default=True)
    page_type = String(max_length=50)
    product_category = String(max_length=100)
    visitor_segment = String(max_length=100)
    show_rating = Boolean()
    show_review_count = Boolean()
    show_stars = Boolean()
    show_trust_badges = Boolean()
    show_top_reviews = Boolean()
    review_count = Integer()
    sort_by = String()
    highlight_verified = Boolean()
    show_photos = Boolean()


@trust.command(part_of="DisplayRule")
class UpdateDisplayRule:
    rule_id = Identifier(required=True)
    name = String(max_length=200)
    priority = Integer()
    enabled = Boolean()


@trust.command(part_of="DisplayRule")
class DeleteDisplayRule:
    rule_id = Identifier(required=True)


_SETTING_FIELDS = (
    "show_rating",
    "show_review_count",
    "show_stars",
    "show_trust_badges",
    "show_top_reviews",
    "review_count",
    "sort_by",
    "highlight_verified",
    "show_photos",
)


@trust.command_handler(part_of=DisplayRule)
class DisplayRuleHandler:
    @handle(CreateDisplayRule)
    def create_display_rule(self, command):
        now = datetime.now(UTC)
        has_conditions = command.page_type or command.product_category or command.visitor_segment
        rule = DisplayRule(
            name=command.name,
            priority=command.priority or 0,
            enabled=command.enabled is not False,
            conditions=DisplayConditions(
                page_type=command.page_type,
                product_category=command.product_category,
                visitor_segment=command.visitor_segment,
            )
            if has_conditions
            else None,
            display_settings=build_settings({field: getattr(command, field) for field in _SETTING_FIELDS}),
            created_at=now,
            updated_at=now,
        )
        current_domain.repository_for(DisplayRule).add(rule)
        return str(rule.id)

    @handle(UpdateDisplayRule)
    def update_display_rule(self, command):
        repo = current_domain.repository_for(DisplayRule)
        rule = repo.get(command.rule_id)

        for attr in ("name", "priority", "enabled"):
            value = getattr(command, attr)
            if value is not None:
                setattr(rule, attr, value)
        rule.updated_at = datetime.now(UTC)

        repo.add(rule)

    @handle(DeleteDisplayRule)
    def delete_display_rule(self, command):
        repo = current_domain.repository_for(DisplayRule)
        repo._dao.delete(repo.get(command.rule_id))
        return {"deleted_rule_id": str(command.rule_id)}
