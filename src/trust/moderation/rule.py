"""ModerationRule: a merchant-defined rule evaluated after the built-in heuristics.

A rule applies when every condition it defines matches the content; undefined
conditions are not checked. Rules are never written onto the reviews they
are evaluated against; only their own counters move.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text, ValueObject
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.repository import fetch_all


class RuleType(Enum):
    AUTO_APPROVE = "auto_approve"
    AUTO_REJECT = "auto_reject"
    FLAG_FOR_REVIEW = "flag_for_review"


class RuleAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"


@trust.value_object(part_of="ModerationRule")
class RuleConditions:
    """AND-combined match conditions. Keywords match if any one of them occurs."""

    rating = Integer(min_value=1, max_value=5)
    min_length = Integer(min_value=0)
    verified = Boolean()
    keywords = Text()  # JSON array of strings

    @property
    def keyword_list(self):
        return json.loads(self.keywords) if self.keywords else []

    def to_dict(self):
        return {
            "rating": self.rating,
            "min_length": self.min_length,
            "verified": self.verified,
            "keywords": self.keyword_list,
        }


def build_conditions(data):
    """Turn a plain conditions mapping into the value object (``None`` for no conditions)."""
    if not data:
        return None
    keywords = data.get("keywords")
    return RuleConditions(
        rating=data.get("rating"),
        min_length=data.get("min_length"),
        verified=data.get("verified"),
        keywords=json.dumps(list(keywords)) if keywords else None,
    )


@trust.aggregate
class ModerationRule:
    name = String(required=True, max_length=200)
    rule_type = String(required=True, choices=RuleType)
    conditions = ValueObject(RuleConditions)
    action = String(required=True, choices=RuleAction)
    priority = Integer(default=0)
    enabled = Boolean(default=True)

    # Counters
    applied_count = Integer(default=0, min_value=0)
    approved_count = Integer(default=0, min_value=0)
    rejected_count = Integer(default=0, min_value=0)
    flagged_count = Integer(default=0, min_value=0)

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def name_must_not_be_blank(self):
        if self.name is not None and not self.name.strip():
            raise ValidationError({"name": ["Rule name cannot be empty"]})

    def matches(self, content):
        """Check every defined condition against a ``ContentUnderReview``."""
        conditions = self.conditions
        if conditions is None:
            return True

        if conditions.rating is not None and content.rating != conditions.rating:
            return False
        if conditions.min_length is not None and len(content.text) < conditions.min_length:
            return False
        if conditions.verified is not None and content.verified != conditions.verified:
            return False

        keywords = conditions.keyword_list
        if keywords:
            lowered = content.text.lower()
            if not any(keyword.lower() in lowered for keyword in keywords):
                return False

        return True

    def record_application(self):
        """Bump the applied counter and the counter for the rule's action."""
        self.applied_count += 1
        if self.action == RuleAction.APPROVE.value:
            self.approved_count += 1
        elif self.action == RuleAction.REJECT.value:
            self.rejected_count += 1
        elif self.action == RuleAction.FLAG.value:
            self.flagged_count += 1

    def change(self, **changes):
        now = datetime.now(UTC)
        for attr in ("name", "rule_type", "action", "priority", "enabled"):
            if changes.get(attr) is not None:
                setattr(self, attr, changes[attr])
        if "conditions" in changes and changes["conditions"] is not None:
            self.conditions = build_conditions(changes["conditions"])
        self.updated_at = now

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "type": self.rule_type,
            "conditions": self.conditions.to_dict() if self.conditions else {},
            "action": self.action,
            "priority": self.priority,
            "enabled": self.enabled,
            "statistics": {
                "applied": self.applied_count,
                "approved": self.approved_count,
                "rejected": self.rejected_count,
                "flagged": self.flagged_count,
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def ordered_rules(enabled=None):
    """Rules by descending priority; equal priorities keep creation order."""
    rules = fetch_all(ModerationRule) if enabled is None else fetch_all(ModerationRule, enabled=enabled)
    rules.sort(key=lambda rule: rule.created_at or datetime.min.replace(tzinfo=UTC))
    rules.sort(key=lambda rule: rule.priority or 0, reverse=True)
    return rules


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="ModerationRule")
class CreateModerationRule:
    name = String(required=True, max_length=200)
    rule_type = String(required=True)
    action = String(required=True)
    conditions = Text()  # JSON object
    priority = Integer(default=0)
    enabled = Boolean(default=True)


@trust.command(part_of="ModerationRule")
class UpdateModerationRule:
    rule_id = Identifier(required=True)
    name = String(max_length=200)
    rule_type = String()
    action = String()
    conditions = Text()
    priority = Integer()
    enabled = Boolean()


@trust.command(part_of="ModerationRule")
class DeleteModerationRule:
    rule_id = Identifier(required=True)


@trust.command_handler(part_of=ModerationRule)
class ModerationRuleHandler:
    @handle(CreateModerationRule)
    def create_rule(self, command):
        now = datetime.now(UTC)
        rule = ModerationRule(
            name=command.name,
            rule_type=command.rule_type,
            action=command.action,
            conditions=build_conditions(json.loads(command.conditions) if command.conditions else None),
            priority=command.priority or 0,
            enabled=command.enabled is not False,
            created_at=now,
            updated_at=now,
        )
        current_domain.repository_for(ModerationRule).add(rule)
        return str(rule.id)

    @handle(UpdateModerationRule)
    def update_rule(self, command):
        repo = current_domain.repository_for(ModerationRule)
        rule = repo.get(command.rule_id)

        rule.change(
            name=command.name,
            rule_type=command.rule_type,
            action=command.action,
            priority=command.priority,
            enabled=command.enabled,
            conditions=json.loads(command.conditions) if command.conditions else None,
        )
        repo.add(rule)

    @handle(DeleteModerationRule)
    def delete_rule(self, command):
        repo = current_domain.repository_for(ModerationRule)
        rule = repo.get(command.rule_id)
        repo._dao.delete(rule)
        return {"deleted_rule_id": str(command.rule_id)}
