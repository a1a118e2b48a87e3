"""FastAPI routes for the moderation engine: evaluation, queue, rules and blocklists."""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from trust.api.envelope import ok
from trust.api.schemas import (
    BlockedEmailRequest,
    BlockedWordRequest,
    CreateModerationRuleRequest,
    ModerateContentRequest,
    ReviewQueueItemRequest,
    UpdateModerationRuleRequest,
)
from trust.moderation.blocklist import (
    AddBlockedWord,
    BlockEmail,
    RemoveBlockedWord,
    UnblockEmail,
    blocked_emails,
    blocked_words,
)
from trust.moderation.evaluation import ModerateContent
from trust.moderation.queue import ReviewQueueItem, moderation_queue
from trust.moderation.rule import (
    CreateModerationRule,
    DeleteModerationRule,
    ModerationRule,
    UpdateModerationRule,
    ordered_rules,
)
from trust.moderation.statistics import moderation_statistics

router = APIRouter(prefix="/moderation", tags=["moderation"])


def _conditions(conditions):
    return json.dumps(conditions.model_dump(exclude_none=True)) if conditions is not None else None


@router.post("/moderate")
async def moderate_content(body: ModerateContentRequest):
    """Evaluate arbitrary content without touching any review."""
    command = ModerateContent(
        content=body.content,
        content_id=body.content_id,
        content_type=body.content_type,
        rating=body.rating,
        verified=body.verified,
        customer_email=body.customer_email,
    )
    return ok(current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------
@router.get("/queue")
async def read_queue(
    status: str = "pending",
    priority: str | None = None,
    limit: int = Query(default=50, ge=0),
    offset: int = Query(default=0, ge=0),
):
    result = moderation_queue(status=status, priority=priority, limit=limit, offset=offset)
    return ok({**result, "items": [item.to_dict() for item in result["items"]]})


@router.post("/queue/{queue_item_id}/review")
async def review_queue_item(queue_item_id: str, body: ReviewQueueItemRequest):
    command = ReviewQueueItem(
        queue_item_id=queue_item_id,
        action=body.action,
        reviewed_by=body.reviewed_by,
        notes=body.notes,
    )
    return ok(current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
@router.get("/rules")
async def list_rules(enabled: bool | None = None):
    return ok([rule.to_dict() for rule in ordered_rules(enabled=enabled)])


@router.post("/rules", status_code=201)
async def create_rule(body: CreateModerationRuleRequest):
    command = CreateModerationRule(
        name=body.name,
        rule_type=body.type,
        action=body.action,
        conditions=_conditions(body.conditions),
        priority=body.priority,
        enabled=body.enabled,
    )
    rule_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(ModerationRule).get(rule_id).to_dict())


@router.get("/rules/{rule_id}")
async def read_rule(rule_id: str):
    return ok(current_domain.repository_for(ModerationRule).get(rule_id).to_dict())


@router.put("/rules/{rule_id}")
async def update_rule(rule_id: str, body: UpdateModerationRuleRequest):
    command = UpdateModerationRule(
        rule_id=rule_id,
        name=body.name,
        rule_type=body.type,
        action=body.action,
        conditions=_conditions(body.conditions),
        priority=body.priority,
        enabled=body.enabled,
    )
    current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(ModerationRule).get(rule_id).to_dict())


@router.delete("/rules/{rule_id}")
async def delete_rule(rule_id: str):
    return ok(current_domain.process(DeleteModerationRule(rule_id=rule_id), asynchronous=False))


# ---------------------------------------------------------------------------
# Blocklists
# ---------------------------------------------------------------------------
@router.get("/blocked-words")
async def list_blocked_words():
    return ok(sorted(blocked_words()))


@router.post("/blocked-words", status_code=201)
async def add_blocked_word(body: BlockedWordRequest):
    return ok(current_domain.process(AddBlockedWord(word=body.word), asynchronous=False))


@router.delete("/blocked-words/{word}")
async def remove_blocked_word(word: str):
    return ok(current_domain.process(RemoveBlockedWord(word=word), asynchronous=False))


@router.get("/blocked-emails")
async def list_blocked_emails():
    return ok(sorted(blocked_emails()))


@router.post("/blocked-emails", status_code=201)
async def block_email(body: BlockedEmailRequest):
    return ok(current_domain.process(BlockEmail(email=body.email), asynchronous=False))


@router.delete("/blocked-emails/{email}")
async def unblock_email(email: str):
    return ok(current_domain.process(UnblockEmail(email=email), asynchronous=False))


@router.get("/statistics")
async def statistics():
    return ok(moderation_statistics())
