"""ModerateContent / ModerateReviewContent: run the moderation engine.

``ModerateContent`` evaluates arbitrary text and leaves reviews alone.
``ModerateReviewContent`` evaluates a stored review and applies the verdict:
approved and rejected verdicts go through ``Review.moderate`` under the
``auto-moderation`` moderator, a flagged verdict flags the review.

Either way, flagged or pending verdicts put the content on the moderation
queue, and the counters of every rule that applied are persisted.
"""

import structlog
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.moderation.blocklist import load_profile
from trust.moderation.engine import FLAGGED, ContentUnderReview, ModerationEngine
from trust.moderation.queue import ModerationQueueItem
from trust.moderation.rule import ModerationRule, ordered_rules
from trust.review.review import Review

logger = structlog.get_logger(__name__)

AUTO_MODERATOR = "auto-moderation"


def run_moderation(content):
    """Evaluate ``content``, persist rule counters and enqueue when undecided."""
    rules = ordered_rules(enabled=True)
    verdict = ModerationEngine(profile=load_profile(), rules=rules).evaluate(content)

    applied_ids = {rule.rule_id for rule in verdict.applied_rules}
    rule_repo = current_domain.repository_for(ModerationRule)
    for rule in rules:
        if str(rule.id) in applied_ids:
            rule_repo.add(rule)

    queue_item = None
    if verdict.needs_review:
        queue_item = ModerationQueueItem.enqueue(content, verdict)
        current_domain.repository_for(ModerationQueueItem).add(queue_item)

    logger.info(
        "Content moderated",
        content_id=content.content_id,
        status=verdict.status,
        score=verdict.score,
        flags=verdict.flag_types,
        applied_rules=len(verdict.applied_rules),
        queued=queue_item is not None,
    )
    return verdict, queue_item


def _result(verdict, queue_item):
    result = verdict.to_dict()
    result["queue_item_id"] = str(queue_item.id) if queue_item else None
    return result


@trust.command(part_of="ModerationQueueItem")
class ModerateContent:
    content = Text(required=True)
    content_id = String(max_length=255)
    content_type = String(default="review", max_length=50)
    rating = Integer()
    verified = Boolean()
    customer_email = String(max_length=254)


@trust.command(part_of="ModerationQueueItem")
class ModerateReviewContent:
    review_id = Identifier(required=True)


@trust.command_handler(part_of=ModerationQueueItem)
class ModerationHandler:
    @handle(ModerateContent)
    def moderate_content(self, command):
        content = ContentUnderReview(
            text=command.content,
            content_id=command.content_id,
            content_type=command.content_type or "review",
            rating=command.rating,
            verified=command.verified,
            customer_email=command.customer_email,
        )
        return _result(*run_moderation(content))

    @handle(ModerateReviewContent)
    def moderate_review_content(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        verdict, queue_item = run_moderation(ContentUnderReview.from_review(review))

        notes = "; ".join(verdict.flag_types) or None
        if verdict.status == FLAGGED:
            review.flag(reason=notes, flagged_by=AUTO_MODERATOR)
        else:
            review.moderate(status=verdict.status, moderator_id=AUTO_MODERATOR, notes=notes)
        repo.add(review)

        return _result(verdict, queue_item)
