"""Moderation overview: queue depth, human decisions, rules and blocklists."""

from trust.moderation.blocklist import blocked_emails, blocked_words
from trust.moderation.queue import ModerationQueueItem, QueueDecision, QueuePriority, QueueStatus
from trust.moderation.rule import ModerationRule
from trust.utils.numbers import percentage
from trust.utils.repository import fetch_all


def moderation_statistics():
    items = fetch_all(ModerationQueueItem)
    pending = [item for item in items if item.status == QueueStatus.PENDING.value]
    reviewed = [item for item in items if item.status == QueueStatus.REVIEWED.value]

    approved = sum(1 for item in reviewed if item.decision == QueueDecision.APPROVE.value)
    rejected = sum(1 for item in reviewed if item.decision == QueueDecision.REJECT.value)

    rules = fetch_all(ModerationRule)

    return {
        "queue": {
            "pending": len(pending),
            "reviewed": len(reviewed),
            "high_priority": sum(1 for item in pending if item.priority == QueuePriority.HIGH.value),
            "total": len(items),
        },
        "decisions": {
            "approved": approved,
            "rejected": rejected,
            "total": len(reviewed),
            "approval_rate": int(percentage(approved, len(reviewed), digits=0)),
        },
        "rules": {
            "total": len(rules),
            "active": sum(1 for rule in rules if rule.enabled),
        },
        "blocklists": {
            "blocked_words": len(blocked_words()),
            "blocked_emails": len(blocked_emails()),
        },
    }
