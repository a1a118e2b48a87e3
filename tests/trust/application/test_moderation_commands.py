"""Application tests for moderation: rules, content evaluation, the queue and blocklists."""

import json

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from trust.moderation.blocklist import (
    AddBlockedWord,
    BlockEmail,
    RemoveBlockedWord,
    UnblockEmail,
    blocked_emails,
    blocked_words,
)
from trust.moderation.evaluation import ModerateContent, ModerateReviewContent
from trust.moderation.queue import ModerationQueueItem, ReviewQueueItem, moderation_queue
from trust.moderation.rule import (
    CreateModerationRule,
    DeleteModerationRule,
    ModerationRule,
    UpdateModerationRule,
    ordered_rules,
)
from trust.moderation.statistics import moderation_statistics
from trust.review.review import Review
from trust.review.submission import SubmitReview


def _create_rule(**overrides):
    defaults = {
        "name": "Reject one-star",
        "rule_type": "auto_reject",
        "action": "reject",
        "conditions": json.dumps({"rating": 1}),
        "priority": 0,
    }
    defaults.update(overrides)
    return current_domain.process(CreateModerationRule(**defaults), asynchronous=False)


def _moderate(content, **kwargs):
    return current_domain.process(ModerateContent(content=content, **kwargs), asynchronous=False)


def _submit_review(content, **overrides):
    defaults = {"product_id": "prod-mod", "customer_id": "cust-mod", "rating": 4, "content": content}
    defaults.update(overrides)
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


class TestModerationRules:
    def test_create_rule(self):
        rule_id = _create_rule(conditions=json.dumps({"rating": 1, "keywords": ["broken"]}))
        rule = current_domain.repository_for(ModerationRule).get(rule_id)
        assert rule.enabled is True
        assert rule.conditions.rating == 1
        assert rule.conditions.keyword_list == ["broken"]
        assert rule.to_dict()["statistics"] == {"applied": 0, "approved": 0, "rejected": 0, "flagged": 0}

    def test_invalid_action_rejected(self):
        with pytest.raises(ValidationError):
            _create_rule(action="delete")

    def test_update_rule(self):
        rule_id = _create_rule()
        current_domain.process(
            UpdateModerationRule(rule_id=rule_id, enabled=False, priority=5, conditions=json.dumps({"rating": 2})),
            asynchronous=False,
        )
        rule = current_domain.repository_for(ModerationRule).get(rule_id)
        assert rule.enabled is False
        assert rule.priority == 5
        assert rule.conditions.rating == 2
        assert rule.name == "Reject one-star"

    def test_delete_rule(self):
        rule_id = _create_rule()
        result = current_domain.process(DeleteModerationRule(rule_id=rule_id), asynchronous=False)
        assert result == {"deleted_rule_id": rule_id}
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(ModerationRule).get(rule_id)

    def test_rules_ordered_by_priority(self):
        low = _create_rule(name="low", priority=1)
        high = _create_rule(name="high", priority=9)
        disabled = _create_rule(name="off", priority=20, enabled=False)
        assert [str(r.id) for r in ordered_rules()] == [disabled, high, low]
        assert [str(r.id) for r in ordered_rules(enabled=True)] == [high, low]


class TestModerateContent:
    def test_clean_content_is_not_queued(self):
        result = _moderate("Sturdy build and easy to assemble.", content_id="c-1")
        assert result["status"] == "approved"
        assert result["score"] == 100
        assert result["queue_item_id"] is None
        assert moderation_queue()["total"] == 0

    def test_flagged_content_is_queued(self):
        result = _moderate("good", content_id="c-2")
        assert result["status"] == "flagged"
        item = current_domain.repository_for(ModerationQueueItem).get(result["queue_item_id"])
        assert item.content_id == "c-2"
        assert item.priority == "low"
        assert item.status == "pending"
        assert item.to_dict()["moderation_results"]["flags"][0]["type"] == "too_short"

    def test_flagged_content_without_id_is_queued_under_item_id(self):
        result = _moderate("good")
        assert result["status"] == "flagged"
        item = current_domain.repository_for(ModerationQueueItem).get(result["queue_item_id"])
        assert item.content_id == result["queue_item_id"]
        assert moderation_queue()["total"] == 1

    def test_rejected_content_is_not_queued(self):
        result = _moderate("FREE MONEY http://x.com http://y.com 555-123-4567")
        assert result["status"] == "rejected"
        assert result["queue_item_id"] is None

    def test_rule_counters_are_persisted(self):
        rule_id = _create_rule()
        _moderate("Stopped working after a week.", rating=1)
        _moderate("Stopped working after a week.", rating=1)
        _moderate("Works perfectly every time.", rating=5)
        rule = current_domain.repository_for(ModerationRule).get(rule_id)
        assert rule.applied_count == 2
        assert rule.rejected_count == 2

    def test_evaluating_content_leaves_reviews_alone(self):
        review_id = _submit_review("scam scam scam")
        _moderate("scam scam scam", content_id=review_id)
        assert current_domain.repository_for(Review).get(review_id).status == "pending"

    def test_blocked_email_rejects(self):
        current_domain.process(BlockEmail(email="Troll@Example.com"), asynchronous=False)
        result = _moderate("Seems like an ordinary review.", customer_email="troll@example.com")
        assert result["status"] == "rejected"
        assert result["score"] == 0


class TestModerateReviewContent:
    def test_clean_review_is_approved(self):
        review_id = _submit_review("Arrived early and works great.")
        result = current_domain.process(ModerateReviewContent(review_id=review_id), asynchronous=False)
        review = current_domain.repository_for(Review).get(review_id)
        assert result["status"] == "approved"
        assert review.status == "approved"
        assert review.moderated_by == "auto-moderation"

    def test_profane_review_is_rejected(self):
        review_id = _submit_review("Total scam, do not buy.")
        current_domain.process(ModerateReviewContent(review_id=review_id), asynchronous=False)
        review = current_domain.repository_for(Review).get(review_id)
        assert review.status == "rejected"
        assert review.moderation_notes == "profanity"

    def test_flagged_review_is_flagged_and_queued(self):
        review_id = _submit_review("meh")
        result = current_domain.process(ModerateReviewContent(review_id=review_id), asynchronous=False)
        review = current_domain.repository_for(Review).get(review_id)
        assert review.status == "flagged"
        assert result["queue_item_id"] is not None

    def test_unknown_review(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(ModerateReviewContent(review_id="missing"), asynchronous=False)


class TestModerationQueue:
    def test_queue_is_oldest_first_within_a_priority(self):
        first = _moderate("ok!", content_id="first")["queue_item_id"]
        _moderate("good", content_id="second")
        queue = moderation_queue()
        assert [item.content_id for item in queue["items"]] == ["first", "second"]
        assert str(queue["items"][0].id) == first

    def test_flag_rule_queues_otherwise_clean_content(self):
        _create_rule(
            name="Watch refunds",
            rule_type="flag_for_review",
            action="flag",
            conditions=json.dumps({"keywords": ["refund"]}),
        )
        result = _moderate("Had to ask for a refund, arrived broken.", content_id="refund-1")
        assert result["status"] == "flagged"
        assert result["applied_rules"][0]["rule_name"] == "Watch refunds"
        assert moderation_queue()["items"][0].content_id == "refund-1"

    def test_review_item_once(self):
        item_id = _moderate("good")["queue_item_id"]
        result = current_domain.process(
            ReviewQueueItem(queue_item_id=item_id, action="approve", reviewed_by="mod-7", notes="fine"),
            asynchronous=False,
        )
        assert result["status"] == "reviewed"
        assert result["decision"] == "approve"
        assert moderation_queue()["total"] == 0
        assert moderation_queue(status="reviewed")["total"] == 1

        with pytest.raises(InvalidOperationError):
            current_domain.process(
                ReviewQueueItem(queue_item_id=item_id, action="reject", reviewed_by="mod-8"),
                asynchronous=False,
            )

    def test_unknown_decision(self):
        item_id = _moderate("good")["queue_item_id"]
        with pytest.raises(ValidationError):
            current_domain.process(
                ReviewQueueItem(queue_item_id=item_id, action="escalate", reviewed_by="mod-7"),
                asynchronous=False,
            )

    def test_priority_filter_and_paging(self):
        for index in range(3):
            _moderate("good", content_id=f"c-{index}")
        page = moderation_queue(priority="low", limit=2, offset=0)
        assert page["total"] == 3
        assert len(page["items"]) == 2
        assert moderation_queue(priority="high")["total"] == 0


class TestBlocklists:
    def test_default_words_present(self):
        assert {"spam", "scam", "fake", "counterfeit", "knock-off"} <= set(blocked_words())

    def test_add_word_is_normalised(self):
        result = current_domain.process(AddBlockedWord(word="  Rubbish "), asynchronous=False)
        assert result == {"success": True, "word": "rubbish"}
        assert "rubbish" in blocked_words()
        assert _moderate("This is rubbish quality.")["status"] == "rejected"

    def test_removing_a_default_word_sticks(self):
        result = current_domain.process(RemoveBlockedWord(word="fake"), asynchronous=False)
        assert result["success"] is True
        assert "fake" not in blocked_words()
        assert _moderate("Fake leather but looks nice.")["status"] == "approved"

    def test_removing_unknown_word_reports_failure(self):
        result = current_domain.process(RemoveBlockedWord(word="nonexistent"), asynchronous=False)
        assert result["success"] is False

    def test_blank_word_rejected(self):
        with pytest.raises(ValidationError):
            current_domain.process(AddBlockedWord(word="   "), asynchronous=False)

    def test_block_and_unblock_email(self):
        current_domain.process(BlockEmail(email="Bad@Example.com"), asynchronous=False)
        assert blocked_emails() == ["bad@example.com"]
        result = current_domain.process(UnblockEmail(email="bad@example.com"), asynchronous=False)
        assert result["success"] is True
        assert blocked_emails() == []
        assert current_domain.process(UnblockEmail(email="bad@example.com"), asynchronous=False)["success"] is False


class TestModerationStatistics:
    def test_statistics(self):
        first = _moderate("good")["queue_item_id"]
        _moderate("fine")
        current_domain.process(
            ReviewQueueItem(queue_item_id=first, action="approve", reviewed_by="mod-1"), asynchronous=False
        )
        _create_rule()
        _create_rule(name="disabled", enabled=False)
        current_domain.process(BlockEmail(email="x@example.com"), asynchronous=False)

        stats = moderation_statistics()
        assert stats["queue"] == {"pending": 1, "reviewed": 1, "high_priority": 0, "total": 2}
        assert stats["decisions"] == {"approved": 1, "rejected": 0, "total": 1, "approval_rate": 100}
        assert stats["rules"] == {"total": 2, "active": 1}
        assert stats["blocklists"] == {"blocked_words": 5, "blocked_emails": 1}
