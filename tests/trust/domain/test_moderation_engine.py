"""Tests for the moderation engine: built-in heuristics and custom rule evaluation."""

import pytest

from trust.moderation.engine import ContentUnderReview, ModerationEngine
from trust.moderation.heuristics import HeuristicProfile, Penalties
from trust.moderation.rule import ModerationRule, build_conditions

SPAMMY = "FREE MONEY http://x.com http://y.com 555-123-4567"


def _rule(action, priority=0, conditions=None, name=None, enabled=True):
    rule_type = {"approve": "auto_approve", "reject": "auto_reject", "flag": "flag_for_review"}[action]
    return ModerationRule(
        name=name or f"{action} rule",
        rule_type=rule_type,
        action=action,
        priority=priority,
        enabled=enabled,
        conditions=build_conditions(conditions),
    )


def _evaluate(text, rules=(), profile=None, **kwargs):
    return ModerationEngine(profile, rules).evaluate(ContentUnderReview(text=text, **kwargs))


class TestHeuristics:
    def test_clean_content_is_approved_with_full_score(self):
        verdict = _evaluate("Great product! Works exactly as described.")
        assert verdict.status == "approved"
        assert verdict.score == 100
        assert verdict.flags == []
        assert verdict.applied_rules == []

    def test_short_content_is_flagged(self):
        verdict = _evaluate("good")
        assert verdict.status == "flagged"
        assert verdict.score == 90
        assert verdict.flag_types == ["too_short"]

    def test_profanity_rejects(self):
        verdict = _evaluate("This is a total scam and a fake listing.")
        assert verdict.status == "rejected"
        assert verdict.score == 70
        flag = verdict.flags[0]
        assert flag.type == "profanity"
        assert flag.severity == "high"
        assert flag.details == ["fake", "scam"]
        assert "Remove profanity and resubmit" in verdict.recommendations

    def test_two_spam_indicators_reject(self):
        verdict = _evaluate(SPAMMY)
        assert verdict.status == "rejected"
        assert verdict.score <= 60
        assert "spam" in verdict.flag_types

    def test_single_spam_indicator_is_tolerated(self):
        verdict = _evaluate("See the manual at https://example.com/manual for setup.")
        assert verdict.status == "approved"
        assert "spam" not in verdict.flag_types

    def test_blocked_email_zeroes_score(self):
        profile = HeuristicProfile(blocked_emails=frozenset({"troll@example.com"}))
        verdict = _evaluate(
            "Perfectly fine looking review text.",
            profile=profile,
            customer_email="Troll@Example.com",
        )
        assert verdict.status == "rejected"
        assert verdict.score == 0
        assert verdict.flags[0].severity == "critical"

    def test_excessive_caps_only_costs_points(self):
        verdict = _evaluate("THIS BLENDER IS REALLY AMAZING AND LOUD")
        assert verdict.status == "approved"
        assert verdict.score == 95
        assert verdict.flag_types == ["excessive_caps"]

    def test_caps_ignored_for_short_text(self):
        verdict = _evaluate("LOVE THIS THING")
        assert "excessive_caps" not in verdict.flag_types

    def test_too_short_does_not_downgrade_rejection(self):
        verdict = _evaluate("scam")
        assert verdict.status == "rejected"
        assert set(verdict.flag_types) == {"profanity", "too_short"}

    def test_score_never_goes_negative(self):
        profile = HeuristicProfile(penalties=Penalties(profanity=80, spam=80))
        verdict = _evaluate("SCAM!!! FAKE!!! http://a.io 555-123-4567 aaaaa", profile=profile)
        assert verdict.score == 0
        assert verdict.status == "rejected"

    def test_custom_word_list(self):
        profile = HeuristicProfile(blocked_words=frozenset({"meh"}))
        assert _evaluate("Honestly meh, nothing special", profile=profile).status == "rejected"
        assert _evaluate("This is a scam of a product", profile=profile).status == "approved"


class TestPriority:
    @pytest.mark.parametrize(
        "text, priority",
        [
            ("Great product! Works exactly as described.", "low"),
            (SPAMMY, "medium"),
            ("scam scam http://a.io 555-123-4567", "high"),
        ],
    )
    def test_queue_priority_from_score(self, text, priority):
        assert _evaluate(text).queue_priority == priority


class TestCustomRules:
    def test_matching_reject_rule(self):
        rule = _rule("reject", conditions={"rating": 1})
        verdict = _evaluate("Broke after two days of use.", rules=[rule], rating=1)
        assert verdict.status == "rejected"
        assert verdict.applied_rules[0].action == "reject"
        assert rule.applied_count == 1
        assert rule.rejected_count == 1

    def test_non_matching_rule_is_skipped(self):
        rule = _rule("reject", conditions={"rating": 1})
        verdict = _evaluate("Broke after two days of use.", rules=[rule], rating=5)
        assert verdict.status == "approved"
        assert verdict.applied_rules == []
        assert rule.applied_count == 0

    def test_conditions_are_and_combined(self):
        rule = _rule("flag", conditions={"verified": True, "keywords": ["refund"]})
        assert _evaluate("I asked for a refund twice.", rules=[rule], verified=False).status == "approved"
        assert _evaluate("I asked for a refund twice.", rules=[rule], verified=True).status == "flagged"

    def test_keywords_match_case_insensitively(self):
        rule = _rule("flag", conditions={"keywords": ["Warranty", "refund"]})
        assert _evaluate("the WARRANTY process was slow", rules=[rule]).status == "flagged"

    def test_min_length_condition(self):
        rule = _rule("approve", conditions={"min_length": 50})
        verdict = _evaluate("Short but fine text.", rules=[rule])
        assert verdict.applied_rules == []

    def test_disabled_rule_is_ignored(self):
        rule = _rule("reject", enabled=False)
        assert _evaluate("Works well for the price.", rules=[rule]).status == "approved"

    def test_every_matching_rule_is_applied_in_priority_order(self):
        low = _rule("flag", priority=1, name="low")
        high = _rule("approve", priority=10, name="high")
        verdict = _evaluate("Works well for the price.", rules=[low, high])
        assert [rule.rule_name for rule in verdict.applied_rules] == ["high", "low"]

    def test_later_approve_overwrites_earlier_reject(self):
        reject = _rule("reject", priority=10)
        approve = _rule("approve", priority=1)
        verdict = _evaluate("Works well for the price.", rules=[reject, approve])
        assert verdict.status == "approved"

    def test_flag_rule_does_not_soften_rejection(self):
        reject = _rule("reject", priority=10)
        flag = _rule("flag", priority=1)
        assert _evaluate("Works well for the price.", rules=[reject, flag]).status == "rejected"

    def test_approve_rule_cannot_rescue_spam(self):
        approve = _rule("approve", priority=100)
        verdict = _evaluate(SPAMMY, rules=[approve])
        assert verdict.status == "rejected"
        assert verdict.applied_rules[0].action == "approve"

    def test_approve_rule_can_clear_short_content_flag(self):
        approve = _rule("approve", conditions={"rating": 5})
        verdict = _evaluate("good", rules=[approve], rating=5)
        assert verdict.status == "approved"
        assert verdict.score == 90


class TestScoreMonotonicity:
    def test_each_violation_lowers_the_score(self):
        clean = _evaluate("Lovely kettle, boils fast and pours well.")
        profane = _evaluate("Lovely kettle, but probably a knock-off.")
        profane_and_spam = _evaluate("Lovely kettle, a knock-off http://a.io 555-123-4567")
        assert clean.score > profane.score > profane_and_spam.score


class TestVerdictSerialisation:
    def test_to_dict_shape(self):
        rule = _rule("flag", name="Watch refunds", conditions={"keywords": ["refund"]})
        payload = _evaluate("Asked for a refund, still waiting.", rules=[rule]).to_dict()
        assert payload["status"] == "flagged"
        assert payload["score"] == 100
        assert payload["flags"] == []
        assert payload["applied_rules"] == [
            {"rule_id": str(rule.id), "rule_name": "Watch refunds", "action": "flag"}
        ]
        assert payload["recommendations"] == []
