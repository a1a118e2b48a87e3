"""Moderation engine: scores content and decides a verdict.

Evaluation order:
    1. Built-in heuristics from the ``HeuristicProfile`` (profanity, spam,
       blocked email, length, capitalisation), each adjusting score/status.
    2. Every enabled custom rule, in descending priority, with no early exit.
       A later matching rule can overwrite the status an earlier rule set,
       but an approve rule never lifts a rejection made by the heuristics.

The engine holds no state of its own. Rule counters are bumped on the rule
objects it is given; persisting them is the caller's job.
"""

from dataclasses import dataclass, field

from trust.moderation.heuristics import HeuristicProfile
from trust.moderation.rule import RuleAction

APPROVED = "approved"
REJECTED = "rejected"
FLAGGED = "flagged"
PENDING = "pending"

MAX_SCORE = 100


@dataclass(frozen=True)
class ContentUnderReview:
    text: str
    content_id: str = None
    rating: int = None
    verified: bool = None
    customer_email: str = None
    content_type: str = "review"

    @classmethod
    def from_review(cls, review):
        return cls(
            content_id=str(review.id),
            text=review.content,
            rating=review.rating,
            verified=review.verified,
            customer_email=review.customer_email,
        )

    def to_dict(self):
        return {
            "content_id": self.content_id,
            "content_type": self.content_type,
            "content": self.text,
            "rating": self.rating,
            "verified": self.verified,
            "customer_email": self.customer_email,
        }


@dataclass(frozen=True)
class ModerationFlag:
    type: str
    severity: str
    details: object

    def to_dict(self):
        return {"type": self.type, "severity": self.severity, "details": self.details}


@dataclass(frozen=True)
class AppliedRule:
    rule_id: str
    rule_name: str
    action: str

    def to_dict(self):
        return {"rule_id": self.rule_id, "rule_name": self.rule_name, "action": self.action}


@dataclass
class ModerationVerdict:
    status: str = APPROVED
    score: int = MAX_SCORE
    flags: list = field(default_factory=list)
    applied_rules: list = field(default_factory=list)
    recommendations: list = field(default_factory=list)

    @property
    def needs_review(self):
        return self.status in (FLAGGED, PENDING)

    @property
    def queue_priority(self):
        if self.score < 50:
            return "high"
        if self.score < 70:
            return "medium"
        return "low"

    @property
    def flag_types(self):
        return [flag.type for flag in self.flags]

    def to_dict(self):
        return {
            "status": self.status,
            "score": self.score,
            "flags": [flag.to_dict() for flag in self.flags],
            "applied_rules": [rule.to_dict() for rule in self.applied_rules],
            "recommendations": list(self.recommendations),
        }


class ModerationEngine:
    def __init__(self, profile=None, rules=()):
        self.profile = profile or HeuristicProfile()
        self.rules = sorted(rules, key=lambda rule: rule.priority or 0, reverse=True)

    def evaluate(self, content):
        verdict = ModerationVerdict()
        self._apply_heuristics(content, verdict)
        rejected_by_heuristics = verdict.status == REJECTED
        self._apply_rules(content, verdict, rejected_by_heuristics)
        return verdict

    def _apply_heuristics(self, content, verdict):
        profile = self.profile
        penalties = profile.penalties
        text = content.text

        words = profile.profanity_in(text)
        if words:
            verdict.flags.append(ModerationFlag("profanity", "high", words))
            verdict.score -= penalties.profanity
            verdict.status = REJECTED
            verdict.recommendations.append("Remove profanity and resubmit")

        indicators = profile.spam_indicators(text)
        if len(indicators) >= profile.spam_threshold:
            verdict.flags.append(ModerationFlag("spam", "high", indicators))
            verdict.score -= penalties.spam
            verdict.status = REJECTED
            verdict.recommendations.append("Content appears to be spam")

        if profile.is_blocked_email(content.customer_email):
            verdict.flags.append(ModerationFlag("blocked_email", "critical", "Email address is blocked"))
            verdict.score = 0
            verdict.status = REJECTED

        if profile.is_too_short(text):
            verdict.flags.append(ModerationFlag("too_short", "medium", "Review is too short"))
            verdict.score -= penalties.too_short
            # Never downgrades a rejection
            if verdict.status == APPROVED:
                verdict.status = FLAGGED

        if profile.has_excessive_caps(text):
            verdict.flags.append(ModerationFlag("excessive_caps", "low", "Excessive use of capital letters"))
            verdict.score -= penalties.excessive_caps

        verdict.score = max(verdict.score, 0)

    def _apply_rules(self, content, verdict, rejected_by_heuristics):
        for rule in self.rules:
            if not rule.enabled or not rule.matches(content):
                continue

            verdict.applied_rules.append(AppliedRule(str(rule.id), rule.name, rule.action))
            rule.record_application()

            if rule.action == RuleAction.REJECT.value:
                verdict.status = REJECTED
            elif rule.action == RuleAction.FLAG.value:
                if verdict.status == APPROVED:
                    verdict.status = FLAGGED
            elif rule.action == RuleAction.APPROVE.value:
                if not rejected_by_heuristics:
                    verdict.status = APPROVED
