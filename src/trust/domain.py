"""Review Trust bounded context: reviews, moderation, analytics and social proof.

Owns the review lifecycle, the rule-driven moderation engine and its
priority queue, the append-only analytics event ledger with its read models,
and the social-proof engine (display rules, trust badges, A/B tests).
Review state changes reach the ledger through event handlers, so analytics
never observes an event whose state change has not been committed.
"""

from protean.domain import Domain

from trust.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

trust = Domain(name="trust")
