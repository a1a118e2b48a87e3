"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state; nothing is shared across users.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ReviewState:
    """Tracks state for a single simulated review lifecycle."""

    review_id: str | None = None
    product_id: str | None = None
    current_status: str = "pending"
    vote_count: int = 0
    response_count: int = 0


@dataclass
class ModerationState:
    """Tracks the rules and queue items a moderator session touched."""

    rule_ids: list[str] = field(default_factory=list)
    queue_item_ids: list[str] = field(default_factory=list)


@dataclass
class ABTestState:
    """Tracks state for an A/B test lifecycle."""

    test_id: str | None = None
    observations: int = 0
    winner: str | None = None
