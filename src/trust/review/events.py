"""Domain events for the Review aggregate.

Events are immutable facts about review state changes. They drive:
- the ProductRating projection (rating aggregate recomputation)
- the analytics ledger (review_created, review_approved, ...)
- outbound webhooks to the integration engine
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from trust.domain import trust


@trust.event(part_of="Review")
class ReviewSubmitted:
    """A customer submitted a new review."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    verified = Boolean(default=False)
    has_media = Boolean(default=False)
    source = String()
    submitted_at = DateTime(required=True)


@trust.event(part_of="Review")
class ReviewUpdated:
    """Review content was patched."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    status = String(required=True)
    rating = Integer(required=True)
    previous_rating = Integer()
    rating_changed = Boolean(default=False)
    updated_at = DateTime(required=True)


@trust.event(part_of="Review")
class ReviewApproved:
    """The review was approved for display."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    moderator_id = String(required=True)
    approved_at = DateTime(required=True)


@trust.event(part_of="Review")
class ReviewRejected:
    """The review was rejected."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    moderator_id = String(required=True)
    reason = Text()
    rejected_at = DateTime(required=True)


@trust.event(part_of="Review")
class ReviewFlagged:
    """The review was flagged, either by a moderator or by a customer report."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    flag_count = Integer(default=0)
    reason = Text()
    flagged_by = String()
    flagged_at = DateTime(required=True)


@trust.event(part_of="Review")
class HelpfulVoteRecorded:
    """A voter marked the review helpful or not helpful."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    helpful = Boolean(required=True)
    replaced_previous = Boolean(default=False)
    helpful_count = Integer(required=True)
    not_helpful_count = Integer(required=True)
    voted_at = DateTime(required=True)


@trust.event(part_of="Review")
class ResponseAdded:
    """A response was posted under the review."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    response_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    responder_type = String()
    response_count = Integer(required=True)
    responded_at = DateTime(required=True)
