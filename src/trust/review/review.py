"""Review aggregate: the entity every other part of the trust pipeline references.

A review is submitted as PENDING and only leaves that state through
moderation (a moderator decision or an auto-moderation verdict) or through
a customer flag. Once moderated it never returns to PENDING.

State Machine (4 states):
    PENDING  → APPROVED | REJECTED | FLAGGED
    APPROVED → REJECTED | FLAGGED
    REJECTED → APPROVED | FLAGGED
    FLAGGED  → APPROVED | REJECTED | FLAGGED (repeat flags)

Helpful votes are recorded per voter: a voter's latest vote replaces their
earlier one, so counts never double up.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from trust.domain import trust
from trust.review.events import (
    HelpfulVoteRecorded,
    ResponseAdded,
    ReviewApproved,
    ReviewFlagged,
    ReviewRejected,
    ReviewSubmitted,
    ReviewUpdated,
)

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"


class ReviewSource(Enum):
    WEBSITE = "website"
    EMAIL = "email"
    IMPORT = "import"
    API = "api"


class ResponderType(Enum):
    MERCHANT = "merchant"
    SUPPORT = "support"
    CUSTOMER = "customer"


_MODERATION_TARGETS = {
    ReviewStatus.APPROVED,
    ReviewStatus.REJECTED,
    ReviewStatus.FLAGGED,
}


def _dump_list(values):
    return json.dumps(list(values)) if values else None


def _load_list(raw):
    return json.loads(raw) if raw else []


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@trust.entity(part_of="Review")
class ReviewResponse:
    """A reply posted under a review by the merchant, support or another customer."""

    responder_id = Identifier(required=True)
    responder_name = String(max_length=200)
    responder_type = String(choices=ResponderType, default=ResponderType.MERCHANT.value)
    content = Text(required=True)
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@trust.aggregate
class Review:
    """A customer's review of a product."""

    # Core identifiers
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String(max_length=200)
    customer_email = String(max_length=254)

    # Content
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(max_length=200)
    content = Text(required=True)
    pros = Text()  # JSON array of strings
    cons = Text()  # JSON array of strings
    recommend_product = Boolean(default=True)

    # Media
    photos = Text()  # JSON array of URLs
    videos = Text()  # JSON array of URLs

    # Verification
    verified = Boolean(default=False)
    source = String(choices=ReviewSource, default=ReviewSource.WEBSITE.value)

    # Status
    status = String(choices=ReviewStatus, default=ReviewStatus.PENDING.value)
    moderated_at = DateTime()
    moderated_by = String(max_length=100)
    moderation_notes = Text()

    # Voting
    votes = Text()  # JSON: {voter_id: true (helpful) | false (not helpful)}
    helpful_count = Integer(default=0, min_value=0)
    not_helpful_count = Integer(default=0, min_value=0)

    # Engagement
    responses = HasMany(ReviewResponse)
    response_count = Integer(default=0, min_value=0)
    flag_count = Integer(default=0, min_value=0)

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def content_must_not_be_blank(self):
        if self.content is not None and len(self.content.strip()) == 0:
            raise ValidationError({"content": ["Review content cannot be empty"]})

    @invariant.post
    def moderated_review_cannot_be_pending(self):
        if self.moderated_at is not None and self.status == ReviewStatus.PENDING.value:
            raise ValidationError({"status": ["A moderated review cannot return to pending"]})

    # -------------------------------------------------------------------
    # Derived attributes
    # -------------------------------------------------------------------
    @property
    def photo_list(self):
        return _load_list(self.photos)

    @property
    def video_list(self):
        return _load_list(self.videos)

    @property
    def pros_list(self):
        return _load_list(self.pros)

    @property
    def cons_list(self):
        return _load_list(self.cons)

    @property
    def has_media(self):
        return bool(self.photo_list or self.video_list)

    def vote_of(self, voter_id):
        """Return the voter's current vote (True/False), or None if they have not voted."""
        return json.loads(self.votes or "{}").get(str(voter_id))

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        product_id,
        customer_id,
        rating,
        content,
        title=None,
        customer_name=None,
        customer_email=None,
        verified=False,
        photos=None,
        videos=None,
        pros=None,
        cons=None,
        recommend_product=True,
        source=ReviewSource.WEBSITE.value,
    ):
        """Submit a new review. Every review starts out pending."""
        now = datetime.now(UTC)

        review = cls(
            product_id=product_id,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email.lower() if customer_email else None,
            rating=rating,
            title=title,
            content=content,
            verified=bool(verified),
            photos=_dump_list(photos),
            videos=_dump_list(videos),
            pros=_dump_list(pros),
            cons=_dump_list(cons),
            recommend_product=recommend_product is not False,
            source=source or ReviewSource.WEBSITE.value,
            status=ReviewStatus.PENDING.value,
            votes=json.dumps({}),
            helpful_count=0,
            not_helpful_count=0,
            response_count=0,
            flag_count=0,
            created_at=now,
            updated_at=now,
        )

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                customer_id=str(customer_id),
                rating=rating,
                verified=bool(verified),
                has_media=review.has_media,
                source=review.source,
                submitted_at=now,
            )
        )

        return review

    # -------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------
    def update(
        self,
        rating=_UNSET,
        title=_UNSET,
        content=_UNSET,
        pros=_UNSET,
        cons=_UNSET,
        photos=_UNSET,
        videos=_UNSET,
        recommend_product=_UNSET,
        verified=_UNSET,
    ):
        """Patch review content. Status is not patchable; it moves only through moderation."""
        now = datetime.now(UTC)
        previous_rating = self.rating

        if rating is not _UNSET and rating is not None:
            self.rating = rating
        if title is not _UNSET:
            self.title = title
        if content is not _UNSET and content is not None:
            self.content = content
        if pros is not _UNSET:
            self.pros = _dump_list(pros)
        if cons is not _UNSET:
            self.cons = _dump_list(cons)
        if photos is not _UNSET:
            self.photos = _dump_list(photos)
        if videos is not _UNSET:
            self.videos = _dump_list(videos)
        if recommend_product is not _UNSET and recommend_product is not None:
            self.recommend_product = recommend_product
        if verified is not _UNSET and verified is not None:
            self.verified = verified

        self.updated_at = now

        self.raise_(
            ReviewUpdated(
                review_id=str(self.id),
                product_id=str(self.product_id),
                status=self.status,
                rating=self.rating,
                previous_rating=previous_rating,
                rating_changed=self.rating != previous_rating,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def moderate(self, status, moderator_id, notes=None):
        """Apply a moderation decision.

        This is the only path that marks a review approved or rejected.
        """
        try:
            target = ReviewStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown moderation status: {status}"]}) from None

        if target not in _MODERATION_TARGETS:
            raise ValidationError({"status": ["A review cannot be moved back to pending"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.moderated_at = now
        self.moderated_by = str(moderator_id)
        self.moderation_notes = notes
        self.updated_at = now

        if target == ReviewStatus.APPROVED:
            self.raise_(
                ReviewApproved(
                    review_id=str(self.id),
                    product_id=str(self.product_id),
                    customer_id=str(self.customer_id),
                    rating=self.rating,
                    moderator_id=str(moderator_id),
                    approved_at=now,
                )
            )
        elif target == ReviewStatus.REJECTED:
            self.raise_(
                ReviewRejected(
                    review_id=str(self.id),
                    product_id=str(self.product_id),
                    customer_id=str(self.customer_id),
                    rating=self.rating,
                    moderator_id=str(moderator_id),
                    reason=notes,
                    rejected_at=now,
                )
            )
        else:
            self._raise_flagged(reason=notes, flagged_by=str(moderator_id), flagged_at=now)

    def flag(self, reason=None, flagged_by=None):
        """Flag the review for attention. Forces FLAGGED whatever the current status."""
        now = datetime.now(UTC)
        self.flag_count = self.flag_count + 1
        self.status = ReviewStatus.FLAGGED.value
        self.updated_at = now

        self._raise_flagged(reason=reason, flagged_by=flagged_by, flagged_at=now)

    def _raise_flagged(self, reason, flagged_by, flagged_at):
        self.raise_(
            ReviewFlagged(
                review_id=str(self.id),
                product_id=str(self.product_id),
                customer_id=str(self.customer_id),
                rating=self.rating,
                flag_count=self.flag_count,
                reason=reason,
                flagged_by=str(flagged_by) if flagged_by else None,
                flagged_at=flagged_at,
            )
        )

    # -------------------------------------------------------------------
    # Voting
    # -------------------------------------------------------------------
    def vote(self, voter_id, helpful):
        """Record a helpful/not-helpful vote, replacing the voter's earlier vote."""
        votes = json.loads(self.votes or "{}")
        key = str(voter_id)
        helpful = bool(helpful)

        previous = votes.get(key)
        if previous is True:
            self.helpful_count = max(0, self.helpful_count - 1)
        elif previous is False:
            self.not_helpful_count = max(0, self.not_helpful_count - 1)

        votes[key] = helpful
        if helpful:
            self.helpful_count = self.helpful_count + 1
        else:
            self.not_helpful_count = self.not_helpful_count + 1

        now = datetime.now(UTC)
        self.votes = json.dumps(votes)
        self.updated_at = now

        self.raise_(
            HelpfulVoteRecorded(
                review_id=str(self.id),
                product_id=str(self.product_id),
                voter_id=key,
                helpful=helpful,
                replaced_previous=previous is not None,
                helpful_count=self.helpful_count,
                not_helpful_count=self.not_helpful_count,
                voted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Responses
    # -------------------------------------------------------------------
    def add_response(self, responder_id, content, responder_name=None, responder_type=None):
        """Attach a response to the review."""
        now = datetime.now(UTC)

        response = ReviewResponse(
            responder_id=responder_id,
            responder_name=responder_name,
            responder_type=responder_type or ResponderType.MERCHANT.value,
            content=content,
            created_at=now,
        )
        self.add_responses(response)
        self.response_count = self.response_count + 1
        self.updated_at = now

        self.raise_(
            ResponseAdded(
                review_id=str(self.id),
                product_id=str(self.product_id),
                response_id=str(response.id),
                responder_id=str(responder_id),
                responder_type=response.responder_type,
                response_count=self.response_count,
                responded_at=now,
            )
        )

        return response
