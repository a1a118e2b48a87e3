"""VoteOnReview: record a helpful/not-helpful vote.

Voting again replaces the voter's previous vote; it is never an error.
"""

from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import Review


@trust.command(part_of="Review")
class VoteOnReview:
    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    helpful = Boolean(required=True)


@trust.command_handler(part_of=Review)
class VoteOnReviewHandler:
    @handle(VoteOnReview)
    def vote_on_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.vote(voter_id=command.voter_id, helpful=command.helpful)

        repo.add(review)
        return {
            "review_id": str(review.id),
            "helpful_count": review.helpful_count,
            "not_helpful_count": review.not_helpful_count,
        }
