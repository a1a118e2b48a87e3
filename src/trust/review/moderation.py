"""ModerateReview / FlagReview: the two paths that move a review out of pending.

ModerateReview is the only way a review becomes approved or rejected.
FlagReview bumps the flag counter and forces the flagged status.
"""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import Review


@trust.command(part_of="Review")
class ModerateReview:
    review_id = Identifier(required=True)
    status = String(required=True)  # "approved", "rejected" or "flagged"
    moderator_id = String(required=True, max_length=100)
    notes = Text()


@trust.command(part_of="Review")
class FlagReview:
    review_id = Identifier(required=True)
    reason = Text()
    flagged_by = String(max_length=100)


@trust.command_handler(part_of=Review)
class ReviewModerationHandler:
    @handle(ModerateReview)
    def moderate_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.moderate(
            status=command.status,
            moderator_id=command.moderator_id,
            notes=command.notes,
        )

        repo.add(review)

    @handle(FlagReview)
    def flag_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.flag(reason=command.reason, flagged_by=command.flagged_by)

        repo.add(review)
        return {"review_id": str(review.id), "flag_count": review.flag_count}
