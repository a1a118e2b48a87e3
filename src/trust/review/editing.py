"""UpdateReview: patch the content of an existing review.

A rating change on an approved review is picked up by the ProductRating
projector through the ReviewUpdated event.
"""

import json

from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import _UNSET, Review


@trust.command(part_of="Review")
class UpdateReview:
    review_id = Identifier(required=True)
    rating = Integer()
    title = String(max_length=200)
    content = Text()
    recommend_product = Boolean()
    verified = Boolean()
    photos = Text()  # JSON array; omitted = unchanged
    videos = Text()
    pros = Text()
    cons = Text()


def _patch_list(raw):
    return json.loads(raw) if raw is not None else _UNSET


@trust.command_handler(part_of=Review)
class UpdateReviewHandler:
    @handle(UpdateReview)
    def update_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.update(
            rating=command.rating if command.rating is not None else _UNSET,
            title=command.title if command.title is not None else _UNSET,
            content=command.content if command.content is not None else _UNSET,
            recommend_product=command.recommend_product,
            verified=command.verified,
            photos=_patch_list(command.photos),
            videos=_patch_list(command.videos),
            pros=_patch_list(command.pros),
            cons=_patch_list(command.cons),
        )

        repo.add(review)
