"""AddReviewResponse: post a merchant/support/customer reply under a review."""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import Review


@trust.command(part_of="Review")
class AddReviewResponse:
    review_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    content = Text(required=True)
    responder_name = String(max_length=200)
    responder_type = String(max_length=20)


@trust.command_handler(part_of=Review)
class AddReviewResponseHandler:
    @handle(AddReviewResponse)
    def add_review_response(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        response = review.add_response(
            responder_id=command.responder_id,
            content=command.content,
            responder_name=command.responder_name,
            responder_type=command.responder_type,
        )

        repo.add(review)
        return str(response.id)
