"""ImportReviews: feed externally sourced reviews into the submission path.

Every record is validated before any of them is stored: one bad record
rejects the whole batch. Imported reviews carry ``source="import"`` and
start out pending like any other submission.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.fields import Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.review.review import Review, ReviewSource

logger = structlog.get_logger(__name__)

_IMPORTABLE_FIELDS = (
    "product_id",
    "customer_id",
    "rating",
    "content",
    "title",
    "customer_name",
    "customer_email",
    "verified",
    "photos",
    "videos",
    "pros",
    "cons",
    "recommend_product",
)


@trust.command(part_of="Review")
class ImportReviews:
    records = Text(required=True)  # JSON array of review objects


@trust.command_handler(part_of=Review)
class ImportReviewsHandler:
    @handle(ImportReviews)
    def import_reviews(self, command):
        records = json.loads(command.records)
        if not isinstance(records, list):
            raise ValidationError({"records": ["Expected a list of review records"]})

        reviews = []
        errors = {}
        for index, record in enumerate(records):
            fields = {key: record[key] for key in _IMPORTABLE_FIELDS if key in record}
            try:
                reviews.append(Review.submit(source=ReviewSource.IMPORT.value, **fields))
            except (TypeError, ValidationError) as exc:
                detail = exc.messages if isinstance(exc, ValidationError) else {"record": [str(exc)]}
                errors[f"records[{index}]"] = [json.dumps(detail)]

        if errors:
            raise ValidationError(errors)

        repo = current_domain.repository_for(Review)
        for review in reviews:
            repo.add(review)

        logger.info("Reviews imported", count=len(reviews))
        return [str(review.id) for review in reviews]
