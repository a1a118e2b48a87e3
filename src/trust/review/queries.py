"""Read side of the review store.

Listings, search and statistics are computed from the stored reviews on each
call; pagination is applied after filtering and sorting so ``total`` always
reflects the full match count.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from trust.review.review import Review, ReviewStatus
from trust.utils.numbers import round_half_up
from trust.utils.repository import fetch_all

SORT_ORDERS = ("recent", "helpful", "rating_high", "rating_low")

DEFAULT_PAGE_SIZE = 20


def _iso(value):
    return value.isoformat() if value else None


def response_to_dict(response):
    return {
        "id": str(response.id),
        "responder_id": str(response.responder_id),
        "responder_name": response.responder_name,
        "responder_type": response.responder_type,
        "content": response.content,
        "created_at": _iso(response.created_at),
    }


def review_to_dict(review):
    return {
        "id": str(review.id),
        "product_id": str(review.product_id),
        "customer_id": str(review.customer_id),
        "customer_name": review.customer_name,
        "customer_email": review.customer_email,
        "rating": review.rating,
        "title": review.title,
        "content": review.content,
        "verified": review.verified,
        "photos": review.photo_list,
        "videos": review.video_list,
        "pros": review.pros_list,
        "cons": review.cons_list,
        "recommend_product": review.recommend_product,
        "status": review.status,
        "helpful_count": review.helpful_count,
        "not_helpful_count": review.not_helpful_count,
        "response_count": review.response_count,
        "flag_count": review.flag_count,
        "source": review.source,
        "created_at": _iso(review.created_at),
        "updated_at": _iso(review.updated_at),
        "moderated_at": _iso(review.moderated_at),
        "moderated_by": review.moderated_by,
        "moderation_notes": review.moderation_notes,
    }


def get_review(review_id):
    """Load a single review. Raises ``ObjectNotFoundError`` for unknown ids."""
    return current_domain.repository_for(Review).get(review_id)


def list_responses(review_id):
    """Responses posted under a review, oldest first."""
    review = get_review(review_id)
    return sorted(review.responses, key=lambda response: response.created_at)


def _by_recency(review):
    return review.created_at or datetime.min.replace(tzinfo=UTC)


def _sort(reviews, sort_by):
    if sort_by not in SORT_ORDERS:
        raise ValidationError({"sort_by": [f"Unknown sort order: {sort_by}"]})

    # Creation order first, so ties in the secondary keys stay newest-first
    reviews = sorted(reviews, key=_by_recency, reverse=True)
    if sort_by == "helpful":
        reviews.sort(key=lambda r: r.helpful_count, reverse=True)
    elif sort_by == "rating_high":
        reviews.sort(key=lambda r: r.rating, reverse=True)
    elif sort_by == "rating_low":
        reviews.sort(key=lambda r: r.rating)
    return reviews


def _paginate(items, limit, offset):
    if limit is not None and limit < 0:
        raise ValidationError({"limit": ["Limit must not be negative"]})
    if offset < 0:
        raise ValidationError({"offset": ["Offset must not be negative"]})
    end = None if limit is None else offset + limit
    return items[offset:end]


def _apply_filters(reviews, status=None, rating=None, verified=None):
    if status is not None:
        reviews = [r for r in reviews if r.status == status]
    if rating is not None:
        reviews = [r for r in reviews if r.rating == rating]
    if verified is not None:
        reviews = [r for r in reviews if bool(r.verified) == verified]
    return reviews


def product_reviews(
    product_id,
    status=ReviewStatus.APPROVED.value,
    sort_by="recent",
    rating=None,
    verified=None,
    limit=DEFAULT_PAGE_SIZE,
    offset=0,
):
    reviews = fetch_all(Review, product_id=str(product_id))
    reviews = _sort(_apply_filters(reviews, status, rating, verified), sort_by)
    return {
        "reviews": _paginate(reviews, limit, offset),
        "total": len(reviews),
        "limit": limit,
        "offset": offset,
    }


def customer_reviews(customer_id, limit=DEFAULT_PAGE_SIZE, offset=0):
    reviews = _sort(fetch_all(Review, customer_id=str(customer_id)), "recent")
    return {
        "reviews": _paginate(reviews, limit, offset),
        "total": len(reviews),
        "limit": limit,
        "offset": offset,
    }


def search_reviews(
    query=None,
    product_id=None,
    status=None,
    rating=None,
    verified=None,
    limit=DEFAULT_PAGE_SIZE,
    offset=0,
):
    """Case-insensitive substring search over title, content and customer name."""
    filters = {"product_id": str(product_id)} if product_id else {}
    reviews = _apply_filters(fetch_all(Review, **filters), status, rating, verified)

    if query:
        needle = query.lower()
        reviews = [
            r
            for r in reviews
            if any(needle in (value or "").lower() for value in (r.title, r.content, r.customer_name))
        ]

    reviews = _sort(reviews, "recent")
    return {
        "reviews": _paginate(reviews, limit, offset),
        "total": len(reviews),
        "limit": limit,
        "offset": offset,
    }


def _as_utc(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def in_date_range(timestamp, start_date=None, end_date=None):
    """Inclusive range check; naive datetimes are read as UTC."""
    timestamp = _as_utc(timestamp)
    start, end = _as_utc(start_date), _as_utc(end_date)
    if start is not None and timestamp < start:
        return False
    if end is not None and timestamp > end:
        return False
    return True


def review_statistics(product_id=None, start_date=None, end_date=None):
    filters = {"product_id": str(product_id)} if product_id else {}
    reviews = [r for r in fetch_all(Review, **filters) if in_date_range(r.created_at, start_date, end_date)]

    total = len(reviews)
    by_status = {status.value: 0 for status in ReviewStatus}
    for review in reviews:
        by_status[review.status] += 1
    verified = sum(1 for r in reviews if r.verified)

    return {
        "total_reviews": total,
        "approved_reviews": by_status[ReviewStatus.APPROVED.value],
        "pending_reviews": by_status[ReviewStatus.PENDING.value],
        "rejected_reviews": by_status[ReviewStatus.REJECTED.value],
        "flagged_reviews": by_status[ReviewStatus.FLAGGED.value],
        "verified_reviews": verified,
        "with_photos": sum(1 for r in reviews if r.photo_list),
        "with_videos": sum(1 for r in reviews if r.video_list),
        "average_rating": round_half_up(sum(r.rating for r in reviews) / total, 1) if total else 0,
        "verification_rate": int(round_half_up(verified / total * 100)) if total else 0,
    }
