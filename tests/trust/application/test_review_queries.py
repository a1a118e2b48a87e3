"""Application tests for review listings, search and statistics."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from trust.review.moderation import ModerateReview
from trust.review.queries import (
    customer_reviews,
    product_reviews,
    review_statistics,
    review_to_dict,
    search_reviews,
)
from trust.review.submission import SubmitReview
from trust.review.voting import VoteOnReview


def _submit_review(**overrides):
    defaults = {
        "product_id": "prod-q",
        "customer_id": "cust-q",
        "rating": 4,
        "content": "Decent value for the money.",
    }
    defaults.update(overrides)
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


def _approve(review_id):
    current_domain.process(
        ModerateReview(review_id=review_id, status="approved", moderator_id="mod-q"), asynchronous=False
    )


def _approved_review(**overrides):
    review_id = _submit_review(**overrides)
    _approve(review_id)
    return review_id


def _ids(page):
    return [str(r.id) for r in page["reviews"]]


class TestProductReviews:
    def test_only_approved_by_default(self):
        approved = _approved_review()
        _submit_review()
        page = product_reviews("prod-q")
        assert _ids(page) == [approved]
        assert page["total"] == 1

    def test_status_filter(self):
        _approved_review()
        pending = _submit_review()
        assert _ids(product_reviews("prod-q", status="pending")) == [pending]

    def test_rating_and_verified_filters(self):
        _approved_review(rating=5, verified=True)
        target = _approved_review(rating=3, verified=True)
        _approved_review(rating=3, verified=False)
        assert _ids(product_reviews("prod-q", rating=3, verified=True)) == [target]

    def test_sort_by_rating(self):
        low = _approved_review(rating=1)
        high = _approved_review(rating=5)
        mid = _approved_review(rating=3)
        assert _ids(product_reviews("prod-q", sort_by="rating_high")) == [high, mid, low]
        assert _ids(product_reviews("prod-q", sort_by="rating_low")) == [low, mid, high]

    def test_sort_by_helpful(self):
        quiet = _approved_review()
        popular = _approved_review()
        for voter in ("v1", "v2"):
            current_domain.process(
                VoteOnReview(review_id=popular, voter_id=voter, helpful=True), asynchronous=False
            )
        assert _ids(product_reviews("prod-q", sort_by="helpful")) == [popular, quiet]

    def test_unknown_sort_order(self):
        with pytest.raises(ValidationError) as exc:
            product_reviews("prod-q", sort_by="random")
        assert "sort_by" in exc.value.messages

    def test_pagination_keeps_full_total(self):
        for rating in (1, 2, 3, 4, 5):
            _approved_review(rating=rating)
        page = product_reviews("prod-q", sort_by="rating_high", limit=2, offset=1)
        assert [r.rating for r in page["reviews"]] == [4, 3]
        assert page["total"] == 5
        assert page["limit"] == 2
        assert page["offset"] == 1

    def test_offset_past_the_end_is_empty(self):
        _approved_review()
        page = product_reviews("prod-q", offset=10)
        assert page["reviews"] == []
        assert page["total"] == 1

    @pytest.mark.parametrize("kwargs, field", [({"limit": -1}, "limit"), ({"offset": -5}, "offset")])
    def test_negative_pagination_rejected(self, kwargs, field):
        with pytest.raises(ValidationError) as exc:
            product_reviews("prod-q", **kwargs)
        assert field in exc.value.messages

    def test_unknown_product_is_empty(self):
        assert product_reviews("nope")["total"] == 0


class TestCustomerReviews:
    def test_all_statuses_for_the_customer(self):
        approved = _approved_review(customer_id="cust-a")
        pending = _submit_review(customer_id="cust-a", product_id="prod-other")
        _submit_review(customer_id="cust-b")
        page = customer_reviews("cust-a")
        assert set(_ids(page)) == {approved, pending}
        assert page["total"] == 2


class TestSearchReviews:
    def test_matches_title_content_and_name_case_insensitively(self):
        by_title = _submit_review(title="Battery LIFE is great")
        by_content = _submit_review(content="The battery lasts two days.")
        by_name = _submit_review(customer_name="Battery Bob")
        _submit_review(content="Nothing relevant here.")
        page = search_reviews("battery")
        assert set(_ids(page)) == {by_title, by_content, by_name}

    def test_filters_combine_with_query(self):
        target = _approved_review(product_id="prod-s1", content="Zipper broke on day one.")
        _submit_review(product_id="prod-s1", content="Zipper is sturdy.")
        _approved_review(product_id="prod-s2", content="Zipper also broke here.")
        page = search_reviews("zipper", product_id="prod-s1", status="approved")
        assert _ids(page) == [target]

    def test_empty_query_returns_everything(self):
        _submit_review()
        _submit_review()
        assert search_reviews()["total"] == 2


class TestReviewStatistics:
    def test_counts_and_rates(self):
        _approved_review(rating=5, verified=True, photos=json.dumps(["https://img.example.com/p.jpg"]))
        _approved_review(rating=4, verified=True)
        _submit_review(rating=2)
        rejected = _submit_review(rating=1, videos=json.dumps(["https://v.example.com/v"]))
        current_domain.process(
            ModerateReview(review_id=rejected, status="rejected", moderator_id="mod-q"), asynchronous=False
        )

        stats = review_statistics()
        assert stats["total_reviews"] == 4
        assert stats["approved_reviews"] == 2
        assert stats["pending_reviews"] == 1
        assert stats["rejected_reviews"] == 1
        assert stats["flagged_reviews"] == 0
        assert stats["verified_reviews"] == 2
        assert stats["with_photos"] == 1
        assert stats["with_videos"] == 1
        assert stats["average_rating"] == 3.0
        assert stats["verification_rate"] == 50

    def test_empty_store(self):
        stats = review_statistics()
        assert stats["total_reviews"] == 0
        assert stats["average_rating"] == 0
        assert stats["verification_rate"] == 0

    def test_date_range_filter(self):
        _submit_review()
        future = datetime.now(UTC) + timedelta(days=1)
        assert review_statistics(start_date=future)["total_reviews"] == 0
        assert review_statistics(end_date=future.isoformat())["total_reviews"] == 1

    def test_product_filter(self):
        _submit_review(product_id="prod-x")
        _submit_review(product_id="prod-y")
        assert review_statistics(product_id="prod-x")["total_reviews"] == 1


class TestReviewSerialisation:
    def test_review_to_dict(self):
        review_id = _submit_review(pros=json.dumps(["light"]))
        review = product_reviews("prod-q", status="pending")["reviews"][0]
        data = review_to_dict(review)
        assert data["id"] == review_id
        assert data["pros"] == ["light"]
        assert data["photos"] == []
        assert data["status"] == "pending"
        assert data["moderated_at"] is None
