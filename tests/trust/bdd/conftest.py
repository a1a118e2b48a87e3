"""Shared BDD fixtures and step definitions for the trust pipeline."""

import pytest
from protean.exceptions import InvalidOperationError, ValidationError
from pytest_bdd import given, parsers, then

from trust.review.events import (
    HelpfulVoteRecorded,
    ResponseAdded,
    ReviewApproved,
    ReviewFlagged,
    ReviewRejected,
    ReviewSubmitted,
    ReviewUpdated,
)
from trust.review.review import Review

_REVIEW_EVENT_CLASSES = {
    "ReviewSubmitted": ReviewSubmitted,
    "ReviewUpdated": ReviewUpdated,
    "ReviewApproved": ReviewApproved,
    "ReviewRejected": ReviewRejected,
    "ReviewFlagged": ReviewFlagged,
    "HelpfulVoteRecorded": HelpfulVoteRecorded,
    "ResponseAdded": ResponseAdded,
}

_ERROR_CLASSES = {
    "validation": ValidationError,
    "conflict": InvalidOperationError,
}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending review", target_fixture="review")
def pending_review():
    review = Review.submit(
        product_id="prod-bdd",
        customer_id="cust-bdd",
        rating=4,
        title="BDD Test Review",
        content="Comfortable straps and plenty of pockets.",
    )
    review._events.clear()
    return review


@given("an approved review", target_fixture="review")
def approved_review():
    review = Review.submit(
        product_id="prod-bdd-pub",
        customer_id="cust-bdd-pub",
        rating=5,
        title="Approved Review",
        content="Survived a week of rain without leaking.",
    )
    review.moderate(status="approved", moderator_id="mod-001")
    review._events.clear()
    return review


@given(parsers.cfparse('voter "{voter_id}" has voted {vote}'))
def voter_has_voted(review, voter_id, vote):
    review.vote(voter_id=voter_id, helpful=vote == "helpful")
    review._events.clear()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the review status is "{status}"'))
def review_status_is(review, status):
    assert review.status == status


@then(parsers.cfparse("the action fails with a {kind} error"))
def action_fails(error, kind):
    assert error["exc"] is not None, f"Expected a {kind} error but none was raised"
    assert isinstance(error["exc"], _ERROR_CLASSES[kind])


@then(parsers.cfparse("a {event_type} event is raised"))
def review_event_raised(review, event_type):
    event_cls = _REVIEW_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in review._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in review._events]}"


@then("no events are raised")
def no_events_raised(review):
    assert review._events == []
