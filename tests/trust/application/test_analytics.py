"""Application tests for the analytics ledger, read models, reports, dashboards and alerts."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from trust.analytics import metrics
from trust.analytics.alert import Alert, CheckAlerts, CreateAlert
from trust.analytics.dashboard import CreateDashboard, dashboard_data
from trust.analytics.event import AnalyticsEvent, TrackEvent
from trust.analytics.report import CreateReport, Report, RunReport
from trust.moderation.evaluation import ModerateContent
from trust.moderation.queue import ReviewQueueItem
from trust.review.moderation import FlagReview, ModerateReview
from trust.review.submission import SubmitReview
from trust.utils import repository
from trust.utils.repository import fetch_all


def _track(event_type, entity="widget", **kwargs):
    return current_domain.process(TrackEvent(event_type=event_type, entity=entity, **kwargs), asynchronous=False)


def _submit_review(**overrides):
    defaults = {
        "product_id": "prod-an",
        "customer_id": "cust-an",
        "rating": 4,
        "content": "Good blender, a little loud.",
    }
    defaults.update(overrides)
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


def _moderate(review_id, status):
    current_domain.process(
        ModerateReview(review_id=review_id, status=status, moderator_id="mod-an"), asynchronous=False
    )


def _ledger_types():
    return [e.event_type for e in metrics.ledger()]


class TestTrackEvent:
    def test_track_appends_entry(self):
        event_id = _track("widget_view", entity_id="w-1", extra=json.dumps({"page": "pdp"}))
        event = current_domain.repository_for(AnalyticsEvent).get(event_id)
        assert event.event_type == "widget_view"
        assert event.extra_data == {"page": "pdp"}

    def test_type_and_entity_are_required(self):
        with pytest.raises(ValidationError):
            current_domain.process(TrackEvent(entity="widget"), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(TrackEvent(event_type="widget_view"), asynchronous=False)
        assert fetch_all(AnalyticsEvent) == []

    def test_unknown_event_types_are_accepted(self):
        _track("custom_thing", entity="experiment")
        assert _ledger_types() == ["custom_thing"]


class TestLedgerFromReviewEvents:
    def test_review_lifecycle_is_recorded_in_order(self):
        review_id = _submit_review()
        _moderate(review_id, "approved")
        current_domain.process(FlagReview(review_id=review_id, reason="Rude"), asynchronous=False)

        entries = [e for e in metrics.ledger() if e.entity_id == review_id]
        assert [e.event_type for e in entries] == ["review_created", "review_approved", "review_flagged"]
        created = entries[0]
        assert str(created.product_id) == "prod-an"
        assert str(created.user_id) == "cust-an"
        assert created.rating == 4

    def test_rejection_is_recorded(self):
        review_id = _submit_review()
        _moderate(review_id, "rejected")
        assert "review_rejected" in _ledger_types()

    def test_failed_submission_records_nothing(self):
        with pytest.raises(ValidationError):
            _submit_review(rating=0)
        assert fetch_all(AnalyticsEvent) == []

    def test_queue_activity_is_recorded(self):
        result = current_domain.process(ModerateContent(content="meh", content_id="c-9"), asynchronous=False)
        current_domain.process(
            ReviewQueueItem(queue_item_id=result["queue_item_id"], action="reject", reviewed_by="mod-1"),
            asynchronous=False,
        )
        assert _ledger_types() == ["content_queued", "queue_item_reviewed"]


class TestReviewMetrics:
    def test_counts_and_approval_rate(self):
        first = _submit_review()
        second = _submit_review()
        _submit_review()
        _moderate(first, "approved")
        _moderate(second, "rejected")

        result = metrics.review_metrics()
        assert result["total_reviews"] == 3
        assert result["approved"] == 1
        assert result["rejected"] == 1
        assert result["approval_rate"] == 33.33
        assert result["avg_moderation_time_hours"] >= 0

    def test_moderation_time_from_timestamps(self):
        start = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
        _track("review_created", entity="review", entity_id="r1", timestamp=start)
        _track("review_approved", entity="review", entity_id="r1", timestamp=start + timedelta(hours=3))
        _track("review_created", entity="review", entity_id="r2", timestamp=start)
        _track("review_rejected", entity="review", entity_id="r2", timestamp=start + timedelta(hours=6))
        _track("review_created", entity="review", entity_id="r3", timestamp=start)

        assert metrics.review_metrics()["avg_moderation_time_hours"] == 4.5

    def test_empty_ledger(self):
        result = metrics.review_metrics()
        assert result["total_reviews"] == 0
        assert result["approval_rate"] == 0
        assert result["avg_moderation_time_hours"] == 0

    def test_date_range(self):
        _track("review_created", entity="review", timestamp=datetime(2024, 1, 10, tzinfo=UTC))
        _track("review_created", entity="review", timestamp=datetime(2024, 2, 10, tzinfo=UTC))
        result = metrics.review_metrics(start_date="2024-02-01T00:00:00+00:00")
        assert result["total_reviews"] == 1

    def test_counts_span_every_repository_page(self, monkeypatch):
        monkeypatch.setattr(repository, "PAGE_SIZE", 2)
        for _ in range(5):
            _track("review_created", entity="review")

        assert metrics.review_metrics()["total_reviews"] == 5
        assert len(fetch_all(AnalyticsEvent, event_type="review_created")) == 5

    def test_exact_page_multiple_is_complete(self, monkeypatch):
        monkeypatch.setattr(repository, "PAGE_SIZE", 2)
        for _ in range(4):
            _track("review_created", entity="review")

        assert metrics.review_metrics()["total_reviews"] == 4


class TestCollectionAndWidgets:
    def test_collection_funnel(self):
        for _ in range(4):
            _track("request_sent", entity="campaign", campaign_id="camp-1")
        for _ in range(2):
            _track("request_opened", entity="campaign", campaign_id="camp-1")
        _track("request_clicked", entity="campaign", campaign_id="camp-1")
        _track("review_submitted", entity="campaign", campaign_id="camp-1")
        _track("request_sent", entity="campaign", campaign_id="camp-2")

        result = metrics.collection_performance(campaign_id="camp-1")
        assert result["requests_sent"] == 4
        assert result["open_rate"] == 50.0
        assert result["click_rate"] == 50.0
        assert result["conversion_rate"] == 25.0

    def test_widget_performance(self):
        for _ in range(3):
            _track("widget_view", entity_id="w-1")
        _track("widget_interaction", entity_id="w-1")
        _track("widget_view", entity_id="w-2")

        result = metrics.widget_performance("w-1")
        assert result["views"] == 3
        assert result["interactions"] == 1
        assert result["interaction_rate"] == 33.33
        assert result["conversion_rate"] == 0


class TestDistributionAndSentiment:
    def test_rating_distribution(self):
        for rating in (5, 5, 4, 1):
            _submit_review(rating=rating)
        result = metrics.rating_distribution("prod-an")
        assert result["counts"] == {"1": 1, "2": 0, "3": 0, "4": 1, "5": 2}
        assert result["percentages"] == {"1": 25, "2": 0, "3": 0, "4": 25, "5": 50}
        assert result["total"] == 4

    def test_sentiment_trends_by_day(self):
        now = datetime(2024, 6, 30, 12, tzinfo=UTC)
        day1 = datetime(2024, 6, 28, 9, tzinfo=UTC)
        day2 = datetime(2024, 6, 29, 9, tzinfo=UTC)
        for sentiment in ("positive", "positive", "negative"):
            _track("sentiment_analyzed", entity="review", product_id="prod-an", sentiment=sentiment, timestamp=day1)
        _track("sentiment_analyzed", entity="review", product_id="prod-an", sentiment="neutral", timestamp=day2)
        _track(
            "sentiment_analyzed",
            entity="review",
            product_id="prod-an",
            sentiment="positive",
            timestamp=now - timedelta(days=60),
        )

        result = metrics.sentiment_trends("prod-an", timeframe_days=30, now=now)
        assert [t["date"] for t in result["trends"]] == ["2024-06-28", "2024-06-29"]
        first = result["trends"][0]
        assert first["positive"] == 67
        assert first["negative"] == 33
        assert first["total"] == 3
        assert result["trends"][1]["neutral"] == 100

    def test_top_reviewers(self):
        _submit_review(customer_id="alice", rating=5)
        _submit_review(customer_id="bob", rating=3)
        _submit_review(customer_id="bob", rating=4)
        ranking = metrics.top_reviewers(limit=5)
        assert [r["user_id"] for r in ranking] == ["bob", "alice"]
        assert ranking[0]["avg_rating"] == 3.5

    def test_product_comparison(self):
        _submit_review(product_id="p1", rating=5)
        _submit_review(product_id="p1", rating=3)
        _submit_review(product_id="p2", rating=2)
        comparison = metrics.product_comparison(["p1", "p2"])
        assert comparison["p1"]["total_reviews"] == 2
        assert comparison["p1"]["avg_rating"] == 4.0
        assert comparison["p2"]["avg_rating"] == 2.0


class TestReports:
    def test_run_report(self):
        _submit_review()
        report_id = current_domain.process(
            CreateReport(name="Weekly reviews", report_type="reviews", schedule="weekly"), asynchronous=False
        )
        result = current_domain.process(RunReport(report_id=report_id), asynchronous=False)
        assert result["data"]["total_reviews"] == 1
        assert "content" not in result
        assert current_domain.repository_for(Report).get(report_id).last_run_at is not None

    def test_csv_report(self):
        report_id = current_domain.process(
            CreateReport(name="Widgets", report_type="widgets", format="csv"), asynchronous=False
        )
        result = current_domain.process(RunReport(report_id=report_id), asynchronous=False)
        lines = result["content"].splitlines()
        assert lines[0] == "metric,value"
        assert "views,0" in lines

    def test_report_filters(self):
        _submit_review(product_id="p1")
        _submit_review(product_id="p2")
        report_id = current_domain.process(
            CreateReport(name="P1", report_type="reviews", filters=json.dumps({"product_id": "p1"})),
            asynchronous=False,
        )
        result = current_domain.process(RunReport(report_id=report_id), asynchronous=False)
        assert result["data"]["total_reviews"] == 1

    def test_unknown_report_type(self):
        with pytest.raises(ValidationError):
            current_domain.process(CreateReport(name="Bad", report_type="finance"), asynchronous=False)

    def test_run_unknown_report(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(RunReport(report_id="missing"), asynchronous=False)


class TestDashboards:
    def test_dashboard_resolves_each_widget(self):
        _submit_review(rating=5)
        dashboard_id = current_domain.process(
            CreateDashboard(
                name="Overview",
                widgets=json.dumps([{"type": "review_metrics"}, {"type": "rating_distribution"}]),
            ),
            asynchronous=False,
        )
        data = dashboard_data(dashboard_id)
        assert set(data["metrics"]) == {"reviews", "distribution"}
        assert data["metrics"]["reviews"]["total_reviews"] == 1
        assert data["metrics"]["distribution"]["counts"]["5"] == 1

    def test_unknown_widget_type(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                CreateDashboard(name="Bad", widgets=json.dumps([{"type": "revenue"}])), asynchronous=False
            )

    def test_unknown_dashboard(self):
        with pytest.raises(ObjectNotFoundError):
            dashboard_data("missing")


class TestAlerts:
    def _create(self, **overrides):
        defaults = {"name": "Flag spike", "metric": "flagged", "operator": "greater_than", "threshold": 5}
        defaults.update(overrides)
        return current_domain.process(CreateAlert(**defaults), asynchronous=False)

    def _check(self, snapshot):
        return current_domain.process(CheckAlerts(snapshot=json.dumps(snapshot)), asynchronous=False)

    def test_alert_fires_on_every_matching_check(self):
        alert_id = self._create()
        assert len(self._check({"flagged": 7})) == 1
        assert len(self._check({"flagged": 9})) == 1
        alert = current_domain.repository_for(Alert).get(alert_id)
        assert alert.trigger_count == 2

    def test_non_matching_snapshot(self):
        self._create()
        assert self._check({"flagged": 5}) == []
        assert self._check({"approved": 50}) == []

    def test_disabled_alerts_are_skipped(self):
        self._create(enabled=False)
        assert self._check({"flagged": 100}) == []

    def test_triggered_payload(self):
        alert_id = self._create(name="Low rating", metric="average_rating", operator="less_than", threshold=3.5)
        triggered = self._check({"average_rating": 2.9})
        assert triggered[0]["alert_id"] == alert_id
        assert triggered[0]["alert_name"] == "Low rating"
        assert triggered[0]["value"] == 2.9

    def test_unknown_operator(self):
        with pytest.raises(ValidationError):
            self._create(operator="equals")


class TestAnalyticsStatistics:
    def test_roll_up(self):
        _submit_review()
        _track("widget_view")
        current_domain.process(CreateReport(name="R", report_type="reviews"), asynchronous=False)
        stats = metrics.analytics_statistics()
        assert stats["overview"]["total_events"] == 2
        assert stats["overview"]["total_reviews"] == 1
        assert stats["reports"] == {"total": 1, "active": 1}
        assert stats["dashboards"] == 0
        assert stats["alerts"] == {"total": 0, "active": 0}
