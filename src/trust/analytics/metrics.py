"""Analytics read models: pure aggregations over the event ledger.

Nothing here mutates the ledger. Each function loads the entries it needs,
filters them in memory and derives counts and rates. Rates are percentages
rounded to two decimals; a zero denominator yields 0, never an error.
"""

from collections import Counter, OrderedDict
from datetime import UTC, datetime, timedelta

from trust.analytics.event import AnalyticsEvent, EventType, Sentiment
from trust.review.queries import in_date_range
from trust.utils.numbers import percentage, round_half_up
from trust.utils.repository import fetch_all

RATINGS = (1, 2, 3, 4, 5)

COLLECTION_EVENTS = (
    EventType.REQUEST_SENT.value,
    EventType.REQUEST_OPENED.value,
    EventType.REQUEST_CLICKED.value,
    EventType.REVIEW_SUBMITTED.value,
)

WIDGET_EVENTS = (
    EventType.WIDGET_VIEW.value,
    EventType.WIDGET_INTERACTION.value,
    EventType.WIDGET_CONVERSION.value,
)


def ledger(event_types=None, product_id=None, start_date=None, end_date=None):
    """Ledger entries in chronological order, optionally narrowed down."""
    filters = {"product_id": str(product_id)} if product_id else {}
    events = fetch_all(AnalyticsEvent, **filters)

    if event_types is not None:
        events = [e for e in events if e.event_type in event_types]
    if start_date or end_date:
        events = [e for e in events if in_date_range(e.timestamp, start_date, end_date)]

    return sorted(events, key=lambda e: e.timestamp)


def _count(events, event_type):
    return sum(1 for e in events if e.event_type == event_type)


def average_moderation_hours(events):
    """Mean hours between a review's creation and its first approve/reject decision."""
    created = {}
    decided = {}
    for event in events:
        if event.event_type == EventType.REVIEW_CREATED.value:
            created.setdefault(event.entity_id, event.timestamp)
        elif event.event_type in (EventType.REVIEW_APPROVED.value, EventType.REVIEW_REJECTED.value):
            decided.setdefault(event.entity_id, event.timestamp)

    durations = [
        (decided[entity_id] - created_at).total_seconds() / 3600
        for entity_id, created_at in created.items()
        if entity_id in decided
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations), 2)


def review_metrics(product_id=None, start_date=None, end_date=None):
    events = ledger(product_id=product_id, start_date=start_date, end_date=end_date)

    created = _count(events, EventType.REVIEW_CREATED.value)
    approved = _count(events, EventType.REVIEW_APPROVED.value)

    return {
        "total_reviews": created,
        "approved": approved,
        "rejected": _count(events, EventType.REVIEW_REJECTED.value),
        "flagged": _count(events, EventType.REVIEW_FLAGGED.value),
        "deleted": _count(events, EventType.REVIEW_DELETED.value),
        "approval_rate": percentage(approved, created),
        "avg_moderation_time_hours": average_moderation_hours(events),
    }


def collection_performance(campaign_id=None, start_date=None, end_date=None):
    events = ledger(COLLECTION_EVENTS, start_date=start_date, end_date=end_date)
    if campaign_id:
        events = [e for e in events if e.campaign_id and str(e.campaign_id) == str(campaign_id)]

    sent = _count(events, EventType.REQUEST_SENT.value)
    opened = _count(events, EventType.REQUEST_OPENED.value)
    clicked = _count(events, EventType.REQUEST_CLICKED.value)
    submitted = _count(events, EventType.REVIEW_SUBMITTED.value)

    return {
        "requests_sent": sent,
        "requests_opened": opened,
        "requests_clicked": clicked,
        "reviews_submitted": submitted,
        "open_rate": percentage(opened, sent),
        "click_rate": percentage(clicked, opened),
        "conversion_rate": percentage(submitted, sent),
    }


def widget_performance(widget_id=None):
    events = ledger(WIDGET_EVENTS)
    if widget_id:
        events = [
            e
            for e in events
            if e.entity_id == str(widget_id) or (e.widget_id and str(e.widget_id) == str(widget_id))
        ]

    views = _count(events, EventType.WIDGET_VIEW.value)
    interactions = _count(events, EventType.WIDGET_INTERACTION.value)
    conversions = _count(events, EventType.WIDGET_CONVERSION.value)

    return {
        "views": views,
        "interactions": interactions,
        "conversions": conversions,
        "interaction_rate": percentage(interactions, views),
        "conversion_rate": percentage(conversions, views),
    }


def rating_distribution(product_id=None):
    """Tally the ratings carried by ``review_created`` entries into 1–5 buckets."""
    counts = {str(star): 0 for star in RATINGS}
    for event in ledger([EventType.REVIEW_CREATED.value], product_id=product_id):
        if event.rating in RATINGS:
            counts[str(event.rating)] += 1

    total = sum(counts.values())
    return {
        "counts": counts,
        "percentages": {star: int(percentage(count, total, digits=0)) for star, count in counts.items()},
        "total": total,
    }


def _average_from_distribution(counts):
    total = sum(counts.values())
    if not total:
        return 0
    return round_half_up(sum(int(star) * count for star, count in counts.items()) / total, 1)


def sentiment_trends(product_id, timeframe_days=30, now=None):
    """Per-day sentiment mix of ``sentiment_analyzed`` entries over the last N days."""
    cutoff = (now or datetime.now(UTC)) - timedelta(days=timeframe_days)
    events = [
        e
        for e in ledger([EventType.SENTIMENT_ANALYZED.value], product_id=product_id)
        if in_date_range(e.timestamp, start_date=cutoff)
    ]

    by_day = OrderedDict()
    for event in events:
        day = event.timestamp.date().isoformat()
        by_day.setdefault(day, Counter())[event.sentiment or Sentiment.NEUTRAL.value] += 1

    trends = []
    for day in sorted(by_day):
        counts = by_day[day]
        total = sum(counts.values())
        trend = {"date": day}
        for sentiment in Sentiment:
            trend[sentiment.value] = int(percentage(counts[sentiment.value], total, digits=0))
        trend["total"] = total
        trends.append(trend)

    return {"product_id": str(product_id) if product_id else None, "timeframe": timeframe_days, "trends": trends}


def top_reviewers(limit=10):
    """Reviewers ranked by review count; ties keep first-seen order."""
    stats = OrderedDict()
    for event in ledger([EventType.REVIEW_CREATED.value]):
        if not event.user_id:
            continue
        entry = stats.setdefault(
            str(event.user_id),
            {"user_id": str(event.user_id), "review_count": 0, "total_helpful_votes": 0, "total_rating": 0},
        )
        entry["review_count"] += 1
        entry["total_helpful_votes"] += event.helpful_votes or 0
        entry["total_rating"] += event.rating or 0

    reviewers = []
    for entry in stats.values():
        reviewers.append(
            {
                "user_id": entry["user_id"],
                "review_count": entry["review_count"],
                "total_helpful_votes": entry["total_helpful_votes"],
                "avg_rating": round_half_up(entry["total_rating"] / entry["review_count"], 1),
            }
        )

    # sorted() is stable, so equal counts stay in insertion order
    return sorted(reviewers, key=lambda r: r["review_count"], reverse=True)[:limit]


def product_comparison(product_ids):
    comparison = {}
    for product_id in product_ids:
        metrics = review_metrics(product_id=product_id)
        distribution = rating_distribution(product_id)
        comparison[str(product_id)] = {
            "product_id": str(product_id),
            "total_reviews": metrics["total_reviews"],
            "approval_rate": metrics["approval_rate"],
            "rating_distribution": distribution["percentages"],
            "avg_rating": _average_from_distribution(distribution["counts"]),
        }
    return comparison


def analytics_statistics():
    # Imported here: the report/alert modules import this one
    from trust.analytics.alert import Alert
    from trust.analytics.dashboard import Dashboard
    from trust.analytics.report import Report, ReportStatus

    reviews = review_metrics()
    reports = fetch_all(Report)
    alerts = fetch_all(Alert)

    return {
        "overview": {
            "total_events": len(fetch_all(AnalyticsEvent)),
            "total_reviews": reviews["total_reviews"],
            "approval_rate": reviews["approval_rate"],
        },
        "reviews": reviews,
        "collection": collection_performance(),
        "widgets": widget_performance(),
        "reports": {
            "total": len(reports),
            "active": sum(1 for r in reports if r.status == ReportStatus.ACTIVE.value),
        },
        "dashboards": len(fetch_all(Dashboard)),
        "alerts": {"total": len(alerts), "active": sum(1 for a in alerts if a.enabled)},
    }
