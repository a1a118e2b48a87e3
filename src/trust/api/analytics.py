"""FastAPI routes for the analytics engine: ledger intake, read models, reports,
dashboards and alerts.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from trust.analytics import metrics
from trust.analytics.alert import Alert, CheckAlerts, CreateAlert
from trust.analytics.dashboard import CreateDashboard, Dashboard, dashboard_data
from trust.analytics.event import AnalyticsEvent, TrackEvent
from trust.analytics.report import CreateReport, Report, RunReport
from trust.api.envelope import ok
from trust.api.schemas import (
    CheckAlertsRequest,
    CreateAlertRequest,
    CreateDashboardRequest,
    CreateReportRequest,
    ProductComparisonRequest,
    TrackEventRequest,
)
from trust.utils.repository import fetch_all

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/events", status_code=201)
async def track_event(body: TrackEventRequest):
    """Append an entry to the event ledger."""
    command = TrackEvent(
        event_type=body.type,
        entity=body.entity,
        entity_id=body.entity_id,
        product_id=body.product_id,
        user_id=body.user_id,
        rating=body.rating,
        sentiment=body.sentiment,
        campaign_id=body.campaign_id,
        widget_id=body.widget_id,
        helpful_votes=body.helpful_votes,
        extra=json.dumps(body.metadata) if body.metadata else None,
        timestamp=body.timestamp,
    )
    event_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(AnalyticsEvent).get(event_id).to_dict_summary())


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------
@router.get("/reviews")
async def review_metrics(
    product_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    return ok(metrics.review_metrics(product_id=product_id, start_date=start_date, end_date=end_date))


@router.get("/collection")
async def collection_performance(
    campaign_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    return ok(metrics.collection_performance(campaign_id=campaign_id, start_date=start_date, end_date=end_date))


@router.get("/widgets")
async def widget_performance(widget_id: str | None = None):
    return ok(metrics.widget_performance(widget_id))


@router.get("/ratings/distribution")
async def rating_distribution(product_id: str | None = None):
    return ok(metrics.rating_distribution(product_id))


@router.get("/sentiment/{product_id}")
async def sentiment_trends(product_id: str, timeframe: int = Query(default=30, ge=1)):
    return ok(metrics.sentiment_trends(product_id, timeframe_days=timeframe))


@router.get("/top-reviewers")
async def top_reviewers(limit: int = Query(default=10, ge=1)):
    return ok(metrics.top_reviewers(limit))


@router.post("/compare")
async def product_comparison(body: ProductComparisonRequest):
    return ok(metrics.product_comparison(body.product_ids))


@router.get("/statistics")
async def statistics():
    return ok(metrics.analytics_statistics())


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
@router.get("/reports")
async def list_reports():
    reports = sorted(fetch_all(Report), key=lambda report: report.created_at)
    return ok([report.to_dict() for report in reports])


@router.post("/reports", status_code=201)
async def create_report(body: CreateReportRequest):
    command = CreateReport(
        name=body.name,
        report_type=body.type,
        filters=json.dumps(body.filters),
        schedule=body.schedule,
        format=body.format,
        recipients=json.dumps(body.recipients),
    )
    report_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(Report).get(report_id).to_dict())


@router.post("/reports/{report_id}/run")
async def run_report(report_id: str):
    return ok(current_domain.process(RunReport(report_id=report_id), asynchronous=False))


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------
@router.post("/dashboards", status_code=201)
async def create_dashboard(body: CreateDashboardRequest):
    command = CreateDashboard(
        name=body.name,
        widgets=json.dumps([widget.model_dump(exclude_none=True) for widget in body.widgets]),
        layout=body.layout,
        refresh_interval=body.refresh_interval,
        filters=json.dumps(body.filters),
        is_default=body.is_default,
    )
    dashboard_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(Dashboard).get(dashboard_id).to_dict())


@router.get("/dashboards/{dashboard_id}")
async def read_dashboard(dashboard_id: str):
    """The dashboard with every widget resolved against the current ledger."""
    return ok(dashboard_data(dashboard_id))


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------
@router.get("/alerts")
async def list_alerts():
    alerts = sorted(fetch_all(Alert), key=lambda alert: alert.created_at)
    return ok([alert.to_dict() for alert in alerts])


@router.post("/alerts", status_code=201)
async def create_alert(body: CreateAlertRequest):
    command = CreateAlert(
        name=body.name,
        metric=body.metric,
        operator=body.operator,
        threshold=body.threshold,
        channels=json.dumps(body.channels),
        recipients=json.dumps(body.recipients),
        enabled=body.enabled,
    )
    alert_id = current_domain.process(command, asynchronous=False)
    return ok(current_domain.repository_for(Alert).get(alert_id).to_dict())


@router.post("/alerts/check")
async def check_alerts(body: CheckAlertsRequest):
    triggered = current_domain.process(CheckAlerts(snapshot=json.dumps(body.metrics)), asynchronous=False)
    return ok({"triggered": triggered, "count": len(triggered)})
