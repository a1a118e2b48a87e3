"""Dashboard: a named set of metric widgets resolved on every read."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.analytics import metrics
from trust.domain import trust


class WidgetType(Enum):
    REVIEW_METRICS = "review_metrics"
    COLLECTION_PERFORMANCE = "collection_performance"
    WIDGET_PERFORMANCE = "widget_performance"
    RATING_DISTRIBUTION = "rating_distribution"
    TOP_REVIEWERS = "top_reviewers"


class DashboardLayout(Enum):
    GRID = "grid"
    LIST = "list"


@trust.aggregate
class Dashboard:
    name = String(required=True, max_length=200)
    widgets = Text()  # JSON array of {"type": <WidgetType>, ...}
    layout = String(choices=DashboardLayout, default=DashboardLayout.GRID.value)
    refresh_interval = Integer(default=300, min_value=1)  # seconds
    filters = Text()  # JSON object
    is_default = Boolean(default=False)
    created_at = DateTime()

    @property
    def widget_list(self):
        return json.loads(self.widgets) if self.widgets else []

    @property
    def filter_map(self):
        return json.loads(self.filters) if self.filters else {}

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "widgets": self.widget_list,
            "layout": self.layout,
            "refresh_interval": self.refresh_interval,
            "filters": self.filter_map,
            "is_default": self.is_default,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def _validate_widgets(widgets):
    known = {widget_type.value for widget_type in WidgetType}
    unknown = [w.get("type") for w in widgets if w.get("type") not in known]
    if unknown:
        raise ValidationError({"widgets": [f"Unknown widget type: {unknown[0]}"]})


def dashboard_data(dashboard_id):
    """Resolve every widget of a dashboard independently."""
    dashboard = current_domain.repository_for(Dashboard).get(dashboard_id)
    filters = dashboard.filter_map

    data = {}
    for widget in dashboard.widget_list:
        widget_type = widget.get("type")
        if widget_type == WidgetType.REVIEW_METRICS.value:
            data["reviews"] = metrics.review_metrics(
                product_id=filters.get("product_id"),
                start_date=filters.get("start_date"),
                end_date=filters.get("end_date"),
            )
        elif widget_type == WidgetType.COLLECTION_PERFORMANCE.value:
            data["collection"] = metrics.collection_performance(
                campaign_id=filters.get("campaign_id"),
                start_date=filters.get("start_date"),
                end_date=filters.get("end_date"),
            )
        elif widget_type == WidgetType.WIDGET_PERFORMANCE.value:
            data["widgets"] = metrics.widget_performance()
        elif widget_type == WidgetType.RATING_DISTRIBUTION.value:
            data["distribution"] = metrics.rating_distribution(filters.get("product_id"))
        elif widget_type == WidgetType.TOP_REVIEWERS.value:
            data["top_reviewers"] = metrics.top_reviewers(widget.get("limit", 10))

    return {
        "dashboard_id": str(dashboard.id),
        "dashboard_name": dashboard.name,
        "refreshed_at": datetime.now(UTC).isoformat(),
        "metrics": data,
    }


@trust.command(part_of="Dashboard")
class CreateDashboard:
    name = String(required=True, max_length=200)
    widgets = Text()
    layout = String()
    refresh_interval = Integer()
    filters = Text()
    is_default = Boolean(default=False)


@trust.command_handler(part_of=Dashboard)
class CreateDashboardHandler:
    @handle(CreateDashboard)
    def create_dashboard(self, command):
        _validate_widgets(json.loads(command.widgets) if command.widgets else [])

        dashboard = Dashboard(
            name=command.name,
            widgets=command.widgets,
            layout=command.layout or DashboardLayout.GRID.value,
            refresh_interval=command.refresh_interval or 300,
            filters=command.filters,
            is_default=command.is_default,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Dashboard).add(dashboard)
        return str(dashboard.id)
