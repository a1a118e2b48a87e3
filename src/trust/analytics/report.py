"""Report: a saved analytics query bound to one read model.

Running a report dispatches to the read model matching its type with the
stored filters, and stamps ``last_run_at``.
"""

import csv
import io
import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.analytics import metrics
from trust.domain import trust

logger = structlog.get_logger(__name__)


class ReportType(Enum):
    REVIEWS = "reviews"
    COLLECTION = "collection"
    WIDGETS = "widgets"
    SENTIMENT = "sentiment"


class ReportSchedule(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


class ReportFormat(Enum):
    JSON = "json"
    CSV = "csv"


class ReportStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"


@trust.aggregate
class Report:
    name = String(required=True, max_length=200)
    report_type = String(required=True, choices=ReportType)
    filters = Text()  # JSON object
    schedule = String(choices=ReportSchedule, default=ReportSchedule.NONE.value)
    format = String(choices=ReportFormat, default=ReportFormat.JSON.value)
    recipients = Text()  # JSON array of email addresses
    status = String(choices=ReportStatus, default=ReportStatus.ACTIVE.value)
    last_run_at = DateTime()
    created_at = DateTime()

    @property
    def filter_map(self):
        return json.loads(self.filters) if self.filters else {}

    @property
    def recipient_list(self):
        return json.loads(self.recipients) if self.recipients else []

    def mark_run(self):
        self.last_run_at = datetime.now(UTC)
        return self.last_run_at

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "type": self.report_type,
            "filters": self.filter_map,
            "schedule": self.schedule,
            "format": self.format,
            "recipients": self.recipient_list,
            "status": self.status,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def generate_report_data(report_type, filters):
    """Resolve a report type and filter set against the read models."""
    if report_type == ReportType.REVIEWS.value:
        return metrics.review_metrics(
            product_id=filters.get("product_id"),
            start_date=filters.get("start_date"),
            end_date=filters.get("end_date"),
        )
    if report_type == ReportType.COLLECTION.value:
        return metrics.collection_performance(
            campaign_id=filters.get("campaign_id"),
            start_date=filters.get("start_date"),
            end_date=filters.get("end_date"),
        )
    if report_type == ReportType.WIDGETS.value:
        return metrics.widget_performance(filters.get("widget_id"))
    if report_type == ReportType.SENTIMENT.value:
        return metrics.sentiment_trends(filters.get("product_id"), filters.get("timeframe", 30))
    raise ValidationError({"report_type": [f"Unknown report type: {report_type}"]})


def _flatten(data, prefix=""):
    rows = []
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            rows.extend(_flatten(value, f"{name}."))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, dict):
                    rows.extend(_flatten(item, f"{name}[{index}]."))
                else:
                    rows.append((f"{name}[{index}]", item))
        else:
            rows.append((name, value))
    return rows


def render_csv(data):
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["metric", "value"])
    writer.writerows(_flatten(data))
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="Report")
class CreateReport:
    name = String(required=True, max_length=200)
    report_type = String(required=True)
    filters = Text()
    schedule = String()
    format = String()
    recipients = Text()


@trust.command(part_of="Report")
class RunReport:
    report_id = Identifier(required=True)


@trust.command_handler(part_of=Report)
class ReportHandler:
    @handle(CreateReport)
    def create_report(self, command):
        report = Report(
            name=command.name,
            report_type=command.report_type,
            filters=command.filters,
            schedule=command.schedule or ReportSchedule.NONE.value,
            format=command.format or ReportFormat.JSON.value,
            recipients=command.recipients,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Report).add(report)
        return str(report.id)

    @handle(RunReport)
    def run_report(self, command):
        repo = current_domain.repository_for(Report)
        report = repo.get(command.report_id)

        data = generate_report_data(report.report_type, report.filter_map)
        run_at = report.mark_run()
        repo.add(report)

        logger.info("Report run", report_id=str(report.id), report_type=report.report_type)

        result = {
            "report_id": str(report.id),
            "report_name": report.name,
            "type": report.report_type,
            "format": report.format,
            "run_at": run_at.isoformat(),
            "data": data,
        }
        if report.format == ReportFormat.CSV.value:
            result["content"] = render_csv(data)
        return result
