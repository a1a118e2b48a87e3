"""Alert: threshold checks over a caller-supplied metric snapshot.

Every evaluation that matches fires again; there is no cooldown and no
deduplication between calls.
"""

import json
import operator
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from trust.domain import trust
from trust.utils.repository import fetch_all

logger = structlog.get_logger(__name__)


class AlertType(Enum):
    THRESHOLD = "threshold"


class AlertOperator(Enum):
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


_COMPARISONS = {
    AlertOperator.GREATER_THAN.value: operator.gt,
    AlertOperator.LESS_THAN.value: operator.lt,
}


@trust.event(part_of="Alert")
class AlertTriggered:
    __version__ = 1

    alert_id = Identifier(required=True)
    name = String(required=True)
    metric = String(required=True)
    value = Float(required=True)
    threshold = Float(required=True)
    operator = String(required=True)
    channels = Text()
    trigger_count = Integer(required=True)
    triggered_at = DateTime(required=True)


@trust.aggregate
class Alert:
    name = String(required=True, max_length=200)
    alert_type = String(choices=AlertType, default=AlertType.THRESHOLD.value)
    metric = String(required=True, max_length=100)
    operator = String(required=True, choices=AlertOperator)
    threshold = Float(required=True)
    channels = Text()  # JSON array, e.g. ["email", "slack"]
    recipients = Text()  # JSON array
    enabled = Boolean(default=True)
    last_triggered_at = DateTime()
    trigger_count = Integer(default=0, min_value=0)
    created_at = DateTime()

    @property
    def channel_list(self):
        return json.loads(self.channels) if self.channels else ["email"]

    def matches(self, snapshot):
        """True when the snapshot carries the metric and it crosses the threshold."""
        value = snapshot.get(self.metric)
        if value is None:
            return False
        return _COMPARISONS[self.operator](value, self.threshold)

    def fire(self, value):
        now = datetime.now(UTC)
        self.last_triggered_at = now
        self.trigger_count = (self.trigger_count or 0) + 1

        self.raise_(
            AlertTriggered(
                alert_id=str(self.id),
                name=self.name,
                metric=self.metric,
                value=value,
                threshold=self.threshold,
                operator=self.operator,
                channels=json.dumps(self.channel_list),
                trigger_count=self.trigger_count,
                triggered_at=now,
            )
        )
        return now

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "type": self.alert_type,
            "metric": self.metric,
            "operator": self.operator,
            "threshold": self.threshold,
            "channels": self.channel_list,
            "recipients": json.loads(self.recipients) if self.recipients else [],
            "enabled": self.enabled,
            "last_triggered_at": self.last_triggered_at.isoformat() if self.last_triggered_at else None,
            "trigger_count": self.trigger_count,
        }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@trust.command(part_of="Alert")
class CreateAlert:
    name = String(required=True, max_length=200)
    metric = String(required=True, max_length=100)
    operator = String(required=True)
    threshold = Float(required=True)
    alert_type = String()
    channels = Text()
    recipients = Text()
    enabled = Boolean(default=True)


@trust.command(part_of="Alert")
class CheckAlerts:
    snapshot = Text(required=True)  # JSON object: {metric_name: value}


@trust.command_handler(part_of=Alert)
class AlertHandler:
    @handle(CreateAlert)
    def create_alert(self, command):
        alert = Alert(
            name=command.name,
            alert_type=command.alert_type or AlertType.THRESHOLD.value,
            metric=command.metric,
            operator=command.operator,
            threshold=command.threshold,
            channels=command.channels,
            recipients=command.recipients,
            enabled=command.enabled,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Alert).add(alert)
        return str(alert.id)

    @handle(CheckAlerts)
    def check_alerts(self, command):
        snapshot = json.loads(command.snapshot)
        repo = current_domain.repository_for(Alert)

        triggered = []
        for alert in fetch_all(Alert, enabled=True):
            if not alert.matches(snapshot):
                continue

            value = snapshot[alert.metric]
            triggered_at = alert.fire(value)
            repo.add(alert)

            logger.warning(
                "Alert triggered",
                alert_id=str(alert.id),
                metric=alert.metric,
                value=value,
                threshold=alert.threshold,
                operator=alert.operator,
            )
            triggered.append(
                {
                    "alert_id": str(alert.id),
                    "alert_name": alert.name,
                    "metric": alert.metric,
                    "value": value,
                    "triggered_at": triggered_at.isoformat(),
                }
            )

        return triggered
