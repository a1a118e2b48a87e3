"""In-memory webhook sink for development and testing.

Records every delivery instead of calling out, and can be switched to fail
so the callers' failure handling can be exercised.
"""

from uuid import uuid4

from trust.integration.webhook.port import DeliveryResult, WebhookPort


class FakeWebhook(WebhookPort):
    """Configurable fake webhook sink."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Endpoint unreachable"
        self.deliveries: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Endpoint unreachable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def deliver(self, event_type: str, payload: dict) -> DeliveryResult:
        if not self.should_succeed:
            return DeliveryResult(delivered=False, failure_reason=self.failure_reason)

        self.deliveries.append({"event_type": event_type, "payload": payload})
        return DeliveryResult(delivered=True, delivery_id=f"fake_whk_{uuid4().hex[:12]}")

    def delivered_types(self) -> list[str]:
        return [delivery["event_type"] for delivery in self.deliveries]
