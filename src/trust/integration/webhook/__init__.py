"""Webhook sink factory.

get_webhook() / set_webhook() swap the active sink; the fake in-memory sink
is the default.
"""

from trust.integration.webhook.fake_adapter import FakeWebhook
from trust.integration.webhook.port import WebhookPort

_current_webhook: WebhookPort | None = None


def get_webhook() -> WebhookPort:
    """Return the current webhook sink. Defaults to FakeWebhook."""
    global _current_webhook
    if _current_webhook is None:
        _current_webhook = FakeWebhook()
    return _current_webhook


def set_webhook(webhook: WebhookPort) -> None:
    """Override the active webhook sink (useful for tests)."""
    global _current_webhook
    _current_webhook = webhook


def reset_webhook() -> None:
    """Reset to the default sink."""
    global _current_webhook
    _current_webhook = None
