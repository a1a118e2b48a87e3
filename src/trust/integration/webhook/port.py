"""Webhook sink port (abstract interface).

The integration engine receives review notifications through this contract.
Payloads are JSON-serialisable ``{"type": ..., "data": ...}`` mappings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one webhook delivery attempt."""

    delivered: bool
    delivery_id: str | None = None
    failure_reason: str | None = None


class WebhookPort(ABC):
    """Abstract webhook sink."""

    @abstractmethod
    def deliver(self, event_type: str, payload: dict) -> DeliveryResult:
        """Send one notification to every subscriber of ``event_type``."""
        ...
