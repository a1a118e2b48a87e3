"""Response error extraction for load test observability.

Parses Review Trust API error responses into human-readable messages.
Every error shares one envelope:

    {"success": false, "error": {"code": "...", "message": "...", "details": {...}}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return str(body)[:300]

    summary = f"{error.get('code', 'error')}: {error.get('message', '')}"
    details = error.get("details")
    if isinstance(details, dict) and details:
        fields = " | ".join(f"{field}: {messages}" for field, messages in details.items())
        return f"{summary} ({fields})"
    return summary


def payload(response: Response) -> dict:
    """The ``data`` member of a success envelope."""
    return response.json()["data"]
