"""Outbound webhook delivery.

Sends ``workspace.created`` events to an external receiver configured via
the WEBHOOK_URL and WEBHOOK_API_KEY function variables.
"""

from .notifier import (
    WORKSPACE_CREATED_EVENT,
    WebhookConfigurationError,
    WebhookError,
    WebhookNotifier,
    WebhookPayload,
)

__all__ = [
    "WORKSPACE_CREATED_EVENT",
    "WebhookConfigurationError",
    "WebhookError",
    "WebhookNotifier",
    "WebhookPayload",
]
