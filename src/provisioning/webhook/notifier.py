"""Outbound webhook notifications for provisioned workspaces.

This module sends an authenticated ``workspace.created`` event to an
external service once a workspace exists. The target URL and bearer key
come from the function's variables and are never exposed to callers.

Payload structure:
{
  "event": "workspace.created",
  "timestamp": "2024-01-01T12:00:00+00:00",
  "data": {
    "workspaceName": "Acme Corp",
    "userEmail": "owner@acme.test",
    "teamId": "65a1f0c2e4b0"
  }
}
"""

from typing import Any, Callable, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel, Field

from src.provisioning.models import utc_timestamp

logger = structlog.get_logger()

WORKSPACE_CREATED_EVENT = "workspace.created"
WEBHOOK_SOURCE = "appwrite-function"


class WebhookError(Exception):
    """Raised when a webhook cannot be delivered.

    Attributes:
        status_code: HTTP status returned by the receiver, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class WebhookConfigurationError(WebhookError):
    """Raised when the webhook URL or API key is not configured."""


class WebhookPayload(BaseModel):
    event: str
    timestamp: str
    data: Dict[str, Any] = Field(default_factory=dict)


class WebhookNotifier:
    """Sends workspace lifecycle events to a configured webhook.

    Each call makes exactly one POST; delivery is not retried. Callers
    treat a WebhookError as non-fatal.

    Attributes:
        url: Receiver URL, or None when webhooks are not configured.
        api_key: Bearer key sent in the Authorization header.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.url) and bool(self.api_key)

    def build_welcome_payload(
        self, workspace_name: str, user_email: str, team_id: str
    ) -> WebhookPayload:
        return WebhookPayload(
            event=WORKSPACE_CREATED_EVENT,
            timestamp=self._clock(),
            data={
                "workspaceName": workspace_name,
                "userEmail": user_email,
                "teamId": team_id,
            },
        )

    def send_welcome(self, workspace_name: str, user_email: str, team_id: str) -> None:
        """Send the ``workspace.created`` event.

        Args:
            workspace_name: Name of the new workspace.
            user_email: Email of the workspace owner.
            team_id: Id of the workspace's team.

        Raises:
            WebhookConfigurationError: If the URL or API key is missing.
            WebhookError: On transport failure or a non-2xx response.
        """
        if not self.configured:
            raise WebhookConfigurationError("webhook configuration missing")

        payload = self.build_welcome_payload(workspace_name, user_email, team_id)
        self._post(payload)

        logger.info(
            "Webhook delivered",
            event=payload.event,
            team_id=team_id,
        )

    def _post(self, payload: WebhookPayload) -> None:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Webhook-Source": WEBHOOK_SOURCE,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    self.url,
                    json=payload.model_dump(mode="json"),
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise WebhookError(f"failed to send webhook: {exc}") from exc

        if not response.is_success:
            raise WebhookError(
                f"webhook returned status {response.status_code}",
                status_code=response.status_code,
            )
