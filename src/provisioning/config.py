"""Function configuration using pydantic-settings.

This module defines the FunctionSettings class. Appwrite passes the
function's variables in the invocation payload's ``env`` map, so settings
are built from that map at the edge of the process and handed to the
handler as an explicit object. Keys in ``env`` take precedence over the
process environment; names are matched case-insensitively.

Recognized keys:
- APPWRITE_ENDPOINT, APPWRITE_PROJECT_ID, APPWRITE_API_KEY
- APPWRITE_DATABASE_ID, APPWRITE_WORKSPACES_COLLECTION_ID
- WEBHOOK_URL, WEBHOOK_API_KEY, WEBHOOK_TIMEOUT_SECONDS
- APPWRITE_TIMEOUT_SECONDS, WORKSPACE_DATA_COLLECTIONS_ENABLED, LOG_LEVEL
"""

from typing import Mapping, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FunctionSettings(BaseSettings):
    """Workspace provisioning function configuration.

    Required fields:
    - appwrite_endpoint: Base URL of the Appwrite API (e.g. https://cloud.appwrite.io/v1)
    - appwrite_project_id: Project the function runs in
    - appwrite_api_key: Server API key used for admin operations
    - appwrite_database_id: Database holding the workspaces collection
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Appwrite Configuration
    # -------------------------------------------------------------------------
    appwrite_endpoint: str

    appwrite_project_id: str

    # Server API key, never returned to callers
    appwrite_api_key: str

    appwrite_database_id: str

    appwrite_workspaces_collection_id: str = "workspaces"

    appwrite_timeout_seconds: float = 30.0

    # -------------------------------------------------------------------------
    # Webhook Configuration
    # -------------------------------------------------------------------------
    # Both must be set for the welcome webhook to be sent
    webhook_url: Optional[str] = None

    webhook_api_key: Optional[str] = None

    webhook_timeout_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Provisioning Behaviour
    # -------------------------------------------------------------------------
    workspace_data_collections_enabled: bool = True

    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("appwrite_endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate that the endpoint is an http(s) URL."""
        if not v or not v.strip():
            raise ValueError("appwrite_endpoint cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("appwrite_endpoint must start with http:// or https://")
        return v.rstrip("/")

    @field_validator(
        "appwrite_project_id",
        "appwrite_api_key",
        "appwrite_database_id",
        "appwrite_workspaces_collection_id",
    )
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("webhook_url", "webhook_api_key")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank webhook settings as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("appwrite_timeout_seconds", "webhook_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v < 1:
            raise ValueError("timeouts must be at least 1 second")
        return v

    @property
    def webhook_configured(self) -> bool:
        return self.webhook_url is not None and self.webhook_api_key is not None


def load_settings(env: Optional[Mapping[str, str]] = None) -> FunctionSettings:
    """Create FunctionSettings from an invocation ``env`` map.

    Args:
        env: Variables supplied with the invocation. Keys are lower-cased
             so that APPWRITE_ENDPOINT and appwrite_endpoint are equivalent.

    Returns:
        FunctionSettings: Validated settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    overrides = {
        key.lower(): value
        for key, value in (env or {}).items()
        if key.lower() in FunctionSettings.model_fields
    }
    return FunctionSettings(**overrides)


def redact_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if not value:
        return ""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)
