"""Request gates run before any workspace resource is created.

This module checks that an invocation came through an Appwrite trigger,
resolves the caller's identity from their session, parses the request
body and sanitizes caller-supplied strings. Each gate raises a
ProvisioningError subclass on failure.
"""

import json
import unicodedata
from typing import Mapping, Optional

import structlog
from pydantic import ValidationError

from src.provisioning.appwrite.client import AppwriteAPIError, AppwriteClient
from src.provisioning.errors import (
    AuthenticationError,
    InvalidInputError,
    UnauthorizedError,
)
from src.provisioning.models import SessionInfo, WorkspaceCreateRequest

logger = structlog.get_logger()

TRIGGER_HEADER = "x-appwrite-trigger"
SESSION_HEADER = "x-appwrite-session"

MAX_STRING_LENGTH = 1000


def normalize_headers(headers: Optional[Mapping[str, str]]) -> dict:
    """Lower-case header names; HTTP header names are case-insensitive."""
    return {str(key).lower(): value for key, value in (headers or {}).items()}


def verify_trigger(headers: Mapping[str, str]) -> str:
    """Verify that the request came through an Appwrite trigger.

    Args:
        headers: Normalized request headers.

    Returns:
        The trigger type (``http``, ``schedule``, ``event``).

    Raises:
        UnauthorizedError: If the trigger header is missing or blank.
    """
    trigger = (headers.get(TRIGGER_HEADER) or "").strip()
    if not trigger:
        raise UnauthorizedError("Missing x-appwrite-trigger header")
    return trigger


def authenticate_user(
    headers: Mapping[str, str], client: AppwriteClient
) -> SessionInfo:
    """Resolve the caller's identity from the session header.

    Args:
        headers: Normalized request headers.
        client: Appwrite client used for the account lookup.

    Returns:
        SessionInfo for the verified caller.

    Raises:
        AuthenticationError: If the token is missing or Appwrite rejects it.
    """
    session_token = (headers.get(SESSION_HEADER) or "").strip()
    if not session_token:
        raise AuthenticationError("Missing authentication token")

    try:
        account = client.get_account(session_token)
    except AppwriteAPIError as exc:
        logger.warning(
            "Session validation failed",
            status_code=exc.status_code,
            error_type=exc.error_type,
        )
        raise AuthenticationError("Invalid or expired session") from exc

    user_id = account.get("$id")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Account response missing user id")
        raise AuthenticationError("Invalid or expired session")

    return SessionInfo(
        user_id=user_id,
        session_id=session_token,
        email=account.get("email") or "",
        name=account.get("name") or "",
    )


def parse_request_body(body: Optional[str]) -> WorkspaceCreateRequest:
    """Parse and structurally validate the request body.

    Args:
        body: The raw JSON-encoded request body.

    Returns:
        The parsed WorkspaceCreateRequest.

    Raises:
        InvalidInputError: If the body is empty, not JSON, not a JSON
            object, or has fields of the wrong type.
    """
    if body is None or not body.strip():
        raise InvalidInputError("Request body is empty")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Invalid JSON: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")

    try:
        return WorkspaceCreateRequest.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise InvalidInputError(
            f"Invalid request fields: {', '.join(fields)}" if fields else "Invalid request body"
        ) from exc


def sanitize_string(value: Optional[str]) -> str:
    """Strip control characters, trim whitespace and cap the length.

    The cap guards against oversized input and is independent of any
    business length rule applied afterwards.
    """
    if not value:
        return ""
    cleaned = "".join(
        char for char in value if unicodedata.category(char) != "Cc"
    )
    return cleaned.strip()[:MAX_STRING_LENGTH]
