"""Request handler for the create-workspace function.

Runs the gate sequence for one invocation and turns the outcome into a
FunctionResponse:

1. Trigger check          -> 401 UNAUTHORIZED
2. Session authentication -> 401 AUTHENTICATION_FAILED
3. Body parsing           -> 400 INVALID_INPUT
4. Name sanitization
5. Name validation        -> 400 VALIDATION_ERROR (field "name")
6. Plan defaulting
7-11. Provisioning        -> 500 TEAM_CREATION_FAILED / WORKSPACE_CREATION_FAILED
12. 200 with the Workspace

Configuration is resolved before step 1; invalid function variables end
the request with 500 CONFIGURATION_ERROR.
"""

import json
from typing import Any, Mapping, Optional

import structlog
from pydantic import ValidationError

from src.provisioning.appwrite.client import AppwriteClient
from src.provisioning.config import FunctionSettings, load_settings, redact_secret
from src.provisioning.errors import (
    ConfigurationError,
    ErrorCode,
    ProvisioningError,
)
from src.provisioning.middleware import (
    authenticate_user,
    normalize_headers,
    parse_request_body,
    sanitize_string,
    verify_trigger,
)
from src.provisioning.models import (
    APIError,
    ErrorResponse,
    FunctionRequest,
    FunctionResponse,
    WorkspaceResponse,
)
from src.provisioning.provisioner import WorkspaceProvisioner
from src.provisioning.validation import resolve_plan, validate_workspace_name
from src.provisioning.webhook.notifier import WebhookNotifier

logger = structlog.get_logger()


def respond_error(
    status_code: int, code: str, message: str, field: Optional[str] = None
) -> FunctionResponse:
    """Build a standardized error response."""
    body = ErrorResponse(error=APIError(code=code, message=message, field=field))
    return FunctionResponse(status_code=status_code, body=json.dumps(body.to_wire()))


def respond_success(response: WorkspaceResponse) -> FunctionResponse:
    return FunctionResponse(status_code=200, body=json.dumps(response.to_wire()))


class WorkspaceFunction:
    """Handles create-workspace requests.

    The function owns no state between requests; a fresh instance is built
    per invocation with explicit collaborators.

    Attributes:
        client: Appwrite client authenticated with the server API key.
        provisioner: Creates the workspace's Appwrite resources.
    """

    def __init__(self, client: AppwriteClient, provisioner: WorkspaceProvisioner):
        self.client = client
        self.provisioner = provisioner

    @classmethod
    def from_settings(cls, settings: FunctionSettings) -> "WorkspaceFunction":
        client = AppwriteClient(
            endpoint=settings.appwrite_endpoint,
            project_id=settings.appwrite_project_id,
            api_key=settings.appwrite_api_key,
            timeout=settings.appwrite_timeout_seconds,
        )
        notifier = WebhookNotifier(
            url=settings.webhook_url,
            api_key=settings.webhook_api_key,
            timeout=settings.webhook_timeout_seconds,
        )
        return cls(client, WorkspaceProvisioner(settings, client, notifier))

    def handle(self, headers: Optional[Mapping[str, str]], body: Optional[str]) -> FunctionResponse:
        """Process one create-workspace request.

        Args:
            headers: Request headers forwarded by Appwrite.
            body: Raw JSON request body.

        Returns:
            FunctionResponse with status 200 on success, or 400/401/500
            with an ErrorResponse body.
        """
        try:
            return respond_success(self._create_workspace(headers, body))
        except ProvisioningError as exc:
            logger.info(
                "Request rejected",
                code=exc.code.value,
                status_code=exc.status_code,
                field=exc.field,
            )
            return respond_error(exc.status_code, exc.code.value, exc.message, exc.field)
        except Exception:
            logger.exception("Unexpected error while creating workspace")
            return respond_error(
                500, ErrorCode.INTERNAL_ERROR.value, "Internal server error"
            )

    def _create_workspace(
        self, headers: Optional[Mapping[str, str]], body: Optional[str]
    ) -> WorkspaceResponse:
        normalized = normalize_headers(headers)

        trigger = verify_trigger(normalized)
        session = authenticate_user(normalized, self.client)
        logger.info("Caller authenticated", user_id=session.user_id, trigger=trigger)

        create_request = parse_request_body(body)

        name = validate_workspace_name(sanitize_string(create_request.name))
        description = sanitize_string(create_request.description)
        plan = resolve_plan(create_request.plan)

        workspace = self.provisioner.provision(session, name, plan, description)
        return WorkspaceResponse(workspace=workspace)

    def close(self) -> None:
        self.client.close()


def log_configuration(settings: FunctionSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info(
        "Function configuration",
        appwrite_endpoint=settings.appwrite_endpoint,
        appwrite_project_id=settings.appwrite_project_id,
        appwrite_api_key=redact_secret(settings.appwrite_api_key),
        appwrite_database_id=settings.appwrite_database_id,
        appwrite_workspaces_collection_id=settings.appwrite_workspaces_collection_id,
        webhook_url=settings.webhook_url,
        webhook_api_key=redact_secret(settings.webhook_api_key),
        workspace_data_collections_enabled=settings.workspace_data_collections_enabled,
    )


def build_function(env: Optional[Mapping[str, str]]) -> WorkspaceFunction:
    """Resolve settings from ``env`` and build a WorkspaceFunction.

    Raises:
        ConfigurationError: If the function variables are missing or invalid.
    """
    try:
        settings = load_settings(env)
    except ValidationError as exc:
        missing = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        logger.error("Invalid function configuration", fields=missing)
        raise ConfigurationError("Function is not configured correctly") from exc

    log_configuration(settings)
    return WorkspaceFunction.from_settings(settings)


def handle_request(payload: Any) -> FunctionResponse:
    """Handle a raw invocation payload ``{headers, body, env}``.

    Args:
        payload: The decoded invocation payload, or a FunctionRequest.

    Returns:
        The FunctionResponse for the invocation.
    """
    if isinstance(payload, FunctionRequest):
        request = payload
    else:
        try:
            request = FunctionRequest.model_validate(payload)
        except ValidationError:
            logger.error("Invocation payload does not match the expected shape")
            return respond_error(
                500, ErrorCode.INVALID_REQUEST.value, "Failed to parse request"
            )

    try:
        function = build_function(request.env)
    except ConfigurationError as exc:
        return respond_error(exc.status_code, exc.code.value, exc.message)

    try:
        return function.handle(request.headers, request.body)
    finally:
        function.close()
