"""Error taxonomy for the workspace provisioning function.

Every gate in the handler fails by raising a ProvisioningError subclass.
The handler converts the exception into an ErrorResponse and pairs it with
the exception's HTTP status code. Messages on these exceptions are shown to
the caller, so they never carry ids, keys or upstream response bodies;
internal detail goes to the log instead.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error codes returned in the ``error.code`` field of a response.

    Attributes:
        UNAUTHORIZED: The invocation did not come through an Appwrite trigger.
        AUTHENTICATION_FAILED: The session token is missing or was rejected.
        INVALID_INPUT: The request body is empty or not valid JSON.
        VALIDATION_ERROR: A business rule failed; carries the offending field.
        TEAM_CREATION_FAILED: The tenant team could not be created.
        WORKSPACE_CREATION_FAILED: The workspace document could not be created.
        CONFIGURATION_ERROR: The function's variables are missing or invalid.
        INVALID_REQUEST: The invocation payload itself could not be read.
        INTERNAL_ERROR: An unexpected failure.
    """

    UNAUTHORIZED = "UNAUTHORIZED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TEAM_CREATION_FAILED = "TEAM_CREATION_FAILED"
    WORKSPACE_CREATION_FAILED = "WORKSPACE_CREATION_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ProvisioningError(Exception):
    """Base class for failures that end a provisioning request.

    Attributes:
        code: Machine-readable error code.
        message: Caller-safe description.
        status_code: HTTP status returned with the error.
        field: Name of the offending request field, if any.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class UnauthorizedError(ProvisioningError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401


class AuthenticationError(ProvisioningError):
    code = ErrorCode.AUTHENTICATION_FAILED
    status_code = 401


class InvalidInputError(ProvisioningError):
    code = ErrorCode.INVALID_INPUT
    status_code = 400


class RequestValidationError(ProvisioningError):
    """Raised when a request field breaks a business rule."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class TeamCreationError(ProvisioningError):
    code = ErrorCode.TEAM_CREATION_FAILED
    status_code = 500


class WorkspaceCreationError(ProvisioningError):
    code = ErrorCode.WORKSPACE_CREATION_FAILED
    status_code = 500


class ConfigurationError(ProvisioningError):
    code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500
