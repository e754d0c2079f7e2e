"""Data models for workspace provisioning.

This module defines the records that flow through the provisioning
function:
- WorkspaceCreateRequest: Caller-supplied request body
- WorkspaceDocument: The metadata document persisted in Appwrite
- Workspace: The provisioned workspace returned to the caller
- SessionInfo: Identity verified from the caller's session
- APIError / ErrorResponse / WorkspaceResponse: Response bodies
- FunctionRequest / FunctionResponse: The invocation envelope

Wire-facing models serialize with camelCase keys (``teamId``,
``createdAt``) through ``to_wire()``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator
from pydantic.alias_generators import to_camel


def utc_timestamp() -> str:
    """Current UTC time as an RFC 3339 string with second precision."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class WorkspacePlan(str, Enum):
    """Subscription plans a workspace can be created on."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class WorkspaceStatus(str, Enum):
    """Lifecycle status of a workspace.

    Provisioning only ever writes ACTIVE; the other states are owned by
    whatever manages workspaces after creation.
    """

    ACTIVE = "active"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WorkspaceCreateRequest(BaseModel):
    """Request body for creating a workspace.

    Attributes:
        name: Display name of the workspace. Validated after sanitization.
        description: Optional free-text description.
        plan: Requested plan. Empty or absent means the free plan.
    """

    model_config = ConfigDict(extra="ignore")

    name: StrictStr = ""
    description: Optional[StrictStr] = None
    plan: Optional[StrictStr] = None


class SessionInfo(WireModel):
    """Identity of the caller, verified against the Appwrite account service.

    The session token is kept for the lifetime of the request only; it is
    excluded from serialization and from the model's repr.
    """

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., exclude=True, repr=False)
    email: str = ""
    name: str = ""


class WorkspaceDocument(WireModel):
    """The workspace metadata document as stored in Appwrite.

    ``tenant_id`` duplicates ``team_id`` so that data isolation can later be
    keyed on something other than the Appwrite team without a schema change.
    Construction fails if the two diverge.
    """

    name: str = Field(..., min_length=1)
    slug: str
    team_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    status: WorkspaceStatus = WorkspaceStatus.ACTIVE
    plan: str = WorkspacePlan.FREE.value
    tenant_id: str = Field(..., min_length=1)
    created_at: str = Field(..., min_length=1)
    description: str = ""

    @model_validator(mode="after")
    def check_tenant_matches_team(self) -> "WorkspaceDocument":
        if self.tenant_id != self.team_id:
            raise ValueError("tenant_id must equal team_id")
        return self


class Workspace(WireModel):
    """A provisioned workspace, as returned to the caller."""

    id: str
    name: str
    slug: str
    team_id: str
    owner_id: str
    created_at: str
    status: WorkspaceStatus = WorkspaceStatus.ACTIVE
    plan: str = WorkspacePlan.FREE.value
    tenant_id: str

    @classmethod
    def from_document(cls, document_id: str, document: WorkspaceDocument) -> "Workspace":
        return cls(
            id=document_id,
            name=document.name,
            slug=document.slug,
            team_id=document.team_id,
            owner_id=document.owner_id,
            created_at=document.created_at,
            status=document.status,
            plan=document.plan,
            tenant_id=document.tenant_id,
        )


class APIError(WireModel):
    code: str
    message: str
    field: Optional[str] = None


class ErrorResponse(WireModel):
    success: bool = False
    error: APIError


class WorkspaceResponse(WireModel):
    success: bool = True
    workspace: Workspace
    message: str = "Workspace created successfully"


class FunctionRequest(BaseModel):
    """Invocation envelope read from the function's input.

    Attributes:
        headers: Request headers forwarded by Appwrite.
        body: The raw, JSON-encoded request body.
        env: Function variables for this invocation.
    """

    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    env: Dict[str, str] = Field(default_factory=dict)


class FunctionResponse(WireModel):
    """Invocation result written to the function's output."""

    status_code: int
    body: str
