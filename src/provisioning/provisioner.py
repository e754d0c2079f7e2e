"""Workspace provisioning against Appwrite.

Creates the Appwrite resources behind a workspace for an authenticated
caller. The flow is strictly sequential:

1. Create a team as the workspace's tenant boundary and add the caller
   to it as owner.
2. Create the workspace document, readable by team members and writable
   by team owners.
3. Create a private data collection for the workspace (non-critical).
4. Send the welcome webhook (non-critical).

Steps 1 and 2 form a two-step saga with exactly one compensating action:
if the owner membership or the document cannot be created, the team from
step 1 is deleted so no workspace document ever references a missing team
and no ownerless team is left behind. A crash between the two steps is not
recovered. Nothing after step 2 can fail the request.
"""

from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError

from src.provisioning.appwrite.client import (
    AppwriteAPIError,
    AppwriteClient,
    team_owner_write_permission,
    team_read_permission,
)
from src.provisioning.config import FunctionSettings
from src.provisioning.errors import TeamCreationError, WorkspaceCreationError
from src.provisioning.models import (
    SessionInfo,
    Workspace,
    WorkspaceDocument,
    WorkspaceStatus,
    utc_timestamp,
)
from src.provisioning.validation import generate_slug
from src.provisioning.webhook.notifier import (
    WebhookConfigurationError,
    WebhookError,
    WebhookNotifier,
)

logger = structlog.get_logger()

OWNER_ROLE = "owner"


def team_name_for(workspace_name: str) -> str:
    return f"{workspace_name} Workspace"


def data_collection_name_for(workspace_name: str) -> str:
    return f"{workspace_name} Data"


def workspace_permissions(team_id: str) -> List[str]:
    """Document permissions: team members read, team owners write."""
    return [
        team_read_permission(team_id),
        team_owner_write_permission(team_id),
    ]


class WorkspaceProvisioner:
    """Creates the team, document and side resources for a workspace.

    Inputs reaching ``provision`` are already authenticated, sanitized and
    validated; this class only talks to Appwrite and the webhook.

    Attributes:
        settings: Function settings (database and collection ids).
        client: Appwrite client authenticated with the server API key.
        notifier: Webhook notifier for the welcome event.
    """

    def __init__(
        self,
        settings: FunctionSettings,
        client: AppwriteClient,
        notifier: WebhookNotifier,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.settings = settings
        self.client = client
        self.notifier = notifier
        self._clock = clock

    def provision(
        self,
        session: SessionInfo,
        name: str,
        plan: str,
        description: str = "",
    ) -> Workspace:
        """Provision a workspace owned by the session's user.

        Args:
            session: Verified caller identity.
            name: Sanitized, validated workspace name.
            plan: Resolved plan name.
            description: Sanitized description, possibly empty.

        Returns:
            The provisioned Workspace.

        Raises:
            TeamCreationError: If the team or its owner membership could not
                be created.
            WorkspaceCreationError: If the document could not be created.
                The team has been deleted (best effort) before this is raised.
        """
        team_id = self._create_team(name)
        self._add_team_owner(team_id, session.user_id)

        document = self._build_document(session, name, plan, description, team_id)
        document_id = self._create_workspace_document(document)

        self._initialize_data_collection(name, team_id)
        self._send_welcome_webhook(name, session.email, team_id)

        logger.info(
            "Workspace provisioned",
            workspace_id=document_id,
            team_id=team_id,
            owner_id=session.user_id,
            plan=plan,
        )
        return Workspace.from_document(document_id, document)

    def _create_team(self, name: str) -> str:
        try:
            team = self.client.create_team(team_name_for(name))
        except AppwriteAPIError as exc:
            logger.error(
                "Error creating team",
                error=exc.message,
                status_code=exc.status_code,
            )
            raise TeamCreationError("Failed to create workspace team") from exc

        team_id = team.get("$id")
        if not isinstance(team_id, str) or not team_id:
            logger.error("Team response missing id")
            raise TeamCreationError("Failed to create workspace team")

        logger.info("Team created", team_id=team_id)
        return team_id

    def _add_team_owner(self, team_id: str, user_id: str) -> None:
        """Make the caller an owner of the new team.

        The team is created with the server key, so the caller is not a
        member until this call succeeds. A 409 means the membership already
        exists. Any other failure deletes the team.

        Raises:
            TeamCreationError: After deleting the team.
        """
        try:
            self.client.create_membership(team_id, user_id, [OWNER_ROLE])
        except AppwriteAPIError as exc:
            if exc.status_code == 409:
                logger.info("Owner already a team member", team_id=team_id, user_id=user_id)
                return
            logger.error(
                "Error adding team owner",
                error=exc.message,
                status_code=exc.status_code,
                team_id=team_id,
            )
            self._rollback_team(team_id)
            raise TeamCreationError("Failed to create workspace team") from exc

        logger.info("Team owner added", team_id=team_id, user_id=user_id)

    def _build_document(
        self,
        session: SessionInfo,
        name: str,
        plan: str,
        description: str,
        team_id: str,
    ) -> WorkspaceDocument:
        try:
            return WorkspaceDocument(
                name=name,
                slug=generate_slug(name),
                team_id=team_id,
                owner_id=session.user_id,
                status=WorkspaceStatus.ACTIVE,
                plan=plan,
                tenant_id=team_id,
                created_at=self._clock(),
                description=description,
            )
        except ValidationError as exc:
            logger.error("Invalid workspace document", error=str(exc))
            self._rollback_team(team_id)
            raise WorkspaceCreationError("Failed to create workspace document") from exc

    def _create_workspace_document(self, document: WorkspaceDocument) -> str:
        """Persist the workspace document, compensating on failure.

        Args:
            document: The validated document to store.

        Returns:
            The id Appwrite assigned to the document.

        Raises:
            WorkspaceCreationError: After deleting the document's team.
        """
        try:
            created = self.client.create_document(
                self.settings.appwrite_database_id,
                self.settings.appwrite_workspaces_collection_id,
                document.to_wire(),
                permissions=workspace_permissions(document.team_id),
            )
        except AppwriteAPIError as exc:
            logger.error(
                "Error creating workspace document",
                error=exc.message,
                status_code=exc.status_code,
                team_id=document.team_id,
            )
            self._rollback_team(document.team_id)
            raise WorkspaceCreationError("Failed to create workspace document") from exc

        document_id = created.get("$id")
        if not isinstance(document_id, str) or not document_id:
            # Appwrite accepted the write, so the team is referenced and stays.
            logger.error("Document response missing id", team_id=document.team_id)
            raise WorkspaceCreationError("Failed to create workspace document")

        return document_id

    def _rollback_team(self, team_id: str) -> None:
        """Delete a team whose workspace document was never written.

        This is the only compensating action in the flow. Its own failure is
        logged and not retried, leaving an orphaned team behind.
        """
        try:
            self.client.delete_team(team_id)
        except AppwriteAPIError as exc:
            logger.error(
                "Failed to delete team during rollback",
                team_id=team_id,
                error=exc.message,
                status_code=exc.status_code,
            )
            return
        logger.info("Rolled back team", team_id=team_id)

    def _initialize_data_collection(self, name: str, team_id: str) -> Optional[str]:
        """Create the workspace's private data collection.

        Any failure is logged and ignored; the workspace is usable without it.

        Returns:
            The collection id, or None if it was not created.
        """
        if not self.settings.workspace_data_collections_enabled:
            return None

        try:
            collection = self.client.create_collection(
                self.settings.appwrite_database_id,
                data_collection_name_for(name),
                permissions=workspace_permissions(team_id),
            )
            collection_id = collection.get("$id")
        except AppwriteAPIError as exc:
            logger.warning(
                "Failed to initialize workspace collection",
                team_id=team_id,
                error=exc.message,
                status_code=exc.status_code,
            )
            return None
        except Exception:
            logger.warning(
                "Failed to initialize workspace collection",
                team_id=team_id,
                exc_info=True,
            )
            return None

        logger.info(
            "Workspace collection initialized",
            team_id=team_id,
            collection_id=collection_id,
        )
        return collection_id

    def _send_welcome_webhook(self, name: str, email: str, team_id: str) -> None:
        try:
            self.notifier.send_welcome(name, email, team_id)
        except WebhookConfigurationError:
            logger.warning("Welcome webhook skipped: webhook not configured")
        except WebhookError as exc:
            logger.warning(
                "Failed to send welcome webhook",
                team_id=team_id,
                error=str(exc),
                status_code=exc.status_code,
            )
        except Exception:
            logger.warning(
                "Failed to send welcome webhook",
                team_id=team_id,
                exc_info=True,
            )
