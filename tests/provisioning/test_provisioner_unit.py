"""Unit tests for the workspace provisioner.

Tests the team/document sequence, the team rollback when the document
cannot be created, and the non-critical collection and webhook steps.
"""

from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from src.provisioning.appwrite.client import AppwriteAPIError, AppwriteClient
from src.provisioning.errors import ErrorCode, TeamCreationError, WorkspaceCreationError
from src.provisioning.models import SessionInfo
from src.provisioning.provisioner import (
    WorkspaceProvisioner,
    data_collection_name_for,
    team_name_for,
    workspace_permissions,
)
from src.provisioning.webhook.notifier import (
    WebhookConfigurationError,
    WebhookError,
    WebhookNotifier,
)

CREATED_AT = "2024-05-01T12:00:00+00:00"


@pytest.fixture
def client():
    mock = MagicMock(spec=AppwriteClient)
    mock.create_team.return_value = {"$id": "team-1"}
    mock.create_document.return_value = {"$id": "doc-1"}
    mock.create_collection.return_value = {"$id": "col-1"}
    return mock


@pytest.fixture
def notifier():
    return MagicMock(spec=WebhookNotifier)


@pytest.fixture
def session():
    return SessionInfo(user_id="user-1", session_id="token", email="owner@acme.test", name="Owner")


@pytest.fixture
def provisioner(settings, client, notifier):
    return WorkspaceProvisioner(settings, client, notifier, clock=lambda: CREATED_AT)


class TestNaming:

    def test_team_name(self):
        assert team_name_for("Acme Corp") == "Acme Corp Workspace"

    def test_collection_name(self):
        assert data_collection_name_for("Acme Corp") == "Acme Corp Data"

    def test_permissions(self):
        assert workspace_permissions("team-1") == [
            'read("team:team-1")',
            'write("team:team-1/owner")',
        ]


class TestProvisionHappyPath:

    def test_returns_workspace(self, provisioner, session):
        workspace = provisioner.provision(session, "Acme Corp", "free")

        assert workspace.id == "doc-1"
        assert workspace.name == "Acme Corp"
        assert workspace.slug == "acme-corp"
        assert workspace.team_id == "team-1"
        assert workspace.tenant_id == "team-1"
        assert workspace.owner_id == "user-1"
        assert workspace.status == "active"
        assert workspace.plan == "free"
        assert workspace.created_at == CREATED_AT

    def test_creates_team_then_document(self, provisioner, session, client):
        provisioner.provision(session, "Acme Corp", "pro", "Sales team")

        client.create_team.assert_called_once_with("Acme Corp Workspace")
        client.create_document.assert_called_once_with(
            "db-main",
            "workspaces",
            {
                "name": "Acme Corp",
                "slug": "acme-corp",
                "teamId": "team-1",
                "ownerId": "user-1",
                "status": "active",
                "plan": "pro",
                "tenantId": "team-1",
                "createdAt": CREATED_AT,
                "description": "Sales team",
            },
            permissions=['read("team:team-1")', 'write("team:team-1/owner")'],
        )
        client.delete_team.assert_not_called()

    def test_initializes_collection(self, provisioner, session, client):
        provisioner.provision(session, "Acme Corp", "free")
        client.create_collection.assert_called_once_with(
            "db-main",
            "Acme Corp Data",
            permissions=['read("team:team-1")', 'write("team:team-1/owner")'],
        )

    def test_collection_skipped_when_disabled(self, settings, client, notifier, session):
        settings.workspace_data_collections_enabled = False
        provisioner = WorkspaceProvisioner(settings, client, notifier)
        provisioner.provision(session, "Acme Corp", "free")
        client.create_collection.assert_not_called()

    def test_sends_welcome_webhook(self, provisioner, session, notifier):
        provisioner.provision(session, "Acme Corp", "free")
        notifier.send_welcome.assert_called_once_with("Acme Corp", "owner@acme.test", "team-1")


class TestTeamCreationFailure:

    def test_raises_team_creation_error(self, provisioner, session, client):
        client.create_team.side_effect = AppwriteAPIError("boom", status_code=500)

        with pytest.raises(TeamCreationError) as exc_info:
            provisioner.provision(session, "Acme Corp", "free")

        assert exc_info.value.code == ErrorCode.TEAM_CREATION_FAILED
        assert exc_info.value.status_code == 500
        client.create_document.assert_not_called()
        client.delete_team.assert_not_called()

    def test_team_without_id(self, provisioner, session, client):
        client.create_team.return_value = {}
        with pytest.raises(TeamCreationError):
            provisioner.provision(session, "Acme Corp", "free")
        client.create_document.assert_not_called()


class TestDocumentFailureRollback:

    def test_deletes_created_team(self, provisioner, session, client, notifier):
        client.create_document.side_effect = AppwriteAPIError(
            "Document with the requested ID already exists.", status_code=409
        )

        with pytest.raises(WorkspaceCreationError) as exc_info:
            provisioner.provision(session, "Acme Corp", "free")

        assert exc_info.value.code == ErrorCode.WORKSPACE_CREATION_FAILED
        client.delete_team.assert_called_once_with("team-1")
        client.create_collection.assert_not_called()
        notifier.send_welcome.assert_not_called()

    def test_rollback_failure_is_logged_not_raised(self, provisioner, session, client):
        client.create_document.side_effect = AppwriteAPIError("boom", status_code=500)
        client.delete_team.side_effect = AppwriteAPIError("gone", status_code=503)

        with capture_logs() as logs:
            with pytest.raises(WorkspaceCreationError):
                provisioner.provision(session, "Acme Corp", "free")

        client.delete_team.assert_called_once_with("team-1")
        events = [entry["event"] for entry in logs]
        assert "Failed to delete team during rollback" in events

    def test_error_message_hides_team_id(self, provisioner, session, client):
        client.create_document.side_effect = AppwriteAPIError("boom team-1", status_code=500)
        with pytest.raises(WorkspaceCreationError) as exc_info:
            provisioner.provision(session, "Acme Corp", "free")
        assert "team-1" not in exc_info.value.message


class TestNonCriticalFailures:

    def test_collection_failure_ignored(self, provisioner, session, client, notifier):
        client.create_collection.side_effect = AppwriteAPIError("limit", status_code=403)

        workspace = provisioner.provision(session, "Acme Corp", "free")

        assert workspace.id == "doc-1"
        notifier.send_welcome.assert_called_once()
        client.delete_team.assert_not_called()

    def test_webhook_failure_ignored(self, provisioner, session, client, notifier):
        notifier.send_welcome.side_effect = WebhookError("webhook returned status 500", 500)
        workspace = provisioner.provision(session, "Acme Corp", "free")
        assert workspace.id == "doc-1"
        client.delete_team.assert_not_called()

    def test_missing_webhook_config_only_logged(self, provisioner, session, notifier):
        notifier.send_welcome.side_effect = WebhookConfigurationError("webhook configuration missing")

        with capture_logs() as logs:
            workspace = provisioner.provision(session, "Acme Corp", "free")

        assert workspace.id == "doc-1"
        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert any("not configured" in entry["event"] for entry in warnings)

    def test_unexpected_collection_response_ignored(self, provisioner, session, client):
        client.create_collection.return_value = ["not", "a", "document"]
        workspace = provisioner.provision(session, "Acme Corp", "free")
        assert workspace.id == "doc-1"

    def test_unexpected_webhook_exception_logged(self, provisioner, session, client, notifier):
        notifier.send_welcome.side_effect = UnicodeEncodeError(
            "ascii", "Bearer k\xe9y", 8, 9, "ordinal not in range(128)"
        )

        with capture_logs() as logs:
            workspace = provisioner.provision(session, "Acme Corp", "free")

        assert workspace.id == "doc-1"
        client.delete_team.assert_not_called()
        failures = [entry for entry in logs if entry["event"] == "Failed to send welcome webhook"]
        assert failures and failures[0]["exc_info"] is True


class TestTeamOwnerMembership:

    def test_caller_added_as_owner(self, provisioner, session, client):
        provisioner.provision(session, "Acme Corp", "free")
        client.create_membership.assert_called_once_with("team-1", "user-1", ["owner"])

    def test_membership_added_before_document(self, provisioner, session, client):
        calls = []
        client.create_membership.side_effect = lambda *args: calls.append("membership")
        client.create_document.side_effect = lambda *args, **kwargs: (
            calls.append("document") or {"$id": "doc-1"}
        )

        provisioner.provision(session, "Acme Corp", "free")

        assert calls == ["membership", "document"]

    def test_membership_failure_deletes_team(self, provisioner, session, client, notifier):
        client.create_membership.side_effect = AppwriteAPIError("boom", status_code=500)

        with pytest.raises(TeamCreationError) as exc_info:
            provisioner.provision(session, "Acme Corp", "free")

        assert exc_info.value.message == "Failed to create workspace team"
        client.delete_team.assert_called_once_with("team-1")
        client.create_document.assert_not_called()
        notifier.send_welcome.assert_not_called()

    def test_existing_membership_accepted(self, provisioner, session, client):
        client.create_membership.side_effect = AppwriteAPIError("exists", status_code=409)

        workspace = provisioner.provision(session, "Acme Corp", "free")

        assert workspace.id == "doc-1"
        client.delete_team.assert_not_called()
