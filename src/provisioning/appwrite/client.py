"""Appwrite REST API client for the provisioning function.

This module provides a thin synchronous wrapper around the Appwrite API
for the calls workspace provisioning needs:
- Resolving the caller's account from a session token
- Creating and deleting teams, and adding team members
- Creating documents and collections in a database

Requests are made once; there is no retry logic. Every failure, whether a
transport error or a non-2xx response, surfaces as AppwriteAPIError.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

logger = structlog.get_logger()

UNIQUE_ID = "unique()"


class AppwriteAPIError(Exception):
    """Raised when an Appwrite API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, if one was received.
        error_type: Appwrite's machine-readable error type (e.g. ``user_unauthorized``).
        response_body: Raw response body, for logging only.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        response_body: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.response_body = response_body
        super().__init__(message)


def team_read_permission(team_id: str) -> str:
    return f'read("team:{team_id}")'


def team_owner_write_permission(team_id: str) -> str:
    return f'write("team:{team_id}/owner")'


class AppwriteClient:
    """Synchronous Appwrite API client.

    Admin calls authenticate with the project's server API key. The
    account lookup instead authenticates as the caller, using only the
    session token, so the key never vouches for an unverified user.

    Attributes:
        endpoint: Base URL of the Appwrite API, including ``/v1``.
        project_id: Appwrite project identifier.
        api_key: Server API key for admin operations.
        timeout: Request timeout in seconds.

    Example:
        >>> with AppwriteClient(endpoint, project_id, api_key) as client:
        ...     team = client.create_team("Acme Workspace")
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "X-Appwrite-Project": self.project_id,
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> "AppwriteClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------
    def get_account(self, session_token: str) -> Dict[str, Any]:
        """Fetch the account that owns a session.

        Args:
            session_token: The caller's session secret.

        Returns:
            The account document (``$id``, ``email``, ``name``, ...).

        Raises:
            AppwriteAPIError: If the session is invalid or the request fails.
        """
        return self._request(
            "GET",
            "/account",
            headers={"X-Appwrite-Session": session_token},
            admin=False,
        )

    # -------------------------------------------------------------------------
    # Teams
    # -------------------------------------------------------------------------
    def create_team(self, name: str, team_id: str = UNIQUE_ID) -> Dict[str, Any]:
        """Create a team. Appwrite generates the id when ``team_id`` is ``unique()``."""
        payload: Dict[str, Any] = {"teamId": team_id, "name": name}
        return self._request("POST", "/teams", json_data=payload)

    def create_membership(
        self, team_id: str, user_id: str, roles: List[str]
    ) -> Dict[str, Any]:
        """Add an existing user to a team with the given roles.

        Called with the server API key, Appwrite confirms the membership
        immediately instead of sending an invitation.

        Args:
            team_id: Team to join.
            user_id: Appwrite user id of the new member.
            roles: Team roles, e.g. ``["owner"]``.

        Returns:
            The membership document.

        Raises:
            AppwriteAPIError: If the membership could not be created.
        """
        return self._request(
            "POST",
            f"/teams/{team_id}/memberships",
            json_data={"userId": user_id, "roles": roles},
        )

    def delete_team(self, team_id: str) -> None:
        self._request("DELETE", f"/teams/{team_id}")

    # -------------------------------------------------------------------------
    # Databases
    # -------------------------------------------------------------------------
    def create_document(
        self,
        database_id: str,
        collection_id: str,
        data: Dict[str, Any],
        permissions: Optional[List[str]] = None,
        document_id: str = UNIQUE_ID,
    ) -> Dict[str, Any]:
        """Create a document with document-level permissions.

        Args:
            database_id: Target database.
            collection_id: Target collection.
            data: Document attributes.
            permissions: Appwrite permission strings for the document.
            document_id: Explicit id, or ``unique()`` to let Appwrite pick.

        Returns:
            The created document, including its ``$id``.

        Raises:
            AppwriteAPIError: If the document could not be created.
        """
        payload: Dict[str, Any] = {"documentId": document_id, "data": data}
        if permissions is not None:
            payload["permissions"] = permissions
        return self._request(
            "POST",
            f"/databases/{database_id}/collections/{collection_id}/documents",
            json_data=payload,
        )

    def create_collection(
        self,
        database_id: str,
        name: str,
        permissions: Optional[List[str]] = None,
        document_security: bool = False,
        collection_id: str = UNIQUE_ID,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "collectionId": collection_id,
            "name": name,
            "documentSecurity": document_security,
        }
        if permissions is not None:
            payload["permissions"] = permissions
        return self._request(
            "POST",
            f"/databases/{database_id}/collections",
            json_data=payload,
        )

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        admin: bool = True,
    ) -> Dict[str, Any]:
        """Make a single HTTP request against the Appwrite API.

        Args:
            method: HTTP method.
            path: API path relative to the endpoint.
            json_data: Optional JSON body.
            headers: Extra headers for this request.
            admin: Whether to authenticate with the server API key.

        Returns:
            The decoded JSON response, or an empty dict for empty bodies.

        Raises:
            AppwriteAPIError: On transport failure or a non-2xx response.
        """
        request_headers = dict(headers or {})
        if admin:
            request_headers["X-Appwrite-Key"] = self.api_key

        try:
            response = self.client.request(
                method,
                path,
                json=json_data,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            raise AppwriteAPIError(
                f"Appwrite request failed: {method} {path}: {exc}"
            ) from exc

        if not response.is_success:
            raise self._error_from_response(method, path, response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise AppwriteAPIError(
                f"Appwrite returned invalid JSON for {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            ) from exc

    def _error_from_response(
        self, method: str, path: str, response: httpx.Response
    ) -> AppwriteAPIError:
        """Build an AppwriteAPIError from an error response.

        Appwrite error bodies look like
        ``{"message": "...", "code": 401, "type": "user_unauthorized"}``.
        """
        message = f"Appwrite returned {response.status_code} for {method} {path}"
        error_type = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            if body.get("message"):
                message = f"{message}: {body['message']}"
            error_type = body.get("type")

        logger.debug(
            "Appwrite request rejected",
            method=method,
            path=path,
            status_code=response.status_code,
            error_type=error_type,
        )
        return AppwriteAPIError(
            message,
            status_code=response.status_code,
            error_type=error_type,
            response_body=response.text,
        )
