"""Appwrite REST API access for workspace provisioning.

This module wraps the Appwrite endpoints the function calls:
- Account lookup from a session token
- Team creation and deletion
- Document and collection creation
"""

from src.provisioning.appwrite.client import (
    UNIQUE_ID,
    AppwriteAPIError,
    AppwriteClient,
    team_owner_write_permission,
    team_read_permission,
)

__all__ = [
    "UNIQUE_ID",
    "AppwriteAPIError",
    "AppwriteClient",
    "team_owner_write_permission",
    "team_read_permission",
]
