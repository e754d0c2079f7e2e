"""Appwrite function that provisions multi-tenant workspaces.

This package implements the create-workspace function:
- Trigger and session verification for the calling user
- Request parsing, sanitization and workspace name validation
- Team creation as the workspace's tenant boundary
- Workspace document creation with team-scoped permissions, rolling
  back the team if the document cannot be written
- Best-effort data collection setup and welcome webhook
"""
