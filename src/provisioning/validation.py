"""Workspace name rules and slug derivation."""

import re
from typing import Optional

from src.provisioning.errors import RequestValidationError
from src.provisioning.models import WorkspacePlan

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

_NAME_PATTERN = re.compile(r"[A-Za-z0-9 _-]+")
_SLUG_SEPARATOR = re.compile(r"[^a-z0-9]+")


def validate_workspace_name(name: str) -> str:
    """Apply the business rules for a sanitized workspace name.

    Args:
        name: The sanitized workspace name.

    Returns:
        The name, unchanged.

    Raises:
        RequestValidationError: With ``field="name"`` if the name is empty,
            outside the allowed length, or uses disallowed characters.
    """
    if not name:
        raise RequestValidationError("Workspace name is required", field="name")

    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise RequestValidationError(
            f"Workspace name must be between {NAME_MIN_LENGTH} and "
            f"{NAME_MAX_LENGTH} characters",
            field="name",
        )

    if not _NAME_PATTERN.fullmatch(name):
        raise RequestValidationError(
            "Workspace name contains invalid characters", field="name"
        )

    return name


def resolve_plan(plan: Optional[str]) -> str:
    """Return the requested plan, or the free plan when none was given."""
    return plan or WorkspacePlan.FREE.value


def generate_slug(name: str) -> str:
    """Create a URL-friendly slug from a workspace name.

    Lower-cases the name, collapses every run of non-alphanumeric
    characters into one hyphen and trims hyphens from both ends.
    Uniqueness is left to the collection's unique index on ``slug``.

    Example:
        >>> generate_slug("My  Workspace!!")
        'my-workspace'
    """
    slug = _SLUG_SEPARATOR.sub("-", name.lower())
    return slug.strip("-")
