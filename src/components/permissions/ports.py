"""
Permissions component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import Organization


class OrganizationRepoPort(Protocol):
    """Repository interface for organizations and their permissions."""

    def get_by_id(self, organization_id: str) -> Organization | None:
        """Get organization by ID."""
        ...

    def save(self, organization: Organization) -> Organization:
        """Save or update organization."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
