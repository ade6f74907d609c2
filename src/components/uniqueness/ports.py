"""
Uniqueness component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Entity


class ScopedEntityIndexPort(Protocol):
    """Scoped listing used for duplicate prechecks."""

    def list_in_scope(self, organization_id: str | None, entity_type_id: str) -> list[Entity]:
        """
        List latest versions of every entity in the scope, any status.

        organization_id None selects global entities only. Order is stable
        (creation order) so repeated scans see candidates in the same order.
        """
        ...
