"""
Visibility component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol

from src.domain.entities import Entity


class EntityReaderPort(Protocol):
    """Read-only view of the entity repository."""

    def get_by_id(self, entity_id: str) -> Entity | None:
        """Get the latest version of an entity."""
        ...

    def list_entities(self, filters: dict[str, Any]) -> list[Entity]:
        """List latest versions matching equality filters, in storage order."""
        ...
