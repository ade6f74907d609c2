"""
Schema component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import EntityType


class EntityTypeRepoPort(Protocol):
    """Repository interface for entity type definitions."""

    def get_by_id(self, entity_type_id: str) -> EntityType | None:
        """Get entity type by ID."""
        ...

    def save(self, entity_type: EntityType) -> EntityType:
        """Save or update entity type."""
        ...
