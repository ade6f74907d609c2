"""
Lifecycle component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from src.domain.entities import Entity, EntityType, Organization


class EntityRepoPort(Protocol):
    """
    Durable entity storage keyed by entity id.

    insert and compare_and_write are atomic. Both enforce slug uniqueness per
    (organization_id or global, entity_type_id) and raise DuplicateSlug on a
    collision; compare_and_write raises VersionConflict when the stored
    version differs from expected_version.
    """

    def get_by_id(self, entity_id: str) -> Entity | None:
        """Get the latest version of an entity."""
        ...

    def get_version(self, entity_id: str, version: int) -> Entity | None:
        """Get a stored historical version."""
        ...

    def list_in_scope(self, organization_id: str | None, entity_type_id: str) -> list[Entity]:
        """List latest versions in one uniqueness scope, in creation order."""
        ...

    def list_entities(self, filters: dict[str, Any]) -> list[Entity]:
        """List latest versions matching equality filters, in creation order."""
        ...

    def insert(self, entity: Entity) -> Entity:
        """Store a new entity at version 1."""
        ...

    def compare_and_write(self, entity: Entity, expected_version: int) -> Entity:
        """Store entity as the new latest version if the stored version matches."""
        ...

    def purge(self, entity_id: str) -> int:
        """Permanently remove every version. Returns the number removed."""
        ...


class OrganizationReaderPort(Protocol):
    """Organization lookup for type-level permission checks."""

    def get_by_id(self, organization_id: str) -> Organization | None:
        """Get organization by ID."""
        ...


class EntityTypeReaderPort(Protocol):
    """Entity type lookup."""

    def get_by_id(self, entity_type_id: str) -> EntityType | None:
        """Get entity type by ID."""
        ...


class SchemaValidatorPort(Protocol):
    """Field schema validation against the entity's type."""

    def validate(self, entity: Entity) -> list[str]:
        """Full validation including required fields."""
        ...

    def validate_partial(self, entity_type_id: str, data: dict[str, Any]) -> list[str]:
        """Validate only the supplied field values."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
