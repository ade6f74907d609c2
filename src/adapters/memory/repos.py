"""
In-memory repositories.

InMemoryEntityRepo keeps every stored version of every entity. Writes take a
single lock so the version check, the scope+slug check and the write happen
as one step.
"""

import logging
import threading
from typing import Any

from src.domain.entities import Entity, EntityType, Organization
from src.domain.errors import DuplicateSlug, VersionConflict

logger = logging.getLogger(__name__)

ScopeKey = tuple[str, str, str]


def _scope_key(entity: Entity) -> ScopeKey:
    return (entity.organization_id or "", entity.entity_type_id, entity.slug.strip().lower())


class InMemoryEntityRepo:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._versions: dict[str, list[Entity]] = {}
        self._slugs: dict[ScopeKey, str] = {}

    def _latest(self, entity_id: str) -> Entity | None:
        versions = self._versions.get(entity_id)
        return versions[-1] if versions else None

    def _claim_slug(self, entity: Entity) -> None:
        key = _scope_key(entity)
        holder = self._slugs.get(key)
        if holder is not None and holder != entity.id:
            logger.warning(
                "Slug conflict at write time for %s (held by %s)", entity.slug, holder
            )
            raise DuplicateSlug(entity.slug, existing_id=holder)

    def get_by_id(self, entity_id: str) -> Entity | None:
        with self._lock:
            return self._latest(entity_id)

    def get_version(self, entity_id: str, version: int) -> Entity | None:
        with self._lock:
            for stored in self._versions.get(entity_id, []):
                if stored.version == version:
                    return stored
            return None

    def list_versions(self, entity_id: str) -> list[Entity]:
        with self._lock:
            return list(self._versions.get(entity_id, []))

    def list_in_scope(self, organization_id: str | None, entity_type_id: str) -> list[Entity]:
        with self._lock:
            return [
                versions[-1]
                for versions in self._versions.values()
                if versions[-1].organization_id == organization_id
                and versions[-1].entity_type_id == entity_type_id
            ]

    def list_entities(self, filters: dict[str, Any]) -> list[Entity]:
        with self._lock:
            latest = [versions[-1] for versions in self._versions.values()]
        return [
            e for e in latest if all(getattr(e, key) == value for key, value in filters.items())
        ]

    def insert(self, entity: Entity) -> Entity:
        with self._lock:
            if entity.id in self._versions:
                raise VersionConflict(entity.id, 0, self._versions[entity.id][-1].version)
            self._claim_slug(entity)
            self._versions[entity.id] = [entity]
            self._slugs[_scope_key(entity)] = entity.id
        logger.debug("Inserted entity %s", entity.id)
        return entity

    def compare_and_write(self, entity: Entity, expected_version: int) -> Entity:
        with self._lock:
            current = self._latest(entity.id)
            actual = current.version if current else None
            if current is None or current.version != expected_version:
                raise VersionConflict(entity.id, expected_version, actual)
            self._claim_slug(entity)

            old_key = _scope_key(current)
            new_key = _scope_key(entity)
            if old_key != new_key:
                self._slugs.pop(old_key, None)
                self._slugs[new_key] = entity.id
            self._versions[entity.id].append(entity)
        logger.debug("Wrote entity %s v%d", entity.id, entity.version)
        return entity

    def purge(self, entity_id: str) -> int:
        with self._lock:
            versions = self._versions.pop(entity_id, [])
            if versions:
                self._slugs.pop(_scope_key(versions[-1]), None)
        logger.debug("Purged entity %s (%d versions)", entity_id, len(versions))
        return len(versions)


class InMemoryOrganizationRepo:
    def __init__(self, organizations: list[Organization] | None = None) -> None:
        self._orgs: dict[str, Organization] = {o.id: o for o in organizations or []}

    def get_by_id(self, organization_id: str) -> Organization | None:
        return self._orgs.get(organization_id)

    def save(self, organization: Organization) -> Organization:
        self._orgs[organization.id] = organization
        return organization

    def list_all(self) -> list[Organization]:
        return list(self._orgs.values())


class InMemoryEntityTypeRepo:
    def __init__(self, entity_types: list[EntityType] | None = None) -> None:
        self._types: dict[str, EntityType] = {t.id: t for t in entity_types or []}

    def get_by_id(self, entity_type_id: str) -> EntityType | None:
        return self._types.get(entity_type_id)

    def save(self, entity_type: EntityType) -> EntityType:
        self._types[entity_type.id] = entity_type
        return entity_type

    def list_all(self) -> list[EntityType]:
        return list(self._types.values())
