"""
Visibility component - Read access resolution.

Decides whether a principal (or an anonymous caller) may read an entity.
Status rules and visibility rules are both evaluated and combined with AND.

Status rules:
- superadmin reads everything, in any status
- deleted: only the owning org_admin asking for the deleted view
- draft / pending / archived: only members of the owning organization
- published: no status restriction

Visibility rules:
- public: anyone, including anonymous callers
- authenticated: any principal
- members: principals of the owning organization

Entities a caller may not read are reported as not found, never as denied,
so their existence does not leak across tenants.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from src.domain.entities import Entity, EntityStatus, Principal, VisibilityScope
from src.domain.errors import NotFound

from .models import (
    ListReadableInput,
    ListReadableOutput,
    ReadEntityInput,
    ReadEntityOutput,
    VisibilityValidationError,
)
from .ports import EntityReaderPort

_UNPUBLISHED: frozenset[str] = frozenset({"draft", "pending", "archived"})


class Readable(Protocol):
    """Anything carrying the attributes visibility depends on."""

    organization_id: str | None
    visibility: VisibilityScope
    status: EntityStatus


def _is_owner(principal: Principal | None, entity: Readable) -> bool:
    if principal is None or entity.organization_id is None:
        return False
    return principal.organization_id == entity.organization_id


def _status_allows(
    principal: Principal | None, entity: Readable, include_deleted: bool
) -> bool:
    if entity.status == "deleted":
        return (
            include_deleted
            and principal is not None
            and principal.role == "org_admin"
            and _is_owner(principal, entity)
        )
    if entity.status in _UNPUBLISHED:
        return _is_owner(principal, entity)
    return entity.status == "published"


def _visibility_allows(principal: Principal | None, entity: Readable) -> bool:
    if entity.visibility == "public":
        return True
    if entity.visibility == "authenticated":
        return principal is not None
    if entity.visibility == "members":
        return _is_owner(principal, entity)
    # Unknown visibility value: deny
    return False


def can_read(
    principal: Principal | None,
    entity: Readable,
    *,
    include_deleted: bool = False,
) -> bool:
    """Whether the principal may read the entity."""
    if principal is not None and principal.is_superadmin:
        return True
    return _status_allows(principal, entity, include_deleted) and _visibility_allows(
        principal, entity
    )


def require_readable(
    principal: Principal | None,
    entity: Entity | None,
    *,
    entity_id: str | None = None,
    include_deleted: bool = False,
) -> Entity:
    """Return the entity, or raise NotFound if it is absent or hidden."""
    if entity is None or not can_read(principal, entity, include_deleted=include_deleted):
        raise NotFound("Entity", entity_id or (entity.id if entity else None))
    return entity


def filter_readable(
    principal: Principal | None,
    entities: Iterable[Entity],
    *,
    include_deleted: bool = False,
) -> list[Entity]:
    return [e for e in entities if can_read(principal, e, include_deleted=include_deleted)]


# --- Component Entry Points ---


def run_read(inp: ReadEntityInput, *, repo: EntityReaderPort) -> ReadEntityOutput:
    """Read one entity through the visibility rules."""
    try:
        entity = require_readable(
            inp.principal,
            repo.get_by_id(inp.entity_id),
            entity_id=inp.entity_id,
            include_deleted=inp.include_deleted,
        )
    except NotFound as e:
        return ReadEntityOutput(
            entity=None,
            errors=[VisibilityValidationError(code=e.kind, message=e.message)],
            success=False,
        )
    return ReadEntityOutput(entity=entity)


def run_list(inp: ListReadableInput, *, repo: EntityReaderPort) -> ListReadableOutput:
    """List readable entities, optionally narrowed by type, organization and status."""
    filters: dict[str, Any] = {}
    if inp.entity_type_id is not None:
        filters["entity_type_id"] = inp.entity_type_id
    if inp.organization_id is not None:
        filters["organization_id"] = inp.organization_id
    if inp.status is not None:
        filters["status"] = inp.status

    items = filter_readable(
        inp.principal, repo.list_entities(filters), include_deleted=inp.include_deleted
    )
    return ListReadableOutput(items=items, total=len(items))
