"""
Visibility component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import Entity, EntityStatus, Principal


@dataclass(frozen=True)
class VisibilityValidationError:
    """Read-path error. Hidden and absent entities both report not_found."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ReadEntityInput:
    """Input for reading one entity. principal is None for anonymous callers."""

    entity_id: str
    principal: Principal | None = None
    include_deleted: bool = False


@dataclass(frozen=True)
class ListReadableInput:
    """Input for listing the entities a principal may read."""

    principal: Principal | None = None
    entity_type_id: str | None = None
    organization_id: str | None = None
    status: EntityStatus | None = None
    include_deleted: bool = False


@dataclass(frozen=True)
class ReadEntityOutput:
    entity: Entity | None
    errors: list[VisibilityValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ListReadableOutput:
    items: list[Entity] = field(default_factory=list)
    total: int = 0
    errors: list[VisibilityValidationError] = field(default_factory=list)
    success: bool = True
