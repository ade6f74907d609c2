"""
Lifecycle component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import (
    Entity,
    EntityAction,
    Principal,
    TransitionRecord,
    VisibilityScope,
)
from src.domain.errors import DuplicateNameWarning

# --- Validation Error ---


@dataclass(frozen=True)
class LifecycleValidationError:
    """Typed lifecycle failure; code is the error kind."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreateEntityInput:
    """
    Input for creating an entity in draft.

    organization_id None means the principal's own organization, or the
    global scope when the principal is a superadmin. slug defaults to one
    derived from name.
    """

    principal: Principal
    entity_type_id: str
    name: str
    slug: str | None = None
    organization_id: str | None = None
    visibility: VisibilityScope | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateEntityInput:
    """Input for editing a draft. None leaves a field unchanged."""

    principal: Principal
    entity_id: str
    name: str | None = None
    slug: str | None = None
    visibility: VisibilityScope | None = None
    data: dict[str, Any] | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class TransitionEntityInput:
    """Input for a status transition."""

    principal: Principal
    entity_id: str
    action: EntityAction | str
    expected_version: int | None = None
    feedback: str | None = None


@dataclass(frozen=True)
class PurgeEntityInput:
    """Input for the irreversible hard purge."""

    principal: Principal
    entity_id: str
    expected_version: int | None = None


@dataclass(frozen=True)
class AllowedActionsInput:
    principal: Principal
    entity_id: str


@dataclass(frozen=True)
class GetVersionInput:
    principal: Principal | None
    entity_id: str
    version: int


# --- Output Models ---


@dataclass(frozen=True)
class EntityOperationOutput:
    """Output for create, update and transition."""

    entity: Entity | None = None
    record: TransitionRecord | None = None
    warnings: list[DuplicateNameWarning] = field(default_factory=list)
    errors: list[LifecycleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PurgeOutput:
    record: TransitionRecord | None = None
    versions_removed: int = 0
    errors: list[LifecycleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class AllowedActionsOutput:
    actions: list[str] = field(default_factory=list)
    errors: list[LifecycleValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class EntityVersionOutput:
    entity: Entity | None = None
    errors: list[LifecycleValidationError] = field(default_factory=list)
    success: bool = True
