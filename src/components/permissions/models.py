"""
Permissions component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.entities import Organization, Principal


@dataclass(frozen=True)
class PermissionValidationError:
    """Permission operation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CheckPermissionInput:
    """Input for checking type-level access for an organization."""

    organization_id: str | None
    entity_type_id: str


@dataclass(frozen=True)
class SetPermissionsInput:
    """Input for replacing an organization's permission sets."""

    principal: Principal
    organization_id: str
    viewable_type_ids: frozenset[str] = frozenset()
    creatable_type_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class GrantPermissionInput:
    """Input for granting or revoking one type for an organization."""

    principal: Principal
    organization_id: str
    entity_type_id: str
    create: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class CheckPermissionOutput:
    """Resolved type-level access."""

    can_view: bool
    can_create: bool
    errors: list[PermissionValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PermissionsOperationOutput:
    """Output for permission updates."""

    organization: Organization | None = None
    errors: list[PermissionValidationError] = field(default_factory=list)
    success: bool = True
