"""
Lifecycle error taxonomy.

Every guard failure is raised as a LifecycleError subclass before any write
happens. The `kind` attribute is the stable identifier callers switch on;
exception classes exist so services can raise and components can catch them.

DuplicateNameWarning is not an error: it never blocks a write and is returned
alongside a successful result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class LifecycleError(Exception):
    """Base class for all typed lifecycle failures."""

    kind: str = "LifecycleError"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(message)


class Unauthorized(LifecycleError):
    """Role insufficient for the requested action."""

    kind = "Unauthorized"


class CrossTenantAccessDenied(LifecycleError):
    """Principal's organization does not own the entity."""

    kind = "CrossTenantAccessDenied"


class InvalidTransition(LifecycleError):
    """Action is not defined for the entity's current status."""

    kind = "InvalidTransition"

    def __init__(self, action: str, from_status: str | None, allowed: list[str]) -> None:
        self.action = action
        self.from_status = from_status
        self.allowed = allowed
        super().__init__(
            f"Cannot {action} an entity with status '{from_status}'. "
            f"Allowed actions: {', '.join(allowed) if allowed else 'none'}",
            field="status",
            details={"action": action, "from_status": from_status, "allowed": allowed},
        )


class DuplicateSlug(LifecycleError):
    """Slug already used by another entity in the same scope."""

    kind = "DuplicateSlug"

    def __init__(self, slug: str, existing_id: str | None = None) -> None:
        self.slug = slug
        self.existing_id = existing_id
        super().__init__(
            f"Slug '{slug}' is already in use",
            field="slug",
            details={"slug": slug, "existing_id": existing_id},
        )


class NotFound(LifecycleError):
    """Entity absent, or hidden from this principal."""

    kind = "NotFound"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        message = (
            f"{resource} with ID '{resource_id}' not found"
            if resource_id
            else f"{resource} not found"
        )
        super().__init__(message)


class VersionConflict(LifecycleError):
    """Stored version no longer matches the expected version."""

    kind = "VersionConflict"

    def __init__(self, entity_id: str, expected: int, actual: int | None) -> None:
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Entity '{entity_id}' expected version {expected}, found {actual}",
            field="version",
            details={"expected": expected, "actual": actual},
        )


class MalformedPrincipal(LifecycleError):
    """Principal payload does not describe a recognized identity."""

    kind = "MalformedPrincipal"


class SchemaValidationFailed(LifecycleError):
    """Entity values violate the entity type's field schema."""

    kind = "SchemaValidationFailed"

    def __init__(self, message: str, errors: list[str] | None = None, field: str | None = None) -> None:
        self.errors = errors or []
        super().__init__(message, field=field, details={"fields": self.errors})


class PurgeFailed(LifecycleError):
    """Hard purge could not remove every stored version."""

    kind = "PurgeFailed"


@dataclass(frozen=True)
class DuplicateNameWarning:
    """Another entity in the same scope already uses this name."""

    name: str
    existing_id: str
    kind: str = "DuplicateNameWarning"

    @property
    def message(self) -> str:
        return f"Name '{self.name}' is already used by entity '{self.existing_id}'"
