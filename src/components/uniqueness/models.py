"""
Uniqueness component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UniquenessScope:
    """(organization, entity type) pair; organization None is the global scope."""

    organization_id: str | None
    entity_type_id: str


@dataclass(frozen=True)
class DuplicateMatch:
    """First entity in scope whose name or slug equals the candidate."""

    entity_id: str
    name: str
    slug: str


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Independent results: either, both or neither may be set."""

    name_match: DuplicateMatch | None = None
    slug_match: DuplicateMatch | None = None

    @property
    def has_slug_collision(self) -> bool:
        return self.slug_match is not None

    @property
    def has_name_collision(self) -> bool:
        return self.name_match is not None


@dataclass(frozen=True)
class UniquenessValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CheckDuplicatesInput:
    scope: UniquenessScope
    name: str | None = None
    slug: str | None = None
    exclude_entity_id: str | None = None


@dataclass(frozen=True)
class CheckDuplicatesOutput:
    result: DuplicateCheckResult
    errors: list[UniquenessValidationError] = field(default_factory=list)
    success: bool = True
