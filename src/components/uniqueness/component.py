"""
Uniqueness component - Name and slug duplicate detection.

Scans one scope for the first entity whose slug equals the candidate slug
and, independently, the first whose name equals the candidate name.
Comparison is trimmed and case-insensitive. The entity being edited is
excluded. Global and organization scopes are never compared.

This scan is a precheck for early, friendly errors. Slug uniqueness under
concurrent writers is enforced by the repository at write time.
"""

from __future__ import annotations

from .models import (
    CheckDuplicatesInput,
    CheckDuplicatesOutput,
    DuplicateCheckResult,
    DuplicateMatch,
    UniquenessScope,
)
from .ports import ScopedEntityIndexPort


def normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def check_duplicates(
    scope: UniquenessScope,
    name: str | None,
    slug: str | None,
    exclude_entity_id: str | None = None,
    *,
    index: ScopedEntityIndexPort,
) -> DuplicateCheckResult:
    """
    Find the first name match and the first slug match in scope.

    An empty or missing candidate is not searched for. The first entity in
    scope-iteration order wins; there is no "best match" ranking.
    """
    wanted_name = normalize(name)
    wanted_slug = normalize(slug)
    name_match: DuplicateMatch | None = None
    slug_match: DuplicateMatch | None = None

    for entity in index.list_in_scope(scope.organization_id, scope.entity_type_id):
        if exclude_entity_id is not None and entity.id == exclude_entity_id:
            continue
        # The index is trusted for ordering, not for scoping
        if (
            entity.organization_id != scope.organization_id
            or entity.entity_type_id != scope.entity_type_id
        ):
            continue

        if slug_match is None and wanted_slug and normalize(entity.slug) == wanted_slug:
            slug_match = DuplicateMatch(entity_id=entity.id, name=entity.name, slug=entity.slug)
        if name_match is None and wanted_name and normalize(entity.name) == wanted_name:
            name_match = DuplicateMatch(entity_id=entity.id, name=entity.name, slug=entity.slug)

        if (slug_match or not wanted_slug) and (name_match or not wanted_name):
            break

    return DuplicateCheckResult(name_match=name_match, slug_match=slug_match)


# --- Component Entry Points ---


def run_check(inp: CheckDuplicatesInput, *, index: ScopedEntityIndexPort) -> CheckDuplicatesOutput:
    """Check a candidate name/slug pair against one scope."""
    result = check_duplicates(
        inp.scope,
        inp.name,
        inp.slug,
        inp.exclude_entity_id,
        index=index,
    )
    return CheckDuplicatesOutput(result=result)
