"""
Permissions component - Entity type permission matrix.

Answers whether an organization may view or create entities of a type, and
manages the per-organization viewable/creatable sets.

Invariants:
- Both checks default to False (fail-closed)
- creatable is a subset of viewable at all times
- Only superadmin may change an organization's permissions
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from src.domain.entities import Organization, Principal
from src.domain.errors import LifecycleError, NotFound, Unauthorized

from ._impl import (
    can_create,
    can_view,
    grant_create,
    grant_view,
    revoke_create,
    revoke_view,
    set_permissions,
)
from .models import (
    CheckPermissionInput,
    CheckPermissionOutput,
    GrantPermissionInput,
    PermissionsOperationOutput,
    PermissionValidationError,
    SetPermissionsInput,
)
from .ports import OrganizationRepoPort, TimePort

logger = logging.getLogger(__name__)


def _now(time: TimePort | None) -> datetime:
    return time.now_utc() if time else datetime.now(UTC)


def _error_output(error: LifecycleError) -> PermissionsOperationOutput:
    return PermissionsOperationOutput(
        organization=None,
        errors=[PermissionValidationError(code=error.kind, message=error.message, field=error.field)],
        success=False,
    )


def _load_for_update(
    principal: Principal, organization_id: str, repo: OrganizationRepoPort
) -> Organization:
    if not principal.is_superadmin:
        raise Unauthorized("Only superadmins can change organization permissions")
    organization = repo.get_by_id(organization_id)
    if organization is None:
        raise NotFound("Organization", organization_id)
    return organization


# --- Component Entry Points ---


def run_check(
    inp: CheckPermissionInput,
    *,
    repo: OrganizationRepoPort,
) -> CheckPermissionOutput:
    """Resolve view/create access of an organization for one entity type."""
    organization = repo.get_by_id(inp.organization_id) if inp.organization_id else None
    return CheckPermissionOutput(
        can_view=can_view(organization, inp.entity_type_id),
        can_create=can_create(organization, inp.entity_type_id),
    )


def run_set_permissions(
    inp: SetPermissionsInput,
    *,
    repo: OrganizationRepoPort,
    time: TimePort | None = None,
) -> PermissionsOperationOutput:
    """Replace an organization's viewable and creatable sets."""
    try:
        organization = _load_for_update(inp.principal, inp.organization_id, repo)
    except LifecycleError as e:
        logger.warning("Permission update rejected (%s) for org %s", e.kind, inp.organization_id)
        return _error_output(e)

    updated = set_permissions(
        organization, inp.viewable_type_ids, inp.creatable_type_ids, now=_now(time)
    )
    saved = repo.save(updated)
    logger.info(
        "Permissions set for org %s by %s: view=%d create=%d",
        saved.id,
        inp.principal.user_id,
        len(saved.permissions.viewable_type_ids),
        len(saved.permissions.creatable_type_ids),
    )
    return PermissionsOperationOutput(organization=saved)


def run_grant(
    inp: GrantPermissionInput,
    *,
    repo: OrganizationRepoPort,
    time: TimePort | None = None,
) -> PermissionsOperationOutput:
    """Grant view (or create, which implies view) on one entity type."""
    try:
        organization = _load_for_update(inp.principal, inp.organization_id, repo)
    except LifecycleError as e:
        return _error_output(e)

    grant = grant_create if inp.create else grant_view
    saved = repo.save(grant(organization, inp.entity_type_id, now=_now(time)))
    return PermissionsOperationOutput(organization=saved)


def run_revoke(
    inp: GrantPermissionInput,
    *,
    repo: OrganizationRepoPort,
    time: TimePort | None = None,
) -> PermissionsOperationOutput:
    """Revoke create only (create=True) or view together with create."""
    try:
        organization = _load_for_update(inp.principal, inp.organization_id, repo)
    except LifecycleError as e:
        return _error_output(e)

    revoke = revoke_create if inp.create else revoke_view
    saved = repo.save(revoke(organization, inp.entity_type_id, now=_now(time)))
    return PermissionsOperationOutput(organization=saved)
