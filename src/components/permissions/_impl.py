"""
Permission matrix - per-organization entity type access.

Both checks are fail-closed: an unknown organization, a missing organization
or an ungranted type yields False. creatable is kept a subset of viewable by
OrganizationPermissions itself, so can_create implies can_view for every
organization/type pair.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from src.domain.entities import Organization, OrganizationPermissions


def can_view(organization: Organization | None, entity_type_id: str) -> bool:
    if organization is None or not organization.is_active:
        return False
    return entity_type_id in organization.permissions.viewable_type_ids


def can_create(organization: Organization | None, entity_type_id: str) -> bool:
    if organization is None or not organization.is_active:
        return False
    perms = organization.permissions
    return (
        entity_type_id in perms.creatable_type_ids
        and entity_type_id in perms.viewable_type_ids
    )


def _with_permissions(
    organization: Organization,
    viewable: Iterable[str],
    creatable: Iterable[str],
    now: datetime | None,
) -> Organization:
    permissions = OrganizationPermissions(
        viewable_type_ids=frozenset(viewable),
        creatable_type_ids=frozenset(creatable),
    )
    return organization.model_copy(
        update={"permissions": permissions, "updated_at": now or datetime.now(UTC)}
    )


def set_permissions(
    organization: Organization,
    viewable: Iterable[str],
    creatable: Iterable[str],
    now: datetime | None = None,
) -> Organization:
    """Replace both sets. Creatable types missing from viewable are added to it."""
    return _with_permissions(organization, viewable, creatable, now)


def grant_view(
    organization: Organization, entity_type_id: str, now: datetime | None = None
) -> Organization:
    perms = organization.permissions
    return _with_permissions(
        organization,
        perms.viewable_type_ids | {entity_type_id},
        perms.creatable_type_ids,
        now,
    )


def grant_create(
    organization: Organization, entity_type_id: str, now: datetime | None = None
) -> Organization:
    perms = organization.permissions
    return _with_permissions(
        organization,
        perms.viewable_type_ids | {entity_type_id},
        perms.creatable_type_ids | {entity_type_id},
        now,
    )


def revoke_create(
    organization: Organization, entity_type_id: str, now: datetime | None = None
) -> Organization:
    perms = organization.permissions
    return _with_permissions(
        organization,
        perms.viewable_type_ids,
        perms.creatable_type_ids - {entity_type_id},
        now,
    )


def revoke_view(
    organization: Organization, entity_type_id: str, now: datetime | None = None
) -> Organization:
    """Revoke view access; create access for the type goes with it."""
    perms = organization.permissions
    return _with_permissions(
        organization,
        perms.viewable_type_ids - {entity_type_id},
        perms.creatable_type_ids - {entity_type_id},
        now,
    )


class PermissionMatrix:
    """
    Lookup over organizations supplied by the caller.

    Holds no process-wide state: build one per request from the organizations
    the request loaded.
    """

    def __init__(self, organizations: Iterable[Organization] | Mapping[str, Organization]) -> None:
        if isinstance(organizations, Mapping):
            self._orgs = dict(organizations)
        else:
            self._orgs = {org.id: org for org in organizations}

    def get(self, organization_id: str | None) -> Organization | None:
        if organization_id is None:
            return None
        return self._orgs.get(organization_id)

    def can_view(self, organization_id: str | None, entity_type_id: str) -> bool:
        return can_view(self.get(organization_id), entity_type_id)

    def can_create(self, organization_id: str | None, entity_type_id: str) -> bool:
        return can_create(self.get(organization_id), entity_type_id)

    def viewable_type_ids(self, organization_id: str | None) -> frozenset[str]:
        org = self.get(organization_id)
        if org is None or not org.is_active:
            return frozenset()
        return org.permissions.viewable_type_ids
