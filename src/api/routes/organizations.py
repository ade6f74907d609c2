"""
Organization permission routes.

Reads are open to members of the organization and superadmins; changes are
superadmin-only and enforced by the permissions component.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_clock, get_current_principal, get_organization_repo
from src.api.errors import STATUS_BY_KIND
from src.api.schemas import (
    OrganizationPermissionsResponse,
    PermissionCheckResponse,
    PermissionGrantRequest,
    PermissionsUpdateRequest,
)
from src.components.permissions import (
    CheckPermissionInput,
    GrantPermissionInput,
    PermissionsOperationOutput,
    SetPermissionsInput,
    run_check,
    run_grant,
    run_revoke,
    run_set_permissions,
)
from src.domain.entities import Principal

router = APIRouter()


def _require_member_or_superadmin(principal: Principal, organization_id: str) -> None:
    if not principal.is_superadmin and principal.organization_id != organization_id:
        # Do not reveal other tenants' organizations
        raise HTTPException(status_code=404, detail="Organization not found")


def _operation_response(result: PermissionsOperationOutput) -> OrganizationPermissionsResponse:
    if not result.success or result.organization is None:
        error = result.errors[0]
        raise HTTPException(
            status_code=STATUS_BY_KIND.get(error.code, 400),
            detail={"code": error.code, "message": error.message},
        )
    return OrganizationPermissionsResponse.from_organization(result.organization)


@router.get("/{organization_id}/permissions", response_model=OrganizationPermissionsResponse)
def get_permissions(
    organization_id: str,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_organization_repo),
) -> OrganizationPermissionsResponse:
    _require_member_or_superadmin(principal, organization_id)
    organization = repo.get_by_id(organization_id)
    if organization is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return OrganizationPermissionsResponse.from_organization(organization)


@router.get(
    "/{organization_id}/permissions/{entity_type_id}", response_model=PermissionCheckResponse
)
def check_permission(
    organization_id: str,
    entity_type_id: str,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_organization_repo),
) -> PermissionCheckResponse:
    _require_member_or_superadmin(principal, organization_id)
    result = run_check(
        CheckPermissionInput(organization_id=organization_id, entity_type_id=entity_type_id),
        repo=repo,
    )
    return PermissionCheckResponse(
        organization_id=organization_id,
        entity_type_id=entity_type_id,
        can_view=result.can_view,
        can_create=result.can_create,
    )


@router.put("/{organization_id}/permissions", response_model=OrganizationPermissionsResponse)
def set_permissions(
    organization_id: str,
    req: PermissionsUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_organization_repo),
    clock: Any = Depends(get_clock),
) -> OrganizationPermissionsResponse:
    """Replace both permission sets. Creatable types are added to viewable."""
    result = run_set_permissions(
        SetPermissionsInput(
            principal=principal,
            organization_id=organization_id,
            viewable_type_ids=frozenset(req.viewable_type_ids),
            creatable_type_ids=frozenset(req.creatable_type_ids),
        ),
        repo=repo,
        time=clock,
    )
    return _operation_response(result)


@router.post("/{organization_id}/permissions/grant", response_model=OrganizationPermissionsResponse)
def grant_permission(
    organization_id: str,
    req: PermissionGrantRequest,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_organization_repo),
    clock: Any = Depends(get_clock),
) -> OrganizationPermissionsResponse:
    result = run_grant(
        GrantPermissionInput(
            principal=principal,
            organization_id=organization_id,
            entity_type_id=req.entity_type_id,
            create=req.create,
        ),
        repo=repo,
        time=clock,
    )
    return _operation_response(result)


@router.post(
    "/{organization_id}/permissions/revoke", response_model=OrganizationPermissionsResponse
)
def revoke_permission(
    organization_id: str,
    req: PermissionGrantRequest,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_organization_repo),
    clock: Any = Depends(get_clock),
) -> OrganizationPermissionsResponse:
    """Revoke create only, or view (which also revokes create)."""
    result = run_revoke(
        GrantPermissionInput(
            principal=principal,
            organization_id=organization_id,
            entity_type_id=req.entity_type_id,
            create=req.create,
        ),
        repo=repo,
        time=clock,
    )
    return _operation_response(result)
