"""
Entity API Routes.

Mutations go through EntityLifecycleService; lifecycle errors are mapped to
HTTP responses by the application's exception handler. Reads go through the
visibility rules, so hidden entities answer 404.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.api.deps import (
    get_current_principal,
    get_entity_repo,
    get_lifecycle_service,
    get_optional_principal,
)
from src.api.schemas import (
    AllowedActionsResponse,
    DuplicateCheckResponse,
    DuplicateMatchResponse,
    EntityCreateRequest,
    EntityListResponse,
    EntityMutationResponse,
    EntityResponse,
    EntityTransitionRequest,
    EntityUpdateRequest,
    PurgeResponse,
    TransitionRecordResponse,
    WarningResponse,
)
from src.components.lifecycle import EntityLifecycleService, MutationResult
from src.components.uniqueness import DuplicateMatch, UniquenessScope, check_duplicates
from src.components.visibility import ListReadableInput, can_read, require_readable, run_list
from src.domain.entities import EntityStatus, Principal

router = APIRouter()


def _mutation_response(result: MutationResult) -> EntityMutationResponse:
    return EntityMutationResponse(
        entity=EntityResponse.from_entity(result.entity) if result.entity else None,
        record=TransitionRecordResponse.from_record(result.record),
        warnings=[WarningResponse.from_warning(w) for w in result.warnings],
    )


def _match_response(
    principal: Principal, match: DuplicateMatch | None, repo: Any
) -> DuplicateMatchResponse | None:
    if match is None:
        return None
    entity = repo.get_by_id(match.entity_id)
    if entity is None or not can_read(principal, entity, include_deleted=True):
        return DuplicateMatchResponse()
    return DuplicateMatchResponse(entity_id=match.entity_id, name=match.name, slug=match.slug)


@router.get("", response_model=EntityListResponse)
def list_entities(
    entity_type_id: str | None = None,
    organization_id: str | None = None,
    status: EntityStatus | None = None,
    include_deleted: bool = False,
    principal: Principal | None = Depends(get_optional_principal),
    repo: Any = Depends(get_entity_repo),
) -> EntityListResponse:
    """List entities the caller may read."""
    result = run_list(
        ListReadableInput(
            principal=principal,
            entity_type_id=entity_type_id,
            organization_id=organization_id,
            status=status,
            include_deleted=include_deleted,
        ),
        repo=repo,
    )
    return EntityListResponse(
        items=[EntityResponse.from_entity(e) for e in result.items], total=result.total
    )


@router.get("/duplicates", response_model=DuplicateCheckResponse)
def find_duplicates(
    entity_type_id: str,
    name: str | None = None,
    slug: str | None = None,
    organization_id: str | None = None,
    exclude_id: str | None = None,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_entity_repo),
) -> DuplicateCheckResponse:
    """Precheck a candidate name/slug in the caller's scope."""
    scope_org = organization_id if principal.is_superadmin else principal.organization_id
    result = check_duplicates(
        UniquenessScope(scope_org, entity_type_id), name, slug, exclude_id, index=repo
    )
    return DuplicateCheckResponse(
        name_match=_match_response(principal, result.name_match, repo),
        slug_match=_match_response(principal, result.slug_match, repo),
    )


@router.post("", response_model=EntityMutationResponse, status_code=201)
def create_entity(
    req: EntityCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: EntityLifecycleService = Depends(get_lifecycle_service),
) -> EntityMutationResponse:
    """Create an entity in draft."""
    result = service.create(
        principal,
        entity_type_id=req.entity_type_id,
        name=req.name,
        slug=req.slug,
        organization_id=req.organization_id,
        visibility=req.visibility,
        data=req.data,
    )
    return _mutation_response(result)


@router.get("/{entity_id}", response_model=EntityResponse)
def get_entity(
    entity_id: str,
    include_deleted: bool = False,
    principal: Principal | None = Depends(get_optional_principal),
    repo: Any = Depends(get_entity_repo),
) -> EntityResponse:
    entity = require_readable(
        principal, repo.get_by_id(entity_id), entity_id=entity_id, include_deleted=include_deleted
    )
    return EntityResponse.from_entity(entity)


@router.patch("/{entity_id}", response_model=EntityMutationResponse)
def update_entity(
    entity_id: str,
    req: EntityUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: EntityLifecycleService = Depends(get_lifecycle_service),
) -> EntityMutationResponse:
    """Edit a draft."""
    result = service.update(
        principal,
        entity_id,
        name=req.name,
        slug=req.slug,
        visibility=req.visibility,
        data=req.data,
        expected_version=req.expected_version,
    )
    return _mutation_response(result)


@router.post("/{entity_id}/transitions", response_model=EntityMutationResponse)
def transition_entity(
    entity_id: str,
    req: EntityTransitionRequest,
    principal: Principal = Depends(get_current_principal),
    service: EntityLifecycleService = Depends(get_lifecycle_service),
) -> EntityMutationResponse:
    """Apply a lifecycle action."""
    result = service.transition(
        principal,
        entity_id,
        req.action,
        expected_version=req.expected_version,
        feedback=req.feedback,
    )
    return _mutation_response(result)


@router.delete("/{entity_id}/purge", response_model=PurgeResponse)
def purge_entity(
    entity_id: str,
    expected_version: int | None = None,
    principal: Principal = Depends(get_current_principal),
    service: EntityLifecycleService = Depends(get_lifecycle_service),
) -> PurgeResponse:
    """Permanently remove an entity and every stored version."""
    result = service.super_delete(principal, entity_id, expected_version=expected_version)
    return PurgeResponse(
        record=TransitionRecordResponse.from_record(result.record),
        versions_removed=result.versions_removed,
    )


@router.get("/{entity_id}/actions", response_model=AllowedActionsResponse)
def get_allowed_actions(
    entity_id: str,
    principal: Principal = Depends(get_current_principal),
    repo: Any = Depends(get_entity_repo),
    service: EntityLifecycleService = Depends(get_lifecycle_service),
) -> AllowedActionsResponse:
    require_readable(principal, repo.get_by_id(entity_id), entity_id=entity_id, include_deleted=True)
    return AllowedActionsResponse(
        entity_id=entity_id, actions=service.allowed_actions(principal, entity_id)
    )


@router.get("/{entity_id}/versions/{version}", response_model=EntityResponse)
def get_entity_version(
    entity_id: str,
    version: int,
    principal: Principal | None = Depends(get_optional_principal),
    repo: Any = Depends(get_entity_repo),
) -> EntityResponse:
    """Read a stored historical version.

    Both the latest version and the requested snapshot must be readable.
    """
    require_readable(principal, repo.get_by_id(entity_id), entity_id=entity_id, include_deleted=True)
    snapshot = require_readable(
        principal,
        repo.get_version(entity_id, version),
        entity_id=f"{entity_id}@{version}",
        include_deleted=True,
    )
    return EntityResponse.from_entity(snapshot)
