"""
Lifecycle component - Entity create, edit, status transitions and hard purge.

Entry points wrap EntityLifecycleService: typed lifecycle failures become
errors on the output; anything else propagates to the caller unchanged.
"""

from __future__ import annotations

from src.components.visibility import require_readable
from src.domain.errors import LifecycleError, NotFound

from ._impl import EntityLifecycleService, LifecycleConfig
from .models import (
    AllowedActionsInput,
    AllowedActionsOutput,
    CreateEntityInput,
    EntityOperationOutput,
    EntityVersionOutput,
    GetVersionInput,
    LifecycleValidationError,
    PurgeEntityInput,
    PurgeOutput,
    TransitionEntityInput,
    UpdateEntityInput,
)
from .ports import (
    EntityRepoPort,
    EntityTypeReaderPort,
    OrganizationReaderPort,
    SchemaValidatorPort,
    TimePort,
)


def _to_error(error: LifecycleError) -> LifecycleValidationError:
    return LifecycleValidationError(code=error.kind, message=error.message, field=error.field)


def _service(
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None,
    config: LifecycleConfig | None,
    schema_validator: SchemaValidatorPort | None = None,
) -> EntityLifecycleService:
    return EntityLifecycleService(
        repo=repo,
        org_repo=org_repo,
        type_repo=type_repo,
        time=time,
        config=config,
        schema_validator=schema_validator,
    )


# --- Component Entry Points ---


def run_create(
    inp: CreateEntityInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None = None,
    config: LifecycleConfig | None = None,
) -> EntityOperationOutput:
    """
    Create an entity in draft.

    A duplicate name succeeds with a warning; a duplicate slug fails.
    """
    service = _service(repo, org_repo, type_repo, time, config)
    try:
        result = service.create(
            inp.principal,
            entity_type_id=inp.entity_type_id,
            name=inp.name,
            slug=inp.slug,
            organization_id=inp.organization_id,
            visibility=inp.visibility,
            data=dict(inp.data),
        )
    except LifecycleError as e:
        return EntityOperationOutput(errors=[_to_error(e)], success=False)

    return EntityOperationOutput(
        entity=result.entity, record=result.record, warnings=result.warnings
    )


def run_update(
    inp: UpdateEntityInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None = None,
    config: LifecycleConfig | None = None,
) -> EntityOperationOutput:
    """Edit a draft entity."""
    service = _service(repo, org_repo, type_repo, time, config)
    try:
        result = service.update(
            inp.principal,
            inp.entity_id,
            name=inp.name,
            slug=inp.slug,
            visibility=inp.visibility,
            data=dict(inp.data) if inp.data is not None else None,
            expected_version=inp.expected_version,
        )
    except LifecycleError as e:
        return EntityOperationOutput(errors=[_to_error(e)], success=False)

    return EntityOperationOutput(
        entity=result.entity, record=result.record, warnings=result.warnings
    )


def run_transition(
    inp: TransitionEntityInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None = None,
    config: LifecycleConfig | None = None,
    schema_validator: SchemaValidatorPort | None = None,
) -> EntityOperationOutput:
    """Apply a lifecycle action to an entity."""
    service = _service(repo, org_repo, type_repo, time, config, schema_validator)
    try:
        result = service.transition(
            inp.principal,
            inp.entity_id,
            inp.action,
            expected_version=inp.expected_version,
            feedback=inp.feedback,
        )
    except LifecycleError as e:
        return EntityOperationOutput(errors=[_to_error(e)], success=False)

    return EntityOperationOutput(entity=result.entity, record=result.record)


def run_purge(
    inp: PurgeEntityInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None = None,
    config: LifecycleConfig | None = None,
) -> PurgeOutput:
    """
    Permanently remove an entity and its history.

    Storage failures are not converted to errors; they propagate verbatim.
    """
    service = _service(repo, org_repo, type_repo, time, config)
    try:
        result = service.super_delete(
            inp.principal, inp.entity_id, expected_version=inp.expected_version
        )
    except LifecycleError as e:
        return PurgeOutput(errors=[_to_error(e)], success=False)

    return PurgeOutput(record=result.record, versions_removed=result.versions_removed)


def run_allowed_actions(
    inp: AllowedActionsInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    config: LifecycleConfig | None = None,
) -> AllowedActionsOutput:
    """List actions the principal could take on a readable entity."""
    service = _service(repo, org_repo, type_repo, None, config)
    try:
        entity = repo.get_by_id(inp.entity_id)
        require_readable(inp.principal, entity, entity_id=inp.entity_id, include_deleted=True)
        actions = service.allowed_actions(inp.principal, inp.entity_id)
    except LifecycleError as e:
        return AllowedActionsOutput(errors=[_to_error(e)], success=False)

    return AllowedActionsOutput(actions=actions)


def run_get_version(
    inp: GetVersionInput,
    *,
    repo: EntityRepoPort,
) -> EntityVersionOutput:
    """
    Read a historical version.

    A hidden entity's history is hidden too, and each snapshot is judged
    on its own status and visibility: an earlier draft of a public,
    published entity stays private to the owning organization.
    """
    try:
        latest = repo.get_by_id(inp.entity_id)
        require_readable(inp.principal, latest, entity_id=inp.entity_id, include_deleted=True)
        entity = repo.get_version(inp.entity_id, inp.version)
        if entity is None:
            raise NotFound("Entity version", f"{inp.entity_id}@{inp.version}")
        require_readable(
            inp.principal, entity, entity_id=f"{inp.entity_id}@{inp.version}", include_deleted=True
        )
    except LifecycleError as e:
        return EntityVersionOutput(errors=[_to_error(e)], success=False)

    return EntityVersionOutput(entity=entity)


def run(
    inp: TransitionEntityInput,
    *,
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    time: TimePort | None = None,
    config: LifecycleConfig | None = None,
) -> EntityOperationOutput:
    """Default entry point: apply a transition."""
    return run_transition(
        inp, repo=repo, org_repo=org_repo, type_repo=type_repo, time=time, config=config
    )
