from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.domain.entities import (
    Entity,
    EntityAction,
    EntityStatus,
    Organization,
    TransitionRecord,
    VisibilityScope,
)
from src.domain.errors import DuplicateNameWarning


# --- Entities ---
class EntityCreateRequest(BaseModel):
    entity_type_id: str
    name: str
    slug: str | None = None
    organization_id: str | None = None
    visibility: VisibilityScope | None = None
    data: dict[str, Any] = {}


class EntityUpdateRequest(BaseModel):
    name: str | None = None
    slug: str | None = None
    visibility: VisibilityScope | None = None
    data: dict[str, Any] | None = None
    expected_version: int | None = None


class EntityTransitionRequest(BaseModel):
    action: EntityAction
    expected_version: int | None = None
    feedback: str | None = Field(default=None, max_length=1000)


class EntityResponse(BaseModel):
    id: str
    organization_id: str | None
    entity_type_id: str
    name: str
    slug: str
    status: EntityStatus
    visibility: VisibilityScope
    data: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime
    created_by: str | None = None
    updated_by: str | None = None

    @classmethod
    def from_entity(cls, entity: Entity) -> "EntityResponse":
        return cls.model_validate(entity.model_dump())


class TransitionRecordResponse(BaseModel):
    entity_id: str
    from_status: EntityStatus | None
    to_status: EntityStatus | None
    action: EntityAction
    principal_id: str
    timestamp: datetime
    version: int | None = None
    feedback: str | None = None

    @classmethod
    def from_record(cls, record: TransitionRecord) -> "TransitionRecordResponse":
        return cls.model_validate(record.model_dump())


class WarningResponse(BaseModel):
    code: str
    message: str
    existing_id: str

    @classmethod
    def from_warning(cls, warning: DuplicateNameWarning) -> "WarningResponse":
        return cls(code=warning.kind, message=warning.message, existing_id=warning.existing_id)


class EntityMutationResponse(BaseModel):
    entity: EntityResponse | None
    record: TransitionRecordResponse
    warnings: list[WarningResponse] = []


class PurgeResponse(BaseModel):
    record: TransitionRecordResponse
    versions_removed: int


class EntityListResponse(BaseModel):
    items: list[EntityResponse]
    total: int


class AllowedActionsResponse(BaseModel):
    entity_id: str
    actions: list[str]


class DuplicateMatchResponse(BaseModel):
    """A blocking match. Details are omitted when the caller cannot read it."""

    entity_id: str | None = None
    name: str | None = None
    slug: str | None = None


class DuplicateCheckResponse(BaseModel):
    name_match: DuplicateMatchResponse | None = None
    slug_match: DuplicateMatchResponse | None = None


# --- Organizations ---
class PermissionsUpdateRequest(BaseModel):
    viewable_type_ids: list[str] = []
    creatable_type_ids: list[str] = []


class PermissionGrantRequest(BaseModel):
    entity_type_id: str
    create: bool = False


class OrganizationPermissionsResponse(BaseModel):
    organization_id: str
    viewable_type_ids: list[str]
    creatable_type_ids: list[str]

    @classmethod
    def from_organization(cls, org: Organization) -> "OrganizationPermissionsResponse":
        return cls(
            organization_id=org.id,
            viewable_type_ids=sorted(org.permissions.viewable_type_ids),
            creatable_type_ids=sorted(org.permissions.creatable_type_ids),
        )


class PermissionCheckResponse(BaseModel):
    organization_id: str
    entity_type_id: str
    can_view: bool
    can_create: bool
