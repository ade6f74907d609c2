from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Enums / Literals ---
UserRole = Literal["superadmin", "org_admin", "org_member"]
EntityStatus = Literal["draft", "pending", "published", "archived", "deleted"]
VisibilityScope = Literal["public", "authenticated", "members"]
EntityAction = Literal[
    "create",
    "update",
    "submitForApproval",
    "approve",
    "reject",
    "archive",
    "delete",
    "restore",
    "superDelete",
]
FieldType = Literal[
    "string",
    "text",
    "markdown",
    "number",
    "boolean",
    "date",
    "select",
    "multiselect",
    "link",
    "weblink",
    "image",
    "logo",
    "file",
    "country",
]

USER_ROLES: tuple[UserRole, ...] = ("superadmin", "org_admin", "org_member")
ENTITY_STATUSES: tuple[EntityStatus, ...] = (
    "draft",
    "pending",
    "published",
    "archived",
    "deleted",
)
VISIBILITY_SCOPES: tuple[VisibilityScope, ...] = ("public", "authenticated", "members")


def utc_now() -> datetime:
    return datetime.now(UTC)


# --- Principal ---

class Principal(BaseModel):
    """Normalized caller identity. organization_id is None only for superadmin."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="userId")
    role: UserRole
    organization_id: str | None = Field(default=None, alias="organizationId")
    email: str | None = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"


# --- Organizations ---

class OrganizationPermissions(BaseModel):
    """Entity types an organization may view and create.

    creatable is always a subset of viewable: any creatable type missing from
    viewable is added to viewable on construction.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    viewable_type_ids: frozenset[str] = Field(
        default_factory=frozenset, alias="viewableTypeIds"
    )
    creatable_type_ids: frozenset[str] = Field(
        default_factory=frozenset, alias="creatableTypeIds"
    )

    @model_validator(mode="after")
    def _creatable_implies_viewable(self) -> "OrganizationPermissions":
        missing = self.creatable_type_ids - self.viewable_type_ids
        if missing:
            object.__setattr__(
                self, "viewable_type_ids", self.viewable_type_ids | missing
            )
        return self


class Organization(BaseModel):
    id: str
    name: str
    slug: str = ""
    is_active: bool = True
    permissions: OrganizationPermissions = Field(default_factory=OrganizationPermissions)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# --- Entity Types ---

class SelectOption(BaseModel):
    value: str
    label: str = ""


class FieldConstraints(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None
    pattern_message: str | None = Field(default=None, alias="patternMessage")
    min_value: float | None = Field(default=None, alias="minValue")
    max_value: float | None = Field(default=None, alias="maxValue")
    options: list[SelectOption] | None = None
    allow_multiple: bool = Field(default=False, alias="allowMultiple")
    require_https: bool = Field(default=False, alias="requireHttps")


class FieldDefinition(BaseModel):
    id: str
    name: str
    type: FieldType
    required: bool = False
    constraints: FieldConstraints = Field(default_factory=FieldConstraints)


class EntityType(BaseModel):
    id: str
    name: str
    slug: str = ""
    default_visibility: VisibilityScope = "members"
    fields: list[FieldDefinition] = Field(default_factory=list)
    is_active: bool = True

    def get_field(self, field_id: str) -> FieldDefinition | None:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None


# --- Entities ---

class Entity(BaseModel):
    id: str
    organization_id: str | None
    entity_type_id: str
    name: str
    slug: str
    status: EntityStatus = "draft"
    visibility: VisibilityScope = "members"
    data: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str | None = None
    updated_by: str | None = None

    @property
    def is_global(self) -> bool:
        return self.organization_id is None


class TransitionRecord(BaseModel):
    """Append-only audit record for one successful lifecycle step.

    to_status is None when the action purged the entity.
    """

    model_config = ConfigDict(frozen=True)

    entity_id: str
    from_status: EntityStatus | None
    to_status: EntityStatus | None
    action: EntityAction
    principal_id: str
    timestamp: datetime
    version: int | None = None
    feedback: str | None = None
