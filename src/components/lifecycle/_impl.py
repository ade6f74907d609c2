"""
EntityLifecycleService - Entity lifecycle state machine with tenant guards.

The machine is a pure edge table plus an ordered guard pipeline. Every action
passes through the same guards in the same order, and each guard
short-circuits on failure:

1. role      - role sufficient for the action          -> Unauthorized
2. tenant    - entity owned by the principal's org     -> CrossTenantAccessDenied
               (skipped for superadmin)
3. status    - current status in the action's sources  -> InvalidTransition
               (role-restricted sources                -> Unauthorized)

Action-specific checks follow: type-level create permission, field schema
(partial for drafts, full before submission), and the uniqueness precheck
(DuplicateSlug blocks, a duplicate name only warns). Only then is the
repository's compare-and-write attempted.

Edges:
- create             -           -> draft      org_member (canCreate) / superadmin
- update             draft       -> draft      org_member
- submitForApproval  draft       -> pending    org_admin
- approve            pending     -> published  superadmin
- reject             pending     -> draft      superadmin
- archive            published   -> archived   org_admin
- delete             draft|pending|published|archived -> deleted
                                               org_admin (draft only) / superadmin
- restore            deleted     -> draft      superadmin
- superDelete        any         -> (purged)   superadmin
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.components.permissions import can_create
from src.components.schema import EntityTypeSchemaValidator
from src.components.uniqueness import UniquenessScope, check_duplicates, normalize
from src.domain.entities import (
    ENTITY_STATUSES,
    Entity,
    EntityAction,
    EntityStatus,
    EntityType,
    Principal,
    TransitionRecord,
    UserRole,
    VisibilityScope,
)
from src.domain.errors import (
    CrossTenantAccessDenied,
    DuplicateNameWarning,
    DuplicateSlug,
    InvalidTransition,
    LifecycleError,
    NotFound,
    PurgeFailed,
    SchemaValidationFailed,
    Unauthorized,
    VersionConflict,
)
from src.domain.ids import create_entity_id, create_slug
from src.rules.models import Rules

from .ports import (
    EntityRepoPort,
    EntityTypeReaderPort,
    OrganizationReaderPort,
    SchemaValidatorPort,
    TimePort,
)

logger = logging.getLogger(__name__)


# --- Edge Table ---


@dataclass(frozen=True)
class Edge:
    """One action of the lifecycle machine."""

    action: EntityAction
    sources: frozenset[EntityStatus]
    target: EntityStatus | None  # None: the entity is purged
    min_role: UserRole
    tenant_scoped: bool = True


ROLE_RANK: dict[str, int] = {"org_member": 1, "org_admin": 2, "superadmin": 3}

_ANY_STATUS: frozenset[EntityStatus] = frozenset(ENTITY_STATUSES)

MAX_FEEDBACK_LENGTH = 1000

EDGES: dict[str, Edge] = {
    edge.action: edge
    for edge in (
        Edge("create", frozenset(), "draft", "org_member"),
        Edge("update", frozenset({"draft"}), "draft", "org_member"),
        Edge("submitForApproval", frozenset({"draft"}), "pending", "org_admin"),
        Edge("approve", frozenset({"pending"}), "published", "superadmin", tenant_scoped=False),
        Edge("reject", frozenset({"pending"}), "draft", "superadmin", tenant_scoped=False),
        Edge("archive", frozenset({"published"}), "archived", "org_admin"),
        Edge(
            "delete",
            frozenset({"draft", "pending", "published", "archived"}),
            "deleted",
            "org_admin",
        ),
        Edge("restore", frozenset({"deleted"}), "draft", "superadmin", tenant_scoped=False),
        Edge("superDelete", _ANY_STATUS, None, "superadmin", tenant_scoped=False),
    )
}

# Actions driven through transition(); create and update carry payloads
STATUS_ACTIONS: tuple[str, ...] = (
    "submitForApproval",
    "approve",
    "reject",
    "archive",
    "delete",
    "restore",
)


def actions_from_status(status: EntityStatus) -> list[str]:
    """Actions defined for a status, ignoring who asks."""
    return [a for a, edge in EDGES.items() if status in edge.sources]


def next_status(current: EntityStatus, action: str) -> EntityStatus | None:
    """Target status for an action, or raise InvalidTransition."""
    edge = EDGES.get(action)
    if edge is None or current not in edge.sources:
        raise InvalidTransition(action, current, actions_from_status(current))
    return edge.target


# --- Configuration ---


@dataclass(frozen=True)
class LifecycleConfig:
    """Lifecycle configuration from rules."""

    id_length: int = 7
    id_alphabet: str = "0123456789abcdefghijklmnopqrstuvwxyz"
    slug_pattern: str = r"^[a-z0-9-]{1,100}$"
    slug_max_length: int = 100
    name_max_length: int = 200
    default_visibility: VisibilityScope = "members"
    require_schema_on_submit: bool = True
    id_generation_attempts: int = 5

    # Sources non-superadmins are limited to, per action
    restricted_sources: dict[str, frozenset[EntityStatus]] = field(
        default_factory=lambda: {"delete": frozenset({"draft"})}
    )


DEFAULT_CONFIG = LifecycleConfig()


def build_config(rules: Rules | None) -> LifecycleConfig:
    """Build lifecycle config from loaded rules."""
    if rules is None:
        return DEFAULT_CONFIG
    return LifecycleConfig(
        id_length=rules.entities.id_length,
        id_alphabet=rules.entities.id_alphabet,
        slug_pattern=rules.entities.slug_pattern,
        slug_max_length=rules.entities.slug_max_length,
        name_max_length=rules.entities.name_max_length,
        default_visibility=rules.entities.default_visibility,
        require_schema_on_submit=rules.lifecycle.require_schema_on_submit,
        id_generation_attempts=rules.lifecycle.id_generation_attempts,
        restricted_sources={
            "delete": frozenset(rules.lifecycle.org_admin_deletable_statuses),
        },
    )


# --- Guard Pipeline ---


@dataclass(frozen=True)
class GuardContext:
    """Everything a guard may look at. entity is None only for create."""

    principal: Principal
    edge: Edge
    entity: Entity | None
    target_organization_id: str | None


Guard = Callable[[GuardContext, LifecycleConfig], None]


def guard_role(ctx: GuardContext, config: LifecycleConfig) -> None:
    principal, edge = ctx.principal, ctx.edge
    if principal.is_superadmin:
        return
    if edge.min_role == "superadmin":
        raise Unauthorized(f"Only superadmins can {edge.action} entities", field="role")
    if ROLE_RANK.get(principal.role, 0) < ROLE_RANK[edge.min_role]:
        raise Unauthorized(
            f"Role '{principal.role}' cannot {edge.action} entities "
            f"(requires {edge.min_role})",
            field="role",
        )


def guard_tenant(ctx: GuardContext, config: LifecycleConfig) -> None:
    principal = ctx.principal
    if principal.is_superadmin or not ctx.edge.tenant_scoped:
        return
    owner = ctx.target_organization_id
    if owner is None or owner != principal.organization_id:
        raise CrossTenantAccessDenied(
            "You can only act on entities of your own organization",
            field="organization_id",
        )


def guard_status(ctx: GuardContext, config: LifecycleConfig) -> None:
    edge = ctx.edge
    if ctx.entity is None:
        if edge.action != "create":
            raise InvalidTransition(edge.action, None, ["create"])
        return

    current = ctx.entity.status
    if current not in edge.sources:
        raise InvalidTransition(edge.action, current, actions_from_status(current))

    if not ctx.principal.is_superadmin:
        restricted = config.restricted_sources.get(edge.action)
        if restricted is not None and current not in restricted:
            raise Unauthorized(
                f"Role '{ctx.principal.role}' can only {edge.action} entities with status "
                f"{', '.join(sorted(restricted)) or 'none'}",
                field="status",
            )


GUARD_PIPELINE: tuple[Guard, ...] = (guard_role, guard_tenant, guard_status)


def evaluate_guards(
    ctx: GuardContext,
    config: LifecycleConfig = DEFAULT_CONFIG,
    guards: tuple[Guard, ...] = GUARD_PIPELINE,
) -> None:
    """Run guards in order; the first failure propagates."""
    for guard in guards:
        guard(ctx, config)


def allowed_actions(
    principal: Principal,
    entity: Entity,
    config: LifecycleConfig = DEFAULT_CONFIG,
) -> list[str]:
    """Actions whose role, tenant and status guards pass for this entity."""
    allowed: list[str] = []
    for action, edge in EDGES.items():
        if action == "create":
            continue
        ctx = GuardContext(principal, edge, entity, entity.organization_id)
        try:
            evaluate_guards(ctx, config)
        except LifecycleError:
            continue
        allowed.append(action)
    return allowed


# --- Results ---


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a successful write. entity is None after a purge."""

    entity: Entity | None
    record: TransitionRecord
    warnings: list[DuplicateNameWarning] = field(default_factory=list)


@dataclass(frozen=True)
class PurgeResult:
    record: TransitionRecord
    versions_removed: int


class _SystemTime:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


# --- Service ---


class EntityLifecycleService:
    """
    Entity lifecycle service.

    Organizations and entity types are read per call through ports; nothing
    is cached on the service.
    """

    def __init__(
        self,
        repo: EntityRepoPort,
        org_repo: OrganizationReaderPort,
        type_repo: EntityTypeReaderPort,
        time: TimePort | None = None,
        config: LifecycleConfig | None = None,
        schema_validator: SchemaValidatorPort | None = None,
    ) -> None:
        self._repo = repo
        self._org_repo = org_repo
        self._type_repo = type_repo
        self._time = time or _SystemTime()
        self._config = config or DEFAULT_CONFIG
        self._schema = schema_validator or EntityTypeSchemaValidator(type_repo)  # type: ignore[arg-type]
        self._slug_regex = re.compile(self._config.slug_pattern)

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    # --- Reads ---

    def get(self, entity_id: str) -> Entity | None:
        return self._repo.get_by_id(entity_id)

    def get_version(self, entity_id: str, version: int) -> Entity | None:
        return self._repo.get_version(entity_id, version)

    def allowed_actions(self, principal: Principal, entity_id: str) -> list[str]:
        entity = self._load(entity_id)
        return allowed_actions(principal, entity, self._config)

    # --- Mutations ---

    def create(
        self,
        principal: Principal,
        *,
        entity_type_id: str,
        name: str,
        slug: str | None = None,
        organization_id: str | None = None,
        visibility: VisibilityScope | None = None,
        data: dict[str, Any] | None = None,
    ) -> MutationResult:
        """Create a draft entity in the principal's organization (or any, for superadmin)."""
        if principal.is_superadmin:
            target_org = organization_id
        else:
            target_org = organization_id or principal.organization_id

        with self._logged("create", None, principal):
            evaluate_guards(
                GuardContext(principal, EDGES["create"], None, target_org), self._config
            )
            self._check_create_permission(principal, entity_type_id)
            entity_type = self._load_type(entity_type_id)

            clean_name = self._check_name(name)
            clean_slug = self._check_slug(slug if slug is not None else create_slug(clean_name))
            payload = dict(data or {})
            self._check_partial_schema(entity_type_id, payload)

            warnings = self._check_uniqueness(
                UniquenessScope(target_org, entity_type_id),
                name=clean_name,
                slug=clean_slug,
                exclude_entity_id=None,
            )

            now = self._time.now_utc()
            entity = Entity(
                id=self._new_id(),
                organization_id=target_org,
                entity_type_id=entity_type_id,
                name=clean_name,
                slug=clean_slug,
                status="draft",
                visibility=visibility or entity_type.default_visibility or self._config.default_visibility,
                data=payload,
                version=1,
                created_at=now,
                updated_at=now,
                created_by=principal.user_id,
                updated_by=principal.user_id,
            )
            saved = self._repo.insert(entity)

        record = self._record(saved, None, "create", principal, now)
        logger.info(
            "Entity %s created in %s by %s (type %s)",
            saved.id,
            saved.organization_id or "global",
            principal.user_id,
            entity_type_id,
        )
        return MutationResult(entity=saved, record=record, warnings=warnings)

    def update(
        self,
        principal: Principal,
        entity_id: str,
        *,
        name: str | None = None,
        slug: str | None = None,
        visibility: VisibilityScope | None = None,
        data: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> MutationResult:
        """Edit a draft. Name/slug changes go through the uniqueness precheck."""
        with self._logged("update", entity_id, principal):
            entity = self._load(entity_id)
            evaluate_guards(
                GuardContext(principal, EDGES["update"], entity, entity.organization_id),
                self._config,
            )

            new_name = self._check_name(name) if name is not None else entity.name
            new_slug = self._check_slug(slug) if slug is not None else entity.slug
            new_data = dict(entity.data)
            if data:
                self._check_partial_schema(entity.entity_type_id, data)
                new_data.update(data)

            name_changed = normalize(new_name) != normalize(entity.name)
            slug_changed = normalize(new_slug) != normalize(entity.slug)
            warnings: list[DuplicateNameWarning] = []
            if name_changed or slug_changed:
                warnings = self._check_uniqueness(
                    UniquenessScope(entity.organization_id, entity.entity_type_id),
                    name=new_name if name_changed else None,
                    slug=new_slug if slug_changed else None,
                    exclude_entity_id=entity.id,
                )

            self._check_expected_version(entity, expected_version)
            now = self._time.now_utc()
            updated = entity.model_copy(
                update={
                    "name": new_name,
                    "slug": new_slug,
                    "visibility": visibility or entity.visibility,
                    "data": new_data,
                    "version": entity.version + 1,
                    "updated_at": now,
                    "updated_by": principal.user_id,
                }
            )
            saved = self._repo.compare_and_write(updated, expected_version=entity.version)

        record = self._record(saved, entity.status, "update", principal, now)
        logger.info("Entity %s updated to v%d by %s", saved.id, saved.version, principal.user_id)
        return MutationResult(entity=saved, record=record, warnings=warnings)

    def transition(
        self,
        principal: Principal,
        entity_id: str,
        action: str,
        *,
        expected_version: int | None = None,
        feedback: str | None = None,
    ) -> MutationResult:
        """Apply a status action (submitForApproval, approve, reject, archive, delete, restore)."""
        if action == "update":
            return self.update(principal, entity_id, expected_version=expected_version)
        if action == "superDelete":
            purged = self.super_delete(principal, entity_id, expected_version=expected_version)
            return MutationResult(entity=None, record=purged.record)

        with self._logged(action, entity_id, principal):
            entity = self._load(entity_id)
            edge = EDGES.get(action)
            if edge is None:
                raise InvalidTransition(action, entity.status, actions_from_status(entity.status))

            evaluate_guards(
                GuardContext(principal, edge, entity, entity.organization_id), self._config
            )

            if feedback is not None and len(feedback) > MAX_FEEDBACK_LENGTH:
                message = f"Feedback must not exceed {MAX_FEEDBACK_LENGTH} characters"
                raise SchemaValidationFailed(message, errors=[message], field="feedback")

            if edge.action == "submitForApproval" and self._config.require_schema_on_submit:
                errors = self._schema.validate(entity)
                if errors:
                    raise SchemaValidationFailed(
                        "Entity has unresolved validation errors", errors=errors, field="data"
                    )

            self._check_expected_version(entity, expected_version)
            now = self._time.now_utc()
            updated = entity.model_copy(
                update={
                    "status": edge.target,
                    "version": entity.version + 1,
                    "updated_at": now,
                    "updated_by": principal.user_id,
                }
            )
            saved = self._repo.compare_and_write(updated, expected_version=entity.version)

        record = self._record(saved, entity.status, edge.action, principal, now, feedback)
        logger.info(
            "Entity %s %s: %s -> %s (v%d) by %s",
            saved.id,
            edge.action,
            entity.status,
            saved.status,
            saved.version,
            principal.user_id,
        )
        return MutationResult(entity=saved, record=record)

    def super_delete(
        self,
        principal: Principal,
        entity_id: str,
        *,
        expected_version: int | None = None,
    ) -> PurgeResult:
        """Permanently remove an entity and all its versions. Irreversible."""
        with self._logged("superDelete", entity_id, principal):
            entity = self._load(entity_id)
            evaluate_guards(
                GuardContext(principal, EDGES["superDelete"], entity, entity.organization_id),
                self._config,
            )
            self._check_expected_version(entity, expected_version)

            try:
                removed = self._repo.purge(entity_id)
            except Exception:
                logger.exception("Hard purge of entity %s failed", entity_id)
                raise
            if removed == 0:
                raise PurgeFailed(
                    f"Entity '{entity_id}' had no stored versions to purge",
                    details={"entity_id": entity_id},
                )

        now = self._time.now_utc()
        record = TransitionRecord(
            entity_id=entity.id,
            from_status=entity.status,
            to_status=None,
            action="superDelete",
            principal_id=principal.user_id,
            timestamp=now,
            version=None,
        )
        logger.info(
            "Entity %s purged by %s (%d versions removed)", entity_id, principal.user_id, removed
        )
        return PurgeResult(record=record, versions_removed=removed)

    # --- Helpers ---

    @contextmanager
    def _logged(
        self, action: str, entity_id: str | None, principal: Principal
    ) -> Iterator[None]:
        try:
            yield
        except LifecycleError as e:
            logger.warning(
                "Rejected %s on %s by %s: %s (%s)",
                action,
                entity_id or "new entity",
                principal.user_id,
                e.kind,
                e.message,
            )
            raise

    def _load(self, entity_id: str) -> Entity:
        entity = self._repo.get_by_id(entity_id)
        if entity is None:
            raise NotFound("Entity", entity_id)
        return entity

    def _load_type(self, entity_type_id: str) -> EntityType:
        entity_type = self._type_repo.get_by_id(entity_type_id)
        if entity_type is None or not entity_type.is_active:
            raise NotFound("Entity type", entity_type_id)
        return entity_type

    def _check_create_permission(self, principal: Principal, entity_type_id: str) -> None:
        if principal.is_superadmin:
            return
        organization = (
            self._org_repo.get_by_id(principal.organization_id)
            if principal.organization_id
            else None
        )
        if not can_create(organization, entity_type_id):
            raise Unauthorized(
                "Your organization cannot create entities of this type",
                field="entity_type_id",
            )

    def _check_name(self, name: str) -> str:
        clean = name.strip() if isinstance(name, str) else ""
        if not clean:
            raise SchemaValidationFailed("Name is required", errors=["Name is required"], field="name")
        if len(clean) > self._config.name_max_length:
            message = f"Name must not exceed {self._config.name_max_length} characters"
            raise SchemaValidationFailed(message, errors=[message], field="name")
        return clean

    def _check_slug(self, slug: str) -> str:
        clean = slug.strip() if isinstance(slug, str) else ""
        if (
            not clean
            or len(clean) > self._config.slug_max_length
            or not self._slug_regex.fullmatch(clean)
        ):
            message = (
                "Slug must be 1-"
                f"{self._config.slug_max_length} lowercase letters, numbers, and hyphens"
            )
            raise SchemaValidationFailed(message, errors=[message], field="slug")
        return clean

    def _check_partial_schema(self, entity_type_id: str, data: dict[str, Any]) -> None:
        errors = self._schema.validate_partial(entity_type_id, data)
        if errors:
            raise SchemaValidationFailed("Invalid field values", errors=errors, field="data")

    def _check_uniqueness(
        self,
        scope: UniquenessScope,
        *,
        name: str | None,
        slug: str | None,
        exclude_entity_id: str | None,
    ) -> list[DuplicateNameWarning]:
        result = check_duplicates(scope, name, slug, exclude_entity_id, index=self._repo)
        if result.slug_match is not None:
            raise DuplicateSlug(slug or "", existing_id=result.slug_match.entity_id)
        if result.name_match is not None:
            return [DuplicateNameWarning(name=name or "", existing_id=result.name_match.entity_id)]
        return []

    def _check_expected_version(self, entity: Entity, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != entity.version:
            raise VersionConflict(entity.id, expected_version, entity.version)

    def _new_id(self) -> str:
        for _ in range(self._config.id_generation_attempts):
            candidate = create_entity_id(self._config.id_length, self._config.id_alphabet)
            if self._repo.get_by_id(candidate) is None:
                return candidate
        raise RuntimeError(
            f"Could not generate a free entity id in {self._config.id_generation_attempts} attempts"
        )

    def _record(
        self,
        entity: Entity,
        from_status: EntityStatus | None,
        action: str,
        principal: Principal,
        timestamp: datetime,
        feedback: str | None = None,
    ) -> TransitionRecord:
        return TransitionRecord(
            entity_id=entity.id,
            from_status=from_status,
            to_status=entity.status,
            action=action,  # type: ignore[arg-type]  # validated against EDGES
            principal_id=principal.user_id,
            timestamp=timestamp,
            version=entity.version,
            feedback=feedback,
        )


# --- Factory ---


def create_lifecycle_service(
    repo: EntityRepoPort,
    org_repo: OrganizationReaderPort,
    type_repo: EntityTypeReaderPort,
    rules: Rules | None = None,
    time: TimePort | None = None,
) -> EntityLifecycleService:
    """Create a lifecycle service configured from rules."""
    return EntityLifecycleService(
        repo=repo,
        org_repo=org_repo,
        type_repo=type_repo,
        time=time,
        config=build_config(rules),
    )
