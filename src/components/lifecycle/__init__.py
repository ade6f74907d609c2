"""
Lifecycle component - Entity state machine, guard pipeline and entity service.
"""

from ._impl import (
    EDGES,
    GUARD_PIPELINE,
    ROLE_RANK,
    STATUS_ACTIONS,
    DEFAULT_CONFIG,
    Edge,
    EntityLifecycleService,
    GuardContext,
    LifecycleConfig,
    MutationResult,
    PurgeResult,
    actions_from_status,
    allowed_actions,
    build_config,
    create_lifecycle_service,
    evaluate_guards,
    guard_role,
    guard_status,
    guard_tenant,
    next_status,
)
from .component import (
    run,
    run_allowed_actions,
    run_create,
    run_get_version,
    run_purge,
    run_transition,
    run_update,
)
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

__all__ = [
    # Entry points
    "run",
    "run_allowed_actions",
    "run_create",
    "run_get_version",
    "run_purge",
    "run_transition",
    "run_update",
    # State machine
    "EDGES",
    "ROLE_RANK",
    "STATUS_ACTIONS",
    "Edge",
    "actions_from_status",
    "next_status",
    # Guards
    "GUARD_PIPELINE",
    "GuardContext",
    "allowed_actions",
    "evaluate_guards",
    "guard_role",
    "guard_status",
    "guard_tenant",
    # Service
    "DEFAULT_CONFIG",
    "EntityLifecycleService",
    "LifecycleConfig",
    "MutationResult",
    "PurgeResult",
    "build_config",
    "create_lifecycle_service",
    # Models
    "AllowedActionsInput",
    "AllowedActionsOutput",
    "CreateEntityInput",
    "EntityOperationOutput",
    "EntityVersionOutput",
    "GetVersionInput",
    "LifecycleValidationError",
    "PurgeEntityInput",
    "PurgeOutput",
    "TransitionEntityInput",
    "UpdateEntityInput",
    # Ports
    "EntityRepoPort",
    "EntityTypeReaderPort",
    "OrganizationReaderPort",
    "SchemaValidatorPort",
    "TimePort",
]
