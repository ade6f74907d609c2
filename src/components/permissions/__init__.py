"""
Permissions component - Per-organization entity type permission matrix.
"""

from ._impl import (
    PermissionMatrix,
    can_create,
    can_view,
    grant_create,
    grant_view,
    revoke_create,
    revoke_view,
    set_permissions,
)
from .component import run_check, run_grant, run_revoke, run_set_permissions
from .models import (
    CheckPermissionInput,
    CheckPermissionOutput,
    GrantPermissionInput,
    PermissionsOperationOutput,
    PermissionValidationError,
    SetPermissionsInput,
)
from .ports import OrganizationRepoPort, TimePort

__all__ = [
    # Entry points
    "run_check",
    "run_grant",
    "run_revoke",
    "run_set_permissions",
    # Matrix
    "PermissionMatrix",
    "can_create",
    "can_view",
    "grant_create",
    "grant_view",
    "revoke_create",
    "revoke_view",
    "set_permissions",
    # Models
    "CheckPermissionInput",
    "CheckPermissionOutput",
    "GrantPermissionInput",
    "PermissionsOperationOutput",
    "PermissionValidationError",
    "SetPermissionsInput",
    # Ports
    "OrganizationRepoPort",
    "TimePort",
]
