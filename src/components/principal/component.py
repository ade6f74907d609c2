"""
Principal component - Role resolution.

Turns verified token claims into a normalized Principal.

Invariants:
- superadmin always resolves with organization_id = None
- org_admin / org_member always carry a non-empty organization_id
- role strings must match exactly; case variants and unknown roles are rejected
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src.domain.entities import USER_ROLES, Principal
from src.domain.errors import MalformedPrincipal

from .models import (
    PrincipalValidationError,
    ResolvePrincipalInput,
    ResolvePrincipalOutput,
)

# Claim names accepted for each principal attribute, in lookup order
_USER_ID_CLAIMS = ("userId", "user_id", "sub")
_ORG_CLAIMS = ("organizationId", "organization_id", "org")


def _first_claim(payload: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return None


def resolve_principal(payload: Mapping[str, Any] | Principal) -> Principal:
    """
    Normalize verified token claims into a Principal.

    Raises:
        MalformedPrincipal: role unknown, user id missing, or organization
            missing for an organization role.
    """
    if isinstance(payload, Principal):
        payload = payload.model_dump(by_alias=True)

    if not isinstance(payload, Mapping):
        raise MalformedPrincipal("Principal payload must be a mapping")

    role = payload.get("role")
    if not isinstance(role, str) or role not in USER_ROLES:
        raise MalformedPrincipal(f"Unrecognized role: {role!r}", field="role")

    user_id = _first_claim(payload, _USER_ID_CLAIMS)
    if not isinstance(user_id, str) or not user_id.strip():
        raise MalformedPrincipal("Principal has no user id", field="userId")

    email = payload.get("email")
    if email is not None and not isinstance(email, str):
        raise MalformedPrincipal("Principal email must be a string", field="email")

    if role == "superadmin":
        organization_id = None
    else:
        organization_id = _first_claim(payload, _ORG_CLAIMS)
        if not isinstance(organization_id, str) or not organization_id.strip():
            raise MalformedPrincipal(
                f"Role '{role}' requires an organization", field="organizationId"
            )

    return Principal(
        user_id=user_id,
        role=role,  # type: ignore[arg-type]  # narrowed by USER_ROLES check
        organization_id=organization_id,
        email=email,
    )


# --- Component Entry Points ---


def run_resolve(inp: ResolvePrincipalInput) -> ResolvePrincipalOutput:
    """Resolve a principal, reporting MalformedPrincipal as an error output."""
    try:
        principal = resolve_principal(inp.payload)
    except MalformedPrincipal as e:
        return ResolvePrincipalOutput(
            principal=None,
            errors=[PrincipalValidationError(code=e.kind, message=e.message, field=e.field)],
            success=False,
        )
    return ResolvePrincipalOutput(principal=principal)


def run(inp: ResolvePrincipalInput) -> ResolvePrincipalOutput:
    """Main entry point for the principal component."""
    return run_resolve(inp)
