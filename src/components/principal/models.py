"""
Principal component input/output models.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import Principal


@dataclass(frozen=True)
class PrincipalValidationError:
    """Principal resolution error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ResolvePrincipalInput:
    """Verified token claims produced by the authentication flow."""

    payload: Mapping[str, Any]


@dataclass(frozen=True)
class ResolvePrincipalOutput:
    """Normalized principal or the reason it was rejected."""

    principal: Principal | None
    errors: list[PrincipalValidationError] = field(default_factory=list)
    success: bool = True
