"""
Principal component - Role resolution for verified callers.
"""

from .component import resolve_principal, run, run_resolve
from .models import (
    PrincipalValidationError,
    ResolvePrincipalInput,
    ResolvePrincipalOutput,
)

__all__ = [
    # Entry points
    "run",
    "run_resolve",
    "resolve_principal",
    # Models
    "PrincipalValidationError",
    "ResolvePrincipalInput",
    "ResolvePrincipalOutput",
]
