"""
Uniqueness component - Scoped name/slug duplicate detection.
"""

from .component import check_duplicates, normalize, run_check
from .models import (
    CheckDuplicatesInput,
    CheckDuplicatesOutput,
    DuplicateCheckResult,
    DuplicateMatch,
    UniquenessScope,
    UniquenessValidationError,
)
from .ports import ScopedEntityIndexPort

__all__ = [
    "run_check",
    "check_duplicates",
    "normalize",
    "CheckDuplicatesInput",
    "CheckDuplicatesOutput",
    "DuplicateCheckResult",
    "DuplicateMatch",
    "UniquenessScope",
    "UniquenessValidationError",
    "ScopedEntityIndexPort",
]
