"""
Visibility component - Who may read an entity.
"""

from .component import (
    can_read,
    filter_readable,
    require_readable,
    run_list,
    run_read,
)
from .models import (
    ListReadableInput,
    ListReadableOutput,
    ReadEntityInput,
    ReadEntityOutput,
    VisibilityValidationError,
)
from .ports import EntityReaderPort

__all__ = [
    # Entry points
    "run_list",
    "run_read",
    # Rules
    "can_read",
    "filter_readable",
    "require_readable",
    # Models
    "ListReadableInput",
    "ListReadableOutput",
    "ReadEntityInput",
    "ReadEntityOutput",
    "VisibilityValidationError",
    # Ports
    "EntityReaderPort",
]
