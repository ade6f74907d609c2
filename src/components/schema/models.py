"""
Schema component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SchemaValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateEntityDataInput:
    """
    Input for validating dynamic field values.

    partial=True validates only the supplied fields (create/update of drafts);
    partial=False also enforces required fields (submission for approval).
    """

    entity_type_id: str
    data: dict[str, Any]
    partial: bool = False


@dataclass(frozen=True)
class ValidateEntityDataOutput:
    errors: list[SchemaValidationError] = field(default_factory=list)
    success: bool = True
