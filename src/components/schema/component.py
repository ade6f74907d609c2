"""
Schema component - Dynamic field validation against entity types.

Validates the dynamic `data` map of an entity against the field definitions
of its entity type. Used in partial mode while authoring drafts and in full
mode as the mandatory gate before submission for approval.
"""

from __future__ import annotations

from ._impl import validate_entity_data, validate_field_updates
from .models import (
    SchemaValidationError,
    ValidateEntityDataInput,
    ValidateEntityDataOutput,
)
from .ports import EntityTypeRepoPort


def run_validate(
    inp: ValidateEntityDataInput,
    *,
    type_repo: EntityTypeRepoPort,
) -> ValidateEntityDataOutput:
    """Validate entity data for one entity type."""
    entity_type = type_repo.get_by_id(inp.entity_type_id)
    if entity_type is None:
        return ValidateEntityDataOutput(
            errors=[
                SchemaValidationError(
                    code="NotFound",
                    message=f"Entity type '{inp.entity_type_id}' not found",
                    field="entity_type_id",
                )
            ],
            success=False,
        )

    if inp.partial:
        messages = validate_field_updates(inp.data, entity_type)
    else:
        messages = validate_entity_data(inp.data, entity_type)

    errors = [
        SchemaValidationError(code="SchemaValidationFailed", message=m, field="data")
        for m in messages
    ]
    return ValidateEntityDataOutput(errors=errors, success=not errors)
