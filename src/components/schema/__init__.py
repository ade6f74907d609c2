"""
Schema component - Entity type field validation.
"""

from ._impl import (
    EntityTypeSchemaValidator,
    validate_entity_data,
    validate_field_updates,
    validate_field_value,
)
from .component import run_validate
from .models import (
    SchemaValidationError,
    ValidateEntityDataInput,
    ValidateEntityDataOutput,
)
from .ports import EntityTypeRepoPort

__all__ = [
    "run_validate",
    "EntityTypeSchemaValidator",
    "validate_entity_data",
    "validate_field_updates",
    "validate_field_value",
    "SchemaValidationError",
    "ValidateEntityDataInput",
    "ValidateEntityDataOutput",
    "EntityTypeRepoPort",
]
