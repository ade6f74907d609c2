"""
Field schema validation for dynamic entity data.

Each field value is checked against its FieldDefinition: type, length and
range constraints, anchored patterns, and option membership. Errors are
collected as messages rather than raised so a caller can report every bad
field at once.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from src.domain.entities import Entity, EntityType, FieldDefinition

from .ports import EntityTypeRepoPort

logger = logging.getLogger(__name__)

_TEXT_TYPES = frozenset({"string", "text", "markdown"})
_FILE_TYPES = frozenset({"file", "image", "logo"})


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _anchored(pattern: str) -> str:
    if not pattern.startswith("^"):
        pattern = "^" + pattern
    if not pattern.endswith("$"):
        pattern = pattern + "$"
    return pattern


def _check_text(field: FieldDefinition, value: Any) -> str | None:
    c = field.constraints
    if not isinstance(value, str):
        return f"Field '{field.name}' must be a string"
    if c.min_length is not None and len(value) < c.min_length:
        return f"Field '{field.name}' must be at least {c.min_length} characters"
    if c.max_length is not None and len(value) > c.max_length:
        return f"Field '{field.name}' must not exceed {c.max_length} characters"
    if c.pattern:
        try:
            regex = re.compile(_anchored(c.pattern))
        except re.error as e:
            # A broken pattern in the type definition must not block authors
            logger.warning("Invalid pattern for field %s: %r (%s)", field.id, c.pattern, e)
            return None
        if not regex.match(value):
            return c.pattern_message or f"Field '{field.name}' does not match required pattern"
    return None


def _check_number(field: FieldDefinition, value: Any) -> str | None:
    c = field.constraints
    if isinstance(value, bool) or not isinstance(value, int | float):
        return f"Field '{field.name}' must be a number"
    if c.min_value is not None and value < c.min_value:
        return f"Field '{field.name}' must be at least {c.min_value:g}"
    if c.max_value is not None and value > c.max_value:
        return f"Field '{field.name}' must not exceed {c.max_value:g}"
    return None


def _check_date(field: FieldDefinition, value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        return f"Field '{field.name}' must be a date (string or number)"
    if isinstance(value, str):
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return f"Field '{field.name}' must be a valid date string"
    return None


def _option_values(field: FieldDefinition) -> list[str] | None:
    options = field.constraints.options
    if options is None:
        return None
    return [o.value for o in options]


def _check_select(field: FieldDefinition, value: Any) -> str | None:
    valid = _option_values(field)
    if valid is not None and value not in valid:
        return f"Field '{field.name}' must be one of: {', '.join(valid)}"
    return None


def _check_multiselect(field: FieldDefinition, value: Any) -> str | None:
    if not isinstance(value, list):
        return f"Field '{field.name}' must be an array"
    valid = _option_values(field)
    if valid is not None:
        for v in value:
            if v not in valid:
                return f"Field '{field.name}' contains invalid value: {v}"
    return None


def _check_link(field: FieldDefinition, value: Any) -> str | None:
    if field.constraints.allow_multiple:
        if not isinstance(value, list):
            return f"Field '{field.name}' must be an array"
        if any(not isinstance(v, str) for v in value):
            return f"Field '{field.name}' must contain only strings"
        return None
    if not isinstance(value, str):
        return f"Field '{field.name}' must be a string"
    return None


def _check_url(field: FieldDefinition, url: str) -> str | None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return f"Field '{field.name}' must be a valid HTTP or HTTPS URL"
    if field.constraints.require_https and parsed.scheme != "https":
        return f"Field '{field.name}' must be a valid HTTPS URL"
    return None


def _check_weblink(field: FieldDefinition, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return _check_url(field, value)
    if isinstance(value, dict):
        url = value.get("url")
        if not isinstance(url, str) or not url:
            return f"Field '{field.name}' must have a 'url' property (string)"
        error = _check_url(field, url)
        if error:
            return error
        alias = value.get("alias")
        if alias is not None and not isinstance(alias, str):
            return f"Field '{field.name}' alias must be a string if provided"
        return None
    return f"Field '{field.name}' must be null, a string URL, or an object with url property"


def _check_file(field: FieldDefinition, value: Any) -> str | None:
    if isinstance(value, str):
        return None
    if isinstance(value, dict):
        url = value.get("url")
        if url is not None and not isinstance(url, str):
            return f"Field '{field.name}' file object must have a string 'url' property"
        return None
    return f"Field '{field.name}' must be a string or object"


def validate_field_value(field: FieldDefinition, value: Any) -> str | None:
    """Return an error message for an invalid value, or None."""
    if field.type in _TEXT_TYPES:
        return _check_text(field, value)
    if field.type == "number":
        return _check_number(field, value)
    if field.type == "boolean":
        if not isinstance(value, bool):
            return f"Field '{field.name}' must be a boolean"
        return None
    if field.type == "date":
        return _check_date(field, value)
    if field.type == "select":
        return _check_select(field, value)
    if field.type == "multiselect":
        return _check_multiselect(field, value)
    if field.type == "link":
        return _check_link(field, value)
    if field.type == "weblink":
        return _check_weblink(field, value)
    if field.type in _FILE_TYPES:
        return _check_file(field, value)
    if field.type == "country":
        if not isinstance(value, str | dict):
            return f"Field '{field.name}' must be a string or object"
        return None

    logger.warning("Unknown field type %r for field %s, skipping", field.type, field.id)
    return None


def validate_entity_data(data: dict[str, Any], entity_type: EntityType) -> list[str]:
    """Validate every field of the type, including requiredness."""
    errors: list[str] = []
    for field in entity_type.fields:
        value = data.get(field.id)
        if _is_empty(value):
            if field.required:
                errors.append(f"Field '{field.name}' is required")
            continue
        error = validate_field_value(field, value)
        if error:
            errors.append(error)
    return errors


def validate_field_updates(updates: dict[str, Any], entity_type: EntityType) -> list[str]:
    """Validate only the supplied fields; unknown field ids are errors."""
    errors: list[str] = []
    for field_id, value in updates.items():
        field = entity_type.get_field(field_id)
        if field is None:
            errors.append(f"Field '{field_id}' is not defined in this entity type")
            continue
        if value is None:
            continue
        error = validate_field_value(field, value)
        if error:
            errors.append(error)
    return errors


class EntityTypeSchemaValidator:
    """Validates entity data against types loaded from a repository."""

    def __init__(self, type_repo: EntityTypeRepoPort) -> None:
        self._type_repo = type_repo

    def validate(self, entity: Entity) -> list[str]:
        """Full validation, used as the submit-for-approval gate."""
        entity_type = self._type_repo.get_by_id(entity.entity_type_id)
        if entity_type is None:
            return [f"Entity type '{entity.entity_type_id}' not found"]
        return validate_entity_data(entity.data, entity_type)

    def validate_partial(self, entity_type_id: str, data: dict[str, Any]) -> list[str]:
        entity_type = self._type_repo.get_by_id(entity_type_id)
        if entity_type is None:
            return [f"Entity type '{entity_type_id}' not found"]
        return validate_field_updates(data, entity_type)
