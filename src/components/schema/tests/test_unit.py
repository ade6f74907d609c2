"""
Schema component unit tests.

Tests for per-field value checks and full/partial entity data validation.
"""

from __future__ import annotations

import logging

import pytest

from src.components.schema import (
    EntityTypeSchemaValidator,
    ValidateEntityDataInput,
    run_validate,
    validate_entity_data,
    validate_field_updates,
    validate_field_value,
)
from src.domain.entities import (
    Entity,
    EntityType,
    FieldConstraints,
    FieldDefinition,
    SelectOption,
)

# --- Mock Implementations ---


class MockEntityTypeRepo:
    def __init__(self, types: list[EntityType]) -> None:
        self._types = {t.id: t for t in types}

    def get_by_id(self, entity_type_id: str) -> EntityType | None:
        return self._types.get(entity_type_id)

    def save(self, entity_type: EntityType) -> EntityType:
        self._types[entity_type.id] = entity_type
        return entity_type


def field(field_type: str, **constraints: object) -> FieldDefinition:
    return FieldDefinition(
        id="f",
        name="Field",
        type=field_type,  # type: ignore[arg-type]
        constraints=FieldConstraints(**constraints),  # type: ignore[arg-type]
    )


@pytest.fixture
def entity_type() -> EntityType:
    return EntityType(
        id="articles",
        name="Articles",
        fields=[
            FieldDefinition(id="title", name="Title", type="string", required=True),
            FieldDefinition(
                id="year",
                name="Year",
                type="number",
                constraints=FieldConstraints(min_value=1900, max_value=2100),
            ),
            FieldDefinition(
                id="category",
                name="Category",
                type="select",
                constraints=FieldConstraints(
                    options=[SelectOption(value="news"), SelectOption(value="blog")]
                ),
            ),
        ],
    )


# --- Field Values ---


class TestTextFields:
    def test_length_bounds(self) -> None:
        f = field("string", min_length=2, max_length=4)
        assert validate_field_value(f, "a") is not None
        assert validate_field_value(f, "abc") is None
        assert validate_field_value(f, "abcde") is not None

    def test_pattern_is_anchored(self) -> None:
        f = field("text", pattern="[a-z]+")
        assert validate_field_value(f, "abc") is None
        assert validate_field_value(f, "abc1") is not None

    def test_pattern_message(self) -> None:
        f = field("string", pattern="^x$", pattern_message="Must be x")
        assert validate_field_value(f, "y") == "Must be x"

    def test_invalid_pattern_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        f = field("string", pattern="([")
        with caplog.at_level(logging.WARNING):
            assert validate_field_value(f, "anything") is None
        assert "Invalid pattern" in caplog.text

    def test_non_string(self) -> None:
        assert validate_field_value(field("markdown"), 5) is not None


class TestOtherFields:
    def test_number_range_and_bool(self) -> None:
        f = field("number", min_value=0, max_value=10)
        assert validate_field_value(f, 5) is None
        assert validate_field_value(f, 5.5) is None
        assert validate_field_value(f, -1) is not None
        assert validate_field_value(f, 11) is not None
        assert validate_field_value(f, True) is not None
        assert validate_field_value(f, "5") is not None

    def test_boolean(self) -> None:
        assert validate_field_value(field("boolean"), False) is None
        assert validate_field_value(field("boolean"), "false") is not None

    def test_date(self) -> None:
        assert validate_field_value(field("date"), "2024-06-15") is None
        assert validate_field_value(field("date"), 1718409600000) is None
        assert validate_field_value(field("date"), "not a date") is not None
        assert validate_field_value(field("date"), [2024]) is not None

    def test_select_and_multiselect(self) -> None:
        options = [SelectOption(value="a"), SelectOption(value="b")]
        assert validate_field_value(field("select", options=options), "a") is None
        assert validate_field_value(field("select", options=options), "c") is not None
        assert validate_field_value(field("multiselect", options=options), ["a", "b"]) is None
        assert validate_field_value(field("multiselect", options=options), ["a", "c"]) is not None
        assert validate_field_value(field("multiselect", options=options), "a") is not None

    def test_link(self) -> None:
        assert validate_field_value(field("link"), "e1") is None
        assert validate_field_value(field("link"), ["e1"]) is not None
        assert validate_field_value(field("link", allow_multiple=True), ["e1", "e2"]) is None
        assert validate_field_value(field("link", allow_multiple=True), ["e1", 2]) is not None

    def test_weblink(self) -> None:
        assert validate_field_value(field("weblink"), "https://example.com") is None
        assert validate_field_value(field("weblink"), {"url": "http://x.org", "alias": "X"}) is None
        assert validate_field_value(field("weblink"), "ftp://example.com") is not None
        assert validate_field_value(field("weblink"), {"alias": "X"}) is not None
        assert validate_field_value(field("weblink", require_https=True), "http://x.org") is not None
        assert validate_field_value(field("weblink"), 42) is not None

    def test_files(self) -> None:
        for t in ("file", "image", "logo"):
            assert validate_field_value(field(t), "https://cdn/x.png") is None
            assert validate_field_value(field(t), {"url": "https://cdn/x.png"}) is None
            assert validate_field_value(field(t), {"url": 3}) is not None
            assert validate_field_value(field(t), 3) is not None

    def test_country(self) -> None:
        assert validate_field_value(field("country"), "NZ") is None
        assert validate_field_value(field("country"), 64) is not None


# --- Entity Data ---


class TestValidateEntityData:
    def test_required_missing(self, entity_type: EntityType) -> None:
        errors = validate_entity_data({"year": 2000}, entity_type)
        assert errors == ["Field 'Title' is required"]

    def test_empty_string_counts_as_missing(self, entity_type: EntityType) -> None:
        assert validate_entity_data({"title": ""}, entity_type) == ["Field 'Title' is required"]

    def test_all_errors_collected(self, entity_type: EntityType) -> None:
        errors = validate_entity_data(
            {"title": "T", "year": 1800, "category": "other"}, entity_type
        )
        assert len(errors) == 2

    def test_valid(self, entity_type: EntityType) -> None:
        assert validate_entity_data({"title": "T", "year": 2000}, entity_type) == []


class TestValidateFieldUpdates:
    def test_requiredness_not_checked(self, entity_type: EntityType) -> None:
        assert validate_field_updates({"year": 2000}, entity_type) == []

    def test_unknown_field_rejected(self, entity_type: EntityType) -> None:
        errors = validate_field_updates({"colour": "red"}, entity_type)
        assert errors == ["Field 'colour' is not defined in this entity type"]

    def test_none_clears_field(self, entity_type: EntityType) -> None:
        assert validate_field_updates({"year": None}, entity_type) == []


class TestValidatorAndEntryPoint:
    def test_validator_full_and_partial(self, entity_type: EntityType) -> None:
        validator = EntityTypeSchemaValidator(MockEntityTypeRepo([entity_type]))
        entity = Entity(
            id="e1", organization_id="org_1", entity_type_id="articles", name="A", slug="a"
        )
        assert validator.validate(entity) == ["Field 'Title' is required"]
        assert validator.validate_partial("articles", {"year": 1}) != []

    def test_validator_unknown_type(self) -> None:
        validator = EntityTypeSchemaValidator(MockEntityTypeRepo([]))
        assert validator.validate_partial("nope", {}) == ["Entity type 'nope' not found"]

    def test_run_validate(self, entity_type: EntityType) -> None:
        repo = MockEntityTypeRepo([entity_type])
        out = run_validate(ValidateEntityDataInput(entity_type_id="articles", data={}), type_repo=repo)
        assert out.success is False
        assert out.errors[0].code == "SchemaValidationFailed"

        out = run_validate(
            ValidateEntityDataInput(entity_type_id="articles", data={}, partial=True),
            type_repo=repo,
        )
        assert out.success is True

    def test_run_validate_missing_type(self) -> None:
        out = run_validate(
            ValidateEntityDataInput(entity_type_id="x", data={}), type_repo=MockEntityTypeRepo([])
        )
        assert out.errors[0].code == "NotFound"
