"""
Domain model and error taxonomy tests.
"""

import pytest
from pydantic import ValidationError

from src.domain.entities import Entity, FieldConstraints, Principal, TransitionRecord
from src.domain.errors import (
    CrossTenantAccessDenied,
    DuplicateNameWarning,
    DuplicateSlug,
    InvalidTransition,
    LifecycleError,
    MalformedPrincipal,
    NotFound,
    PurgeFailed,
    SchemaValidationFailed,
    Unauthorized,
    VersionConflict,
)


class TestEntity:
    def test_defaults(self) -> None:
        entity = Entity(id="e1", organization_id="o", entity_type_id="t", name="N", slug="n")
        assert entity.status == "draft"
        assert entity.visibility == "members"
        assert entity.version == 1
        assert entity.is_global is False

    def test_status_is_enumerated(self) -> None:
        with pytest.raises(ValidationError):
            Entity(
                id="e1", organization_id=None, entity_type_id="t", name="N", slug="n", status="live"  # type: ignore[arg-type]
            )


class TestPrincipal:
    def test_aliases(self) -> None:
        principal = Principal.model_validate(
            {"userId": "u", "role": "org_admin", "organizationId": "o"}
        )
        assert principal.user_id == "u"
        assert principal.organization_id == "o"

    def test_frozen(self) -> None:
        principal = Principal(user_id="u", role="superadmin")
        with pytest.raises(ValidationError):
            principal.role = "org_member"  # type: ignore[misc]


class TestTransitionRecord:
    def test_purge_record_has_no_target(self) -> None:
        from datetime import UTC, datetime

        record = TransitionRecord(
            entity_id="e1",
            from_status="published",
            to_status=None,
            action="superDelete",
            principal_id="root",
            timestamp=datetime(2025, 1, 1, tzinfo=UTC),
        )
        assert record.to_status is None
        assert record.version is None


class TestFieldConstraints:
    def test_camel_case_aliases(self) -> None:
        c = FieldConstraints.model_validate({"minLength": 2, "requireHttps": True})
        assert c.min_length == 2
        assert c.require_https is True


class TestErrors:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (Unauthorized("x"), "Unauthorized"),
            (CrossTenantAccessDenied("x"), "CrossTenantAccessDenied"),
            (InvalidTransition("approve", "draft", []), "InvalidTransition"),
            (DuplicateSlug("acme"), "DuplicateSlug"),
            (NotFound("Entity", "e1"), "NotFound"),
            (VersionConflict("e1", 1, 2), "VersionConflict"),
            (MalformedPrincipal("x"), "MalformedPrincipal"),
            (SchemaValidationFailed("x", ["a"]), "SchemaValidationFailed"),
            (PurgeFailed("x"), "PurgeFailed"),
        ],
    )
    def test_kinds(self, error: LifecycleError, kind: str) -> None:
        assert isinstance(error, LifecycleError)
        assert error.kind == kind
        assert str(error) == error.message

    def test_invalid_transition_message(self) -> None:
        error = InvalidTransition("approve", "draft", ["update", "delete"])
        assert "approve" in error.message
        assert error.details["allowed"] == ["update", "delete"]

    def test_not_found_without_id(self) -> None:
        assert NotFound("Entity").message == "Entity not found"

    def test_duplicate_name_is_not_an_exception(self) -> None:
        warning = DuplicateNameWarning(name="Acme", existing_id="e1")
        assert not isinstance(warning, Exception)
        assert warning.kind == "DuplicateNameWarning"
        assert "e1" in warning.message
