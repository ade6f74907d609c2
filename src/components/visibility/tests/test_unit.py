"""
Visibility component unit tests.

Status rules and visibility rules compose with AND; hidden reads are NotFound.
"""

from __future__ import annotations

from typing import Any

import pytest

from src.components.visibility import (
    ListReadableInput,
    ReadEntityInput,
    can_read,
    filter_readable,
    require_readable,
    run_list,
    run_read,
)
from src.domain.entities import Entity, EntityStatus, Principal, VisibilityScope
from src.domain.errors import NotFound

SUPERADMIN = Principal(user_id="root", role="superadmin")
OWNER_ADMIN = Principal(user_id="a1", role="org_admin", organization_id="org_1")
OWNER_MEMBER = Principal(user_id="m1", role="org_member", organization_id="org_1")
OTHER_MEMBER = Principal(user_id="m2", role="org_member", organization_id="org_2")


def make_entity(
    status: EntityStatus = "published",
    visibility: VisibilityScope = "public",
    organization_id: str | None = "org_1",
    entity_id: str = "e1",
) -> Entity:
    return Entity(
        id=entity_id,
        organization_id=organization_id,
        entity_type_id="articles",
        name=f"Entity {entity_id}",
        slug=f"entity-{entity_id}",
        status=status,
        visibility=visibility,
    )


class MockEntityReader:
    def __init__(self, entities: list[Entity]) -> None:
        self._entities = {e.id: e for e in entities}

    def get_by_id(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def list_entities(self, filters: dict[str, Any]) -> list[Entity]:
        return [
            e
            for e in self._entities.values()
            if all(getattr(e, k) == v for k, v in filters.items())
        ]


class TestPublished:
    def test_public_visible_to_anonymous(self) -> None:
        assert can_read(None, make_entity(visibility="public")) is True

    def test_authenticated_requires_principal(self) -> None:
        entity = make_entity(visibility="authenticated")
        assert can_read(None, entity) is False
        assert can_read(OTHER_MEMBER, entity) is True

    def test_members_requires_same_org(self) -> None:
        entity = make_entity(visibility="members")
        assert can_read(OWNER_MEMBER, entity) is True
        assert can_read(OTHER_MEMBER, entity) is False
        assert can_read(None, entity) is False

    def test_global_members_entity_hidden_from_org_principals(self) -> None:
        entity = make_entity(visibility="members", organization_id=None)
        assert can_read(OWNER_MEMBER, entity) is False
        assert can_read(SUPERADMIN, entity) is True


class TestUnpublished:
    @pytest.mark.parametrize("status", ["draft", "pending", "archived"])
    def test_owner_only_even_when_public(self, status: EntityStatus) -> None:
        entity = make_entity(status=status, visibility="public")
        assert can_read(OWNER_MEMBER, entity) is True
        assert can_read(OWNER_ADMIN, entity) is True
        assert can_read(OTHER_MEMBER, entity) is False
        assert can_read(None, entity) is False

    def test_deleted_only_for_owning_admin_with_flag(self) -> None:
        entity = make_entity(status="deleted", visibility="public")
        assert can_read(OWNER_ADMIN, entity) is False
        assert can_read(OWNER_ADMIN, entity, include_deleted=True) is True
        assert can_read(OWNER_MEMBER, entity, include_deleted=True) is False
        assert can_read(OTHER_MEMBER, entity, include_deleted=True) is False

    def test_deleted_members_entity_still_needs_visibility(self) -> None:
        entity = make_entity(status="deleted", visibility="members", organization_id="org_2")
        assert can_read(OWNER_ADMIN, entity, include_deleted=True) is False

    @pytest.mark.parametrize("status", ["draft", "pending", "published", "archived", "deleted"])
    def test_superadmin_sees_everything(self, status: EntityStatus) -> None:
        entity = make_entity(status=status, visibility="members", organization_id="org_9")
        assert can_read(SUPERADMIN, entity) is True


class TestRequireReadable:
    def test_hidden_is_not_found(self) -> None:
        with pytest.raises(NotFound) as exc:
            require_readable(OTHER_MEMBER, make_entity(status="draft"))
        assert exc.value.kind == "NotFound"

    def test_missing_is_not_found(self) -> None:
        with pytest.raises(NotFound):
            require_readable(OWNER_ADMIN, None, entity_id="zzz")

    def test_readable_returned(self) -> None:
        entity = make_entity()
        assert require_readable(None, entity) is entity


class TestEntryPoints:
    @pytest.fixture
    def repo(self) -> MockEntityReader:
        return MockEntityReader(
            [
                make_entity(entity_id="e1"),
                make_entity(entity_id="e2", status="draft"),
                make_entity(entity_id="e3", organization_id="org_2", visibility="members"),
            ]
        )

    def test_run_read_hidden(self, repo: MockEntityReader) -> None:
        out = run_read(ReadEntityInput(entity_id="e2", principal=OTHER_MEMBER), repo=repo)
        assert out.success is False
        assert out.errors[0].code == "NotFound"

    def test_run_read_visible(self, repo: MockEntityReader) -> None:
        out = run_read(ReadEntityInput(entity_id="e2", principal=OWNER_MEMBER), repo=repo)
        assert out.success is True
        assert out.entity is not None and out.entity.id == "e2"

    def test_run_list_filters_readable(self, repo: MockEntityReader) -> None:
        out = run_list(ListReadableInput(principal=None), repo=repo)
        assert [e.id for e in out.items] == ["e1"]
        assert out.total == 1

    def test_run_list_with_filters(self, repo: MockEntityReader) -> None:
        out = run_list(ListReadableInput(principal=SUPERADMIN, organization_id="org_2"), repo=repo)
        assert [e.id for e in out.items] == ["e3"]

    def test_filter_readable(self, repo: MockEntityReader) -> None:
        entities = repo.list_entities({})
        assert [e.id for e in filter_readable(OWNER_MEMBER, entities)] == ["e1", "e2"]
