"""
In-memory repository tests: compare-and-write, scoped slug constraint, history.
"""

import threading

import pytest

from src.adapters.memory.repos import (
    InMemoryEntityRepo,
    InMemoryEntityTypeRepo,
    InMemoryOrganizationRepo,
)
from src.domain.entities import Entity, EntityType, Organization
from src.domain.errors import DuplicateSlug, VersionConflict


def make_entity(
    entity_id: str = "e1",
    slug: str = "acme",
    organization_id: str | None = "org_1",
    version: int = 1,
    entity_type_id: str = "articles",
    **updates: object,
) -> Entity:
    return Entity(
        id=entity_id,
        organization_id=organization_id,
        entity_type_id=entity_type_id,
        name=f"Name {entity_id}",
        slug=slug,
        version=version,
        **updates,  # type: ignore[arg-type]
    )


@pytest.fixture
def repo() -> InMemoryEntityRepo:
    return InMemoryEntityRepo()


class TestInsert:
    def test_insert_and_get(self, repo: InMemoryEntityRepo) -> None:
        entity = repo.insert(make_entity())
        assert repo.get_by_id("e1") == entity
        assert repo.get_version("e1", 1) == entity

    def test_slug_unique_per_scope_case_insensitive(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        with pytest.raises(DuplicateSlug) as exc:
            repo.insert(make_entity("e2", slug="ACME"))
        assert exc.value.existing_id == "e1"

    def test_same_slug_other_scopes(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        repo.insert(make_entity("e2", organization_id="org_2"))
        repo.insert(make_entity("e3", organization_id=None))
        repo.insert(make_entity("e4", entity_type_id="events"))
        assert len(repo.list_entities({})) == 4

    def test_duplicate_id(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        with pytest.raises(VersionConflict):
            repo.insert(make_entity(slug="other"))


class TestCompareAndWrite:
    def test_write_when_version_matches(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        updated = repo.compare_and_write(make_entity(version=2, name="New"), expected_version=1)
        assert repo.get_by_id("e1") == updated
        assert [e.version for e in repo.list_versions("e1")] == [1, 2]

    def test_stale_version_rejected(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        repo.compare_and_write(make_entity(version=2), expected_version=1)
        with pytest.raises(VersionConflict) as exc:
            repo.compare_and_write(make_entity(version=2, name="Late"), expected_version=1)
        assert exc.value.actual == 2
        assert repo.get_by_id("e1").name == "Name e1"  # type: ignore[union-attr]

    def test_missing_entity(self, repo: InMemoryEntityRepo) -> None:
        with pytest.raises(VersionConflict) as exc:
            repo.compare_and_write(make_entity(version=2), expected_version=1)
        assert exc.value.actual is None

    def test_slug_change_moves_claim(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        repo.compare_and_write(make_entity(version=2, slug="renamed"), expected_version=1)
        repo.insert(make_entity("e2", slug="acme"))
        with pytest.raises(DuplicateSlug):
            repo.insert(make_entity("e3", slug="renamed"))

    def test_slug_change_into_taken_slug(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        repo.insert(make_entity("e2", slug="other"))
        with pytest.raises(DuplicateSlug):
            repo.compare_and_write(make_entity("e2", slug="acme", version=2), expected_version=1)

    def test_concurrent_writers_single_winner(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        barrier = threading.Barrier(8)
        outcomes: list[str] = []

        def writer(n: int) -> None:
            barrier.wait()
            try:
                repo.compare_and_write(make_entity(version=2, name=f"W{n}"), expected_version=1)
                outcomes.append("ok")
            except VersionConflict:
                outcomes.append("conflict")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 7


class TestQueriesAndPurge:
    def test_list_in_scope_exact(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity("e1"))
        repo.insert(make_entity("e2", slug="b"))
        repo.insert(make_entity("g1", organization_id=None))
        assert [e.id for e in repo.list_in_scope("org_1", "articles")] == ["e1", "e2"]
        assert [e.id for e in repo.list_in_scope(None, "articles")] == ["g1"]

    def test_list_entities_filters(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity("e1"))
        repo.insert(make_entity("e2", slug="b", status="published"))
        assert [e.id for e in repo.list_entities({"status": "published"})] == ["e2"]

    def test_purge(self, repo: InMemoryEntityRepo) -> None:
        repo.insert(make_entity())
        repo.compare_and_write(make_entity(version=2), expected_version=1)
        assert repo.purge("e1") == 2
        assert repo.get_by_id("e1") is None
        assert repo.list_versions("e1") == []
        assert repo.purge("e1") == 0
        repo.insert(make_entity("e9"))


class TestReferenceRepos:
    def test_organizations(self) -> None:
        repo = InMemoryOrganizationRepo([Organization(id="o", name="O")])
        assert repo.get_by_id("o") is not None
        repo.save(Organization(id="p", name="P"))
        assert {o.id for o in repo.list_all()} == {"o", "p"}

    def test_entity_types(self) -> None:
        repo = InMemoryEntityTypeRepo()
        repo.save(EntityType(id="t", name="T"))
        assert repo.get_by_id("t") is not None
        assert repo.get_by_id("x") is None
