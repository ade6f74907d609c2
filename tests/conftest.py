from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.memory.repos import (
    InMemoryEntityRepo,
    InMemoryEntityTypeRepo,
    InMemoryOrganizationRepo,
)
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.components.lifecycle import EntityLifecycleService, build_config
from src.domain.entities import (
    EntityType,
    FieldDefinition,
    Organization,
    OrganizationPermissions,
)
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


class FixedClock:
    """Deterministic TimePort."""

    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2025, 1, 1, 9, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time

    def advance(self, delta: timedelta) -> None:
        self._time = self._time + delta


def make_organizations() -> list[Organization]:
    perms = OrganizationPermissions(
        viewable_type_ids=frozenset({"articles", "events"}),
        creatable_type_ids=frozenset({"articles"}),
    )
    return [
        Organization(id="org_1", name="Org One", slug="org-one", permissions=perms),
        Organization(id="org_2", name="Org Two", slug="org-two", permissions=perms),
    ]


def make_entity_types() -> list[EntityType]:
    return [
        EntityType(
            id="articles",
            name="Articles",
            slug="articles",
            fields=[
                FieldDefinition(id="summary", name="Summary", type="text", required=True),
                FieldDefinition(id="website", name="Website", type="weblink"),
            ],
        ),
        EntityType(id="events", name="Events", slug="events", default_visibility="public"),
    ]


@pytest.fixture
def rules() -> Rules:
    """Load the REAL rules file from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def entity_repo() -> InMemoryEntityRepo:
    return InMemoryEntityRepo()


@pytest.fixture
def org_repo() -> InMemoryOrganizationRepo:
    return InMemoryOrganizationRepo(make_organizations())


@pytest.fixture
def type_repo() -> InMemoryEntityTypeRepo:
    return InMemoryEntityTypeRepo(make_entity_types())


@pytest.fixture
def lifecycle(
    entity_repo: InMemoryEntityRepo,
    org_repo: InMemoryOrganizationRepo,
    type_repo: InMemoryEntityTypeRepo,
    clock: FixedClock,
    rules: Rules,
) -> EntityLifecycleService:
    return EntityLifecycleService(
        repo=entity_repo,
        org_repo=org_repo,
        type_repo=type_repo,
        time=clock,
        config=build_config(rules),
    )


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = str(tmp_path / "lifecycle.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path
