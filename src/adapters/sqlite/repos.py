import builtins
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any

from src.domain.entities import (
    Entity,
    EntityType,
    FieldDefinition,
    Organization,
    OrganizationPermissions,
)
from src.domain.errors import DuplicateSlug, PurgeFailed, VersionConflict

logger = logging.getLogger(__name__)

_ENTITY_FILTER_COLUMNS = {"organization_id", "entity_type_id", "status", "visibility", "slug"}


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _connect(db_path: str) -> sqlite3.Connection:
    # Autocommit mode; write paths open their own IMMEDIATE transaction
    conn = sqlite3.connect(db_path, isolation_level=None, timeout=30)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


class SQLiteEntityRepo:
    """
    Entity storage with optimistic concurrency.

    The version check and the scope+slug unique index are evaluated inside
    one IMMEDIATE transaction, so concurrent writers serialize on the write
    lock and the loser sees VersionConflict or DuplicateSlug.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def _row_to_entity(self, row: dict[str, Any]) -> Entity:
        return Entity(
            id=row["id"],
            organization_id=row["organization_id"],
            entity_type_id=row["entity_type_id"],
            name=row["name"],
            slug=row["slug"],
            status=row["status"],
            visibility=row["visibility"],
            data=json.loads(row["data_json"]),
            version=row["version"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            created_by=row["created_by"],
            updated_by=row["updated_by"],
        )

    def _params(self, entity: Entity) -> dict[str, Any]:
        return {
            "id": entity.id,
            "organization_id": entity.organization_id,
            "scope_org": entity.organization_id or "",
            "entity_type_id": entity.entity_type_id,
            "name": entity.name,
            "slug": entity.slug,
            "slug_key": entity.slug.strip().lower(),
            "status": entity.status,
            "visibility": entity.visibility,
            "data_json": json.dumps(entity.data),
            "version": entity.version,
            "created_at": entity.created_at.isoformat(),
            "updated_at": entity.updated_at.isoformat(),
            "created_by": entity.created_by,
            "updated_by": entity.updated_by,
        }

    def _slug_holder(self, conn: sqlite3.Connection, entity: Entity) -> str | None:
        row = conn.execute(
            "SELECT id FROM entities WHERE scope_org = ? AND entity_type_id = ? AND slug_key = ?",
            (entity.organization_id or "", entity.entity_type_id, entity.slug.strip().lower()),
        ).fetchone()
        return row["id"] if row else None

    def _store_snapshot(self, conn: sqlite3.Connection, entity: Entity) -> None:
        conn.execute(
            "INSERT INTO entity_versions (entity_id, version, snapshot_json) VALUES (?, ?, ?)",
            (entity.id, entity.version, entity.model_dump_json()),
        )

    def get_by_id(self, entity_id: str) -> Entity | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM entities WHERE id = ?", (entity_id,)).fetchone()
            return self._row_to_entity(row) if row else None
        finally:
            conn.close()

    def get_version(self, entity_id: str, version: int) -> Entity | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT snapshot_json FROM entity_versions WHERE entity_id = ? AND version = ?",
                (entity_id, version),
            ).fetchone()
            return Entity.model_validate_json(row["snapshot_json"]) if row else None
        finally:
            conn.close()

    def list_versions(self, entity_id: str) -> builtins.list[Entity]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT snapshot_json FROM entity_versions WHERE entity_id = ? ORDER BY version",
                (entity_id,),
            ).fetchall()
            return [Entity.model_validate_json(r["snapshot_json"]) for r in rows]
        finally:
            conn.close()

    def list_in_scope(
        self, organization_id: str | None, entity_type_id: str
    ) -> builtins.list[Entity]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM entities WHERE scope_org = ? AND entity_type_id = ? ORDER BY seq",
                (organization_id or "", entity_type_id),
            ).fetchall()
            # scope_org '' is global only; an organization id is never ''
            return [
                self._row_to_entity(r)
                for r in rows
                if r["organization_id"] == organization_id
            ]
        finally:
            conn.close()

    def list_entities(self, filters: dict[str, Any]) -> builtins.list[Entity]:
        query = "SELECT * FROM entities WHERE 1=1"
        params: list[Any] = []
        for key, value in filters.items():
            if key not in _ENTITY_FILTER_COLUMNS:
                raise ValueError(f"Unsupported entity filter: {key}")
            if value is None:
                query += f" AND {key} IS NULL"
            else:
                query += f" AND {key} = ?"
                params.append(value)
        query += " ORDER BY seq"

        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_entity(r) for r in rows]
        finally:
            conn.close()

    def insert(self, entity: Entity) -> Entity:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            existing = conn.execute(
                "SELECT version FROM entities WHERE id = ?", (entity.id,)
            ).fetchone()
            if existing:
                raise VersionConflict(entity.id, 0, existing["version"])
            holder = self._slug_holder(conn, entity)
            if holder is not None:
                logger.warning(
                    "Slug conflict at write time for %s (held by %s)", entity.slug, holder
                )
                raise DuplicateSlug(entity.slug, existing_id=holder)

            conn.execute(
                """
                INSERT INTO entities (
                    id, organization_id, scope_org, entity_type_id, name, slug, slug_key,
                    status, visibility, data_json, version, created_at, updated_at,
                    created_by, updated_by, seq
                ) VALUES (
                    :id, :organization_id, :scope_org, :entity_type_id, :name, :slug,
                    :slug_key, :status, :visibility, :data_json, :version, :created_at,
                    :updated_at, :created_by, :updated_by,
                    (SELECT COALESCE(MAX(seq), 0) + 1 FROM entities)
                )
            """,
                self._params(entity),
            )
            self._store_snapshot(conn, entity)
            conn.execute("COMMIT")
        except sqlite3.IntegrityError as e:
            conn.execute("ROLLBACK")
            raise DuplicateSlug(entity.slug) from e
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

        logger.debug("Inserted entity %s", entity.id)
        return entity

    def compare_and_write(self, entity: Entity, expected_version: int) -> Entity:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            holder = self._slug_holder(conn, entity)
            if holder is not None and holder != entity.id:
                logger.warning(
                    "Slug conflict at write time for %s (held by %s)", entity.slug, holder
                )
                raise DuplicateSlug(entity.slug, existing_id=holder)

            params = self._params(entity)
            params["expected_version"] = expected_version
            cursor = conn.execute(
                """
                UPDATE entities SET
                    organization_id = :organization_id,
                    scope_org = :scope_org,
                    entity_type_id = :entity_type_id,
                    name = :name,
                    slug = :slug,
                    slug_key = :slug_key,
                    status = :status,
                    visibility = :visibility,
                    data_json = :data_json,
                    version = :version,
                    updated_at = :updated_at,
                    updated_by = :updated_by
                WHERE id = :id AND version = :expected_version
            """,
                params,
            )
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT version FROM entities WHERE id = ?", (entity.id,)
                ).fetchone()
                raise VersionConflict(entity.id, expected_version, row["version"] if row else None)

            self._store_snapshot(conn, entity)
            conn.execute("COMMIT")
        except sqlite3.IntegrityError as e:
            conn.execute("ROLLBACK")
            raise DuplicateSlug(entity.slug) from e
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

        logger.debug("Wrote entity %s v%d", entity.id, entity.version)
        return entity

    def purge(self, entity_id: str) -> int:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            removed = conn.execute(
                "DELETE FROM entity_versions WHERE entity_id = ?", (entity_id,)
            ).rowcount
            conn.execute("DELETE FROM entities WHERE id = ?", (entity_id,))
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise PurgeFailed(
                f"Purge of entity '{entity_id}' failed: {e}", details={"entity_id": entity_id}
            ) from e
        finally:
            conn.close()

        logger.debug("Purged entity %s (%d versions)", entity_id, removed)
        return removed


class SQLiteOrganizationRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def _row_to_org(self, row: dict[str, Any]) -> Organization:
        return Organization(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            is_active=bool(row["is_active"]),
            permissions=OrganizationPermissions(
                viewable_type_ids=frozenset(json.loads(row["viewable_type_ids_json"])),
                creatable_type_ids=frozenset(json.loads(row["creatable_type_ids_json"])),
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def save(self, organization: Organization) -> Organization:
        perms = organization.permissions
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO organizations (
                    id, name, slug, is_active, viewable_type_ids_json,
                    creatable_type_ids_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    is_active=excluded.is_active,
                    viewable_type_ids_json=excluded.viewable_type_ids_json,
                    creatable_type_ids_json=excluded.creatable_type_ids_json,
                    updated_at=excluded.updated_at
            """,
                (
                    organization.id,
                    organization.name,
                    organization.slug,
                    1 if organization.is_active else 0,
                    json.dumps(sorted(perms.viewable_type_ids)),
                    json.dumps(sorted(perms.creatable_type_ids)),
                    organization.created_at.isoformat(),
                    organization.updated_at.isoformat(),
                ),
            )
            return organization
        finally:
            conn.close()

    def get_by_id(self, organization_id: str) -> Organization | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM organizations WHERE id = ?", (organization_id,)
            ).fetchone()
            return self._row_to_org(row) if row else None
        finally:
            conn.close()

    def list_all(self) -> builtins.list[Organization]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM organizations ORDER BY name").fetchall()
            return [self._row_to_org(r) for r in rows]
        finally:
            conn.close()


class SQLiteEntityTypeRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        return _connect(self.db_path)

    def _row_to_type(self, row: dict[str, Any]) -> EntityType:
        return EntityType(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            default_visibility=row["default_visibility"],
            fields=[FieldDefinition.model_validate(f) for f in json.loads(row["fields_json"])],
            is_active=bool(row["is_active"]),
        )

    def save(self, entity_type: EntityType) -> EntityType:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO entity_types (
                    id, name, slug, default_visibility, fields_json, is_active
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    default_visibility=excluded.default_visibility,
                    fields_json=excluded.fields_json,
                    is_active=excluded.is_active
            """,
                (
                    entity_type.id,
                    entity_type.name,
                    entity_type.slug,
                    entity_type.default_visibility,
                    json.dumps([f.model_dump() for f in entity_type.fields]),
                    1 if entity_type.is_active else 0,
                ),
            )
            return entity_type
        finally:
            conn.close()

    def get_by_id(self, entity_type_id: str) -> EntityType | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM entity_types WHERE id = ?", (entity_type_id,)
            ).fetchone()
            return self._row_to_type(row) if row else None
        finally:
            conn.close()

    def list_all(self) -> builtins.list[EntityType]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM entity_types ORDER BY name").fetchall()
            return [self._row_to_type(r) for r in rows]
        finally:
            conn.close()
