"""
SQLite document store and simple migration system.

Each collection is a table of ``(id, doc)`` rows where ``doc`` holds
the JSON document.  Filters, sort keys and uniqueness constraints are
expressed with SQLite's JSON functions (``json_extract``, ``json_type``
and ``json_each``), so any field of a document can be queried without
schema changes.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .config import settings
from .errors import DuplicateError, UpstreamError
from .query import EQ, GT, GTE, IN, LT, LTE, Condition, SortKey
from .store import DocumentStore, check_kind, new_document, project

logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: collections
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (id TEXT PRIMARY KEY, doc TEXT NOT NULL);
        CREATE TABLE IF NOT EXISTS bootcamps (id TEXT PRIMARY KEY, doc TEXT NOT NULL);
        CREATE TABLE IF NOT EXISTS courses (id TEXT PRIMARY KEY, doc TEXT NOT NULL);
        CREATE TABLE IF NOT EXISTS reviews (id TEXT PRIMARY KEY, doc TEXT NOT NULL);
        """,
    ),
    # Migration 2: uniqueness rules and lookup indexes
    (
        2,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email
            ON users (json_extract(doc, '$.email'));
        CREATE UNIQUE INDEX IF NOT EXISTS idx_bootcamps_name
            ON bootcamps (json_extract(doc, '$.name'));
        CREATE UNIQUE INDEX IF NOT EXISTS idx_reviews_bootcamp_user
            ON reviews (json_extract(doc, '$.bootcamp'), json_extract(doc, '$.user'));
        CREATE INDEX IF NOT EXISTS idx_courses_bootcamp
            ON courses (json_extract(doc, '$.bootcamp'));
        CREATE INDEX IF NOT EXISTS idx_bootcamps_user
            ON bootcamps (json_extract(doc, '$.user'));
        """,
    ),
]

_SQL_OPERATORS = {EQ: "=", GT: ">", GTE: ">=", LT: "<", LTE: "<="}


def get_database_path(database_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths (and ``:memory:``) are used as is; relative paths are
    resolved against the project root.
    """
    db_url = database_url or settings.database_url
    if db_url == ":memory:" or os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def json_path(field: str) -> Optional[str]:
    """Translate ``location.city`` into the JSON path ``$."location"."city"``.

    Returns ``None`` for names that cannot be expressed safely.
    """
    parts = field.split(".")
    if any(not part or '"' in part for part in parts):
        return None
    return "$" + "".join(f'."{part}"' for part in parts)


def _type_guard(value: Any) -> str:
    # Comparisons only hold between values of the same JSON type family.
    if isinstance(value, str):
        return "('text')"
    return "('integer', 'real')"


def condition_sql(condition: Condition) -> Tuple[str, List[Any]]:
    """Compile one condition into a SQL predicate over the ``doc`` column.

    Array valued fields match when any element matches, scalars match
    directly.
    """
    path = json_path(condition.field)
    if path is None:
        return "0", []

    if condition.op == IN:
        values = list(condition.value)
        if not values:
            return "0", []
        marks = ", ".join("?" for _ in values)
        sql = (
            f"(json_extract(doc, ?) IN ({marks}) OR (json_type(doc, ?) = 'array' AND EXISTS "
            f"(SELECT 1 FROM json_each(doc, ?) WHERE json_each.value IN ({marks}))))"
        )
        return sql, [path, *values, path, path, *values]

    operator = _SQL_OPERATORS.get(condition.op)
    if operator is None:
        return "0", []
    value = condition.value
    if condition.op == EQ:
        sql = (
            f"(json_extract(doc, ?) {operator} ? OR (json_type(doc, ?) = 'array' AND EXISTS "
            f"(SELECT 1 FROM json_each(doc, ?) WHERE json_each.value {operator} ?)))"
        )
        return sql, [path, value, path, path, value]

    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return "0", []
    guard = _type_guard(value)
    sql = (
        f"((json_type(doc, ?) IN {guard} AND json_extract(doc, ?) {operator} ?) OR "
        f"(json_type(doc, ?) = 'array' AND EXISTS (SELECT 1 FROM json_each(doc, ?) "
        f"WHERE json_each.type IN {guard} AND json_each.value {operator} ?)))"
    )
    return sql, [path, path, value, path, path, value]


def where_sql(conditions: Sequence[Condition]) -> Tuple[str, List[Any]]:
    if not conditions:
        return "", []
    clauses: List[str] = []
    params: List[Any] = []
    for condition in conditions:
        sql, values = condition_sql(condition)
        clauses.append(sql)
        params.extend(values)
    return " WHERE " + " AND ".join(clauses), params


def order_sql(sort: Sequence[SortKey]) -> Tuple[str, List[Any]]:
    terms: List[str] = []
    params: List[Any] = []
    for key in sort:
        path = json_path(key.field)
        if path is None:
            continue
        terms.append(f"json_extract(doc, ?) {'DESC' if key.descending else 'ASC'}")
        params.append(path)
    if not terms:
        return "", []
    return " ORDER BY " + ", ".join(terms), params


class SQLiteDocumentStore(DocumentStore):
    """``DocumentStore`` persisting JSON documents in SQLite.

    Every call opens its own connection, so concurrent requests never
    share a cursor.  Inside ``atomic`` all calls made by the same thread
    reuse one connection holding a ``BEGIN IMMEDIATE`` transaction.  The
    block must not ``await``: coroutines of other requests run on the
    same thread.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or get_database_path()
        self._local = threading.local()
        # ":memory:" databases vanish with their connection, so keep one.
        self._memory_conn: Optional[sqlite3.Connection] = None

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection in autocommit mode."""
        if self.path == ":memory:":
            if self._memory_conn is None:
                self._memory_conn = sqlite3.connect(":memory:", isolation_level=None, check_same_thread=False)
                self._memory_conn.row_factory = sqlite3.Row
            return self._memory_conn
        conn = sqlite3.connect(self.path, isolation_level=None, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn is not self._memory_conn:
            conn.close()

    @contextmanager
    def _session(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active
            return
        try:
            conn = self.get_connection()
        except sqlite3.Error as exc:
            logger.error("Cannot open database %s: %s", self.path, exc)
            raise UpstreamError("Database unavailable") from exc
        try:
            if write:
                conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                if write:
                    conn.execute("COMMIT")
            except BaseException:
                if write and conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        except sqlite3.IntegrityError as exc:
            raise DuplicateError("Duplicate field value entered") from exc
        except sqlite3.Error as exc:
            logger.error("Database error on %s: %s", self.path, exc)
            raise UpstreamError("Database error") from exc
        finally:
            self._release(conn)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if getattr(self._local, "conn", None) is not None:
            yield
            return
        with self._session(write=True) as conn:
            self._local.conn = conn
            try:
                yield
            finally:
                self._local.conn = None

    def migrate(self) -> None:
        """Apply pending migrations from ``MIGRATIONS`` in order."""
        with self._session() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            applied = {row["version"] for row in conn.execute("SELECT version FROM migrations")}
            for version, script in MIGRATIONS:
                if version in applied:
                    continue
                logger.info("Applying migration %s", version)
                conn.executescript(
                    f"BEGIN; {script} INSERT INTO migrations (version) VALUES ({int(version)}); COMMIT;"
                )

    @staticmethod
    def _load(row: sqlite3.Row, projection=None):
        return project(json.loads(row["doc"]), projection)

    def find(self, kind, conditions=(), sort=(), projection=None, page=None):
        check_kind(kind)
        where, where_params = where_sql(conditions)
        order, order_params = order_sql(sort)
        query = f"SELECT doc FROM {kind}{where}{order}"
        params = where_params + order_params
        if page is not None:
            query += " LIMIT ? OFFSET ?"
            params += [page.limit, page.skip]
        with self._session() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS total FROM {kind}{where}", where_params).fetchone()["total"]
            rows = conn.execute(query, params).fetchall()
        return [self._load(row, projection) for row in rows], total

    def get_by_id(self, kind, doc_id, projection=None):
        check_kind(kind)
        with self._session() as conn:
            row = conn.execute(f"SELECT doc FROM {kind} WHERE id = ?", (doc_id,)).fetchone()
        return self._load(row, projection) if row else None

    def create(self, kind, document):
        check_kind(kind)
        doc = new_document(document)
        with self._session(write=True) as conn:
            conn.execute(f"INSERT INTO {kind} (id, doc) VALUES (?, ?)", (doc["id"], json.dumps(doc)))
        return doc

    def update(self, kind, doc_id, changes, unset=()):
        check_kind(kind)
        with self._session(write=True) as conn:
            row = conn.execute(f"SELECT doc FROM {kind} WHERE id = ?", (doc_id,)).fetchone()
            if not row:
                return None
            doc = json.loads(row["doc"])
            doc.update(changes)
            for name in unset:
                doc.pop(name, None)
            doc["id"] = doc_id
            conn.execute(f"UPDATE {kind} SET doc = ? WHERE id = ?", (json.dumps(doc), doc_id))
        return doc

    def delete(self, kind, doc_id):
        check_kind(kind)
        with self._session(write=True) as conn:
            cursor = conn.execute(f"DELETE FROM {kind} WHERE id = ?", (doc_id,))
            return cursor.rowcount > 0

    def delete_many(self, kind, conditions):
        check_kind(kind)
        where, params = where_sql(conditions)
        with self._session(write=True) as conn:
            cursor = conn.execute(f"DELETE FROM {kind}{where}", params)
            return cursor.rowcount
