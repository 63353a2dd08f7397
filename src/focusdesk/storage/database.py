# src/focusdesk/storage/database.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import Any, TypeVar

from ..errors import InvariantViolation, StorageError, TransactionFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Sequence[Any]

DEFAULT_SCHEMA_PATH = Path(__file__).with_name("schema.sql")


def _wrap_error(exc: sqlite3.Error, sql: str) -> StorageError:
    head = " ".join(sql.split())[:80]
    if isinstance(exc, sqlite3.IntegrityError):
        return InvariantViolation(f"{exc} (sql: {head})")
    return TransactionFailure(f"{exc} (sql: {head})")


def _split_statements(script: str) -> list[str]:
    lines = [ln for ln in script.splitlines() if not ln.lstrip().startswith("--")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


class Database:
    """
    SQLite persistent store shared by every component.

    The schema is loaded from schema.sql and is migration-safe:
    - every statement is CREATE ... IF NOT EXISTS
    - PRAGMA table_info detects missing task columns on older databases
    - columns are added with ALTER TABLE only when needed

    If the schema file is missing the store starts degraded (schema_ready=False)
    and any statement touching a missing table raises TransactionFailure.

    Thread-safety:
    - outside a transaction each call opens its own SQLite connection
    - transaction() pins one connection to the calling thread; execute()/query()
      made on that thread inside the block run on it
    - writers are serialized by a process-wide RLock
    """

    def __init__(self, db_path: str | Path, *, schema_path: str | Path | None = None) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._schema_path = Path(schema_path) if schema_path is not None else DEFAULT_SCHEMA_PATH
        self._lock = threading.RLock()
        self._local = threading.local()
        self.schema_ready = self._ensure_schema()
        logger.info("Database ready db=%s schema_ready=%s", self._db_path, self.schema_ready)

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        # Autocommit mode: transaction boundaries are issued explicitly.
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA foreign_keys=ON")
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _current_conn(self) -> sqlite3.Connection | None:
        return getattr(self._local, "conn", None)

    @staticmethod
    def _run(conn: sqlite3.Connection, sql: str, params: Params) -> sqlite3.Cursor:
        try:
            return conn.execute(sql, tuple(params))
        except sqlite3.Error as exc:
            raise _wrap_error(exc, sql) from exc

    def _ensure_schema(self) -> bool:
        if not self._schema_path.exists():
            logger.error("Schema file not found at %s; starting without schema.", self._schema_path)
            return False

        statements = _split_statements(self._schema_path.read_text("utf-8"))
        with self.transaction():
            for stmt in statements:
                self.execute(stmt)
            self._migrate()
        return True

    def _migrate(self) -> None:
        cols = {row["name"] for row in self.query("PRAGMA table_info(tasks)")}
        if not cols:
            return

        def add_col(name: str, decl: str) -> None:
            if name in cols:
                return
            self.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
            logger.info("Database migration: added column tasks.%s", name)

        add_col("category", "TEXT NOT NULL DEFAULT 'inbox'")
        add_col("is_locked", "INTEGER NOT NULL DEFAULT 0")
        add_col("timer_elapsed", "INTEGER NOT NULL DEFAULT 0")
        add_col("position", "INTEGER NOT NULL DEFAULT 0")

        # Depends on the migrated columns, so it cannot live in schema.sql.
        self.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category_pos ON tasks(category, position)")

    # ---- public API ----

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a block atomically: commit on normal exit, roll back on any exception.

        Nested calls on the same thread join the outer transaction.
        sqlite3 errors escape as TransactionFailure / InvariantViolation.
        """
        current = self._current_conn()
        if current is not None:
            yield current
            return

        with self._lock:
            conn = self._get_conn()
            self._local.conn = conn
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                with contextlib.suppress(sqlite3.Error):
                    conn.rollback()
                raise _wrap_error(exc, "COMMIT") from exc
            except BaseException:
                with contextlib.suppress(sqlite3.Error):
                    conn.rollback()
                raise
            finally:
                self._local.conn = None
                conn.close()

    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        with self.transaction():
            return fn()

    @contextlib.contextmanager
    def savepoint(self, name: str) -> Iterator[None]:
        """
        Nested rollback scope inside an open transaction.

        If the block raises, only its own writes are undone and the exception
        propagates; the surrounding transaction stays usable.
        """
        if not name.isidentifier():
            raise ValueError(f"invalid savepoint name: {name!r}")
        conn = self._current_conn()
        if conn is None:
            raise RuntimeError("savepoint() requires an open transaction")

        self._run(conn, f"SAVEPOINT {name}", ())
        try:
            yield
        except BaseException:
            self._run(conn, f"ROLLBACK TO SAVEPOINT {name}", ())
            self._run(conn, f"RELEASE SAVEPOINT {name}", ())
            raise
        self._run(conn, f"RELEASE SAVEPOINT {name}", ())

    def execute(self, sql: str, params: Params = ()) -> int:
        """Run one write statement; returns the affected row count."""
        conn = self._current_conn()
        if conn is not None:
            return self._run(conn, sql, params).rowcount

        with self._lock:
            conn = self._get_conn()
            try:
                return self._run(conn, sql, params).rowcount
            finally:
                conn.close()

    def query(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        conn = self._current_conn()
        if conn is not None:
            return self._run(conn, sql, params).fetchall()

        conn = self._get_conn()
        try:
            return self._run(conn, sql, params).fetchall()
        finally:
            conn.close()

    def query_one(self, sql: str, params: Params = ()) -> sqlite3.Row | None:
        rows = self.query(sql, params)
        return rows[0] if rows else None
