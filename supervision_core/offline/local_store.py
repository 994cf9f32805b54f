# =============================================================================
# supervision_core/offline/local_store.py
# Local SQLite Key-Value Store for Offline Operations
# =============================================================================
"""
LocalStore - durable key-value persistence for the collector.

Three logical namespaces (drafts, pending queue, submissions archive) are each
stored as one JSON blob under one key. Every blob carries a version number so
owners can update it with compare-and-swap instead of a blind overwrite.

Features:
- Automatic schema creation
- Whole-collection replace in a single transaction
- Compare-and-swap writes keyed on the stored version
- Corrupt blobs read as empty collections (logged, never raised)
- Thread-local connections
"""

from __future__ import annotations
import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple, Union
import logging

from supervision_core.errors import StorageCorruptionError, StorageError

logger = logging.getLogger(__name__)

Collection = Union[dict, list]


class Namespace(Enum):
    """Storage keys, one per logical collection."""
    DRAFTS = "supervisionDrafts"
    PENDING = "supervisionPending"
    SUBMISSIONS = "supervisionSubmissions"

    def empty(self) -> Collection:
        return {} if self is Namespace.DRAFTS else []


class LocalStore:
    """
    SQLite-backed key-value store.

    Usage:
        store = LocalStore(Path("local_data/supervision.db"))
        store.initialize()
        queue = store.get(Namespace.PENDING)
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT,
            version INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Path):
        """
        Initialize local store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_directory()
        self._local = threading.local()
        self._initialized = False

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=10,
            )
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        try:
            with self.transaction() as conn:
                conn.execute(self.SCHEMA)
        except sqlite3.Error as e:
            raise StorageError(f"Could not create local store: {e}") from e

        self._initialized = True
        logger.info(f"Local store initialized at: {self.db_path}")

    # =========================================================================
    # READS
    # =========================================================================

    def _read_row(self, namespace: Namespace) -> Optional[sqlite3.Row]:
        self.initialize()
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT value, version FROM kv_store WHERE key = ?",
            [namespace.value],
        )
        return cursor.fetchone()

    @staticmethod
    def _decode(namespace: Namespace, raw: Optional[str]) -> Collection:
        if raw is None:
            return namespace.empty()
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise StorageCorruptionError(
                f"Stored blob is not valid JSON: {e}", namespace=namespace.value
            ) from e
        if not isinstance(value, type(namespace.empty())):
            raise StorageCorruptionError(
                f"Stored blob has type {type(value).__name__}",
                namespace=namespace.value,
            )
        return value

    def get_versioned(self, namespace: Namespace) -> Tuple[Collection, int]:
        """
        Read a collection together with its version.

        Returns:
            (collection, version); version is 0 when nothing is stored
        """
        try:
            row = self._read_row(namespace)
        except sqlite3.Error as e:
            logger.warning(f"Could not read {namespace.value}, treating as empty: {e}")
            return namespace.empty(), 0

        if row is None:
            return namespace.empty(), 0

        try:
            return self._decode(namespace, row["value"]), row["version"]
        except StorageCorruptionError as e:
            logger.warning(f"{e} - treating {namespace.value} as empty")
            return namespace.empty(), row["version"]

    def get(self, namespace: Namespace) -> Collection:
        """Read a collection; empty when absent or corrupt."""
        return self.get_versioned(namespace)[0]

    # =========================================================================
    # WRITES
    # =========================================================================

    def put(self, namespace: Namespace, collection: Collection) -> int:
        """
        Replace the stored collection.

        Returns:
            The new version
        """
        payload = json.dumps(collection)
        try:
            with self.transaction() as conn:
                self._ensure_schema(conn)
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, version, updated_at)
                    VALUES (?, ?, 1, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        version = kv_store.version + 1,
                        updated_at = excluded.updated_at
                    """,
                    [namespace.value, payload, datetime.now().isoformat()],
                )
                row = conn.execute(
                    "SELECT version FROM kv_store WHERE key = ?", [namespace.value]
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not write {namespace.value}: {e}",
                               namespace=namespace.value) from e
        return row["version"]

    def compare_and_put(
        self,
        namespace: Namespace,
        collection: Collection,
        expected_version: int,
    ) -> bool:
        """
        Replace the stored collection only if its version is unchanged.

        Returns:
            True if written, False if another writer got there first
        """
        payload = json.dumps(collection)
        now = datetime.now().isoformat()
        try:
            with self.transaction() as conn:
                self._ensure_schema(conn)
                if expected_version == 0:
                    cursor = conn.execute(
                        """
                        INSERT OR IGNORE INTO kv_store (key, value, version, updated_at)
                        VALUES (?, ?, 1, ?)
                        """,
                        [namespace.value, payload, now],
                    )
                else:
                    cursor = conn.execute(
                        """
                        UPDATE kv_store
                        SET value = ?, version = version + 1, updated_at = ?
                        WHERE key = ? AND version = ?
                        """,
                        [payload, now, namespace.value, expected_version],
                    )
                written = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StorageError(f"Could not write {namespace.value}: {e}",
                               namespace=namespace.value) from e

        if not written:
            logger.debug(f"Version conflict on {namespace.value} (expected {expected_version})")
        return written

    def clear(self, namespace: Namespace) -> None:
        """Remove a namespace entirely."""
        try:
            with self.transaction() as conn:
                self._ensure_schema(conn)
                conn.execute("DELETE FROM kv_store WHERE key = ?", [namespace.value])
        except sqlite3.Error as e:
            raise StorageError(f"Could not clear {namespace.value}: {e}",
                               namespace=namespace.value) from e

    def write_raw(self, namespace: Namespace, raw: str) -> None:
        """Store an unvalidated blob (used by imports and tests)."""
        with self.transaction() as conn:
            self._ensure_schema(conn)
            conn.execute(
                """
                INSERT INTO kv_store (key, value, version, updated_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    version = kv_store.version + 1,
                    updated_at = excluded.updated_at
                """,
                [namespace.value, raw, datetime.now().isoformat()],
            )

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        if not self._initialized:
            conn.execute(self.SCHEMA)
            self._initialized = True

    def close(self) -> None:
        """Close this thread's database connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
