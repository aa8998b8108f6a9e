"""
Key-value persistence over SQLite.

The rest of the application only sees ``load(key)`` / ``save(key, value)``.
Values are JSON documents. Both calls are non-fatal: failures are logged and
reported as ``None`` / ``False`` so the in-memory state of the session stays
authoritative.

IMPORTANT: Database instantiation should be done through the DI layer.
Use core.dependencies.get_database() instead of instantiating directly.
"""
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from core.config import DATABASE_PATH, DATABASE_BUSY_TIMEOUT
from core.datetime_utils import utc_now, format_iso

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """The persistence interface repositories depend on."""

    def load(self, key: str) -> Optional[Any]: ...

    def save(self, key: str, value: Any) -> bool: ...


class Database:
    """
    SQLite-backed key-value store.

    Features:
    - WAL mode for concurrent readers
    - Busy timeout to handle lock contention gracefully
    - One ``kv_store`` table holding JSON text per key

    Usage:
        # Via dependency injection (recommended):
        from core.dependencies import get_database
        db = get_database()

        # Direct instantiation (for testing):
        db = Database(db_path="/tmp/test.db")
    """

    def __init__(self, db_path: Optional[str] = None, busy_timeout: Optional[int] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file. Defaults to config DATABASE_PATH.
            busy_timeout: SQLite busy timeout in milliseconds. Defaults to config value.
        """
        self.db_path = db_path or DATABASE_PATH
        self.busy_timeout = busy_timeout if busy_timeout is not None else DATABASE_BUSY_TIMEOUT

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout}")

    def _init_db(self) -> None:
        """Create the key-value table and enable WAL mode."""
        conn = sqlite3.connect(self.db_path)
        try:
            self._configure_connection(conn)
            cursor = conn.cursor()

            cursor.execute("PRAGMA journal_mode = WAL")
            result = cursor.fetchone()
            if not result or result[0].lower() != 'wal':
                logger.warning(f"Failed to enable WAL mode, current mode: {result}")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """Get a new connection with the busy timeout applied."""
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        return conn

    def load(self, key: str) -> Optional[Any]:
        """
        Load the JSON document stored under key.

        Returns:
            The decoded value, or None when the key is absent or unreadable.
        """
        try:
            conn = self.get_connection()
            try:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to load key '{key}': {e}", exc_info=True)
            return None

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error(f"Stored value for key '{key}' is not valid JSON: {e}")
            return None

    def save(self, key: str, value: Any) -> bool:
        """
        Store a JSON-serializable value under key, replacing any previous one.

        Returns:
            True on success, False if serialization or the write failed.
        """
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Value for key '{key}' is not JSON-serializable: {e}")
            return False

        try:
            conn = self.get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, payload, format_iso(utc_now())),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save key '{key}': {e}", exc_info=True)
            return False
        return True


class InMemoryStore:
    """Dict-backed store with the same interface, for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {
            key: json.dumps(value) for key, value in (initial or {}).items()
        }

    def load(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Value for key '{key}' is not JSON-serializable: {e}")
            return False
        return True
