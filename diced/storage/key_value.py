"""
Key-value storage backends.

The core only needs get/set of strings under a handful of keys. Three
backends are provided: in-memory (tests, demo), a local JSON file (the
client-local default) and PostgreSQL via psycopg2 with connection pooling.
Backend failures are raised as StorageError.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

import psycopg2
from psycopg2 import pool

from diced.utils.exceptions import StorageError


logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """
    Abstract string key-value storage.

    Subclasses must implement get, set and delete.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""

    def close(self) -> None:
        """Release backend resources."""


class InMemoryStorage(KeyValueStorage):
    """Dictionary-backed storage. Contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileStorage(KeyValueStorage):
    """
    Storage backed by a single local JSON object file.

    Every set rewrites the whole file through a temporary file and
    os.replace.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise StorageError(f"Cannot read storage file {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageError(f"Storage file {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} must contain a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix='.tmp'
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write storage file {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> bool:
        data = self._read_all()
        if key not in data:
            return False
        del data[key]
        self._write_all(data)
        return True


class PostgresStorage(KeyValueStorage):
    """
    PostgreSQL key-value storage.

    Uses psycopg2 with a lazily created connection pool.
    """

    TABLE_NAME = 'diced_kv'

    def __init__(self, connection_string: Optional[str] = None):
        """
        Initialize storage with a database connection string.

        Args:
            connection_string: PostgreSQL connection string.
                             Defaults to DATABASE_URL env var.
        """
        self.connection_string = connection_string or os.getenv('DATABASE_URL')
        self._pool: Optional[pool.SimpleConnectionPool] = None

    def _get_connection(self):
        """Get a connection from the pool."""
        try:
            if not self._pool:
                self._pool = pool.SimpleConnectionPool(
                    1, 5,  # single local user, few connections
                    self.connection_string
                )
            return self._pool.getconn()
        except psycopg2.Error as e:
            raise StorageError(f"Cannot connect to PostgreSQL: {e}") from e

    def _release_connection(self, conn):
        """Return connection to pool."""
        if self._pool:
            self._pool.putconn(conn)

    def init_schema(self) -> None:
        """Create the key-value table if it doesn't exist."""
        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {self.TABLE_NAME} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP NOT NULL DEFAULT NOW()
            );
        """)

    def _execute(self, sql: str, params: tuple = (), fetch: bool = False):
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone() if fetch else None
                rowcount = cur.rowcount
            conn.commit()
            return row if fetch else rowcount
        except psycopg2.Error as e:
            conn.rollback()
            raise StorageError(f"PostgreSQL storage error: {e}") from e
        finally:
            self._release_connection(conn)

    def get(self, key: str) -> Optional[str]:
        row = self._execute(
            f"SELECT value FROM {self.TABLE_NAME} WHERE key = %s",
            (key,),
            fetch=True,
        )
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._execute(f"""
            INSERT INTO {self.TABLE_NAME} (key, value, updated_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (key) DO UPDATE SET
                value = EXCLUDED.value,
                updated_at = EXCLUDED.updated_at
        """, (key, value))

    def delete(self, key: str) -> bool:
        rowcount = self._execute(
            f"DELETE FROM {self.TABLE_NAME} WHERE key = %s",
            (key,),
        )
        return rowcount > 0

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
