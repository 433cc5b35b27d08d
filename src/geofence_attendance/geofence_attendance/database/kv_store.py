from __future__ import annotations

import json
from typing import Any, Optional, Protocol

from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchone, load_json


class KeyValueStore(Protocol):
    """Durable key-value store for small per-user markers (JSON values)."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MySQLKeyValueStore(KeyValueStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: str) -> Optional[Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT v FROM kv_store WHERE k=%s", (key,))
            r = fetchone(cur)
            if not r:
                return None
            return load_json(r["v"])

    def set(self, key: str, value: Any) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO kv_store(k, v)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE v=VALUES(v)
                """,
                (key, json.dumps(value)),
            )

    def remove(self, key: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM kv_store WHERE k=%s", (key,))
