"""SQLite record store for script metadata."""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

_COLUMNS = "id, name, r2_file_link, created_at, personas"
_INSERT_FIELDS = ("name", "r2_file_link", "personas")


@dataclass(frozen=True)
class ScriptRecord:
    id: int
    name: str
    r2_file_link: str
    created_at: str
    personas: str | None

    @property
    def storage_key(self) -> str:
        return self.r2_file_link

    def persona_list(self) -> list[str]:
        if not self.personas:
            return []
        return list(json.loads(self.personas))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RecordStoreError(Exception):
    """Raised when the record store cannot complete an operation."""


class RecordStore(Protocol):
    def insert_returning(self, fields: Mapping[str, Any]) -> ScriptRecord: ...


class SqliteScriptStore:
    def __init__(self, path: str, wal: bool = True) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._closed = False
        if wal:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS scripts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                r2_file_link TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                personas TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_scripts_created_at ON scripts(created_at);
            """
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise RecordStoreError("Record store is closed")

    def insert_returning(self, fields: Mapping[str, Any]) -> ScriptRecord:
        """Insert a script row and return it as materialized by the database."""
        missing = [name for name in _INSERT_FIELDS if name not in fields]
        if missing:
            raise RecordStoreError(f"Missing required fields: {', '.join(missing)}")

        params = tuple(fields[name] for name in _INSERT_FIELDS)
        with self._lock:
            self._check_open()
            try:
                cur = self._conn.execute(
                    "INSERT INTO scripts (name, r2_file_link, personas) VALUES (?, ?, ?) "
                    f"RETURNING {_COLUMNS}",
                    params,
                )
                # Drain the cursor so the RETURNING statement finishes before commit.
                rows = cur.fetchall()
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise RecordStoreError(f"Failed to insert script metadata: {exc}") from exc

        if not rows:
            raise RecordStoreError("Insert returned no row")
        return ScriptRecord(**dict(rows[0]))

    def list_scripts(self) -> list[ScriptRecord]:
        with self._lock:
            self._check_open()
            try:
                rows = self._conn.execute(
                    f"SELECT {_COLUMNS} FROM scripts ORDER BY id"
                ).fetchall()
            except sqlite3.Error as exc:
                raise RecordStoreError(f"Failed to list scripts: {exc}") from exc
        return [ScriptRecord(**dict(row)) for row in rows]

    def count(self) -> int:
        with self._lock:
            self._check_open()
            try:
                row = self._conn.execute("SELECT COUNT(*) FROM scripts").fetchone()
            except sqlite3.Error as exc:
                raise RecordStoreError(f"Failed to count scripts: {exc}") from exc
        return int(row[0])
