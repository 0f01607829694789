from __future__ import annotations

import sqlite3
import struct
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import orjson
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from common.config import yaml_config
from common.errors import StoreError
from common.logger import get_logger
from kbstore.base import STORE_NAMES, KnowledgeStore

log = get_logger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS chunks (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  text TEXT NOT NULL,
  record BLOB NOT NULL
);

CREATE TABLE IF NOT EXISTS postings (
  term TEXT PRIMARY KEY,
  ids BLOB NOT NULL
);

CREATE TABLE IF NOT EXISTS signatures (
  id TEXT PRIMARY KEY,
  sig BLOB NOT NULL
);

CREATE TABLE IF NOT EXISTS meta (
  k TEXT PRIMARY KEY,
  v BLOB NOT NULL
);
"""

# Transient lock contention is retried, anything else surfaces immediately
_retry_locked = retry(
    reraise=True,
    retry=retry_if_exception_type(sqlite3.OperationalError),
    wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
    stop=stop_after_attempt(3),
)


def _pack_signature(sig: List[int]) -> bytes:
    return struct.pack(f"<{len(sig)}I", *sig)


def _unpack_signature(blob: bytes) -> List[int]:
    return list(struct.unpack(f"<{len(blob) // 4}I", blob))


class SQLiteStore(KnowledgeStore):
    """
    Durable store on a single SQLite file. Each write commits on its own.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path or yaml_config.app.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._con = sqlite3.connect(str(self.db_path))
            self._con.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open knowledge store {self.db_path}: {e}") from e
        log.debug("Opened knowledge store at %s", self.db_path)

    @_retry_locked
    def _write(self, sql: str, params: Tuple) -> None:
        with self._con:
            self._con.execute(sql, params)

    def _execute_write(self, sql: str, params: Tuple) -> None:
        try:
            self._write(sql, params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def _fetchone(self, sql: str, params: Tuple) -> Optional[Tuple]:
        try:
            return self._con.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def put_chunk(self, chunk_id: str, record: Dict[str, Any]) -> None:
        self._execute_write(
            """
            INSERT INTO chunks(id, title, text, record) VALUES(?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
              title=excluded.title,
              text=excluded.text,
              record=excluded.record
            """,
            (chunk_id, record.get("title", ""), record.get("text", ""), orjson.dumps(record)),
        )

    def get_chunk(self, chunk_id: str) -> Optional[Dict[str, Any]]:
        row = self._fetchone("SELECT record FROM chunks WHERE id = ?", (chunk_id,))
        return orjson.loads(row[0]) if row else None

    def put_posting(self, term: str, ids: Iterable[str]) -> None:
        self._execute_write(
            "INSERT OR REPLACE INTO postings(term, ids) VALUES(?, ?)",
            (term, orjson.dumps(sorted(set(ids)))),
        )

    def get_posting(self, term: str) -> Optional[Set[str]]:
        row = self._fetchone("SELECT ids FROM postings WHERE term = ?", (term,))
        return set(orjson.loads(row[0])) if row else None

    def put_signature(self, chunk_id: str, signature: List[int]) -> None:
        try:
            blob = _pack_signature(signature)
        except struct.error as e:
            raise StoreError(f"Invalid signature for {chunk_id}: {e}") from e
        self._execute_write(
            "INSERT OR REPLACE INTO signatures(id, sig) VALUES(?, ?)", (chunk_id, blob)
        )

    def get_signature(self, chunk_id: str) -> Optional[List[int]]:
        row = self._fetchone("SELECT sig FROM signatures WHERE id = ?", (chunk_id,))
        return _unpack_signature(row[0]) if row else None

    def scan_signatures(self) -> Iterator[Tuple[str, List[int]]]:
        try:
            cur = self._con.execute("SELECT id, sig FROM signatures")
            for chunk_id, blob in cur:
                yield chunk_id, _unpack_signature(blob)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def count(self, store_name: str) -> int:
        if store_name not in STORE_NAMES:
            raise StoreError(f"Unknown store: {store_name}")
        row = self._fetchone(f"SELECT COUNT(*) FROM {store_name}", ())
        return int(row[0])

    def put_meta(self, key: str, value: Any) -> None:
        self._execute_write(
            "INSERT OR REPLACE INTO meta(k, v) VALUES(?, ?)", (key, orjson.dumps(value))
        )

    def get_meta(self, key: str) -> Any:
        row = self._fetchone("SELECT v FROM meta WHERE k = ?", (key,))
        return orjson.loads(row[0]) if row else None

    def reset(self) -> None:
        try:
            with self._con:
                for name in STORE_NAMES:
                    self._con.execute(f"DELETE FROM {name}")
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        log.info("Cleared knowledge store at %s", self.db_path)

    def close(self) -> None:
        self._con.close()
