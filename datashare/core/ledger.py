"""
Ledger adapters - the key-value host the contract runs against.

An adapter offers get/put/delete by exact key, rich queries over JSON values,
and atomic application of a write batch. The contract never talks to an
adapter directly: each invocation goes through a LedgerTransaction that
buffers writes and commits them as one batch. The batch carries the values
the invocation read, and the adapter rejects it if any of them changed in
the meantime, so concurrent invocations behave as if run one at a time.
"""

import json
import re
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple

from .db import get_db, health_check, init_db
from .errors import LedgerError
from ..util.logging import logger

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

QueryResult = Tuple[str, bytes]
ReadSet = Dict[str, Optional[bytes]]


def validate_key(key: str) -> None:
    """Reject keys the host cannot store."""
    if not isinstance(key, str) or not key:
        raise LedgerError("Key must be a non-empty string")
    if key.startswith("\x00"):
        raise LedgerError(f"Key {key!r} is in the reserved composite-key namespace")


def parse_query(query: str) -> Dict[str, str]:
    """Parse a rich query string of the form {"selector": {field: value, ...}}."""
    try:
        parsed = json.loads(query)
    except ValueError as e:
        raise LedgerError(f"Malformed query: {e}") from e

    selector = parsed.get("selector") if isinstance(parsed, dict) else None
    if not isinstance(selector, dict) or not selector:
        raise LedgerError("Query must contain a non-empty selector object")

    for field, value in selector.items():
        if not FIELD_NAME_PATTERN.match(field):
            raise LedgerError(f"Unsupported selector field: {field!r}")
        if not isinstance(value, str):
            raise LedgerError(f"Selector value for {field!r} must be a string")

    return selector


def _document(value: bytes) -> Optional[dict]:
    """Decode a stored value as a JSON object, or None if it is not one."""
    try:
        doc = json.loads(value.decode("utf-8"))
    except ValueError:
        return None
    return doc if isinstance(doc, dict) else None


class LedgerAdapter(ABC):
    """Abstract interface for ledger hosts."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the committed value at key, or None when absent."""
        pass

    @abstractmethod
    def query(self, selector: Dict[str, str]) -> Iterator[QueryResult]:
        """Return (key, value) pairs whose JSON value matches every selector field."""
        pass

    @abstractmethod
    def apply_batch(self, writes: Dict[str, Optional[bytes]], read_set: ReadSet = None) -> None:
        """Apply puts (bytes) and deletes (None) atomically.

        read_set maps each key the writer read to the value it saw (None for
        absent). If any committed value differs, nothing is written and
        LedgerError is raised.
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of keys currently stored."""
        pass

    def healthy(self) -> bool:
        return True

    def put(self, key: str, value: bytes) -> None:
        self.apply_batch({key: value})

    def delete(self, key: str) -> None:
        self.apply_batch({key: None})

    def get_query_result(self, query: str) -> Iterator[QueryResult]:
        selector = parse_query(query)
        results = list(self.query(selector))
        logger.log_query(selector, len(results))
        return iter(results)

    def transaction(self) -> "LedgerTransaction":
        return LedgerTransaction(self)


class InMemoryLedger(LedgerAdapter):
    """Dictionary-backed ledger for tests and throwaway sessions."""

    def __init__(self, initial: Dict[str, bytes] = None):
        self._state: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        if initial:
            self.apply_batch(initial)

    def get(self, key: str) -> Optional[bytes]:
        return self._state.get(key)

    def query(self, selector: Dict[str, str]) -> Iterator[QueryResult]:
        # Snapshot so callers may write while iterating
        with self._lock:
            snapshot = sorted(self._state.items())
        for key, value in snapshot:
            doc = _document(value)
            if doc is not None and all(doc.get(f) == v for f, v in selector.items()):
                yield key, value

    def apply_batch(self, writes: Dict[str, Optional[bytes]], read_set: ReadSet = None) -> None:
        for key in writes:
            validate_key(key)

        with self._lock:
            for key, seen in (read_set or {}).items():
                if self._state.get(key) != seen:
                    raise LedgerError(f"Read conflict on key '{key}'")

            for key, value in writes.items():
                if value is None:
                    self._state.pop(key, None)
                else:
                    self._state[key] = bytes(value)

    def count(self) -> int:
        return len(self._state)


class SqliteLedger(LedgerAdapter):
    """Persistent ledger on a single SQLite file.

    Rich queries run through SQLite's JSON functions over the `doc` column,
    which holds the value text whenever the value is a JSON object.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        try:
            init_db(db_path)
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to initialize ledger at {db_path}: {e}") from e

    def get(self, key: str) -> Optional[bytes]:
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to read key '{key}': {e}") from e

        return bytes(row[0]) if row else None

    def query(self, selector: Dict[str, str]) -> Iterator[QueryResult]:
        sql = "SELECT key, value FROM state WHERE doc IS NOT NULL"
        params: List[str] = []
        for field, value in selector.items():
            sql += " AND json_extract(doc, ?) = ?"
            params.extend([f"$.{field}", value])
        sql += " ORDER BY key"

        try:
            with get_db(self.db_path) as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise LedgerError(f"Rich query failed: {e}") from e

        return iter([(key, bytes(value)) for key, value in rows])

    def apply_batch(self, writes: Dict[str, Optional[bytes]], read_set: ReadSet = None) -> None:
        for key in writes:
            validate_key(key)

        try:
            with get_db(self.db_path) as conn:
                conn.isolation_level = None
                conn.execute("BEGIN IMMEDIATE")
                try:
                    for key, seen in (read_set or {}).items():
                        row = conn.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
                        if (bytes(row[0]) if row else None) != seen:
                            raise LedgerError(f"Read conflict on key '{key}'")

                    for key, value in writes.items():
                        if value is None:
                            conn.execute("DELETE FROM state WHERE key = ?", (key,))
                            continue
                        doc = _document(value)
                        conn.execute(
                            '''
                            INSERT INTO state (key, value, doc) VALUES (?, ?, ?)
                            ON CONFLICT(key) DO UPDATE SET
                                value = excluded.value,
                                doc = excluded.doc,
                                version = state.version + 1,
                                updated_at = CURRENT_TIMESTAMP
                            ''',
                            (key, sqlite3.Binary(value), json.dumps(doc) if doc is not None else None)
                        )
                    conn.execute("COMMIT")
                except (sqlite3.Error, LedgerError):
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to commit {len(writes)} write(s): {e}") from e

    def count(self) -> int:
        try:
            with get_db(self.db_path) as conn:
                return conn.execute("SELECT COUNT(*) FROM state").fetchone()[0]
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to count keys: {e}") from e

    def version(self, key: str) -> Optional[int]:
        """Number of times key has been written since it was last created."""
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute("SELECT version FROM state WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LedgerError(f"Failed to read version of '{key}': {e}") from e

        return row[0] if row else None

    def healthy(self) -> bool:
        return health_check(self.db_path)


class LedgerTransaction:
    """One invocation's view of the ledger.

    Reads see this transaction's own buffered writes first. Rich queries see
    committed state only. Nothing reaches the adapter until commit(), which
    fails if any key read here was changed by another commit.
    """

    def __init__(self, adapter: LedgerAdapter):
        self.adapter = adapter
        self._writes: Dict[str, Optional[bytes]] = {}
        self._reads: ReadSet = {}

    def get(self, key: str) -> Optional[bytes]:
        if key in self._writes:
            return self._writes[key]
        value = self.adapter.get(key)
        self._reads.setdefault(key, value)
        logger.log_ledger_operation("get", key, "found" if value is not None else "absent")
        return value

    def put(self, key: str, value: bytes) -> None:
        validate_key(key)
        self._writes[key] = bytes(value)
        logger.log_ledger_operation("put", key, "staged", {"size": len(value)})

    def delete(self, key: str) -> None:
        validate_key(key)
        self._writes[key] = None
        logger.log_ledger_operation("delete", key, "staged")

    def get_query_result(self, query: str) -> Iterator[QueryResult]:
        return self.adapter.get_query_result(query)

    @property
    def pending_writes(self) -> Dict[str, Optional[bytes]]:
        return dict(self._writes)

    def commit(self) -> None:
        if self._writes:
            self.adapter.apply_batch(dict(self._writes), read_set=dict(self._reads))
            logger.log_operation("ledger.commit", "success", {"keys": sorted(self._writes)})
        self._writes.clear()
        self._reads.clear()

    def discard(self) -> None:
        if self._writes:
            logger.log_operation("ledger.discard", "success", {"keys": sorted(self._writes)})
        self._writes.clear()
        self._reads.clear()
