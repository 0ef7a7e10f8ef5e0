"""
SQLite storage for the persistent ledger host.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import ensure_db_directory


@contextmanager
def get_db(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str):
    """Initialize the database with required tables."""
    ensure_db_directory(db_path)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # World state: one row per ledger key
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS state (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                doc TEXT,         -- JSON text of value when it is a JSON object, for rich queries
                version INTEGER NOT NULL DEFAULT 1,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        # Attribute index for docType selectors
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_state_doc_type ON state(json_extract(doc, '$.docType'))"
        )

        conn.commit()


def health_check(db_path: str) -> bool:
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            return 'state' in table_names
    except sqlite3.Error:
        return False
