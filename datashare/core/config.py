"""
Runtime configuration - every setting comes from the environment with a safe default.
"""

import os
from pathlib import Path

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/ledger.db")

# Ledger host backing the contract
LEDGER_BACKEND = os.getenv("LEDGER_BACKEND", "sqlite")  # sqlite|memory

# Debug flag is also exposed as a function to be dynamic
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Referential checks on requestData/handleRequest (default lenient)
REFERENCE_CHECK_STRICT = os.getenv("REFERENCE_CHECK_STRICT", "false").lower() == "true"

# HTTP surface
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Version string
VERSION = "1.0.0"

VALID_BACKENDS = ["sqlite", "memory"]


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def reference_check_strict():
    """Check if requestData/handleRequest must see their referenced record."""
    return os.getenv("REFERENCE_CHECK_STRICT", "false").lower() == "true"


def get_db_path():
    """Get the SQLite path, re-read so tests can point it at a temp file."""
    return os.getenv("DB_PATH", DB_PATH)


def get_api_port():
    """Get the API port, re-read so tests can override it. Raises ValueError if not an integer."""
    return int(os.getenv("API_PORT", str(API_PORT)))


def get_ledger_backend():
    """Get configured ledger backend (sqlite|memory)."""
    return os.getenv("LEDGER_BACKEND", LEDGER_BACKEND).lower()


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def get_ledger():
    """Build the configured ledger adapter."""
    from .ledger import InMemoryLedger, SqliteLedger

    if get_ledger_backend() == "memory":
        return InMemoryLedger()
    return SqliteLedger(get_db_path())


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_ledger_backend() not in VALID_BACKENDS:
        issues.append(f"Invalid LEDGER_BACKEND: {get_ledger_backend()}")

    try:
        port = get_api_port()
    except ValueError:
        issues.append(f"Invalid API_PORT: {os.getenv('API_PORT')}")
    else:
        if not 0 < port < 65536:
            issues.append(f"Invalid API_PORT: {port}")

    if get_ledger_backend() == "sqlite" and not get_db_path():
        issues.append("DB_PATH must be set when LEDGER_BACKEND=sqlite")

    return issues
