# data/db.py
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from riskindex.domain.exceptions import DatabaseError

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "foreign_keys": "ON",
}

def connect(
    db_path: Union[str, Path],
    busy_timeout_ms: int = 5000,
    pragmas: Optional[Mapping[str, Any]] = None,
) -> sqlite3.Connection:
    """Open a connection. One connection per call/thread; never shared.

    A locked or unopenable database raises ``DatabaseError``, which is retryable.
    """
    conn = None
    try:
        conn = sqlite3.connect(str(db_path), timeout=busy_timeout_ms / 1000.0)
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        for key, value in (pragmas if pragmas is not None else DEFAULT_PRAGMAS).items():
            conn.execute(f"PRAGMA {key} = {value};")
    except sqlite3.Error as e:
        if conn is not None:
            conn.close()
        raise DatabaseError(f"Cannot open database {db_path}: {e}", operation="connect") from e
    return conn

def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def to_db_time(dt: datetime) -> str:
    """UTC, fixed-width ISO text so that string order equals time order."""
    return as_utc(dt).isoformat(timespec="microseconds")

def from_db_time(value: str) -> datetime:
    return datetime.fromisoformat(value)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)
