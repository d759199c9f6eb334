"""SQLite record store for assessments and benchmark snapshots."""

from .db import connect
from .schema import init_schema
from .assessment_repo import insert_assessment, fetch_assessment, iter_scored_rows
from .snapshot_repo import upsert_snapshots, find_latest_snapshot, list_snapshots

__all__ = [
    "connect",
    "init_schema",
    "insert_assessment",
    "fetch_assessment",
    "iter_scored_rows",
    "upsert_snapshots",
    "find_latest_snapshot",
    "list_snapshots",
]
