"""Cohort benchmark lookup, reference data and background refresh."""

from .resolver import (
    SnapshotStore,
    SqliteSnapshotStore,
    InMemorySnapshotStore,
    BenchmarkResolver,
)
from .reference import reference_snapshots
from .refresh import BenchmarkRefreshJob, BackgroundRefresher, RefreshResult

__all__ = [
    "SnapshotStore",
    "SqliteSnapshotStore",
    "InMemorySnapshotStore",
    "BenchmarkResolver",
    "reference_snapshots",
    "BenchmarkRefreshJob",
    "BackgroundRefresher",
    "RefreshResult",
]
