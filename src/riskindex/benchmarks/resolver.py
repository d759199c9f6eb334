"""Cohort benchmark lookup with bounded, independent per-dimension queries."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from riskindex.config.settings import BenchmarkSettings, get_settings
from riskindex.data.db import as_utc, connect, utcnow
from riskindex.data.schema import init_schema
from riskindex.data.snapshot_repo import find_latest_snapshot
from riskindex.domain.models import BenchmarkSet, BenchmarkSnapshot, CohortFilter, OrgMeta
from riskindex.domain.exceptions import BenchmarkUnavailableError
from riskindex.utils.timing import timeit

logger = logging.getLogger(__name__)

class SnapshotStore(ABC):
    """Read side of the benchmark snapshot store."""

    @abstractmethod
    def find_snapshot(
        self,
        filter: CohortFilter,
        freshness_window: timedelta,
        as_of: datetime,
    ) -> Optional[BenchmarkSnapshot]:
        """Most recent snapshot for exactly ``filter`` with
        ``as_of - freshness_window <= period_end <= as_of``, or None."""


class SqliteSnapshotStore(SnapshotStore):
    """Snapshot store backed by the record store database."""

    def __init__(self, db_path: Union[str, Path], busy_timeout_ms: int = 5000):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        conn = connect(self.db_path, busy_timeout_ms)
        try:
            init_schema(conn)
        finally:
            conn.close()

    def find_snapshot(self, filter, freshness_window, as_of):
        return find_latest_snapshot(
            self.db_path, filter, as_of - freshness_window, as_of, self.busy_timeout_ms
        )


class InMemorySnapshotStore(SnapshotStore):
    """Thread-safe in-process store, used for tests and seeded demos."""

    def __init__(self, snapshots: Iterable[BenchmarkSnapshot] = ()):
        self._lock = threading.Lock()
        self._snapshots: List[BenchmarkSnapshot] = list(snapshots)

    def add(self, snapshot: BenchmarkSnapshot) -> None:
        with self._lock:
            self._snapshots.append(snapshot)

    def find_snapshot(self, filter, freshness_window, as_of):
        as_of = as_utc(as_of)
        window_start = as_of - freshness_window
        with self._lock:
            candidates = [
                s for s in self._snapshots
                if s.cohort == filter and window_start <= as_utc(s.period_end) <= as_of
            ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: as_utc(s.period_end))


def cohort_queries(org_meta: OrgMeta) -> Dict[str, CohortFilter]:
    """One single-dimension filter per known cohort, plus overall."""
    queries: Dict[str, CohortFilter] = {}
    if org_meta.industry is not None:
        queries["industry"] = CohortFilter(industry=org_meta.industry)
    if org_meta.company_size is not None:
        queries["company_size"] = CohortFilter(size=org_meta.company_size)
    if org_meta.region is not None:
        queries["region"] = CohortFilter(region=org_meta.region)
    queries["overall"] = CohortFilter()
    return queries


class BenchmarkResolver:
    """
    Resolve the freshest industry, size, region and overall snapshots.

    Store queries run on a resolver-owned thread pool and are bounded by
    ``query_timeout_seconds``. A store error or timeout raises
    ``BenchmarkUnavailableError``; a missing snapshot is simply ``None``.
    Call ``close()`` (or use as a context manager) to release the pool.
    """

    def __init__(self, store: SnapshotStore, settings: Optional[BenchmarkSettings] = None):
        self.store = store
        self.settings = settings or get_settings().benchmarks
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="benchmark-query",
        )

    @timeit(logger, "benchmarks.resolve")
    def resolve_benchmarks(self, org_meta: OrgMeta, as_of: Optional[datetime] = None) -> BenchmarkSet:
        if not self.settings.enabled:
            logger.debug("Benchmarks disabled; returning empty set")
            return BenchmarkSet.unavailable()

        as_of = as_of or utcnow()
        window = timedelta(days=self.settings.freshness_days)
        timeout = self.settings.query_timeout_seconds

        futures: Dict[str, Future] = {
            dim: self._executor.submit(self.store.find_snapshot, cohort, window, as_of)
            for dim, cohort in cohort_queries(org_meta).items()
        }

        found: Dict[str, Optional[BenchmarkSnapshot]] = {}
        deadline = time.monotonic() + timeout
        try:
            for dim, fut in futures.items():
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    found[dim] = fut.result(timeout=remaining)
                except FutureTimeoutError:
                    raise BenchmarkUnavailableError(
                        f"Benchmark query for {dim} exceeded {timeout:.1f}s",
                        timeout=True,
                        dimension=dim,
                    ) from None
                except Exception as e:
                    raise BenchmarkUnavailableError(
                        f"Benchmark query for {dim} failed: {e}",
                        dimension=dim,
                    ) from e
        except BenchmarkUnavailableError:
            for fut in futures.values():
                fut.cancel()
            raise

        missing = [dim for dim, snap in found.items() if snap is None]
        if missing:
            logger.debug("No fresh snapshot for: %s", ", ".join(missing))

        return BenchmarkSet(
            industry=found.get("industry"),
            company_size=found.get("company_size"),
            region=found.get("region"),
            overall=found.get("overall"),
        )

    def close(self) -> None:
        # never wait on a hung store query
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "BenchmarkResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
