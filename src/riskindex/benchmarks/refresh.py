"""Background recomputation of benchmark snapshots from stored assessments."""

import os
import time
import queue
import logging
import threading
import psutil
from tqdm import tqdm
from pathlib import Path
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set, TypeVar, Union

from riskindex.config.settings import Settings, get_settings
from riskindex.data.db import connect, utcnow
from riskindex.data.schema import init_schema
from riskindex.data.assessment_repo import iter_scored_rows
from riskindex.data.snapshot_repo import upsert_snapshots
from riskindex.domain.cohorts import Industry, CompanySize, Region
from riskindex.domain.models import BenchmarkSnapshot, CohortFilter
from riskindex.domain.exceptions import RetryableError, RiskIndexError
from riskindex.utils.timing import section_timer

logger = logging.getLogger(__name__)

T = TypeVar("T")

def _show_progress() -> bool:
    return not os.getenv('NO_PROGRESS', '').lower() in ['1', 'true', 'yes']

@dataclass
class RefreshResult:
    """Outcome of one refresh run."""
    period_end: datetime
    assessments_read: int = 0
    snapshots_written: int = 0
    cohorts_skipped: List[str] = field(default_factory=list)
    attempts: int = 1
    elapsed_seconds: float = 0.0

@dataclass
class _Accumulator:
    n: int = 0
    total: float = 0.0
    pillars: Dict[str, float] = field(default_factory=lambda: defaultdict(float))

    def add(self, total_score: float, pillar_scores: Dict[str, float]) -> None:
        self.n += 1
        self.total += total_score
        for pid, score in pillar_scores.items():
            self.pillars[pid] += score


def _cohorts_for_row(industry: Optional[str], size: Optional[str], region: Optional[str]) -> List[CohortFilter]:
    cohorts = [CohortFilter()]
    if industry:
        cohorts.append(CohortFilter(industry=Industry(industry)))
    if size:
        cohorts.append(CohortFilter(size=CompanySize(size)))
    if region:
        cohorts.append(CohortFilter(region=Region(region)))
    return cohorts


class BenchmarkRefreshJob:
    """
    Aggregate assessments created within the aggregation window ending at
    ``period_end`` into one snapshot per industry, size and region cohort plus
    the overall snapshot.

    Cohorts with fewer than ``min_sample_size`` assessments are skipped.
    Store failures raised as ``RetryableError`` are retried with exponential
    backoff; the job is the only writer of snapshots.
    """

    def __init__(self, db_path: Union[str, Path], settings: Optional[Settings] = None):
        self.db_path = Path(db_path)
        self.settings = settings or get_settings()
        self.process = psutil.Process(os.getpid())

    def run(
        self,
        period_end: Optional[datetime] = None,
        cohorts: Optional[Iterable[CohortFilter]] = None,
    ) -> RefreshResult:
        period_end = period_end or utcnow()
        wanted: Optional[Set[CohortFilter]] = set(cohorts) | {CohortFilter()} if cohorts else None

        t0 = time.perf_counter()
        result, attempts = self._with_retry(lambda: self._run_once(period_end, wanted), "refresh")
        result.attempts = attempts
        result.elapsed_seconds = time.perf_counter() - t0

        rss_mb = self.process.memory_info().rss / (1024 * 1024)
        logger.info(
            "[refresh] %d assessments -> %d snapshots (skipped %d cohorts) in %.2fs, rss=%.1f MB",
            result.assessments_read, result.snapshots_written, len(result.cohorts_skipped),
            result.elapsed_seconds, rss_mb,
        )
        return result

    def _run_once(self, period_end: datetime, wanted: Optional[Set[CohortFilter]]) -> RefreshResult:
        refresh = self.settings.refresh
        window_start = period_end - timedelta(days=refresh.aggregation_window_days)
        result = RefreshResult(period_end=period_end)

        conn = connect(self.db_path, self.settings.database.busy_timeout_ms)
        try:
            init_schema(conn)
        finally:
            conn.close()

        acc: Dict[CohortFilter, _Accumulator] = defaultdict(_Accumulator)
        with section_timer("refresh.aggregate", logger):
            rows = iter_scored_rows(
                self.db_path, window_start, period_end,
                self.settings.scoring.questionnaire_version,
            )
            for industry, size, region, total, pillars in tqdm(
                rows, desc="Aggregating", unit="assessment", disable=not _show_progress()
            ):
                result.assessments_read += 1
                for cohort in _cohorts_for_row(industry, size, region):
                    if wanted is None or cohort in wanted:
                        acc[cohort].add(total, pillars)

        snapshots = []
        for cohort, a in acc.items():
            if a.n < refresh.min_sample_size:
                result.cohorts_skipped.append(_label(cohort))
                logger.debug("[refresh] skipping %s: %d < %d samples",
                             _label(cohort), a.n, refresh.min_sample_size)
                continue
            snapshots.append(BenchmarkSnapshot(
                period_end=period_end,
                average_score=round(a.total / a.n, 2),
                pillar_averages={pid: round(s / a.n, 2) for pid, s in sorted(a.pillars.items())},
                sample_size=a.n,
                industry=cohort.industry,
                size=cohort.size,
                region=cohort.region,
            ))

        if self.settings.dry_run:
            logger.info("[refresh] dry run: %d snapshots not written", len(snapshots))
            return result

        conn = connect(self.db_path, self.settings.database.busy_timeout_ms)
        try:
            result.snapshots_written = upsert_snapshots(conn, snapshots)
        finally:
            conn.close()
        return result

    def _with_retry(self, fn: Callable[[], T], label: str):
        refresh = self.settings.refresh
        delay = refresh.backoff_seconds
        for attempt in range(1, refresh.retry_attempts + 1):
            try:
                return fn(), attempt
            except RetryableError as e:
                if attempt >= refresh.retry_attempts:
                    logger.error("[%s] giving up after %d attempts: %s", label, attempt, e)
                    raise
                logger.warning("[%s] attempt %d/%d failed (%s); retrying in %.2fs",
                               label, attempt, refresh.retry_attempts, e.message, delay)
                time.sleep(delay)
                delay *= refresh.backoff_factor


def _label(cohort: CohortFilter) -> str:
    value = cohort.industry or cohort.size or cohort.region
    return f"{cohort.dimension}={value.value}" if value is not None else cohort.dimension


_STOP = object()

class BackgroundRefresher:
    """Queue-fed daemon worker that runs the refresh job off the request path.

    ``enqueue`` never blocks; when the queue is full the request is dropped
    and logged.
    """

    def __init__(self, job: BenchmarkRefreshJob, queue_size: Optional[int] = None):
        self.job = job
        size = queue_size if queue_size is not None else job.settings.refresh.queue_size
        self._queue: "queue.Queue" = queue.Queue(maxsize=size)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.runs = 0
        self.failures = 0

    def start(self) -> "BackgroundRefresher":
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._worker, name="benchmark-refresh", daemon=True
                )
                self._thread.start()
        return self

    def enqueue(self, cohorts: Optional[Iterable[CohortFilter]] = None) -> bool:
        """Schedule a refresh; returns False if the request was dropped."""
        self.start()
        try:
            self._queue.put_nowait(tuple(cohorts) if cohorts else None)
            return True
        except queue.Full:
            logger.warning("[refresh] queue full; dropping refresh request")
            return False

    def join(self) -> None:
        """Block until every queued refresh has been processed."""
        self._queue.join()

    def stop(self, timeout: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("[refresh] could not signal worker to stop")
            return
        thread.join(timeout)

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.job.run(cohorts=item)
                self.runs += 1
            except RiskIndexError as e:
                self.failures += 1
                logger.error("[refresh] failed: %s", e)
            except Exception:
                self.failures += 1
                logger.exception("[refresh] unexpected error")
            finally:
                self._queue.task_done()
