import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from riskindex.benchmarks.refresh import BenchmarkRefreshJob, BackgroundRefresher, RefreshResult
from riskindex.catalog import get_questionnaire
from riskindex.config.settings import Settings, RefreshSettings, ScoringSettings
from riskindex.data.db import connect
from riskindex.data.schema import init_schema
from riskindex.data.assessment_repo import insert_assessment
from riskindex.data.snapshot_repo import list_snapshots
from riskindex.domain.cohorts import Industry, CompanySize, Region
from riskindex.domain.models import Answer, CohortFilter, OrgMeta, StoredAssessment
from riskindex.domain.exceptions import DatabaseError
from riskindex.results import assemble
from riskindex.scoring import ScoringEngine

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)
QUESTIONNAIRE = get_questionnaire("2025.1")
RETAIL_EU = OrgMeta(Industry.RETAIL, CompanySize.MID_251_1000, Region.EUROPE)
HEALTH = OrgMeta(Industry.HEALTHCARE, CompanySize.STARTUP_1_50)


@pytest.fixture(autouse=True)
def no_progress(monkeypatch):
    monkeypatch.setenv("NO_PROGRESS", "1")


def add_assessment(db, aid, value, meta, days_ago=1):
    answers = tuple(Answer(q.id, float(value)) for q in QUESTIONNAIRE.questions)
    scored = ScoringEngine(QUESTIONNAIRE, ScoringSettings()).score(answers, meta)
    record = StoredAssessment(
        assessment_id=aid,
        created_at=NOW - timedelta(days=days_ago),
        org_meta=meta,
        answers=answers,
        result=assemble(scored),
    )
    conn = connect(db)
    try:
        insert_assessment(conn, record)
    finally:
        conn.close()


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "store.sqlite"
    conn = connect(path)
    init_schema(conn)
    conn.close()
    add_assessment(path, "r1", 40, RETAIL_EU)
    add_assessment(path, "r2", 60, RETAIL_EU)
    add_assessment(path, "r3", 80, RETAIL_EU)
    add_assessment(path, "h1", 20, HEALTH)
    add_assessment(path, "old", 100, RETAIL_EU, days_ago=200)
    return path


@pytest.fixture
def settings():
    return Settings(refresh=RefreshSettings(min_sample_size=2))


class TestBenchmarkRefreshJob:

    def test_aggregates_cohorts(self, db, settings):
        result = BenchmarkRefreshJob(db, settings).run(period_end=NOW)

        assert result.assessments_read == 4
        assert result.snapshots_written == 4
        assert set(result.cohorts_skipped) == {"industry=HEALTHCARE", "size=STARTUP_1_50"}
        assert result.attempts == 1

        by_cohort = {s.cohort: s for s in list_snapshots(db)}
        overall = by_cohort[CohortFilter()]
        assert overall.average_score == pytest.approx(50.0)
        assert overall.sample_size == 4
        assert overall.pillar_averages["visibility"] == pytest.approx(50.0)
        assert by_cohort[CohortFilter(industry=Industry.RETAIL)].average_score == pytest.approx(60.0)
        assert by_cohort[CohortFilter(region=Region.EUROPE)].sample_size == 3
        assert CohortFilter(industry=Industry.HEALTHCARE) not in by_cohort

    def test_snapshots_stamped_with_period_end(self, db, settings):
        BenchmarkRefreshJob(db, settings).run(period_end=NOW)
        assert {s.period_end for s in list_snapshots(db)} == {NOW}

    def test_rerun_replaces(self, db, settings):
        job = BenchmarkRefreshJob(db, settings)
        job.run(period_end=NOW)
        job.run(period_end=NOW)
        assert len(list_snapshots(db)) == 4

    def test_selected_cohorts_plus_overall(self, db, settings):
        result = BenchmarkRefreshJob(db, settings).run(
            period_end=NOW, cohorts=[CohortFilter(industry=Industry.RETAIL)]
        )
        assert result.snapshots_written == 2
        assert {s.cohort for s in list_snapshots(db)} == {
            CohortFilter(), CohortFilter(industry=Industry.RETAIL),
        }

    def test_window(self, db):
        settings = Settings(refresh=RefreshSettings(min_sample_size=1, aggregation_window_days=365))
        result = BenchmarkRefreshJob(db, settings).run(period_end=NOW)
        assert result.assessments_read == 5

    def test_dry_run(self, db, settings):
        settings.dry_run = True
        result = BenchmarkRefreshJob(db, settings).run(period_end=NOW)
        assert result.snapshots_written == 0
        assert list_snapshots(db) == []

    def test_retries_with_backoff(self, db, settings):
        job = BenchmarkRefreshJob(db, settings)
        ok = RefreshResult(period_end=NOW)
        with patch.object(job, "_run_once", side_effect=[DatabaseError("database is locked"), ok]), \
             patch("riskindex.benchmarks.refresh.time.sleep") as sleep:
            result = job.run(period_end=NOW)
        assert result is ok
        assert result.attempts == 2
        sleep.assert_called_once_with(0.5)

    def test_gives_up(self, db, settings):
        job = BenchmarkRefreshJob(db, settings)
        with patch.object(job, "_run_once", side_effect=DatabaseError("database is locked")), \
             patch("riskindex.benchmarks.refresh.time.sleep") as sleep:
            with pytest.raises(DatabaseError):
                job.run(period_end=NOW)
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_locked_database_is_retried(self, db, settings):
        job = BenchmarkRefreshJob(db, settings)
        locked = sqlite3.OperationalError("database is locked")
        with patch("riskindex.data.db.sqlite3.connect", side_effect=locked) as open_db, \
             patch("riskindex.benchmarks.refresh.time.sleep") as sleep:
            with pytest.raises(DatabaseError) as exc_info:
                job.run(period_end=NOW)
        assert open_db.call_count == 3
        assert sleep.call_count == 2
        assert exc_info.value.context["db_operation"] == "connect"

    def test_non_retryable_not_retried(self, db, settings):
        job = BenchmarkRefreshJob(db, settings)
        with patch.object(job, "_run_once", side_effect=ValueError("bug")) as run_once, \
             patch("riskindex.benchmarks.refresh.time.sleep") as sleep:
            with pytest.raises(ValueError):
                job.run(period_end=NOW)
        assert run_once.call_count == 1
        sleep.assert_not_called()


class RecordingJob:

    def __init__(self, fail=False):
        self.settings = SimpleNamespace(refresh=RefreshSettings(queue_size=10))
        self.calls = []
        self.fail = fail

    def run(self, period_end=None, cohorts=None):
        self.calls.append(cohorts)
        if self.fail:
            raise DatabaseError("disk I/O error")
        return RefreshResult(period_end=NOW)


class BlockingJob(RecordingJob):

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def run(self, period_end=None, cohorts=None):
        self.started.set()
        self.release.wait(5)
        return super().run(period_end, cohorts)


class TestBackgroundRefresher:

    def test_runs_enqueued_requests(self):
        job = RecordingJob()
        refresher = BackgroundRefresher(job)
        try:
            assert refresher.enqueue([CohortFilter(industry=Industry.RETAIL)])
            assert refresher.enqueue()
            refresher.join()
        finally:
            refresher.stop()
        assert job.calls == [(CohortFilter(industry=Industry.RETAIL),), None]
        assert refresher.runs == 2
        assert refresher.failures == 0

    def test_failures_counted_and_worker_survives(self):
        job = RecordingJob(fail=True)
        refresher = BackgroundRefresher(job)
        try:
            refresher.enqueue()
            refresher.enqueue()
            refresher.join()
        finally:
            refresher.stop()
        assert refresher.failures == 2
        assert refresher.runs == 0

    def test_full_queue_drops_request(self):
        job = BlockingJob()
        refresher = BackgroundRefresher(job, queue_size=1)
        try:
            assert refresher.enqueue()
            assert job.started.wait(5)
            assert refresher.enqueue()
            assert refresher.enqueue() is False
        finally:
            job.release.set()
            refresher.join()
            refresher.stop()
        assert len(job.calls) == 2

    def test_stop_without_start(self):
        BackgroundRefresher(RecordingJob()).stop()

    def test_worker_thread_is_daemon(self):
        refresher = BackgroundRefresher(RecordingJob()).start()
        try:
            assert refresher._thread.daemon
            assert refresher._thread.name == "benchmark-refresh"
        finally:
            refresher.stop()
