import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from riskindex.data.db import connect
from riskindex.data.schema import init_schema
from riskindex.data.snapshot_repo import (
    cohort_key,
    upsert_snapshots,
    find_latest_snapshot,
    list_snapshots,
)
from riskindex.domain.cohorts import Industry, CompanySize, Region
from riskindex.domain.models import BenchmarkSnapshot, CohortFilter
from riskindex.domain.exceptions import DatabaseError

NOW = datetime(2025, 6, 30, tzinfo=timezone.utc)


def snap(days_ago=0, avg=60.0, **cohort):
    return BenchmarkSnapshot(
        period_end=NOW - timedelta(days=days_ago),
        average_score=avg,
        pillar_averages={"visibility": avg - 5},
        sample_size=20,
        **cohort,
    )


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "store.sqlite"
    conn = connect(path)
    init_schema(conn)
    conn.close()
    return path


def write(db, snapshots):
    conn = connect(db)
    try:
        return upsert_snapshots(conn, snapshots)
    finally:
        conn.close()


def test_cohort_key():
    assert cohort_key(CohortFilter()) == "*|*|*"
    assert cohort_key(CohortFilter(size=CompanySize.STARTUP_1_50)) == "*|STARTUP_1_50|*"
    assert cohort_key(CohortFilter(region=Region.EUROPE)) == "*|*|EUROPE"


class TestFindLatest:

    def test_returns_newest_in_window(self, db):
        write(db, [snap(days_ago=20, avg=50), snap(days_ago=5, avg=55), snap(days_ago=40, avg=70)])
        found = find_latest_snapshot(db, CohortFilter(), NOW - timedelta(days=30), NOW)
        assert found.average_score == 55
        assert found.period_end == NOW - timedelta(days=5)
        assert found.pillar_averages == {"visibility": 50.0}

    def test_exact_cohort_only(self, db):
        write(db, [snap(industry=Industry.RETAIL), snap(industry=Industry.RETAIL, region=Region.EUROPE)])
        window = (NOW - timedelta(days=30), NOW)
        assert find_latest_snapshot(db, CohortFilter(industry=Industry.RETAIL), *window).region is None
        assert find_latest_snapshot(db, CohortFilter(industry=Industry.HEALTHCARE), *window) is None
        assert find_latest_snapshot(db, CohortFilter(), *window) is None

    def test_stale_snapshot_ignored(self, db):
        write(db, [snap(days_ago=31)])
        assert find_latest_snapshot(db, CohortFilter(), NOW - timedelta(days=30), NOW) is None

    def test_future_snapshot_ignored(self, db):
        write(db, [snap(days_ago=-1)])
        assert find_latest_snapshot(db, CohortFilter(), NOW - timedelta(days=30), NOW) is None

    def test_window_bounds_inclusive(self, db):
        write(db, [snap(days_ago=30)])
        assert find_latest_snapshot(db, CohortFilter(), NOW - timedelta(days=30), NOW) is not None

    def test_missing_table_wrapped(self, tmp_path):
        with pytest.raises(DatabaseError) as exc_info:
            find_latest_snapshot(tmp_path / "empty.sqlite", CohortFilter(), NOW, NOW)
        assert exc_info.value.context["db_operation"] == "find_snapshot"


class TestUpsert:

    def test_same_period_replaces(self, db):
        write(db, [snap(avg=50, industry=Industry.RETAIL)])
        write(db, [snap(avg=65, industry=Industry.RETAIL)])
        rows = list_snapshots(db)
        assert len(rows) == 1
        assert rows[0].average_score == 65

    def test_overall_replaced_despite_null_cohort(self, db):
        write(db, [snap(avg=50)])
        write(db, [snap(avg=52)])
        assert [s.average_score for s in list_snapshots(db)] == [52]

    def test_returns_count(self, db):
        assert write(db, [snap(), snap(industry=Industry.RETAIL), snap(size=CompanySize.MID_251_1000)]) == 3

    def test_failure_wrapped(self, tmp_path):
        conn = connect(tmp_path / "no-schema.sqlite")
        try:
            with pytest.raises(DatabaseError, match="Failed to write benchmark snapshots"):
                upsert_snapshots(conn, [snap()])
        finally:
            conn.close()


def test_list_snapshots_newest_first(db):
    write(db, [snap(days_ago=3, avg=1), snap(days_ago=1, avg=2), snap(days_ago=2, avg=3)])
    assert [s.average_score for s in list_snapshots(db)] == [2, 3, 1]
    assert len(list_snapshots(db, limit=2)) == 2


def test_list_snapshots_closes_connection(db, monkeypatch):
    opened = []

    def tracking_connect(*args, **kwargs):
        conn = connect(*args, **kwargs)
        opened.append(conn)
        return conn

    monkeypatch.setattr("riskindex.data.snapshot_repo.connect", tracking_connect)
    write(db, [snap()])
    list_snapshots(db)
    assert opened
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
