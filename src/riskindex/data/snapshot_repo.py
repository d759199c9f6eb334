# data/snapshot_repo.py
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from riskindex.domain.cohorts import Industry, CompanySize, Region
from riskindex.domain.models import BenchmarkSnapshot, CohortFilter
from riskindex.domain.exceptions import DatabaseError
from .db import connect, to_db_time, from_db_time

_COLUMNS = "industry, size, region, period_end, average_score, pillar_averages_json, sample_size, source"

def cohort_key(cohort: CohortFilter) -> str:
    """Mirror of the generated ``cohort_key`` column."""
    parts = (cohort.industry, cohort.size, cohort.region)
    return "|".join(p.value if p is not None else "*" for p in parts)

def snapshot_row(s: BenchmarkSnapshot) -> tuple:
    return (
        s.industry.value if s.industry else None,
        s.size.value if s.size else None,
        s.region.value if s.region else None,
        to_db_time(s.period_end),
        float(s.average_score),
        json.dumps(dict(s.pillar_averages), sort_keys=True),
        int(s.sample_size),
        s.source,
    )

def _from_row(row) -> BenchmarkSnapshot:
    industry, size, region, period_end, avg, pillars_json, n, source = row
    return BenchmarkSnapshot(
        period_end=from_db_time(period_end),
        average_score=avg,
        pillar_averages=json.loads(pillars_json) if pillars_json else {},
        sample_size=n,
        industry=Industry(industry) if industry else None,
        size=CompanySize(size) if size else None,
        region=Region(region) if region else None,
        source=source,
    )

def upsert_snapshots(conn: sqlite3.Connection, snapshots: Iterable[BenchmarkSnapshot]) -> int:
    """
    Insert or replace snapshots keyed on (cohort, period_end). Single transaction.
    """
    sql = f"""
    INSERT INTO benchmark_snapshots ({_COLUMNS})
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(cohort_key, period_end) DO UPDATE SET
       average_score        = excluded.average_score,
       pillar_averages_json = excluded.pillar_averages_json,
       sample_size          = excluded.sample_size,
       source               = excluded.source;
    """
    rows = [snapshot_row(s) for s in snapshots]
    try:
        with conn:  # single transaction
            conn.executemany(sql, rows)
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to write benchmark snapshots: {e}",
                            operation="upsert_snapshots") from e
    return len(rows)

def find_latest_snapshot(
    db_path: Union[str, Path],
    cohort: CohortFilter,
    window_start: datetime,
    as_of: datetime,
    busy_timeout_ms: int = 5000,
) -> Optional[BenchmarkSnapshot]:
    """Most recent snapshot for exactly this cohort with period_end in [window_start, as_of]."""
    sql = f"""
        SELECT {_COLUMNS}
        FROM benchmark_snapshots
        WHERE cohort_key = ?
          AND period_end BETWEEN ? AND ?
        ORDER BY period_end DESC
        LIMIT 1;
    """
    try:
        conn = connect(db_path, busy_timeout_ms)
        try:
            row = conn.execute(sql, (cohort_key(cohort), to_db_time(window_start),
                                     to_db_time(as_of))).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise DatabaseError(f"Snapshot lookup failed: {e}", operation="find_snapshot") from e
    return _from_row(row) if row else None

def list_snapshots(db_path: Union[str, Path], limit: int = 100) -> List[BenchmarkSnapshot]:
    """Newest first, for inspection commands."""
    conn = connect(db_path)
    try:
        rows = conn.execute(f"""
            SELECT {_COLUMNS}
            FROM benchmark_snapshots
            ORDER BY period_end DESC, cohort_key
            LIMIT ?;
        """, (limit,)).fetchall()
    finally:
        conn.close()
    return [_from_row(r) for r in rows]
