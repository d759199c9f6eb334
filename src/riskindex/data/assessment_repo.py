# data/assessment_repo.py
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from riskindex.domain.models import (
    Answer,
    AssessmentResult,
    BenchmarkComparison,
    OrgMeta,
    PillarScore,
    StoredAssessment,
)
from riskindex.domain.exceptions import DatabaseError, RecordNotFoundError
from .db import connect, to_db_time, from_db_time

def result_from_dict(d: Mapping[str, Any]) -> AssessmentResult:
    """Rebuild an ``AssessmentResult`` from its ``to_dict()`` form."""
    benchmark: Dict[str, Optional[BenchmarkComparison]] = {}
    for dim, cmp in (d.get("benchmark") or {}).items():
        if cmp is None:
            benchmark[dim] = None
            continue
        benchmark[dim] = BenchmarkComparison(
            average_score=cmp["average_score"],
            sample_size=cmp["sample_size"],
            period_end=datetime.fromisoformat(cmp["period_end"]),
            delta=cmp["delta"],
            pillar_deltas=dict(cmp.get("pillar_deltas") or {}),
        )
    return AssessmentResult(
        questionnaire_version=d["questionnaire_version"],
        total_score=d["total_score"],
        level=d["level"],
        level_name=d["level_name"],
        level_description=d["level_description"],
        pillar_breakdown=tuple(PillarScore(**p) for p in d["pillar_breakdown"]),
        strengths=tuple(d.get("strengths") or ()),
        weaknesses=tuple(d.get("weaknesses") or ()),
        recommendations=tuple(d.get("recommendations") or ()),
        benchmark=benchmark,
        cohort_recommendations=tuple(d.get("cohort_recommendations") or ()),
        level_recommendations=tuple(d.get("level_recommendations") or ()),
        benchmarks_available=d.get("benchmarks_available", True),
    )

def insert_assessment(conn: sqlite3.Connection, record: StoredAssessment) -> None:
    """Persist one submitted assessment. Records are write-once."""
    meta = record.org_meta.to_dict()
    result = record.result
    row = (
        record.assessment_id,
        to_db_time(record.created_at),
        result.questionnaire_version,
        meta["industry"],
        meta["company_size"],
        meta["region"],
        record.org_meta_hash,
        float(result.total_score),
        result.level,
        json.dumps({p.pillar_id: p.raw_score for p in result.pillar_breakdown}, sort_keys=True),
        json.dumps([a.to_dict() for a in record.answers]),
        json.dumps(result.to_dict()),
        bool(record.email_opt_in),
        record.contact_email,
    )
    try:
        with conn:
            conn.execute("""
                INSERT INTO assessments
                (
                    assessment_id,
                    created_at,
                    questionnaire_version,
                    industry,
                    company_size,
                    region,
                    org_meta_hash,
                    total_score,
                    level,
                    pillar_scores_json,
                    answers_json,
                    result_json,
                    email_opt_in,
                    contact_email
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, row)
    except sqlite3.IntegrityError as e:
        raise DatabaseError(f"Assessment {record.assessment_id} already exists",
                            operation="insert_assessment", recoverable=False) from e
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to store assessment: {e}", operation="insert_assessment") from e

def fetch_assessment(db_path: Union[str, Path], assessment_id: str) -> StoredAssessment:
    conn = connect(db_path)
    try:
        row = conn.execute("""
            SELECT assessment_id, created_at, industry, company_size, region,
                   org_meta_hash, answers_json, result_json, email_opt_in, contact_email
            FROM assessments
            WHERE assessment_id = ?;
        """, (assessment_id,)).fetchone()
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to load assessment: {e}", operation="fetch_assessment") from e
    finally:
        conn.close()

    if row is None:
        raise RecordNotFoundError("Assessment", assessment_id)

    (aid, created_at, industry, size, region, meta_hash,
     answers_json, result_json, opt_in, email) = row
    return StoredAssessment(
        assessment_id=aid,
        created_at=from_db_time(created_at),
        org_meta=OrgMeta.from_raw(industry, size, region),
        answers=tuple(Answer(a["question_id"], a["value"], a.get("rationale"))
                      for a in json.loads(answers_json)),
        result=result_from_dict(json.loads(result_json)),
        org_meta_hash=meta_hash,
        email_opt_in=bool(opt_in),
        contact_email=email,
    )

def iter_scored_rows(
    db_path: Union[str, Path],
    window_start: datetime,
    window_end: datetime,
    questionnaire_version: Optional[str] = None,
) -> Iterator[Tuple[Optional[str], Optional[str], Optional[str], float, Dict[str, float]]]:
    """
    Yields (industry, company_size, region, total_score, pillar_scores)
    for assessments created within [window_start, window_end].
    """
    sql = """
        SELECT industry, company_size, region, total_score, pillar_scores_json
        FROM assessments
        WHERE created_at BETWEEN ? AND ?
    """
    params: list = [to_db_time(window_start), to_db_time(window_end)]
    if questionnaire_version:
        sql += " AND questionnaire_version = ?"
        params.append(questionnaire_version)
    sql += " ORDER BY created_at;"

    conn = connect(db_path)
    try:
        for industry, size, region, total, pillars_json in conn.execute(sql, params):
            yield industry, size, region, total, json.loads(pillars_json)
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to read assessments: {e}", operation="iter_scored_rows") from e
    finally:
        conn.close()

def count_assessments(db_path: Union[str, Path]) -> int:
    conn = connect(db_path)
    try:
        (n,) = conn.execute("SELECT COUNT(*) FROM assessments;").fetchone()
    finally:
        conn.close()
    return n
