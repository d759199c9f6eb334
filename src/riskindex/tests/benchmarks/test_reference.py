from datetime import datetime, timezone

import pytest

from riskindex.benchmarks.reference import (
    INDUSTRY_REFERENCE,
    OVERALL_AVERAGE,
    PILLAR_ORDER,
    REFERENCE_SOURCE,
    SIZE_REFERENCE,
    overall_pillar_averages,
    reference_snapshots,
)
from riskindex.catalog import get_questionnaire
from riskindex.domain.cohorts import CompanySize, Industry

PERIOD_END = datetime(2025, 1, 31, tzinfo=timezone.utc)


def test_pillar_order_matches_questionnaire():
    assert list(PILLAR_ORDER) == get_questionnaire("2025.1").pillar_ids


def test_snapshot_counts():
    snaps = reference_snapshots(PERIOD_END)
    assert len(snaps) == len(INDUSTRY_REFERENCE) + len(SIZE_REFERENCE) + 1
    assert sum(1 for s in snaps if s.cohort.is_overall) == 1
    assert all(s.period_end == PERIOD_END for s in snaps)
    assert all(s.source == REFERENCE_SOURCE for s in snaps)


def test_industry_snapshot():
    snaps = {s.industry: s for s in reference_snapshots(PERIOD_END) if s.industry}
    fin = snaps[Industry.FINANCIAL_SERVICES]
    assert fin.average_score == 74.0
    assert fin.sample_size == 3280
    assert fin.pillar_averages["investigation-evidence"] == 82.0
    assert fin.size is None and fin.region is None


def test_size_snapshot():
    snaps = {s.size: s for s in reference_snapshots(PERIOD_END) if s.size}
    assert snaps[CompanySize.ENTERPRISE_5000_PLUS].average_score == 79.0
    assert set(snaps) == set(CompanySize)


def test_overall_snapshot():
    overall = [s for s in reference_snapshots(PERIOD_END) if s.cohort.is_overall][0]
    assert overall.average_score == OVERALL_AVERAGE
    assert set(overall.pillar_averages) == set(PILLAR_ORDER)


def test_overall_pillar_averages_weighted_by_sample():
    table = {
        Industry.RETAIL: (50, (10, 20, 30, 40, 50), 1),
        Industry.HEALTHCARE: (50, (40, 50, 60, 70, 80), 3),
    }
    out = overall_pillar_averages(table)
    assert out["visibility"] == pytest.approx(32.5)
    assert out["phishing-resilience"] == pytest.approx(72.5)


def test_default_period_end_is_now():
    snaps = reference_snapshots()
    assert snaps[0].period_end.tzinfo is not None
