# results/assemblers.py
from dataclasses import replace
from typing import Dict, Optional, Union

from riskindex.domain.models import (
    AssessmentResult,
    BenchmarkComparison,
    BenchmarkSet,
    BenchmarkSnapshot,
    ScoringResult,
)

DELTA_PRECISION = 2

def compare(scoring_result: Union[ScoringResult, AssessmentResult], snapshot: Optional[BenchmarkSnapshot]) -> Optional[BenchmarkComparison]:
    """
    Score vs one cohort snapshot. None stays None ("not enough data").

    Pillar deltas are only reported for pillars the snapshot carries.
    """
    if snapshot is None:
        return None
    pillar_deltas: Dict[str, float] = {}
    for p in scoring_result.pillar_breakdown:
        avg = snapshot.pillar_averages.get(p.pillar_id)
        if avg is not None:
            pillar_deltas[p.pillar_id] = round(p.raw_score - avg, DELTA_PRECISION)
    return BenchmarkComparison(
        average_score=snapshot.average_score,
        sample_size=snapshot.sample_size,
        period_end=snapshot.period_end,
        delta=round(scoring_result.total_score - snapshot.average_score, DELTA_PRECISION),
        pillar_deltas=pillar_deltas,
    )

def assemble(scoring_result: ScoringResult, benchmark_set: Optional[BenchmarkSet] = None) -> AssessmentResult:
    """Merge engine output and resolved benchmarks into the final result.

    Pure: neither input is modified, and a missing or unavailable benchmark
    set yields ``None`` for every dimension.
    """
    bset = benchmark_set if benchmark_set is not None else BenchmarkSet.unavailable()
    benchmark = {dim: compare(scoring_result, snap) for dim, snap in bset.items()}

    return AssessmentResult(
        questionnaire_version=scoring_result.questionnaire_version,
        total_score=scoring_result.total_score,
        level=scoring_result.level,
        level_name=scoring_result.level_name,
        level_description=scoring_result.level_description,
        pillar_breakdown=scoring_result.pillar_breakdown,
        strengths=scoring_result.strengths,
        weaknesses=scoring_result.weaknesses,
        recommendations=scoring_result.recommendations,
        benchmark=benchmark,
        cohort_recommendations=scoring_result.cohort_recommendations,
        level_recommendations=scoring_result.level_recommendations,
        benchmarks_available=bset.available,
    )

def rebenchmark(result: AssessmentResult, benchmark_set: Optional[BenchmarkSet]) -> AssessmentResult:
    """Attach a fresh benchmark comparison to a stored result; scores are untouched."""
    bset = benchmark_set if benchmark_set is not None else BenchmarkSet.unavailable()
    return replace(
        result,
        benchmark={dim: compare(result, snap) for dim, snap in bset.items()},
        benchmarks_available=bset.available,
    )
