"""Core domain models and business logic."""

from .models import (
    Answer,
    OrgMeta,
    PillarScore,
    ScoringResult,
    CohortFilter,
    BenchmarkSnapshot,
    BenchmarkSet,
    BenchmarkComparison,
    AssessmentResult,
    AssessmentOutcome,
    StoredAssessment,
)
from .cohorts import Industry, CompanySize, Region

__all__ = [
    "Answer",
    "OrgMeta",
    "PillarScore",
    "ScoringResult",
    "CohortFilter",
    "BenchmarkSnapshot",
    "BenchmarkSet",
    "BenchmarkComparison",
    "AssessmentResult",
    "AssessmentOutcome",
    "StoredAssessment",
    "Industry",
    "CompanySize",
    "Region",
]
