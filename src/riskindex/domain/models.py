"""Core domain models for scoring and benchmarking."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple, Union

from .cohorts import (
    Industry,
    CompanySize,
    Region,
    canonical_industry,
    canonical_company_size,
    canonical_region,
)

@dataclass(frozen=True)
class Answer:
    question_id: str
    value: float                    # 0..100
    rationale: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"question_id": self.question_id, "value": self.value}
        if self.rationale:
            d["rationale"] = self.rationale
        return d


@dataclass(frozen=True)
class OrgMeta:
    """Canonical organisation metadata used to pick benchmark cohorts."""
    industry: Optional[Industry] = None
    company_size: Optional[CompanySize] = None
    region: Optional[Region] = None

    @classmethod
    def from_raw(
        cls,
        industry: Union[str, Industry, None] = None,
        company_size: Union[str, CompanySize, None] = None,
        region: Union[str, Region, None] = None,
    ) -> "OrgMeta":
        """Build from free-text category strings or enum values."""
        return cls(
            industry=canonical_industry(industry),
            company_size=canonical_company_size(company_size),
            region=canonical_region(region),
        )

    @classmethod
    def coerce(cls, value: Union["OrgMeta", Dict[str, Any], None]) -> "OrgMeta":
        """Accept an ``OrgMeta``, a mapping of raw values, or None."""
        if value is None:
            return cls()
        if isinstance(value, OrgMeta):
            return value
        size = value.get("company_size", value.get("companySize", value.get("size")))
        return cls.from_raw(value.get("industry"), size, value.get("region"))

    @property
    def org_meta_hash(self) -> Optional[str]:
        """Short stable hash of industry and size; None unless both are known."""
        if self.industry is None or self.company_size is None:
            return None
        key = f"{self.industry.value}_{self.company_size.value}"
        return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "industry": self.industry.value if self.industry else None,
            "company_size": self.company_size.value if self.company_size else None,
            "region": self.region.value if self.region else None,
        }


@dataclass(frozen=True)
class PillarScore:
    pillar_id: str
    raw_score: float                # 0..100
    weight: float                   # percentage
    contribution_to_total: float    # raw_score * weight / 100
    answered_count: int = 0
    question_count: int = 0

    @property
    def answered(self) -> bool:
        return self.answered_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar_id": self.pillar_id,
            "raw_score": self.raw_score,
            "weight": self.weight,
            "contribution_to_total": self.contribution_to_total,
            "answered_count": self.answered_count,
            "question_count": self.question_count,
        }


@dataclass(frozen=True)
class ScoringResult:
    """Benchmark-free output of the scoring engine."""
    questionnaire_version: str
    total_score: float
    level: int
    level_name: str
    level_description: str
    pillar_breakdown: Tuple[PillarScore, ...]
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    cohort_recommendations: Tuple[str, ...] = ()
    level_recommendations: Tuple[str, ...] = ()

    def pillar(self, pillar_id: str) -> Optional[PillarScore]:
        for p in self.pillar_breakdown:
            if p.pillar_id == pillar_id:
                return p
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionnaire_version": self.questionnaire_version,
            "total_score": self.total_score,
            "level": self.level,
            "level_name": self.level_name,
            "level_description": self.level_description,
            "pillar_breakdown": [p.to_dict() for p in self.pillar_breakdown],
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
            "cohort_recommendations": list(self.cohort_recommendations),
            "level_recommendations": list(self.level_recommendations),
        }


@dataclass(frozen=True)
class CohortFilter:
    """Snapshot query key. All-None selects the overall snapshot."""
    industry: Optional[Industry] = None
    size: Optional[CompanySize] = None
    region: Optional[Region] = None

    @property
    def is_overall(self) -> bool:
        return self.industry is None and self.size is None and self.region is None

    @property
    def dimension(self) -> str:
        if self.is_overall:
            return "overall"
        set_dims = [name for name, v in (("industry", self.industry), ("size", self.size),
                                         ("region", self.region)) if v is not None]
        return "+".join(set_dims)


@dataclass(frozen=True)
class BenchmarkSnapshot:
    period_end: datetime
    average_score: float
    pillar_averages: Dict[str, float] = field(default_factory=dict)
    sample_size: int = 0
    industry: Optional[Industry] = None
    size: Optional[CompanySize] = None
    region: Optional[Region] = None
    source: str = "assessments"

    @property
    def cohort(self) -> CohortFilter:
        return CohortFilter(industry=self.industry, size=self.size, region=self.region)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "industry": self.industry.value if self.industry else None,
            "size": self.size.value if self.size else None,
            "region": self.region.value if self.region else None,
            "period_end": self.period_end.isoformat(),
            "average_score": self.average_score,
            "pillar_averages": dict(self.pillar_averages),
            "sample_size": self.sample_size,
            "source": self.source,
        }


@dataclass(frozen=True)
class BenchmarkSet:
    """Resolver output; any dimension may be missing."""
    industry: Optional[BenchmarkSnapshot] = None
    company_size: Optional[BenchmarkSnapshot] = None
    region: Optional[BenchmarkSnapshot] = None
    overall: Optional[BenchmarkSnapshot] = None
    available: bool = True

    @classmethod
    def unavailable(cls) -> "BenchmarkSet":
        return cls(available=False)

    def items(self) -> List[Tuple[str, Optional[BenchmarkSnapshot]]]:
        return [
            ("industry", self.industry),
            ("company_size", self.company_size),
            ("region", self.region),
            ("overall", self.overall),
        ]


@dataclass(frozen=True)
class BenchmarkComparison:
    average_score: float
    sample_size: int
    period_end: datetime
    delta: float                    # total_score - average_score
    pillar_deltas: Dict[str, float] = field(default_factory=dict)

    @property
    def above_average(self) -> bool:
        return self.delta > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_score": self.average_score,
            "sample_size": self.sample_size,
            "period_end": self.period_end.isoformat(),
            "delta": self.delta,
            "pillar_deltas": dict(self.pillar_deltas),
        }


BENCHMARK_DIMENSIONS = ("industry", "company_size", "region", "overall")


@dataclass(frozen=True)
class AssessmentResult:
    """Final result delivered to web, PDF and email consumers."""
    questionnaire_version: str
    total_score: float
    level: int
    level_name: str
    level_description: str
    pillar_breakdown: Tuple[PillarScore, ...]
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    benchmark: Dict[str, Optional[BenchmarkComparison]]
    cohort_recommendations: Tuple[str, ...] = ()
    level_recommendations: Tuple[str, ...] = ()
    benchmarks_available: bool = True

    def pillar(self, pillar_id: str) -> Optional[PillarScore]:
        for p in self.pillar_breakdown:
            if p.pillar_id == pillar_id:
                return p
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionnaire_version": self.questionnaire_version,
            "total_score": self.total_score,
            "level": self.level,
            "level_name": self.level_name,
            "level_description": self.level_description,
            "pillar_breakdown": [p.to_dict() for p in self.pillar_breakdown],
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
            "cohort_recommendations": list(self.cohort_recommendations),
            "level_recommendations": list(self.level_recommendations),
            "benchmark": {
                dim: (cmp.to_dict() if cmp is not None else None)
                for dim, cmp in self.benchmark.items()
            },
            "benchmarks_available": self.benchmarks_available,
        }


@dataclass(frozen=True)
class AssessmentOutcome:
    """Typed success/failure returned by ``compute_assessment``."""
    ok: bool
    result: Optional[AssessmentResult] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, result: AssessmentResult) -> "AssessmentOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: Exception) -> "AssessmentOutcome":
        return cls(ok=False, error=error)

    def unwrap(self) -> AssessmentResult:
        """Return the result or raise the captured error."""
        if not self.ok or self.result is None:
            raise self.error  # type: ignore[misc]
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        if self.ok and self.result is not None:
            return {"success": True, "result": self.result.to_dict()}
        err = self.error
        return {
            "success": False,
            "error": err.to_dict() if hasattr(err, "to_dict") else {"message": str(err)},
        }


@dataclass(frozen=True)
class StoredAssessment:
    """An assessment record as persisted by the record store."""
    assessment_id: str
    created_at: datetime
    org_meta: OrgMeta
    answers: Tuple[Answer, ...]
    result: AssessmentResult
    org_meta_hash: Optional[str] = None
    email_opt_in: bool = False
    contact_email: Optional[str] = None
