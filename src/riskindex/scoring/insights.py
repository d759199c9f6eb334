"""Ranked strengths, weaknesses and recommendations derived from pillar scores."""

from typing import List, Mapping, Optional, Sequence, Tuple

from riskindex.catalog import QuestionnaireConfig
from riskindex.domain.cohorts import Industry, CompanySize
from riskindex.domain.models import PillarScore

# severity bands used both for weakness wording and recommendation depth
CRITICAL_BELOW = 30.0
SIGNIFICANT_BELOW = 50.0

def _display(score: float) -> int:
    # whole percent, half up
    return int(score + 0.5)

def _pillar_name(questionnaire: QuestionnaireConfig, pillar_id: str) -> str:
    pillar = questionnaire.pillar(pillar_id)
    return pillar.name if pillar else pillar_id

def rank_pillars(breakdown: Sequence[PillarScore], *, descending: bool = True) -> List[PillarScore]:
    """Stable sort by raw score; ties keep questionnaire declaration order."""
    return sorted(breakdown, key=lambda p: p.raw_score, reverse=descending)

def identify_strengths(
    breakdown: Sequence[PillarScore],
    questionnaire: QuestionnaireConfig,
    limit: int = 3,
) -> Tuple[str, ...]:
    """Sentences for the highest scoring pillars."""
    # sorted(reverse=True) is stable, equal scores stay in declaration order
    top = rank_pillars(breakdown, descending=True)[:limit]
    return tuple(
        f"Strong {_pillar_name(questionnaire, p.pillar_id).lower()} capabilities "
        f"with a score of {_display(p.raw_score)}%."
        for p in top
    )

def severity_label(score: float) -> str:
    if score < CRITICAL_BELOW:
        return "Critical gaps"
    if score < SIGNIFICANT_BELOW:
        return "Significant weaknesses"
    return "Areas for improvement"

def identify_weaknesses(
    breakdown: Sequence[PillarScore],
    questionnaire: QuestionnaireConfig,
    limit: int = 3,
) -> Tuple[str, ...]:
    """Sentences for the lowest scoring pillars, weakest first."""
    bottom = rank_pillars(breakdown, descending=False)[:limit]
    return tuple(
        f"{severity_label(p.raw_score)} in {_pillar_name(questionnaire, p.pillar_id).lower()} "
        f"({_display(p.raw_score)}% score)."
        for p in bottom
    )

def recommendation_depth(score: float) -> int:
    """How many canned recommendations a pillar below threshold receives."""
    if score < CRITICAL_BELOW:
        return 3
    if score < SIGNIFICANT_BELOW:
        return 2
    return 1

def build_recommendations(
    breakdown: Sequence[PillarScore],
    questionnaire: QuestionnaireConfig,
    *,
    threshold: float = 65.0,
    limit: int = 5,
) -> Tuple[str, ...]:
    """
    Canned advice for every pillar below ``threshold``, weakest pillar first.

    Duplicates are dropped and the list is capped at ``limit``.
    """
    out: List[str] = []
    for p in rank_pillars(breakdown, descending=False):
        if p.raw_score >= threshold:
            break
        canned = questionnaire.pillar_recommendations.get(p.pillar_id, ())
        for rec in canned[:recommendation_depth(p.raw_score)]:
            if rec not in out:
                out.append(rec)
        if len(out) >= limit:
            break
    return tuple(out[:limit])

def _first(table: Mapping[str, Sequence[str]], key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    recs = table.get(key) or ()
    return recs[0] if recs else None

def cohort_recommendations(
    questionnaire: QuestionnaireConfig,
    industry: Optional[Industry],
    company_size: Optional[CompanySize],
) -> Tuple[str, ...]:
    """First industry- and size-specific recommendation when the cohort is known."""
    picked = [
        _first(questionnaire.industry_recommendations, industry.value if industry else None),
        _first(questionnaire.size_recommendations, company_size.value if company_size else None),
    ]
    return tuple(r for r in picked if r)

def level_recommendations(
    questionnaire: QuestionnaireConfig,
    level: int,
    total_score: float,
    limit: int = 2,
) -> Tuple[str, ...]:
    """
    Program-wide advice: the total-score band advice, then the first
    ``limit`` entries for the maturity level.
    """
    out: List[str] = []
    for upper, advice in questionnaire.score_band_recommendations:
        if total_score < upper:
            out.extend(advice)
            break
    for rec in questionnaire.level_recommendations.get(level, ())[:limit]:
        if rec not in out:
            out.append(rec)
    return tuple(out)
