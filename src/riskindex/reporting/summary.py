"""Plain-text executive summary shared by web, PDF and email consumers."""

from typing import List, Optional

from riskindex.catalog import QuestionnaireConfig, get_questionnaire
from riskindex.domain.models import AssessmentResult, BenchmarkComparison
from riskindex.scoring.insights import rank_pillars

NEXT_STEPS = (
    "Review detailed findings in the comprehensive report",
    "Prioritize recommendations based on your organization's risk tolerance",
    "Develop an implementation roadmap with measurable milestones",
    "Schedule regular reassessments to track progress",
)

def _fmt(score: float) -> str:
    return f"{score:g}"

def _comparison_line(overall: Optional[BenchmarkComparison]) -> str:
    if overall is None:
        return "Benchmark comparison: not enough data"
    if overall.delta > 0:
        position = "above"
    elif overall.delta < 0:
        position = "below"
    else:
        position = "level with"
    return (f"Overall score is {position} the overall average of "
            f"{_fmt(overall.average_score)} ({overall.delta:+g} points, n={overall.sample_size:,})")

def render_summary(result: AssessmentResult, questionnaire: Optional[QuestionnaireConfig] = None) -> str:
    """Render the executive summary for one result."""
    q = questionnaire or get_questionnaire(result.questionnaire_version)

    def name(pillar_id: str) -> str:
        p = q.pillar(pillar_id)
        return p.name if p else pillar_id

    strongest = rank_pillars(result.pillar_breakdown, descending=True)[0]
    weakest = rank_pillars(result.pillar_breakdown, descending=False)[0]

    lines: List[str] = [
        "Insider Risk Index Assessment Summary",
        "",
        f"Your organization achieved an Insider Risk Index score of {_fmt(result.total_score)}/100, "
        f"placing you at Level {result.level}: {result.level_name}.",
        result.level_description,
        "",
        "Key Findings:",
        f"- {_comparison_line(result.benchmark.get('overall'))}",
        f"- Strongest area: {name(strongest.pillar_id)} ({_fmt(strongest.raw_score)}%)",
        f"- Primary concern: {name(weakest.pillar_id)} ({_fmt(weakest.raw_score)}%)",
    ]

    top = list(result.recommendations[:3])
    if top:
        lines += ["", "Immediate Actions:"]
        lines += [f"- {rec}" for rec in top]

    program = list(result.level_recommendations)
    if program:
        lines += ["", f"Program Priorities for {result.level_name}:"]
        lines += [f"- {rec}" for rec in program]

    lines += ["", "Next Steps:"]
    lines += [f"{i}. {step}" for i, step in enumerate(NEXT_STEPS, start=1)]
    return "\n".join(lines)
