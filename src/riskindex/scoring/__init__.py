"""Composite risk scoring and maturity classification."""

from .engine import ScoringEngine, score_answers, round_half_up
from .insights import (
    identify_strengths,
    identify_weaknesses,
    build_recommendations,
    cohort_recommendations,
    level_recommendations,
)

__all__ = [
    "ScoringEngine",
    "score_answers",
    "round_half_up",
    "identify_strengths",
    "identify_weaknesses",
    "build_recommendations",
    "cohort_recommendations",
    "level_recommendations",
]
