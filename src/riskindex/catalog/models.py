"""Questionnaire configuration models."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from riskindex.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

WEIGHT_EPSILON = 1e-6
ANSWER_DOMAIN: Tuple[float, float] = (0.0, 100.0)

@dataclass(frozen=True)
class Pillar:
    id: str
    name: str
    weight: float                   # percentage of the total score, 0..100
    description: str = ""


@dataclass(frozen=True)
class Question:
    id: str
    pillar_id: str
    prompt: str
    weight: float                   # relative weight within the pillar
    answer_domain: Tuple[float, float] = ANSWER_DOMAIN


@dataclass(frozen=True)
class MaturityLevel:
    level: int
    name: str
    description: str
    min_score: float                # inclusive lower bound of the band


@dataclass(frozen=True)
class QuestionnaireConfig:
    """A versioned questionnaire: pillars, questions, bands and canned advice.

    Results record the ``version`` they were scored under, so a later
    questionnaire never reinterprets stored scores. Construction validates
    the configuration and raises ``ConfigurationError`` on any inconsistency.
    """
    version: str
    pillars: Tuple[Pillar, ...]
    questions: Tuple[Question, ...]
    maturity_levels: Tuple[MaturityLevel, ...]
    pillar_recommendations: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    industry_recommendations: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    size_recommendations: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    level_recommendations: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)
    # (exclusive upper bound on the total score, advice), ascending
    score_band_recommendations: Tuple[Tuple[float, Tuple[str, ...]], ...] = ()

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate weights, references and score bands."""
        if not self.version:
            raise ConfigurationError("Questionnaire version must be set", config_field="version")

        self._validate_pillars()
        self._validate_questions()
        self._validate_levels()

        unknown = set(self.pillar_recommendations) - {p.id for p in self.pillars}
        if unknown:
            raise ConfigurationError(
                f"Recommendations reference unknown pillars: {sorted(unknown)}",
                config_field="pillar_recommendations"
            )

        unknown_levels = set(self.level_recommendations) - {m.level for m in self.maturity_levels}
        if unknown_levels:
            raise ConfigurationError(
                f"Recommendations reference unknown maturity levels: {sorted(unknown_levels)}",
                config_field="level_recommendations"
            )

        bounds = [b for b, _ in self.score_band_recommendations]
        if any(prev >= nxt for prev, nxt in zip(bounds, bounds[1:])):
            raise ConfigurationError(
                "Score band upper bounds must be strictly increasing",
                config_field="score_band_recommendations"
            )

    def _validate_pillars(self) -> None:
        if not self.pillars:
            raise ConfigurationError("Questionnaire defines no pillars", config_field="pillars")

        ids = [p.id for p in self.pillars]
        if len(ids) != len(set(ids)):
            raise ConfigurationError(f"Duplicate pillar ids in {ids}", config_field="pillars")

        for p in self.pillars:
            if not 0 <= p.weight <= 100:
                raise ConfigurationError(
                    f"Pillar weight for '{p.id}' must be a percentage in [0, 100], got {p.weight}",
                    config_field="pillars.weight"
                )

        total = math.fsum(p.weight for p in self.pillars)
        if abs(total - 100.0) > WEIGHT_EPSILON:
            raise ConfigurationError(
                f"Pillar weights must sum to 100, got {total}",
                config_field="pillars.weight"
            ).add_suggestion("Adjust pillar percentages so they add up to exactly 100")

    def _validate_questions(self) -> None:
        pillar_ids = {p.id for p in self.pillars}
        seen = set()
        for q in self.questions:
            if q.id in seen:
                raise ConfigurationError(f"Duplicate question id '{q.id}'", config_field="questions")
            seen.add(q.id)
            if q.pillar_id not in pillar_ids:
                raise ConfigurationError(
                    f"Question '{q.id}' references unknown pillar '{q.pillar_id}'",
                    config_field="questions.pillar_id"
                )
            if q.weight <= 0:
                raise ConfigurationError(
                    f"Question '{q.id}' must have a positive weight, got {q.weight}",
                    config_field="questions.weight"
                )
            if tuple(q.answer_domain) != ANSWER_DOMAIN:
                raise ConfigurationError(
                    f"Question '{q.id}' answer domain must be {ANSWER_DOMAIN}",
                    config_field="questions.answer_domain"
                )

        empty = [p.id for p in self.pillars if not any(q.pillar_id == p.id for q in self.questions)]
        if empty:
            raise ConfigurationError(
                f"Pillars without questions: {empty}",
                config_field="questions"
            )

    def _validate_levels(self) -> None:
        levels = self.maturity_levels
        if not levels:
            raise ConfigurationError("No maturity levels defined", config_field="maturity_levels")
        if [m.level for m in levels] != list(range(1, len(levels) + 1)):
            raise ConfigurationError(
                "Maturity levels must be numbered 1..N in order",
                config_field="maturity_levels"
            )
        if levels[0].min_score != 0:
            raise ConfigurationError(
                "The first maturity band must start at 0",
                config_field="maturity_levels.min_score"
            )
        bounds = [m.min_score for m in levels]
        if any(prev >= nxt for prev, nxt in zip(bounds, bounds[1:])):
            raise ConfigurationError(
                "Maturity band lower bounds must be strictly increasing",
                config_field="maturity_levels.min_score"
            )

    # lookups

    @property
    def pillar_ids(self) -> List[str]:
        return [p.id for p in self.pillars]

    def pillar(self, pillar_id: str) -> Optional[Pillar]:
        for p in self.pillars:
            if p.id == pillar_id:
                return p
        return None

    def question(self, question_id: str) -> Optional[Question]:
        return self.question_index.get(question_id)

    @property
    def question_index(self) -> Dict[str, Question]:
        return {q.id: q for q in self.questions}

    def questions_for(self, pillar_id: str) -> List[Question]:
        return [q for q in self.questions if q.pillar_id == pillar_id]

    def level_for(self, score: float) -> MaturityLevel:
        """Return the maturity band containing ``score``."""
        chosen = self.maturity_levels[0]
        for m in self.maturity_levels:
            if score >= m.min_score:
                chosen = m
        return chosen
