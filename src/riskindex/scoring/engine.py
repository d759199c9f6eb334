# riskindex/scoring/engine.py
"""Core Insider Risk Index scoring logic."""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Dict, List, Optional, Sequence, Tuple, Union

from riskindex.catalog import QuestionnaireConfig, get_questionnaire
from riskindex.config.settings import ScoringSettings, MissingAnswerPolicy, get_settings
from riskindex.domain.models import Answer, OrgMeta, PillarScore, ScoringResult
from riskindex.domain.exceptions import InvalidInputError

from .insights import (
    identify_strengths,
    identify_weaknesses,
    build_recommendations,
    cohort_recommendations,
    level_recommendations,
)

logger = logging.getLogger(__name__)

PILLAR_PRECISION = 2
HUNDRED = Decimal(100)

def _dec(value: Union[Decimal, float, int]) -> Decimal:
    # str() keeps the decimal literal the caller wrote (64.1, not 64.09999...)
    return value if isinstance(value, Decimal) else Decimal(str(value))

def round_half_up(value: Union[Decimal, float], precision: int = 0) -> Union[int, float]:
    """Round halves away from zero for non-negative scores (64.5 -> 65, 9.615 -> 9.62).

    Returns an ``int`` when ``precision`` is 0.
    """
    rounded = _dec(value).quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    return int(rounded) if precision == 0 else float(rounded)

def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))

class ScoringEngine:
    """Pure (answers, org metadata) -> ScoringResult computation.

    The engine trusts that answers went through ``AnswerValidator`` but
    re-checks the invariants it depends on and raises ``InvalidInputError``
    rather than producing a score from bad input.

    Pillar means and contributions are carried exactly; the total is rounded
    once. ``raw_score`` and ``contribution_to_total`` in the breakdown are the
    2 dp display values.
    """

    def __init__(
        self,
        questionnaire: Optional[QuestionnaireConfig] = None,
        settings: Optional[ScoringSettings] = None,
    ):
        self.settings = settings or get_settings().scoring
        self.questionnaire = questionnaire or get_questionnaire(self.settings.questionnaire_version)

    def score(self, answers: Sequence[Answer], org_meta: Optional[OrgMeta] = None) -> ScoringResult:
        org_meta = org_meta or OrgMeta()
        by_question = self._index_answers(answers)

        scored = [self._score_pillar(pillar_id, by_question)
                  for pillar_id in self.questionnaire.pillar_ids]
        breakdown = [p for p, _ in scored]

        total = sum((exact for _, exact in scored), Decimal(0))
        total_score = clamp_score(round_half_up(total, self.settings.score_precision))
        if self.settings.score_precision == 0:
            total_score = int(total_score)

        level = self.questionnaire.level_for(total_score)

        s = self.settings
        result = ScoringResult(
            questionnaire_version=self.questionnaire.version,
            total_score=total_score,
            level=level.level,
            level_name=level.name,
            level_description=level.description,
            pillar_breakdown=tuple(breakdown),
            strengths=identify_strengths(breakdown, self.questionnaire, s.max_strengths),
            weaknesses=identify_weaknesses(breakdown, self.questionnaire, s.max_weaknesses),
            recommendations=build_recommendations(
                breakdown, self.questionnaire,
                threshold=s.needs_attention_threshold,
                limit=s.max_recommendations,
            ),
            cohort_recommendations=cohort_recommendations(
                self.questionnaire, org_meta.industry, org_meta.company_size
            ),
            level_recommendations=level_recommendations(
                self.questionnaire, level.level, total_score
            ),
        )
        logger.debug("Scored %d answers: total=%s (exact %s) level=%d",
                     len(by_question), total_score, total, level.level)
        return result

    def _index_answers(self, answers: Sequence[Answer]) -> Dict[str, float]:
        out: Dict[str, float] = {}
        version = self.questionnaire.version
        for a in answers:
            qid = a.question_id
            if self.questionnaire.question(qid) is None:
                raise InvalidInputError(f"Unknown question id '{qid}'",
                                        question_id=qid, questionnaire_version=version)
            if qid in out:
                raise InvalidInputError(f"Duplicate answer for '{qid}'",
                                        question_id=qid, questionnaire_version=version)
            value = a.value
            if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
                raise InvalidInputError(f"Answer for '{qid}' is not numeric: {value!r}",
                                        question_id=qid, questionnaire_version=version)
            if not 0 <= value <= 100:
                raise InvalidInputError(f"Answer for '{qid}' outside [0, 100]: {value}",
                                        question_id=qid, questionnaire_version=version)
            out[qid] = float(value)
        return out

    def _score_pillar(self, pillar_id: str, by_question: Dict[str, float]) -> Tuple[PillarScore, Decimal]:
        """Return the display breakdown and the exact contribution to the total."""
        pillar = self.questionnaire.pillar(pillar_id)
        questions = self.questionnaire.questions_for(pillar_id)

        weighted: List[Decimal] = []
        weights: List[Decimal] = []
        answered = 0
        for q in questions:
            if q.id in by_question:
                weighted.append(_dec(by_question[q.id]) * _dec(q.weight))
                weights.append(_dec(q.weight))
                answered += 1
            elif self.settings.missing_answer_policy is MissingAnswerPolicy.ZERO:
                weights.append(_dec(q.weight))

        # a pillar with no answers scores 0 under either policy
        if answered == 0:
            raw = Decimal(0)
        else:
            raw = sum(weighted, Decimal(0)) / sum(weights, Decimal(0))

        contribution = raw * _dec(pillar.weight) / HUNDRED
        breakdown = PillarScore(
            pillar_id=pillar_id,
            raw_score=round_half_up(raw, PILLAR_PRECISION),
            weight=pillar.weight,
            contribution_to_total=round_half_up(contribution, PILLAR_PRECISION),
            answered_count=answered,
            question_count=len(questions),
        )
        return breakdown, contribution


def score_answers(
    answers: Sequence[Answer],
    org_meta: Optional[OrgMeta] = None,
    questionnaire: Optional[QuestionnaireConfig] = None,
    settings: Optional[ScoringSettings] = None,
) -> ScoringResult:
    """Module-level convenience wrapper around ``ScoringEngine.score``."""
    return ScoringEngine(questionnaire, settings).score(answers, org_meta)
