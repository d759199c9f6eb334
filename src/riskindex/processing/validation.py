"""Input validation for submitted questionnaire answers."""

import logging
import math
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from riskindex.catalog import QuestionnaireConfig, get_questionnaire
from riskindex.domain.models import Answer
from riskindex.domain.exceptions import AnswerValidationError

logger = logging.getLogger(__name__)

RawAnswers = Union[Mapping[str, Any], Sequence[Union[Answer, Mapping[str, Any]]]]

class AnswerValidator:
    """Validates raw answers against a questionnaire before scoring."""

    def __init__(self, questionnaire: Optional[QuestionnaireConfig] = None):
        self.questionnaire = questionnaire or get_questionnaire()

    def validate(self, raw_answers: RawAnswers) -> List[Answer]:
        """
        Normalise raw answers into ``Answer`` objects.

        Accepts a mapping ``{question_id: value}`` or a sequence of
        ``Answer`` objects / mappings with ``question_id`` (or ``questionId``)
        and ``value`` keys. Every problem found is collected and reported in
        a single ``AnswerValidationError``.
        """
        if raw_answers is None:
            raise AnswerValidationError("No answers supplied")

        issues: List[Dict[str, str]] = []
        answers: List[Answer] = []
        seen = set()

        for question_id, value, rationale in self._iter_raw(raw_answers, issues):
            if question_id in seen:
                issues.append({"question_id": question_id, "problem": "duplicate answer"})
                continue
            seen.add(question_id)

            if self.questionnaire.question(question_id) is None:
                issues.append({"question_id": question_id, "problem": "unknown question id"})
                continue

            problem = self._value_problem(value)
            if problem:
                issues.append({"question_id": question_id, "problem": problem})
                continue

            answers.append(Answer(question_id=question_id, value=float(value), rationale=rationale))

        if issues:
            logger.debug("Rejected %d answer(s): %s", len(issues), issues)
            raise AnswerValidationError(
                f"{len(issues)} invalid answer(s) in submission",
                issues=issues,
            )

        return answers

    def check_completeness(self, answers: Sequence[Answer]) -> Tuple[bool, List[str]]:
        """Return (is_complete, missing_question_ids) in questionnaire order."""
        answered = {a.question_id for a in answers}
        missing = [q.id for q in self.questionnaire.questions if q.id not in answered]
        return not missing, missing

    @staticmethod
    def _iter_raw(raw_answers: RawAnswers, issues: List[Dict[str, str]]):
        if isinstance(raw_answers, Mapping):
            for question_id, value in raw_answers.items():
                yield str(question_id), value, None
            return

        if isinstance(raw_answers, (str, bytes)):
            raise AnswerValidationError("Answers must be a mapping or a sequence of answers")

        for position, item in enumerate(raw_answers):
            if isinstance(item, Answer):
                yield item.question_id, item.value, item.rationale
            elif isinstance(item, Mapping):
                question_id = item.get("question_id", item.get("questionId"))
                if not question_id:
                    issues.append({"question_id": f"#{position}", "problem": "missing question id"})
                    continue
                yield str(question_id), item.get("value"), item.get("rationale")
            else:
                issues.append({"question_id": f"#{position}",
                               "problem": f"unsupported answer type {type(item).__name__}"})

    @staticmethod
    def _value_problem(value: Any) -> Optional[str]:
        # bool is a Real subclass
        if isinstance(value, bool) or not isinstance(value, Real):
            return "value is not a number"
        if math.isnan(value) or math.isinf(value):
            return "value is not finite"
        if not 0 <= value <= 100:
            return f"value {value} outside [0, 100]"
        return None


def validate_answers(raw_answers: RawAnswers,
                     questionnaire: Optional[QuestionnaireConfig] = None) -> List[Answer]:
    """Convenience wrapper around ``AnswerValidator.validate``."""
    return AnswerValidator(questionnaire).validate(raw_answers)
