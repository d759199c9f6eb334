import math

import pytest

from riskindex.catalog import get_questionnaire
from riskindex.domain.models import Answer
from riskindex.domain.exceptions import AnswerValidationError, ValidationError
from riskindex.processing import AnswerValidator, validate_answers


@pytest.fixture
def validator():
    return AnswerValidator(get_questionnaire("2025.1"))


class TestAnswerValidator:

    def test_mapping_input(self, validator):
        answers = validator.validate({"v1": 80, "pc1": 42.5})
        assert answers == [Answer("v1", 80.0), Answer("pc1", 42.5)]

    def test_sequence_of_dicts_and_answers(self, validator):
        answers = validator.validate([
            {"questionId": "v1", "value": 10, "rationale": "EDR on laptops only"},
            {"question_id": "v2", "value": 0},
            Answer("v3", 100.0),
        ])
        assert [a.question_id for a in answers] == ["v1", "v2", "v3"]
        assert answers[0].rationale == "EDR on laptops only"
        assert all(isinstance(a.value, float) for a in answers)

    def test_boundaries_accepted(self, validator):
        answers = validator.validate({"v1": 0, "v2": 100})
        assert [a.value for a in answers] == [0.0, 100.0]

    @pytest.mark.parametrize("value,problem", [
        (101, "outside [0, 100]"),
        (-0.5, "outside [0, 100]"),
        ("80", "not a number"),
        (None, "not a number"),
        (True, "not a number"),
        (math.nan, "not finite"),
        (math.inf, "not finite"),
    ])
    def test_bad_values(self, validator, value, problem):
        with pytest.raises(AnswerValidationError) as exc_info:
            validator.validate({"v1": value})
        err = exc_info.value
        assert err.question_ids == ["v1"]
        assert problem in err.issues[0]["problem"]

    def test_unknown_question(self, validator):
        with pytest.raises(AnswerValidationError) as exc_info:
            validator.validate({"zz9": 50})
        assert exc_info.value.issues == [{"question_id": "zz9", "problem": "unknown question id"}]

    def test_duplicate_answers(self, validator):
        with pytest.raises(AnswerValidationError) as exc_info:
            validator.validate([{"question_id": "v1", "value": 10}, {"question_id": "v1", "value": 20}])
        assert exc_info.value.issues[0]["problem"] == "duplicate answer"

    def test_all_problems_collected(self, validator):
        with pytest.raises(AnswerValidationError, match="3 invalid answer"):
            validator.validate([
                {"value": 10},
                {"question_id": "v1", "value": 200},
                42,
            ])

    def test_missing_question_id_reports_position(self, validator):
        with pytest.raises(AnswerValidationError) as exc_info:
            validator.validate([{"question_id": "v1", "value": 1}, {"value": 10}])
        assert exc_info.value.question_ids == ["#1"]

    @pytest.mark.parametrize("payload", [None, "v1=80", b"v1"])
    def test_rejects_non_collections(self, validator, payload):
        with pytest.raises(AnswerValidationError):
            validator.validate(payload)

    def test_is_a_validation_error(self, validator):
        with pytest.raises(ValidationError):
            validator.validate({"v1": -1})

    def test_empty_submission_is_valid(self, validator):
        assert validator.validate({}) == []


class TestCompleteness:

    def test_complete(self, validator):
        all_ids = [q.id for q in validator.questionnaire.questions]
        answers = validator.validate({qid: 50 for qid in all_ids})
        assert validator.check_completeness(answers) == (True, [])

    def test_missing_in_questionnaire_order(self, validator):
        answers = validator.validate({"v2": 50, "v1": 50})
        complete, missing = validator.check_completeness(answers)
        assert complete is False
        assert missing[:2] == ["v3", "v4"]
        assert len(missing) == 18


def test_validate_answers_wrapper():
    assert validate_answers({"pr4": 75}) == [Answer("pr4", 75.0)]
