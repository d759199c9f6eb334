import math

import pytest

from riskindex.catalog import get_questionnaire
from riskindex.config.settings import ScoringSettings, MissingAnswerPolicy
from riskindex.domain.cohorts import Industry, CompanySize
from riskindex.domain.models import Answer, OrgMeta
from riskindex.domain.exceptions import InvalidInputError
from riskindex.scoring import ScoringEngine, score_answers, round_half_up


QUESTIONNAIRE = get_questionnaire("2025.1")
ALL_IDS = [q.id for q in QUESTIONNAIRE.questions]


def uniform(value, skip=()):
    return [Answer(qid, float(value)) for qid in ALL_IDS if qid not in skip]


@pytest.fixture
def engine():
    return ScoringEngine(QUESTIONNAIRE, ScoringSettings())


@pytest.fixture
def zero_engine():
    return ScoringEngine(QUESTIONNAIRE, ScoringSettings(missing_answer_policy=MissingAnswerPolicy.ZERO))


class TestRoundHalfUp:

    @pytest.mark.parametrize("value,precision,expected", [
        (64.5, 0, 65),
        (64.49, 0, 64),
        (0.125, 2, 0.13),
        (9.615, 2, 9.62),
        (44.4925, 0, 44),
        (99.995, 0, 100),
        (0.0, 0, 0),
    ])
    def test_values(self, value, precision, expected):
        assert round_half_up(value, precision) == pytest.approx(expected)

    def test_int_at_zero_precision(self):
        assert isinstance(round_half_up(12.3), int)
        assert isinstance(round_half_up(12.3, 1), float)


class TestUniformAnswers:

    @pytest.mark.parametrize("value,total,level,name", [
        (0, 0, 1, "Ad Hoc"),
        (50, 50, 3, "Managed"),
        (100, 100, 5, "Optimized"),
    ])
    def test_totals_and_levels(self, engine, value, total, level, name):
        result = engine.score(uniform(value))
        assert result.total_score == total
        assert isinstance(result.total_score, int)
        assert result.level == level
        assert result.level_name == name

    def test_pillar_breakdown_all_fifty(self, engine):
        result = engine.score(uniform(50))
        contributions = {p.pillar_id: p.contribution_to_total for p in result.pillar_breakdown}
        assert contributions == pytest.approx({
            "visibility": 12.5,
            "prevention-coaching": 12.5,
            "investigation-evidence": 10.0,
            "identity-saas": 7.5,
            "phishing-resilience": 7.5,
        })
        assert [p.pillar_id for p in result.pillar_breakdown] == QUESTIONNAIRE.pillar_ids
        assert all(p.answered_count == p.question_count == 4 for p in result.pillar_breakdown)

    def test_empty_answers_score_zero(self, engine):
        result = engine.score([])
        assert result.total_score == 0
        assert result.level == 1
        assert all(not p.answered for p in result.pillar_breakdown)


class TestMissingAnswers:

    def test_unanswered_pillar_scores_zero(self, engine):
        visibility = [q.id for q in QUESTIONNAIRE.questions_for("visibility")]
        result = engine.score(uniform(80, skip=visibility))
        assert result.pillar("visibility").raw_score == 0
        assert result.total_score == 60
        assert result.level_name == "Managed"
        assert engine.score(uniform(80)).total_score - result.total_score == 20

    def test_unanswered_pillar_scores_zero_under_zero_policy(self, zero_engine):
        visibility = [q.id for q in QUESTIONNAIRE.questions_for("visibility")]
        result = zero_engine.score(uniform(80, skip=visibility))
        assert result.total_score == 60

    def test_exclude_policy_ignores_missing_question(self, engine):
        result = engine.score(uniform(80, skip=("v1",)))
        vis = result.pillar("visibility")
        assert vis.raw_score == pytest.approx(80.0)
        assert vis.answered_count == 3
        assert result.total_score == 80

    def test_zero_policy_counts_missing_question(self, zero_engine):
        result = zero_engine.score(uniform(80, skip=("v1",)))
        vis = result.pillar("visibility")
        assert vis.raw_score == pytest.approx(56.0)
        assert vis.contribution_to_total == pytest.approx(14.0)
        assert result.total_score == 74


class TestInvariants:

    @pytest.mark.parametrize("seed", range(5))
    def test_total_bounded_and_consistent(self, engine, seed):
        answers = [Answer(qid, float((i * 37 + seed * 11) % 101)) for i, qid in enumerate(ALL_IDS)]
        result = engine.score(answers)
        assert 0 <= result.total_score <= 100
        contributions = math.fsum(p.contribution_to_total for p in result.pillar_breakdown)
        assert abs(contributions - result.total_score) <= 0.5
        assert QUESTIONNAIRE.level_for(result.total_score).level == result.level

    def test_idempotent(self, engine):
        answers = [Answer(qid, float(i * 5)) for i, qid in enumerate(ALL_IDS)]
        assert engine.score(answers) == engine.score(answers)

    def test_answer_order_does_not_matter(self, engine):
        answers = [Answer(qid, float(i * 5)) for i, qid in enumerate(ALL_IDS)]
        assert engine.score(answers) == engine.score(list(reversed(answers)))

    def test_total_is_rounded_once(self, engine):
        answers = {
            "v1": 50, "v2": 52, "v3": 55, "v4": 39,
            "pc1": 11, "pc2": 87, "pc3": 4, "pc4": 7,
            "ie1": 45, "ie2": 51, "ie3": 80, "ie4": 73,
            "is1": 54, "is2": 11, "is3": 51, "is4": 54,
            "pr1": 54, "pr2": 9, "pr3": 59, "pr4": 56,
        }
        result = engine.score([Answer(qid, float(v)) for qid, v in answers.items()])
        # exact weighted sum is 44.4925
        assert result.total_score == 44
        assert result.level_name == "Emerging"

    def test_contribution_display_rounds_half_up(self, engine):
        identity = [Answer(q.id, 64.1) for q in QUESTIONNAIRE.questions_for("identity-saas")]
        pillar = engine.score(identity).pillar("identity-saas")
        assert pillar.raw_score == 64.1
        assert pillar.contribution_to_total == 9.62

    def test_score_precision(self):
        settings = ScoringSettings(score_precision=2)
        result = ScoringEngine(QUESTIONNAIRE, settings).score([Answer("v1", 33.0)])
        # 33 * 25 / 100
        assert result.total_score == pytest.approx(8.25)


class TestInvalidInput:

    @pytest.mark.parametrize("answers", [
        [Answer("nope", 10.0)],
        [Answer("v1", 10.0), Answer("v1", 20.0)],
        [Answer("v1", "10")],
        [Answer("v1", True)],
        [Answer("v1", math.nan)],
        [Answer("v1", 100.5)],
        [Answer("v1", -1.0)],
    ])
    def test_rejected(self, engine, answers):
        with pytest.raises(InvalidInputError):
            engine.score(answers)

    def test_error_carries_question_id(self, engine):
        with pytest.raises(InvalidInputError) as exc_info:
            engine.score([Answer("v2", 500.0)])
        assert exc_info.value.context["question_id"] == "v2"
        assert exc_info.value.context["questionnaire_version"] == "2025.1"


class TestNarrative:

    def test_cohort_recommendations(self, engine):
        meta = OrgMeta(Industry.FINANCIAL_SERVICES, CompanySize.STARTUP_1_50)
        result = engine.score(uniform(50), meta)
        assert result.cohort_recommendations == (
            "Implement transaction monitoring for unusual financial activities.",
            "Focus on foundational security controls and awareness.",
        )

    def test_no_cohort_recommendations_without_org_meta(self, engine):
        assert engine.score(uniform(50)).cohort_recommendations == ()

    def test_tied_weaknesses_keep_declaration_order(self, engine):
        low = {q.id for p in ("identity-saas", "phishing-resilience")
               for q in QUESTIONNAIRE.questions_for(p)}
        answers = [Answer(qid, 20.0 if qid in low else 70.0) for qid in ALL_IDS]
        weaknesses = engine.score(answers).weaknesses
        assert weaknesses[0] == "Critical gaps in identity & saas (20% score)."
        assert weaknesses[1] == "Critical gaps in phishing resilience (20% score)."

    def test_level_recommendations(self, engine):
        result = engine.score(uniform(50))
        assert result.level_recommendations == (
            "Enhance existing security controls with a focus on the lowest-scoring areas.",
            "Develop incident response procedures specific to insider threats.",
            "Integrate threat intelligence feeds into detection systems.",
            "Implement zero-trust architecture principles organization-wide.",
        )
        assert len(result.recommendations) <= 5

    def test_perfect_score_has_no_recommendations(self, engine):
        result = engine.score(uniform(100))
        assert result.recommendations == ()
        assert result.level_recommendations == (
            "Optimize AI-driven detection with custom threat models.",
            "Implement predictive analytics for early threat identification.",
        )
        assert len(result.strengths) == 3
        assert len(result.weaknesses) == 3


def test_score_answers_wrapper():
    result = score_answers(uniform(50), questionnaire=QUESTIONNAIRE, settings=ScoringSettings())
    assert result.total_score == 50
    assert result.questionnaire_version == "2025.1"
