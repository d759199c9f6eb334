"""Scoring and benchmarking exceptions."""

from typing import Optional
from .base import RiskIndexError


class ScoringError(RiskIndexError):
    """Base class for scoring engine errors."""

    def __init__(
        self,
        message: str,
        *,
        questionnaire_version: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if questionnaire_version:
            self.add_context('questionnaire_version', questionnaire_version)

    def _get_default_error_code(self) -> str:
        return "SCORING_ERROR"


class InvalidInputError(ScoringError):
    """Raised when the engine's internal invariant checks fail."""

    def __init__(
        self,
        message: str,
        *,
        question_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if question_id:
            self.add_context('question_id', question_id)
        self.add_suggestion("Validate answers with AnswerValidator before scoring")

    def _get_default_error_code(self) -> str:
        return "INVALID_SCORING_INPUT"


class BenchmarkError(RiskIndexError):
    """Base class for benchmark lookup errors."""

    def __init__(
        self,
        message: str,
        *,
        dimension: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if dimension:
            self.add_context('dimension', dimension)

    def _get_default_error_code(self) -> str:
        return "BENCHMARK_ERROR"


class BenchmarkUnavailableError(BenchmarkError):
    """Soft failure: the snapshot store errored or timed out."""

    def __init__(
        self,
        message: str,
        *,
        timeout: bool = False,
        **kwargs
    ):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        if timeout:
            self.add_context('timeout_occurred', True)

    def _get_default_error_code(self) -> str:
        return "BENCHMARK_UNAVAILABLE"
