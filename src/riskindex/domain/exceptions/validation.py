"""Input validation exceptions."""

from typing import Optional, List, Any, Dict
from .base import RiskIndexError

class ValidationError(RiskIndexError):
    """Base class for validation errors. Callers re-prompt, never retry."""

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context('field_name', field_name)
        if field_value is not None:
            self.add_context('field_value', str(field_value))

    def _get_default_error_code(self) -> str:
        return "VALIDATION_ERROR"


class AnswerValidationError(ValidationError):
    """Raised when submitted answers are malformed.

    Every problem found in a submission is collected in ``issues`` so the
    caller can highlight all offending questions at once.
    """

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[List[Dict[str, Any]]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.issues: List[Dict[str, Any]] = list(issues or [])
        self.add_context('issues', [f"{i['question_id']}: {i['problem']}" for i in self.issues])
        self.add_suggestion("Answer each question with a value between 0 and 100")

    @property
    def question_ids(self) -> List[str]:
        return [str(i["question_id"]) for i in self.issues]

    def _get_default_error_code(self) -> str:
        return "INVALID_ANSWERS"


class ParameterValidationError(ValidationError):
    """Raised when parameter validation fails."""
    def __init__(
        self,
        parameter_name: str,
        parameter_value: Any,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        message = f"Invalid parameter '{parameter_name}': {parameter_value}"
        super().__init__(message, field_name=parameter_name, field_value=str(parameter_value), **kwargs)
        if expected_type:
            self.add_context('expected_type', expected_type)
        self.add_suggestion(f"Check the value and type of parameter '{parameter_name}'")
    def _get_default_error_code(self) -> str:
        return "PARAMETER_VALIDATION_FAILED"
