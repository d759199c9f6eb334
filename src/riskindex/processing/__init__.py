"""Answer intake and validation."""

from .validation import AnswerValidator, validate_answers

__all__ = ["AnswerValidator", "validate_answers"]
