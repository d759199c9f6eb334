"""Custom exceptions for the riskindex package."""

# Base exceptions
from .base import (
    RiskIndexError,
    RetryableError,
    ConfigurationError,
    ResourceError,
    DatabaseError,
    RecordNotFoundError,
)

# Validation exceptions
from .validation import (
    ValidationError,
    AnswerValidationError,
    ParameterValidationError,
)

# Scoring and benchmark exceptions
from .scoring import (
    ScoringError,
    InvalidInputError,
    BenchmarkError,
    BenchmarkUnavailableError,
)

__all__ = [
    # Base
    "RiskIndexError",
    "RetryableError",
    "ConfigurationError",
    "ResourceError",
    "DatabaseError",
    "RecordNotFoundError",

    # Validation
    "ValidationError",
    "AnswerValidationError",
    "ParameterValidationError",

    # Scoring
    "ScoringError",
    "InvalidInputError",
    "BenchmarkError",
    "BenchmarkUnavailableError",
]
