from typing import Optional, Dict, Any, List
from datetime import datetime
from abc import ABC
import logging

logger = logging.getLogger(__name__)

class RiskIndexError(Exception, ABC):
    """Base exception for all riskindex errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._get_default_error_code()
        self.context: Dict[str, Any] = context or {}
        self.suggestions: List[str] = suggestions or []
        self.recoverable = recoverable
        self.timestamp = datetime.now()

    def _get_default_error_code(self) -> str:
        return "RISKINDEX_ERROR"

    def add_context(self, key: str, value: Any) -> "RiskIndexError":
        if key:
            self.context[key] = value
        return self

    def add_suggestion(self, suggestion: str) -> "RiskIndexError":
        if suggestion:
            self.suggestions.append(suggestion)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view handed to web, PDF and email callers."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": {k: v if isinstance(v, (str, int, float, bool, type(None), list))
                        else str(v) for k, v in self.context.items()},
            "suggestions": list(self.suggestions),
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        base = self.message or ""
        if self.suggestions:
            return f"{base} -- Suggestions: {'; '.join(self.suggestions)}"
        return base


class RetryableError(RiskIndexError):
    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)

    def _get_default_error_code(self) -> str:
        return "RETRYABLE_ERROR"


class ConfigurationError(RiskIndexError):
    """Invalid questionnaire or runtime configuration. Fatal at startup."""

    def __init__(self, message: str, *, config_field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_field = config_field
        if config_field:
            self.add_context('config_field', config_field)

    def _get_default_error_code(self) -> str:
        return "CONFIGURATION_ERROR"

    def __str__(self) -> str:
        base = self.message or ""
        if self.config_field:
            base = f"[{self.config_field}] {base}"
        if self.suggestions:
            return f"{base} -- Suggestions: {'; '.join(self.suggestions)}"
        return base


class ResourceError(RiskIndexError):
    def _get_default_error_code(self) -> str:
        return "RESOURCE_ERROR"


class DatabaseError(RetryableError, ResourceError):
    def __init__(self, message: str, *, operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if operation:
            self.add_context('db_operation', operation)

    def _get_default_error_code(self) -> str:
        return "DATABASE_ERROR"


class RecordNotFoundError(ResourceError):
    def __init__(self, record_type: str, record_id: Any, **kwargs):
        super().__init__(f"{record_type} not found: {record_id}", **kwargs)
        self.add_context('record_type', record_type)
        self.add_context('record_id', str(record_id))

    def _get_default_error_code(self) -> str:
        return "RECORD_NOT_FOUND"
