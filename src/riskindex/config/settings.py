"""Core configuration settings for riskindex."""

import logging
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum

from riskindex.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class MissingAnswerPolicy(Enum):
    """How unanswered questions inside a partially answered pillar are treated.

    A pillar with no answers at all always scores 0 under either policy.
    """
    EXCLUDE = "exclude"   # dropped from the pillar's weighted mean
    ZERO = "zero"         # counted as an answer of 0

@dataclass
class ScoringSettings:
    """Scoring engine configuration."""
    questionnaire_version: str = "2025.1"
    needs_attention_threshold: float = 65.0
    max_recommendations: int = 5
    max_strengths: int = 3
    max_weaknesses: int = 3
    missing_answer_policy: MissingAnswerPolicy = MissingAnswerPolicy.EXCLUDE
    score_precision: int = 0

    def validate(self) -> None:
        """Validate scoring settings."""
        if not 0 <= self.needs_attention_threshold <= 100:
            raise ConfigurationError(
                "needs_attention_threshold must be within [0, 100]",
                config_field="scoring.needs_attention_threshold"
            )

        for name in ("max_recommendations", "max_strengths", "max_weaknesses"):
            if getattr(self, name) < 0:
                raise ConfigurationError(
                    f"{name} must be non-negative",
                    config_field=f"scoring.{name}"
                )

        if not 0 <= self.score_precision <= 4:
            raise ConfigurationError(
                "score_precision must be between 0 and 4 decimal places",
                config_field="scoring.score_precision"
            )

@dataclass
class BenchmarkSettings:
    """Benchmark lookup configuration."""
    freshness_days: int = 30
    query_timeout_seconds: float = 2.0
    max_workers: int = 4
    enabled: bool = True

    def validate(self) -> None:
        """Validate benchmark settings."""
        if self.freshness_days <= 0:
            raise ConfigurationError(
                "freshness_days must be positive",
                config_field="benchmarks.freshness_days"
            )

        if self.query_timeout_seconds <= 0:
            raise ConfigurationError(
                "query_timeout_seconds must be positive",
                config_field="benchmarks.query_timeout_seconds"
            ).add_suggestion("Use a short bound such as 2 seconds")

        if self.max_workers <= 0:
            raise ConfigurationError(
                "max_workers must be positive",
                config_field="benchmarks.max_workers"
            )

@dataclass
class DatabaseSettings:
    """Record store configuration."""
    path: Optional[Path] = None
    busy_timeout_ms: int = 5000
    pragma_settings: Dict[str, Any] = field(default_factory=lambda: {
        "journal_mode": "WAL",
        "synchronous": "NORMAL",
        "foreign_keys": "ON",
    })

    def validate(self) -> None:
        """Validate database settings."""
        if self.path and not self.path.parent.exists():
            raise ConfigurationError(
                f"Database directory does not exist: {self.path.parent}",
                config_field="database.path"
            ).add_suggestion("Create the directory or use a different path")

        if self.busy_timeout_ms < 0:
            raise ConfigurationError(
                "busy_timeout_ms must be non-negative",
                config_field="database.busy_timeout_ms"
            )

@dataclass
class RefreshSettings:
    """Background benchmark refresh configuration."""
    retry_attempts: int = 3
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0
    aggregation_window_days: int = 90
    min_sample_size: int = 5
    queue_size: int = 1000

    def validate(self) -> None:
        """Validate refresh settings."""
        if self.retry_attempts < 1:
            raise ConfigurationError(
                "retry_attempts must be at least 1",
                config_field="refresh.retry_attempts"
            )

        if self.backoff_seconds < 0 or self.backoff_factor < 1:
            raise ConfigurationError(
                "backoff_seconds must be non-negative and backoff_factor at least 1",
                config_field="refresh.backoff"
            )

        if self.aggregation_window_days <= 0:
            raise ConfigurationError(
                "aggregation_window_days must be positive",
                config_field="refresh.aggregation_window_days"
            )

        if self.min_sample_size < 1:
            raise ConfigurationError(
                "min_sample_size must be at least 1",
                config_field="refresh.min_sample_size"
            )

@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    file_path: Optional[Path] = None
    console_output: bool = True
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def validate(self) -> None:
        """Validate logging settings."""
        if self.file_path and not self.file_path.parent.exists():
            raise ConfigurationError(
                f"Log directory does not exist: {self.file_path.parent}",
                config_field="logging.file_path"
            ).add_suggestion("Create the directory or use console logging only")

@dataclass
class Settings:
    """Main configuration settings for riskindex."""

    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    benchmarks: BenchmarkSettings = field(default_factory=BenchmarkSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    refresh: RefreshSettings = field(default_factory=RefreshSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    # Debug/development settings
    debug_mode: bool = False
    dry_run: bool = False

    def validate(self) -> None:
        """Validate all configuration settings."""
        try:
            self.scoring.validate()
            self.benchmarks.validate()
            self.database.validate()
            self.refresh.validate()
            self.logging.validate()

            self._validate_questionnaire()

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Configuration validation failed: {str(e)}"
            ) from e

    def _validate_questionnaire(self) -> None:
        """The configured questionnaire version must be registered."""
        # imported here: the catalog validates itself on import
        from riskindex.catalog import get_questionnaire
        get_questionnaire(self.scoring.questionnaire_version)

    def to_dict(self) -> dict:
        """Convert settings to dictionary for debugging."""
        return {
            'scoring': {
                'questionnaire_version': self.scoring.questionnaire_version,
                'needs_attention_threshold': self.scoring.needs_attention_threshold,
                'max_recommendations': self.scoring.max_recommendations,
                'missing_answer_policy': self.scoring.missing_answer_policy.value,
                'score_precision': self.scoring.score_precision,
            },
            'benchmarks': {
                'enabled': self.benchmarks.enabled,
                'freshness_days': self.benchmarks.freshness_days,
                'query_timeout_seconds': self.benchmarks.query_timeout_seconds,
            },
            'database': {
                'path': str(self.database.path) if self.database.path else None,
            },
            'refresh': {
                'retry_attempts': self.refresh.retry_attempts,
                'aggregation_window_days': self.refresh.aggregation_window_days,
                'min_sample_size': self.refresh.min_sample_size,
            },
            'runtime': {
                'debug_mode': self.debug_mode,
                'dry_run': self.dry_run,
            }
        }

# Global settings instance
_settings: Optional[Settings] = None

def get_settings() -> Settings:
    """Get the current global settings instance, falling back to defaults."""
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.debug("Settings not initialised; using defaults")
    return _settings

def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    settings.validate()  # Validate before setting
    _settings = settings
    logger.info("Configuration loaded and validated successfully")

def reset_settings() -> None:
    """Forget the global settings instance."""
    global _settings
    _settings = None
