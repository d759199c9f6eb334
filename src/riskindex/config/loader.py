"""Configuration loading from CLI and programmatic sources."""

import logging
from pathlib import Path
from dataclasses import replace
from riskindex.config.settings import (
    Settings, ScoringSettings, BenchmarkSettings, DatabaseSettings,
    RefreshSettings, LoggingSettings, LogLevel, MissingAnswerPolicy
)
from riskindex.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class ConfigurationLoader:
    """Loads configuration from CLI args and system defaults."""

    def load_from_cli_args(self, args) -> Settings:
        """Load configuration from CLI arguments."""
        try:
            settings = self.load_defaults()

            scoring_updates = {}
            if getattr(args, 'questionnaire_version', None):
                scoring_updates['questionnaire_version'] = args.questionnaire_version
            if getattr(args, 'missing_answers', None):
                scoring_updates['missing_answer_policy'] = MissingAnswerPolicy(args.missing_answers)
            if getattr(args, 'precision', None) is not None:
                scoring_updates['score_precision'] = args.precision

            benchmark_updates = {}
            if getattr(args, 'freshness_days', None) is not None:
                benchmark_updates['freshness_days'] = args.freshness_days
            if getattr(args, 'benchmark_timeout', None) is not None:
                benchmark_updates['query_timeout_seconds'] = args.benchmark_timeout
            if getattr(args, 'no_benchmarks', False):
                benchmark_updates['enabled'] = False

            database_updates = {}
            if getattr(args, 'db', None):
                database_updates['path'] = Path(args.db)

            refresh_updates = {}
            if getattr(args, 'retries', None):
                refresh_updates['retry_attempts'] = args.retries
            if getattr(args, 'window_days', None):
                refresh_updates['aggregation_window_days'] = args.window_days
            if getattr(args, 'min_sample', None):
                refresh_updates['min_sample_size'] = args.min_sample

            logging_updates = {}
            if getattr(args, 'log_file', None):
                logging_updates['file_path'] = Path(args.log_file)
            if getattr(args, 'log_level', None):
                logging_updates['level'] = LogLevel(args.log_level.upper())
            if getattr(args, 'debug', False):
                logging_updates['level'] = LogLevel.DEBUG

            return replace(
                settings,
                scoring=replace(settings.scoring, **scoring_updates),
                benchmarks=replace(settings.benchmarks, **benchmark_updates),
                database=replace(settings.database, **database_updates),
                refresh=replace(settings.refresh, **refresh_updates),
                logging=replace(settings.logging, **logging_updates),
                debug_mode=getattr(args, 'debug', False),
                dry_run=getattr(args, 'dry_run', False),
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from CLI arguments: {str(e)}"
            ) from e

    def load_defaults(self) -> Settings:
        """Load default configuration settings."""
        return Settings(
            scoring=ScoringSettings(
                questionnaire_version="2025.1",
                needs_attention_threshold=65.0,
                max_recommendations=5,
                max_strengths=3,
                max_weaknesses=3,
                missing_answer_policy=MissingAnswerPolicy.EXCLUDE,
                score_precision=0,
            ),
            benchmarks=BenchmarkSettings(
                freshness_days=30,
                query_timeout_seconds=2.0,
                max_workers=4,
                enabled=True,
            ),
            database=DatabaseSettings(
                path=None,
                busy_timeout_ms=5000,
            ),
            refresh=RefreshSettings(
                retry_attempts=3,
                backoff_seconds=0.5,
                backoff_factor=2.0,
                aggregation_window_days=90,
                min_sample_size=5,
            ),
            logging=LoggingSettings(
                level=LogLevel.INFO,
                file_path=None,
                console_output=True,
            ),
            debug_mode=False,
            dry_run=False,
        )

def configure_from_cli(args) -> Settings:
    """Main entry point to configure settings from CLI args."""
    loader = ConfigurationLoader()
    settings = loader.load_from_cli_args(args)
    settings.validate()
    return settings
