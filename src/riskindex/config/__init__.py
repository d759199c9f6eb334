"""Runtime configuration."""

from .settings import (
    Settings,
    ScoringSettings,
    BenchmarkSettings,
    DatabaseSettings,
    RefreshSettings,
    LoggingSettings,
    LogLevel,
    MissingAnswerPolicy,
    get_settings,
    set_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "ScoringSettings",
    "BenchmarkSettings",
    "DatabaseSettings",
    "RefreshSettings",
    "LoggingSettings",
    "LogLevel",
    "MissingAnswerPolicy",
    "get_settings",
    "set_settings",
    "reset_settings",
]
