# utils/logging.py
import logging
import logging.config
from pathlib import Path
from typing import Optional, Tuple, Union

LOGGER_NAME = "riskindex"

def setup_logging(
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    level: str = "INFO",
    quiet_console: bool = False,
    console_level: Optional[str] = None,
    file_format: Optional[str] = None,
) -> Tuple[logging.Logger, logging.Logger]:
    """
    Configure the ``riskindex`` logger hierarchy.

    Args:
        log_file: Optional file receiving every record the logger level lets through
        console: Whether to enable console logging
        level: Level of the ``riskindex`` logger
        quiet_console: If True, only errors reach the console
        console_level: Separate level for console (defaults to level)
        file_format: %-style format for the log file (defaults to a brace-style layout)

    Returns:
        (logger, summary_logger); the summary logger carries the one-line
        run summaries printed by the CLI.
    """
    handlers = {}
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filename": str(log_file),
            "encoding": "utf-8",
            "mode": "a",
            "level": "DEBUG",   # capture everything in file
        }
    if console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "stream": "ext://sys.stderr",
            "level": "ERROR" if quiet_console else (console_level or level).upper(),
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": (
                {"format": file_format} if file_format else
                {"format": "{asctime} {levelname:<7} {name} - {message}", "style": "{"}
            ),
            "console": {
                "format": "{levelname:<7} {message}",
                "style": "{",
            },
            "summary": {
                "format": "{message}",
                "style": "{",
            },
        },
        "handlers": {
            **handlers,
            "summary_console": {
                "class": "logging.StreamHandler",
                "formatter": "summary",
                "stream": "ext://sys.stdout",
                "level": "INFO",
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "level": level.upper(),
                "handlers": list(handlers),
                "propagate": False,
            },
            f"{LOGGER_NAME}.summary": {
                "level": "INFO",
                "handlers": ["summary_console"] + (["file"] if log_file else []),
                "propagate": False,
            },
        },
        "root": {"handlers": []},  # keep root empty
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)

    logger = logging.getLogger(LOGGER_NAME)
    summary_logger = logging.getLogger(f"{LOGGER_NAME}.summary")
    logger.debug("Logging initialised. File: %s", log_file or "<none>")
    return logger, summary_logger
