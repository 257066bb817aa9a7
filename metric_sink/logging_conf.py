"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import structlog

from .config.loader import ConfigLocator

LOGGER_NAME = "metric_sink"

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    return ConfigLocator().logs_dir


def main_log_path() -> Path:
    return _default_log_dir() / "metric_sink.log"


def error_log_path() -> Path:
    return _default_log_dir() / "error.log"


_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def _file_handler(path: Path, level: str) -> dict:
    return {"class": "logging.FileHandler", "level": level, "filename": str(path), "formatter": "json"}


def _dict_config(level: str) -> dict:
    """stdlib side: every handler renders the structlog event dict as one JSON object."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "main_file": _file_handler(main_log_path(), "INFO"),
            "error_file": _file_handler(error_log_path(), "ERROR"),
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console", "main_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Set up the sink's log files once and return the ``metric_sink`` logger."""

    global _LOGGING_INITIALISED
    (_default_log_dir() / "outputs").mkdir(parents=True, exist_ok=True)
    main_log_path().touch(exist_ok=True)
    error_log_path().touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_dict_config("DEBUG" if verbose else "INFO"))
        structlog.configure(
            processors=_PROCESSORS,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def output_logger(alias: str, verbose: bool = False) -> structlog.BoundLogger:
    """Return a logger bound to one output, also writing ``logs/outputs/<alias>.log``."""

    configure_logging(verbose)
    output_log_path = _default_log_dir() / "outputs" / f"{alias}.log"
    output_log_path.parent.mkdir(parents=True, exist_ok=True)

    logger_name = f"{LOGGER_NAME}.output.{alias}"
    py_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(output_log_path)
        for handler in py_logger.handlers
    ):
        file_handler = logging.FileHandler(output_log_path, encoding="utf-8")
        global_logger = logging.getLogger(LOGGER_NAME)
        if global_logger.handlers:
            file_handler.setFormatter(global_logger.handlers[0].formatter)
        file_handler.setLevel(logging.INFO)
        py_logger.addHandler(file_handler)

    return structlog.get_logger(logger_name).bind(output=alias)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = [
    "LOGGER_NAME",
    "configure_logging",
    "error_log_path",
    "main_log_path",
    "output_logger",
    "tail_log",
]
