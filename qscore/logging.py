"""
Structured Logging
==================

JSON-structured logging with per-response scoring context and a
per-module logger factory.

Uses structlog for structured, machine-readable log output. Records from
stdlib ``logging`` loggers are rendered through the same pipeline.

Author: QScore Team
Version: 1.0.0
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Union

import structlog


def _add_service_info(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Structlog processor to inject service metadata."""
    event_dict["service"] = "qscore"
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for the scoring engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON; otherwise human-readable
        log_file: Optional path to write logs to a file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def setup_logging_from_settings() -> None:
    """Configure logging from the cached engine settings."""
    from qscore.config import settings

    setup_logging(level=settings.log_level, json_output=settings.log_json)


def get_logger(name: str) -> Any:
    """
    Get a structured logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


@contextmanager
def bind_scoring_context(
    response_id: Optional[Union[int, str]],
    questionnaire_id: Optional[Union[int, str]],
) -> Iterator[None]:
    """
    Bind response and questionnaire ids to every log line emitted inside
    the block, including lines from stdlib loggers.
    """
    context = {"questionnaire_id": questionnaire_id}
    if response_id is not None:
        context["response_id"] = response_id
    with structlog.contextvars.bound_contextvars(**context):
        yield
