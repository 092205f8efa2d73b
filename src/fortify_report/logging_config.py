"""Structured logging for fortify-report runs using structlog.

Log output always goes to stderr (or a supplied stream); stdout is reserved
for the report artifact.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

# Event keys whose values are replaced before rendering
SECRET_KEYS = frozenset({
    "ci_token",
    "api_key",
    "api_secret",
    "client_secret",
    "access_token",
    "authorization",
})
REDACTED = "***"


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: blank out credential values bound to the event."""
    for key in event_dict:
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    log_level: str = "info",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route stdlib and structlog records through one structlog formatter.

    Args:
        log_level: Logging level string (debug/info/warning/error).
        json_output: One JSON object per line, for pipeline log collectors.
            Otherwise a console renderer, colored only on a terminal.
        stream: Destination; defaults to stderr.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    stream = stream or sys.stderr

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=stream.isatty())
    )

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(provider: str, app_name: str, app_version: str) -> None:
    """Tag every record of one assembly run with what is being fetched."""
    structlog.contextvars.bind_contextvars(
        provider=provider,
        app_name=app_name,
        app_version=app_version,
    )


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()
