"""Structured logging configuration using structlog.

Every log line emitted during a run carries the run's invocation id, and
lines from a parallel branch also carry that branch. Both live in context
variables: the runner binds the invocation id for the whole run, and each
parallel branch task sets its branch in its own copy of the context, so
concurrently running branches never see each other's value.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

invocation_id_ctx: ContextVar[str | None] = ContextVar("invocation_id", default=None)
branch_ctx: ContextVar[str | None] = ContextVar("branch", default=None)

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "LiteLLM", "mcp")


def add_run_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Processor that adds the current invocation id and branch."""
    invocation_id = invocation_id_ctx.get()
    if invocation_id:
        event_dict.setdefault("invocation_id", invocation_id)
    branch = branch_ctx.get()
    if branch:
        event_dict.setdefault("branch", branch)
    return event_dict


@contextmanager
def bind_run(invocation_id: str, **values: str) -> Iterator[None]:
    """Bind a run's invocation id, plus extra key-values, for its duration.

    Args:
        invocation_id: Id of the run
        **values: Extra fields for every log line, e.g. session_id
    """
    token = invocation_id_ctx.set(invocation_id)
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*values)
        invocation_id_ctx.reset(token)


def configure_logging(log_level: str, json_output: bool = True) -> None:
    """Configure structlog and route stdlib logging through the same renderer.

    Args:
        log_level: Logging level (INFO, DEBUG, etc.)
        json_output: True for JSON output, False for console
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_run_context,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
