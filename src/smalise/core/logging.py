"""Structured logging for smalise.

Every module logs through ``structlog.get_logger()`` with a snake_case event
name and key/value context. ``configure_logging`` routes those events into
stdlib handlers, one per configured output, each with its own level and a
console or JSON renderer.

CLI commands wrap their work in an *operation*: ``begin_operation("rename")``
binds a short correlation id and the command name into structlog's context
variables, so every record emitted while a command runs (index load, rename
planning, edit application) can be grouped afterwards.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars, unbind_contextvars

if TYPE_CHECKING:
    from smalise.config.models import LoggingConfig, LogOutputConfig

# Third-party loggers that are too chatty below WARNING
_QUIET_LOGGERS = ("watchfiles.main", "watchfiles.watcher", "asyncio")

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def begin_operation(command: str, operation_id: str | None = None) -> str:
    """Tag subsequent log records with ``command`` and a correlation id."""
    oid = operation_id or uuid4().hex[:12]
    bind_contextvars(operation_id=oid, command=command)
    return oid


def current_operation() -> str | None:
    return get_contextvars().get("operation_id")


def end_operation() -> None:
    unbind_contextvars("operation_id", "command")


def _level(name: str | None, default: int) -> int:
    if name is None:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for every output in ``config``.

    Without ``config``, a single stderr output at ``level`` is used, JSON
    rendered when ``json_format`` is set. Reconfiguring closes the previous
    handlers, so a file output is never held open twice.
    """
    from smalise.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt=_TIMESTAMP_FORMAT, key="timestamp"),
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Uncached so that a later configure_logging call takes effect everywhere
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _open_handler(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared))
        root.addHandler(handler)


def _open_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter(
    output: LogOutputConfig, shared: list[structlog.types.Processor]
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        colors = output.destination in ("stderr", "stdout") and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """structlog logger, bound to ``logger=name`` when a name is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
