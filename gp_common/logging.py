"""Shared logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from gp_common.config.env import env_value, parse_bool_env


def _resolve_level(value: str | int | None, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if value is None:
        return logging.INFO
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    return logging.getLevelNamesMapping().get(value.upper(), logging.INFO)


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    force: bool = False,
) -> None:
    """Configure stdlib logging and structlog with a shared formatter.

    ``GP_LOG_LEVEL``, ``GP_LOG_JSON`` and ``GP_LOG_FILE`` fill in whatever the
    caller leaves unset. When the root logger already has handlers and
    ``force`` is False only structlog is (re)configured.
    """
    resolved_level = _resolve_level(level or env_value("LOG_LEVEL"), debug)
    env_json = parse_bool_env(env_value("LOG_JSON"))
    resolved_json = env_json if json is None else json
    resolved_log_file = env_value("LOG_FILE") if log_file is None else log_file

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        _configure_structlog()
        return

    renderer: structlog.types.Processor
    if resolved_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_shared_processors(),
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if resolved_log_file:
        handlers.append(logging.FileHandler(resolved_log_file))

    if force:
        root_logger.handlers.clear()

    root_logger.setLevel(resolved_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    _configure_structlog()


def bind_grid_context(grid_id: str | None) -> None:
    """Tag subsequent log lines with the bound grid instance id."""
    if grid_id is None:
        structlog.contextvars.unbind_contextvars("grid_id")
        return
    structlog.contextvars.bind_contextvars(grid_id=grid_id)
