"""Logging for the web app and scripts: rich console output behind a queue.

Records are handed to a ``QueueListener`` so request handlers never block on
console or file I/O. ``init_logging`` may be called repeatedly (app factory,
scripts, tests); it only rebuilds the handlers when the options change.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from queue import SimpleQueue
from threading import RLock
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .context import ContextFilter, log_context
from .progress import progress_manager
from .timing import timeit

__all__ = [
    "init_logging",
    "get_logger",
    "set_level",
    "shutdown_logging",
    "log_context",
    "progress_manager",
    "timeit",
]

APP_LOGGER = "salarymap"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(context)s%(message)s"
# Third-party loggers that are noisy at INFO.
QUIET_LOGGERS = ("uvicorn.access", "pyproj", "shapely")


@dataclass(frozen=True)
class LoggingConfig:
    app_name: str = APP_LOGGER
    level: int = logging.INFO
    log_dir: Optional[Path] = None
    retain_days: int = 7
    rich_tracebacks: bool = True


def _parse_level(level: str | int | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    parsed = logging.getLevelName(str(level).upper())
    return parsed if isinstance(parsed, int) else logging.INFO


class _LoggingState:
    """The installed configuration and the listener draining the queue."""

    def __init__(self) -> None:
        self.lock = RLock()
        self.config: LoggingConfig | None = None
        self.listener: QueueListener | None = None
        self.queue_handler: QueueHandler | None = None
        self.context_filter = ContextFilter()

    def handlers(self, cfg: LoggingConfig) -> list[logging.Handler]:
        console = Console(stderr=True)
        progress_manager.use_console(console)
        if cfg.rich_tracebacks:
            install_rich_traceback(console=console, show_locals=False)

        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=cfg.rich_tracebacks,
            show_path=False,
            markup=False,
            log_time_format="%H:%M:%S",
        )
        rich_handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
        handlers: list[logging.Handler] = [rich_handler]

        if cfg.log_dir:
            cfg.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                cfg.log_dir / f"{cfg.app_name}.log",
                when="midnight",
                backupCount=cfg.retain_days,
                encoding="utf-8",
            )
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            handlers.append(file_handler)

        for handler in handlers:
            handler.setLevel(cfg.level)
        return handlers

    def install(self, cfg: LoggingConfig) -> None:
        self.teardown()
        handlers = self.handlers(cfg)
        queue_handler = QueueHandler(SimpleQueue())
        # Context is read from the emitting task, before the record is queued.
        queue_handler.addFilter(self.context_filter)
        queue_handler.setLevel(cfg.level)

        root = logging.getLogger()
        root.setLevel(logging.NOTSET)
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.addHandler(queue_handler)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(cfg.level, logging.WARNING))

        self.listener = QueueListener(queue_handler.queue, *handlers, respect_handler_level=True)
        self.listener.start()
        self.queue_handler = queue_handler
        self.config = cfg

    def teardown(self) -> None:
        if self.listener is not None:
            self.listener.stop()
        if self.queue_handler is not None:
            logging.getLogger().removeHandler(self.queue_handler)
        self.listener = None
        self.queue_handler = None
        self.config = None
        progress_manager.reset_console()


_state = _LoggingState()


def init_logging(
    *,
    app_name: str | None = None,
    level: str | int | None = None,
    log_dir: str | Path | None = None,
    rich_tracebacks: bool = True,
) -> None:
    """Install the handlers unless an identical configuration is active."""

    cfg = LoggingConfig(
        app_name=app_name or APP_LOGGER,
        level=_parse_level(level),
        log_dir=Path(log_dir) if log_dir else None,
        rich_tracebacks=rich_tracebacks,
    )
    with _state.lock:
        if _state.config == cfg:
            return
        _state.install(cfg)


def shutdown_logging() -> None:
    """Stop the listener, flushing queued records; call before exit."""

    with _state.lock:
        _state.teardown()


def get_logger(name: str | None = None) -> logging.Logger:
    with _state.lock:
        if _state.config is None:
            _state.install(LoggingConfig())
        return logging.getLogger(name or _state.config.app_name)


def set_level(level: str | int) -> None:
    """Change the level of the running handlers without rebuilding them."""

    new_level = _parse_level(level)
    with _state.lock:
        if _state.config is None:
            return
        _state.config = replace(_state.config, level=new_level)
        if _state.queue_handler is not None:
            _state.queue_handler.setLevel(new_level)
        if _state.listener is not None:
            for handler in _state.listener.handlers:
                handler.setLevel(new_level)
