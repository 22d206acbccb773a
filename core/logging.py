"""Logging for setup commands and health checks.

Log records go to stderr through rich so that reports and YAML printed on
stdout stay machine readable. ``configure_logging`` also routes the module
loggers (``imaging.service``, ``storage.sites`` ...) through the same handler.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
from pathlib import Path
import queue

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

LOGGER_NAME = "cms_setup"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

console = Console(stderr=True)


def _rich_handler() -> RichHandler:
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    return handler


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Return the application logger with a single rich handler attached."""

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in app_logger.handlers):
        app_logger.addHandler(_rich_handler())
    app_logger.propagate = False
    return app_logger


logger = setup_logging()


def configure_logging(level_name: str) -> int:
    """Apply ``level_name`` to the application and module loggers.

    Unknown level names fall back to ``INFO``. Returns the numeric level.
    """

    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in root_logger.handlers):
        root_logger.addHandler(_rich_handler())
    logger.setLevel(level)
    return level


class _FileLogSink:
    """Queue-backed file handler shared by the root and application loggers."""

    def __init__(self) -> None:
        self.path: Path | None = None
        self._listener: logging.handlers.QueueListener | None = None
        self._queue_handler: logging.Handler | None = None
        self._file_handler: logging.FileHandler | None = None

    @property
    def active(self) -> bool:
        return self._listener is not None

    def start(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file_handler = logging.FileHandler(path, encoding="utf-8")
        self._file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))

        log_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
        self._queue_handler = logging.handlers.QueueHandler(log_queue)
        for target in (logging.getLogger(), logger):
            target.addHandler(self._queue_handler)

        self._listener = logging.handlers.QueueListener(log_queue, self._file_handler)
        self._listener.start()
        self.path = path

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
        if self._queue_handler is not None:
            for target in (logging.getLogger(), logger):
                target.removeHandler(self._queue_handler)
        if self._file_handler is not None:
            self._file_handler.close()
        self._listener = None
        self._queue_handler = None
        self._file_handler = None
        self.path = None


_file_sink = _FileLogSink()
atexit.register(_file_sink.stop)


def enable_file_logging(log_path: Path) -> None:
    """Also write log records to ``log_path``; switching paths restarts the sink."""

    log_path = log_path.expanduser()
    if _file_sink.active and _file_sink.path == log_path:
        return
    _file_sink.stop()
    _file_sink.start(log_path)


def disable_file_logging() -> None:
    """Flush pending records and detach the file handler."""

    _file_sink.stop()


def log_error(message: str) -> None:
    logger.error(Text(message, style="bold red"))


def log_warning(message: str) -> None:
    logger.warning(Text(message, style="bold yellow"))
