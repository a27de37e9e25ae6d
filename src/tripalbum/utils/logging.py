"""Logging configuration for Trip Album.

All package loggers live under the ``tripalbum`` namespace. The CLI calls
``setup_logging`` once; library code only ever asks for a logger.

Example:
    >>> from tripalbum.utils.logging import setup_logging, get_logger, LogContext
    >>> setup_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> with LogContext("Grouping photos into moments"):
    ...     pass
    # Logs: "Grouping photos into moments completed in 0.01s"
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

from rich.console import Console
from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

PACKAGE_NAME = "tripalbum"

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = [
    "PIL",
    "asyncio",
    "urllib3",
]

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_console = Console(stderr=True)


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    quiet_third_party: bool = True,
) -> logging.Logger:
    """Configure the ``tripalbum`` logger.

    Installs a Rich console handler on stderr and, optionally, a plain file
    handler. Calling it again replaces the previous handlers.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        quiet_third_party: If True, raise noisy third-party loggers to WARNING.

    Returns:
        The configured package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_NAME)
    package_logger.setLevel(numeric_level)
    package_logger.handlers = []

    console_handler = RichHandler(
        console=_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=numeric_level == logging.DEBUG,
        markup=False,
    )
    console_handler.setLevel(numeric_level)
    package_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        package_logger.addHandler(file_handler)

    if quiet_third_party:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    package_logger.propagate = False
    package_logger.debug(f"Logging configured: level={level}, file={log_file}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Logger whose name starts with ``tripalbum``.
    """
    if not name.startswith(PACKAGE_NAME):
        name = f"{PACKAGE_NAME}.{name}"
    return logging.getLogger(name)


# =============================================================================
# Timing Context
# =============================================================================


class LogContext:
    """Time a pipeline stage and log how long it took.

    Attributes:
        message: Description of the stage.
        level: Log level for the start and completion messages.
        logger: Logger instance to use.
        elapsed: Elapsed seconds, set on exit.

    Example:
        >>> with LogContext("Ranking places") as ctx:
        ...     pass
        >>> ctx.elapsed >= 0
        True
    """

    def __init__(
        self,
        message: str,
        level: int = logging.DEBUG,
        logger: logging.Logger | None = None,
    ) -> None:
        self.message = message
        self.level = level
        self.logger = logger or logging.getLogger(PACKAGE_NAME)
        self.elapsed: float = 0.0
        self._start_time: float = 0.0

    def __enter__(self) -> "LogContext":
        self._start_time = time.perf_counter()
        self.logger.log(self.level, f"{self.message}...")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.elapsed = time.perf_counter() - self._start_time

        if exc_type is not None:
            self.logger.warning(f"{self.message} failed after {self.elapsed:.2f}s: {exc_val!r}")
        else:
            self.logger.log(self.level, f"{self.message} completed in {self.elapsed:.2f}s")


@contextmanager
def log_context(
    message: str,
    level: int = logging.DEBUG,
    logger: logging.Logger | None = None,
) -> Generator[LogContext, None, None]:
    """Functional form of :class:`LogContext`.

    Yields:
        LogContext instance; ``elapsed`` is populated after the block.
    """
    ctx = LogContext(message, level, logger)
    with ctx:
        yield ctx
