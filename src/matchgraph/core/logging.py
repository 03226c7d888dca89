"""
Centralized logging configuration for the matchgraph package.

This module provides consistent logging setup for the crawl loop, the store
and the rating pass, plus small helpers for timing and progress reporting of
long-running operations.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_style: str = "detailed",
    include_timestamp: bool = True,
) -> logging.Logger:
    """Set up centralized logging for the matchgraph package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to logging.INFO.
        log_file: Optional file to write logs to. Defaults to None.
        format_style: Format style: "simple", "detailed", or "json". Defaults to "detailed".
        include_timestamp: Whether to include timestamps in log messages. Defaults to True.

    Returns:
        Configured logger instance.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger("matchgraph")
    logger.setLevel(level)

    logger.handlers.clear()

    if format_style == "simple":
        format_string = "%(levelname)s: %(message)s"
    elif format_style == "json":
        format_string = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "thread": "%(threadName)s", "message": "%(message)s"}'
    else:
        if include_timestamp:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"
        else:
            format_string = "%(name)s - %(levelname)s - %(threadName)s - %(message)s"

    formatter = logging.Formatter(format_string)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific component.

    Args:
        name: Name of the component, without the package prefix.

    Returns:
        Logger instance for the component.
    """
    return logging.getLogger(f"matchgraph.{name}")


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.INFO
):
    """Context manager to log the timing of operations.

    Args:
        logger: Logger to use for timing messages.
        operation: Description of the operation being timed.
        level: Logging level for timing messages. Defaults to logging.INFO.

    Examples:
        >>> logger = logging.getLogger(__name__)
        >>> with log_timing(logger, "rating pass"):
        ...     engine.run()
    """
    start_time = time.time()
    logger.log(level, f"Starting {operation}")

    try:
        yield
        elapsed_time = time.time() - start_time
        logger.log(level, f"Completed {operation} in {elapsed_time:.2f}s")
    except Exception as exception:
        elapsed_time = time.time() - start_time
        logger.error(
            f"Failed {operation} after {elapsed_time:.2f}s: {exception}"
        )
        raise


class ProgressLogger:
    """
    Context manager for logging progress of long-running operations.

    Examples
    --------
    >>> logger = logging.getLogger(__name__)
    >>> with ProgressLogger(logger, "draining frontier", total=100) as progress:
    ...     for i in range(100):
    ...         # do work
    ...         progress.update(i + 1)
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        total: int | None = None,
        update_interval: int = 10,
    ) -> None:
        self.logger = logger
        self.operation = operation
        self.total = total
        self.update_interval = update_interval
        self.start_time = None
        self.last_update = 0

    def __enter__(self):
        self.start_time = time.time()
        if self.total:
            self.logger.info(f"Starting {self.operation} (0/{self.total})")
        else:
            self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_time = time.time() - self.start_time
        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation} in {elapsed_time:.2f}s"
            )
        else:
            self.logger.error(
                f"Failed {self.operation} after {elapsed_time:.2f}s: {exc_val}"
            )

    def update(self, current: int, message: str | None = None) -> None:
        """Update progress."""
        if (
            current - self.last_update >= self.update_interval
            or current == self.total
        ):
            elapsed_time = time.time() - self.start_time
            rate = current / elapsed_time if elapsed_time > 0 else 0

            if self.total:
                percentage = (current / self.total) * 100
                log_message = f"{self.operation}: {current}/{self.total} ({percentage:.1f}%) - {rate:.1f}/s"
            else:
                log_message = (
                    f"{self.operation}: {current} items - {rate:.1f}/s"
                )
            if message:
                log_message += f" - {message}"

            self.logger.info(log_message)
            self.last_update = current
