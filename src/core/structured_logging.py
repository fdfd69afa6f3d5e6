#!/usr/bin/env -S python3 -B -u
"""
Diagnostic logging for reachtest.

Every logger in the package sits below the ``reachtest`` logger.
setup_logging() gives that logger one stderr handler and a level derived
from the -v count, so StructuredLogger instances and plain
``logging.getLogger(__name__)`` loggers (config_loader, stats) follow the
same switch. The report is printed on stdout and never passes through
logging.

Verbosity levels:
- 0: errors only
- 1: warnings and progress messages
- 2: debug: remote commands, reachability decisions, classifications,
     with key=value context
- 3: trace: remote command output, timestamps, context as JSON
"""

import json
import logging as std_logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union


PACKAGE_LOGGER = __name__.split('.')[0]


def level_for(verbose_level: int) -> int:
    """Map a -v count onto a stdlib logging level."""
    if verbose_level <= 0:
        return std_logging.ERROR
    if verbose_level == 1:
        return std_logging.INFO
    return std_logging.DEBUG


def _formatter_for(verbose_level: int) -> std_logging.Formatter:
    if verbose_level >= 3:
        return std_logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    if verbose_level >= 2:
        return std_logging.Formatter('[%(name)s] %(levelname)s: %(message)s')
    return std_logging.Formatter('%(message)s')


class StructuredLogger:
    """
    Verbosity-gated front end for one module's logger.

    Messages are gated on ``verbose_level`` (errors always pass) and may
    carry keyword context, which is appended from -vv on.
    """

    def __init__(self, name: str, verbose_level: int = 0):
        self.name = name
        self.verbose_level = verbose_level
        self.logger = std_logging.getLogger(name)

    def _emit(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if context and self.verbose_level >= 2:
            message = f"{message} | {self._format_context(context)}"
        self.logger.log(level, message)

    def _format_context(self, context: Dict[str, Any]) -> str:
        if self.verbose_level >= 3:
            return json.dumps(context, default=str)
        return " ".join(f"{key}={value}" for key, value in context.items())

    def error(self, message: str, **context: Any) -> None:
        self._emit(std_logging.ERROR, message, context)

    def warning(self, message: str, **context: Any) -> None:
        if self.verbose_level >= 1:
            self._emit(std_logging.WARNING, message, context)

    def info(self, message: str, **context: Any) -> None:
        if self.verbose_level >= 1:
            self._emit(std_logging.INFO, message, context)

    def debug(self, message: str, **context: Any) -> None:
        if self.verbose_level >= 2:
            self._emit(std_logging.DEBUG, message, context)

    def trace(self, message: str, **context: Any) -> None:
        if self.verbose_level >= 3:
            self._emit(std_logging.DEBUG, f"[TRACE] {message}", context)

    @contextmanager
    def timer(self, operation: str):
        """Log the wall-clock duration of a block at debug level."""
        start_time = time.time()
        self.debug(f"Starting {operation}")
        try:
            yield
        finally:
            elapsed = time.time() - start_time
            self.debug(f"Completed {operation}", elapsed_ms=f"{elapsed * 1000:.2f}")

    def log_command_execution(self, command: Union[str, List[str]], host: Optional[str] = None,
                              success: Optional[bool] = None, **details: Any) -> None:
        """Log one remote command, before running it or with its result."""
        cmd_str = command if isinstance(command, str) else " ".join(command)
        message = f"Executing: {cmd_str}"
        if host:
            message = f"[{host}] {message}"
        if success is not None:
            message += f" - {'SUCCESS' if success else 'FAILED'}"
        self.debug(message, **details)


def get_logger(name: str, verbose_level: Optional[int] = None) -> StructuredLogger:
    """
    Get or create a structured logger.

    Args:
        name: Logger name (usually __name__)
        verbose_level: Verbosity level (0-3); defaults to the level
            passed to setup_logging()
    """
    if verbose_level is None:
        verbose_level = get_verbose_level()

    if not hasattr(get_logger, '_loggers'):
        get_logger._loggers = {}

    cache_key = f"{name}:{verbose_level}"
    if cache_key not in get_logger._loggers:
        get_logger._loggers[cache_key] = StructuredLogger(name, verbose_level)

    return get_logger._loggers[cache_key]


def setup_logging(verbose_level: int = 0) -> std_logging.Logger:
    """
    Configure the package logger for the given -v count.

    Safe to call more than once; the previous handler is replaced.

    Returns:
        The ``reachtest`` logger
    """
    setup_logging._verbose_level = verbose_level

    package_logger = std_logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level_for(verbose_level))
    package_logger.propagate = False
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter_for(verbose_level))
    package_logger.addHandler(handler)
    return package_logger


def get_verbose_level() -> int:
    """Get the level last passed to setup_logging()."""
    return getattr(setup_logging, '_verbose_level', 0)
