"""
Structured logging configuration for the auto_orient package.

Provides:
- JSON formatter for machine-readable orientation logs
- Console formatter for human-readable output
- Timing helpers for per-mesh and per-batch measurement
- Centralized logging setup

Usage:
    from auto_orient.logging_config import setup_logging, get_logger

    # Setup at application start
    setup_logging(level=logging.INFO, json_file="orient.log.json")

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Orienting mesh", extra={"mesh": "bracket", "n_faces": 1024})
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar, Union

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "auto_orient"

# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED_KEYS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'asctime', 'taskName',
})


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_KEYS}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs each log record as a single JSON line. Extra fields passed via
    `extra={}` (mesh name, candidate count, scores) are included as-is when
    serializable and stringified otherwise.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "...", "message": "...", ...}
    """

    def __init__(self, include_extra: bool = True):
        """Initialize JSON formatter.

        Args:
            include_extra: Include extra fields from log records
        """
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING or record.levelno <= logging.DEBUG:
            log_entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in _extra_fields(record).items():
                try:
                    json.dumps(value)
                    log_entry[key] = value
                except (TypeError, ValueError):
                    log_entry[key] = str(value)

        return json.dumps(log_entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with optional colors.

    Format: [TIME] LEVEL logger: message [extra_key=value ...]
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level_str = f"{self.COLORS[level]}{level:8}{self.COLORS['RESET']}"
        else:
            level_str = f"{level:8}"

        logger_name = record.name
        prefix = PACKAGE_LOGGER + "."
        if logger_name.startswith(prefix):
            logger_name = logger_name[len(prefix):]

        message = record.getMessage()

        extra_str = ""
        if self.show_extra:
            extras = []
            for key, value in _extra_fields(record).items():
                if isinstance(value, float):
                    extras.append(f"{key}={value:.3g}")
                elif isinstance(value, (list, tuple)) and len(value) > 3:
                    extras.append(f"{key}=[...{len(value)} items]")
                else:
                    extras.append(f"{key}={value}")
            if extras:
                extra_str = " [" + ", ".join(extras) + "]"

        result = f"[{time_str}] {level_str} {logger_name}: {message}{extra_str}"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
    root_logger: bool = False,
) -> logging.Logger:
    """Configure logging for the auto_orient package.

    Sets up handlers for console (human-readable) and optionally
    JSON file output (machine-readable).

    Args:
        level: Minimum log level (default INFO)
        json_file: Optional path for JSON log file
        console: Enable console output (default True)
        use_colors: Use ANSI colors in console (default True)
        root_logger: Configure root logger instead of auto_orient

    Returns:
        Configured logger instance

    Example:
        setup_logging(level=logging.DEBUG, json_file="orient.log.json")
    """
    logger_name = "" if root_logger else PACKAGE_LOGGER
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        logger.addHandler(console_handler)

    if json_file:
        json_handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    if not root_logger:
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (typically ``__name__``)."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
):
    """Context manager to log operation timing.

    Args:
        logger: Logger instance
        operation: Operation description
        level: Log level (default DEBUG)
        **extra_fields: Additional fields to include in log

    Example:
        with log_timing(logger, "Orienting mesh", mesh=mesh.name):
            orienter.process()

    Yields:
        dict that can be updated with additional timing info
    """
    timing_info: Dict[str, Any] = {}
    start_time = time.perf_counter()

    logger.log(level, f"Starting: {operation}", extra={
        "event": "start",
        "operation": operation,
        **extra_fields
    })

    try:
        yield timing_info
        elapsed = time.perf_counter() - start_time
        timing_info['elapsed_seconds'] = elapsed

        logger.log(level, f"Completed: {operation} ({elapsed:.3f}s)", extra={
            "event": "complete",
            "operation": operation,
            **extra_fields,
            **timing_info
        })
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.error(f"Failed: {operation} ({elapsed:.3f}s) - {e}", extra={
            "event": "error",
            "operation": operation,
            "elapsed_seconds": elapsed,
            "error": str(e),
            **extra_fields
        })
        raise


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator to log function execution time.

    Args:
        logger: Logger instance (uses function's module logger if None)
        level: Log level (default DEBUG)
        operation: Operation name (uses function name if None)

    Example:
        @timed(level=logging.INFO)
        def orient_folder(path):
            ...
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_logger = logger or logging.getLogger(func.__module__)
            op_name = operation or func.__name__

            with log_timing(func_logger, op_name, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore
    return decorator


class _ContextFilter(logging.Filter):
    def __init__(self, fields: Dict[str, Any]):
        super().__init__()
        self.fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.fields.items():
            setattr(record, key, value)
        return True


class LogContext:
    """Context holder for adding common fields to log records.

    The filter is installed on the package logger, so it tags every record
    emitted while the context is active. Use it around single-threaded work
    (one STL file, one CLI run); parallel workers pass `extra=` instead.

    Example:
        with LogContext(file="bracket.stl"):
            logger.info("Orienting")  # includes file=bracket.stl
    """

    _current: Optional['LogContext'] = None

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Optional['LogContext'] = None
        self._filter: Optional[logging.Filter] = None

    def __enter__(self) -> 'LogContext':
        self._previous = LogContext._current
        LogContext._current = self

        self._filter = _ContextFilter(self.fields)
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addFilter(self._filter)
        # Child loggers propagate to the package handlers without running
        # the package logger's filters, so tag their handlers too.
        for handler in package_logger.handlers:
            handler.addFilter(self._filter)

        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._filter:
            package_logger = logging.getLogger(PACKAGE_LOGGER)
            package_logger.removeFilter(self._filter)
            for handler in package_logger.handlers:
                handler.removeFilter(self._filter)

        LogContext._current = self._previous

    @classmethod
    def current(cls) -> Optional['LogContext']:
        """Get current context."""
        return cls._current


def configure_default_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging with sensible defaults.

    Args:
        verbose: Enable DEBUG level (per-candidate cost lines) if True

    Returns:
        Configured logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    return setup_logging(level=level, console=True, use_colors=True)
