"""
Structured logging configuration for the autodim package.

Provides:
- JSON formatter for machine-readable per-view processing logs
- Console formatter for human-readable output (points and vectors compacted)
- Timing context manager and decorator for pipeline stages
- LogContext for tagging every record of one view pass (view name, stage)

Usage:
    from autodim.logging_config import setup_logging, get_logger

    setup_logging(level=logging.INFO, json_file="autodim.log.json")

    logger = get_logger(__name__)
    logger.info("Chain created", extra={"view": "Level 1", "references": 4})
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

import numpy as np

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "autodim"

# Standard LogRecord attributes, never treated as extra fields
_RESERVED_KEYS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'asctime', 'taskName',
})


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect user-supplied extra fields from a log record."""
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_KEYS}


def _to_jsonable(value: Any) -> Any:
    """Convert numpy scalars/arrays and tuples to JSON-friendly values."""
    if isinstance(value, np.ndarray):
        return [round(float(v), 6) for v in value.ravel()]
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, tuple):
        return [_to_jsonable(v) for v in value]
    return value


def _compact(value: Any) -> str:
    """Short console rendering of an extra field value."""
    if isinstance(value, np.ndarray) and value.size <= 3:
        return "(" + ", ".join(f"{float(v):.3f}" for v in value.ravel()) + ")"
    if isinstance(value, float):
        return f"{value:.3g}"
    if isinstance(value, (list, tuple, np.ndarray)) and len(value) > 3:
        return f"[...{len(value)} items]"
    return str(value)


class JSONFormatter(logging.Formatter):
    """JSON log formatter: one JSON object per line.

    Extra fields passed via `extra={}` (and fields injected by LogContext)
    are included. Numpy values are converted to plain lists/numbers.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno >= logging.WARNING or record.levelno <= logging.DEBUG:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in _extra_fields(record).items():
                value = _to_jsonable(value)
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    entry[key] = str(value)

        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter with optional colors.

    Format: [TIME] LEVEL logger: message [extra_key=value ...]
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
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

        extra_str = ""
        if self.show_extra:
            extras = [f"{k}={_compact(v)}" for k, v in _extra_fields(record).items()]
            if extras:
                extra_str = " [" + ", ".join(extras) + "]"

        result = f"[{time_str}] {level_str} {logger_name}: {record.getMessage()}{extra_str}"
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
    """Configure logging for the autodim package.

    Args:
        level: Minimum log level (default INFO)
        json_file: Optional path for JSON-lines log file
        console: Enable console output on stderr
        use_colors: Use ANSI colors in console
        root_logger: Configure root logger instead of "autodim"

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("" if root_logger else PACKAGE_LOGGER)
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
    """Get a logger instance for a module (typically __name__)."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
) -> Iterator[Dict[str, Any]]:
    """Context manager logging start/completion/failure of an operation.

    Yields a dict the caller may fill with result counters; they are
    attached to the completion record.

    Example:
        with log_timing(logger, "Grouping", view=view.name) as info:
            buckets = group_by_parallel_directions(items)
            info["buckets"] = len(buckets)
    """
    timing_info: Dict[str, Any] = {}
    start_time = time.perf_counter()

    logger.log(level, f"Starting: {operation}", extra={
        "event": "start", "operation": operation, **extra_fields,
    })

    try:
        yield timing_info
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.error(f"Failed: {operation} ({elapsed:.3f}s) - {e}", extra={
            "event": "error",
            "operation": operation,
            "elapsed_seconds": elapsed,
            "error": str(e),
            **extra_fields,
        })
        raise

    elapsed = time.perf_counter() - start_time
    timing_info['elapsed_seconds'] = elapsed
    logger.log(level, f"Completed: {operation} ({elapsed:.3f}s)", extra={
        "event": "complete",
        "operation": operation,
        **extra_fields,
        **timing_info,
    })


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator logging a function's execution time.

    Example:
        @timed(level=logging.INFO)
        def process_views(...):
            ...
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_logger = logger or logging.getLogger(func.__module__)
            with log_timing(func_logger, operation or func.__name__, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore
    return decorator


class _ContextFilter(logging.Filter):
    """Injects LogContext fields into every record passing through."""

    def __init__(self, fields: Dict[str, Any]):
        super().__init__()
        self.fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.fields.items():
            setattr(record, key, value)
        return True


class LogContext:
    """Adds common fields to every autodim log record within a scope.

    Contexts nest: an inner context sees the outer fields plus its own.

    Example:
        with LogContext(view="Section A"):
            logger.info("Grouping")  # record carries view="Section A"
    """

    _current: Optional['LogContext'] = None

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Optional['LogContext'] = None
        self._filter: Optional[_ContextFilter] = None

    def __enter__(self) -> 'LogContext':
        self._previous = LogContext._current
        LogContext._current = self

        merged = dict(self._previous.fields) if self._previous else {}
        merged.update(self.fields)
        self._filter = _ContextFilter(merged)
        for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
            handler.addFilter(self._filter)
        logging.getLogger(PACKAGE_LOGGER).addFilter(self._filter)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._filter:
            pkg_logger = logging.getLogger(PACKAGE_LOGGER)
            pkg_logger.removeFilter(self._filter)
            for handler in pkg_logger.handlers:
                handler.removeFilter(self._filter)
        LogContext._current = self._previous

    @classmethod
    def current(cls) -> Optional['LogContext']:
        """Get the innermost active context."""
        return cls._current


def configure_default_logging(verbose: bool = False) -> logging.Logger:
    """Configure console logging: DEBUG if verbose, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    return setup_logging(level=level, console=True, use_colors=True)
