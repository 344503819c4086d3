"""
Logging utilities for s3-upload.

Provides structured logging with action/event records, JSON formatting,
correlation IDs, and entry/exit decorators for collaborator calls.

Every record emitted through ``log_event`` or ``log_error`` carries an
``action`` (for example ``find-bucket``) and a small ``data`` payload
(``{"event": "starting"}`` or ``{"error": "..."}``). The JSON formatter
renders one object per line on standard output.

Example usage:
    >>> from s3_upload.utils.logging import get_logger, log_event
    >>>
    >>> logger = get_logger(__name__)
    >>> log_event(logger, "upload", "starting")
    >>> # {"timestamp": "...", "source": "s3-upload",
    >>> #  "message": "s3-upload.upload", "data": {"event": "starting"}, ...}
"""

import logging
import functools
import json
import sys
import uuid
from typing import Any, Callable, TypeVar, cast, Optional, Dict, IO
from datetime import datetime, timezone
from contextvars import ContextVar

import coloredlogs

# Type variable for generic decorator typing
F = TypeVar("F", bound=Callable[..., Any])

# Context variable for correlation ID
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

SOURCE_NAME = "s3-upload"

# Global logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Numeric levels in the log_level field, lowest first
_LEVEL_CODES = {
    logging.DEBUG: 0,
    logging.INFO: 1,
    logging.WARNING: 1,
    logging.ERROR: 2,
    logging.CRITICAL: 3,
}

_HANDLER_NAME = "s3-upload-console"

# Third-party loggers kept at WARNING; their DEBUG output includes signed
# request headers carrying the access key
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Returns:
        Current correlation ID (generates UUID if not set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """
    Set correlation ID for current context.

    Args:
        corr_id: Correlation ID to set
    """
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for current context."""
    _correlation_id.set(None)


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for action/event records.

    Example output:
        {
            "timestamp": "2026-10-19T10:30:15.123456Z",
            "source": "s3-upload",
            "message": "s3-upload.find-bucket",
            "log_level": 1,
            "level": "INFO",
            "session": "3f1c...",
            "data": {"event": "found"}
        }

    Records without an ``action`` attribute (library or decorator output)
    use the logger name as the action and the message as ``data.message``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        action = getattr(record, "action", None)
        data: Dict[str, Any] = dict(getattr(record, "data", None) or {})

        if action is None:
            action = record.name
            data.setdefault("message", record.getMessage())

        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "source": SOURCE_NAME,
            "message": f"{SOURCE_NAME}.{action}",
            "log_level": _LEVEL_CODES.get(record.levelno, 1),
            "level": record.levelname,
            "session": get_correlation_id(),
            "data": data,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "DEBUG",
    log_format: str = "json",
    stream: Optional[IO[str]] = None,
    enable_colors: bool = True,
) -> None:
    """
    Configure global logging settings for the application.

    Installs one console handler on the root logger, writing to standard
    output unless another stream is given. Calling it again replaces the
    handler installed by the previous call and leaves other handlers alone.
    The storage SDK and HTTP client loggers are held at WARNING or above.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: ``json`` for structured output, ``text`` for humans
        stream: Output stream (default: sys.stdout at call time)
        enable_colors: Whether to colorize text output

    Example:
        >>> setup_logging(level="DEBUG", log_format="json")
        >>> setup_logging(level="INFO", log_format="text", enable_colors=True)
    """
    log_level = getattr(logging, level.upper(), logging.DEBUG)
    stream = stream if stream is not None else sys.stdout

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    # Remove our previous handler to avoid duplicates
    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    if log_format.lower() == "text" and enable_colors:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
            stream=stream,
        )
        # coloredlogs appends its handler last
        root_logger.handlers[-1].set_name(_HANDLER_NAME)
        return

    console_handler = logging.StreamHandler(stream)
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setLevel(log_level)

    if log_format.lower() == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


# ============================================================================
# Action Events
# ============================================================================

def log_event(logger: logging.Logger, action: str, event: str, **data: Any) -> None:
    """
    Log a lifecycle marker for an action.

    Args:
        logger: Logger to emit on
        action: Action name (e.g. ``get-bucket``)
        event: Lifecycle marker (``starting``, ``done``, ``found`` ...)
        **data: Additional payload fields
    """
    payload = {"event": event, **data}
    details = " ".join(f"{key}={value}" for key, value in payload.items())
    logger.info(f"{action} {details}", extra={"action": action, "data": payload})


def log_error(logger: logging.Logger, action: str, error: BaseException) -> None:
    """
    Log a failed action. Does not terminate the process.

    Args:
        logger: Logger to emit on
        action: Action that failed
        error: The error raised by the action
    """
    logger.error(
        f"{action} error={error}",
        extra={"action": action, "data": {"error": str(error)}},
    )


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry and exit at DEBUG level.

    Logs entry with parameter values, exit with return value and duration,
    and exceptions with their type. Exceptions are re-raised unchanged.

    Args:
        func: Function to be decorated

    Returns:
        Wrapped function with logging
    """
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
        args_repr = [f"{name}={value!r}" for name, value in zip(arg_names, args)]
        kwargs_repr = [f"{key}={value!r}" for key, value in kwargs.items()]
        all_args = ", ".join(args_repr + kwargs_repr)

        logger.debug(
            f"ENTER {func.__name__}",
            extra={
                "action": func.__name__,
                "data": {"event": "function-entry", "arguments": all_args},
            },
        )

        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
        except Exception as error:
            execution_time = (datetime.now() - start_time).total_seconds()
            logger.debug(
                f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
                extra={
                    "action": func.__name__,
                    "data": {
                        "event": "function-error",
                        "duration_seconds": execution_time,
                        "error_type": type(error).__name__,
                        "error": str(error),
                    },
                },
            )
            raise

        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} -> {result!r}",
            extra={
                "action": func.__name__,
                "data": {
                    "event": "function-exit",
                    "duration_seconds": execution_time,
                    "return_value": repr(result),
                },
            },
        )
        return result

    return cast(F, wrapper)
