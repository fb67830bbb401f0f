"""
Logging for craftmcp.

Records carry two correlation ids taken from context variables:
- request_id: one per HTTP request (X-Request-ID or a fresh UUID)
- session_id: the push-channel session a /messages delivery belongs to

Both are shortened to 8 characters in the output; "-" when unset.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_session_id: ContextVar[Optional[str]] = ContextVar("session_id", default=None)

LOG_FORMAT = "%(asctime)s [%(request_id)s/%(session_id)s] %(name)s %(levelname)s: %(message)s"

# The stderr handler installed by setup_logging(); replaced on every call
_installed_handler: Optional[logging.Handler] = None


def _short(value: Optional[str]) -> str:
    return value[:8] if value else "-"


class RequestContextFilter(logging.Filter):
    """Add request and session ids to log records."""

    def filter(self, record):
        record.request_id = _short(_request_id.get())
        record.session_id = _short(_session_id.get())
        return True


def setup_logging(level=logging.INFO):
    """
    Install the craftmcp stderr handler on the root logger.

    Only the handler installed by a previous call is replaced; handlers the
    embedding host put on the root logger are left alone.

    Args:
        level: Logging level (default: logging.INFO)
    """
    global _installed_handler

    root = logging.getLogger()
    root.setLevel(level)

    if _installed_handler is not None:
        root.removeHandler(_installed_handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    handler.addFilter(RequestContextFilter())
    root.addHandler(handler)
    _installed_handler = handler


def get_logger(name: str) -> logging.Logger:
    """Named logger, e.g. "craftmcp-handlers" or "craftmcp-bridge"."""
    return logging.getLogger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request id for the current context.

    Args:
        request_id: Id to set, or None to generate one

    Returns:
        The id that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    _request_id.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    return _request_id.get()


def clear_request_id():
    _request_id.set(None)
    _session_id.set(None)


def set_session_id(session_id: Optional[str]) -> None:
    """Tag the current context with a push-channel session."""
    _session_id.set(session_id)


def get_session_id() -> Optional[str]:
    return _session_id.get()


class RequestTimer:
    """
    Time a block and log its duration.

    Failures are logged at error level. A block slower than slow_after_ms is
    logged as a warning, which is how calls that sat on a busy host thread
    show up in the log.

    Usage:
        with RequestTimer(logger, "tool/execute_command", slow_after_ms=5000):
            ...
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        slow_after_ms: Optional[float] = None,
    ):
        self.logger = logger
        self.operation = operation
        self.slow_after_ms = slow_after_ms
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return False
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type:
            self.logger.error(
                "%s failed after %.2fms: %s: %s",
                self.operation,
                self.duration_ms,
                exc_type.__name__,
                exc_val,
            )
        elif self.slow_after_ms is not None and self.duration_ms > self.slow_after_ms:
            self.logger.warning("%s slow: %.2fms", self.operation, self.duration_ms)
        else:
            self.logger.debug("%s completed in %.2fms", self.operation, self.duration_ms)

        return False
