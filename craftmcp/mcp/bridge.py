"""
Host Execution Bridge

Runs work on the host's single main thread and hands the result back to the
HTTP worker thread that asked for it.

Execution Model:
- Each call registers a deferred result slot under a fresh job id
- The work is submitted to the host queue; the host serializes it with
  everything else it runs
- The caller blocks on a threading.Event with a bounded timeout

Timeout Behavior:
- Host-side work cannot be cancelled once submitted
- After the deadline the caller gets PENDING and stops observing the slot;
  the work still runs and its late result is discarded
- Tools turn PENDING into an informational "may still have executed" message

Command Capture:
1. Dispatch with a CapturingSink wrapped around the console sink
2. If the host rejects the wrapped sink, attach a handler to the host log,
   dispatch against the console sink, wait LOG_CAPTURE_GRACE for
   asynchronous log lines, detach and return whatever arrived
"""

import logging
import threading
import time
import uuid
from typing import Any, Callable, List

from ..host.base import CapturingSink, Host, SinkRejectedError
from .errors import HostTimeoutError
from .logger import get_logger
from .result_queue import ResultQueue
from .utils.config import HOST_EXECUTION_TIMEOUT, LOG_CAPTURE_GRACE

logger = get_logger("craftmcp-bridge")


class _Pending:
    """Sentinel outcome for work that did not finish before the deadline."""

    def __repr__(self):
        return "PENDING"

    def __bool__(self):
        return False


PENDING = _Pending()

NO_OUTPUT_MESSAGE = "Command executed (no output captured)."
CONSOLE_NO_OUTPUT_MESSAGE = "Command executed successfully (via console)."
TIMEOUT_MESSAGE = (
    "Command sent but response timed out. The command may still have executed."
)


class _LogCapture(logging.Handler):
    """Collects the messages of every record published to the host log."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.messages: List[str] = []
        self._messages_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        if message:
            with self._messages_lock:
                self.messages.append(message)

    def snapshot(self) -> List[str]:
        with self._messages_lock:
            return list(self.messages)


class HostBridge:
    """Bounded-wait bridge into a Host's single execution thread."""

    def __init__(
        self,
        host: Host,
        timeout: float = HOST_EXECUTION_TIMEOUT,
        capture_grace: float = LOG_CAPTURE_GRACE,
    ):
        self.host = host
        self.timeout = timeout
        self.capture_grace = capture_grace
        self._result_queue = ResultQueue()

    def run(self, fn: Callable[[], Any]) -> Any:
        """
        Execute fn on the host thread and wait for its return value.

        Args:
            fn: Zero-argument callable, invoked on the host thread

        Returns:
            fn's return value, or PENDING if the deadline passed

        Raises:
            RuntimeError: If the host refused the submission
            Exception: Whatever fn raised on the host thread
        """
        try:
            return self.run_or_raise(fn)
        except HostTimeoutError:
            return PENDING

    def run_or_raise(self, fn: Callable[[], Any]) -> Any:
        """Like run(), but raise HostTimeoutError instead of returning PENDING."""
        job_id = str(uuid.uuid4())
        event = self._result_queue.register(job_id)

        def execute_on_host_thread():
            try:
                self._result_queue.set_success(job_id, fn())
            except Exception as e:
                self._result_queue.set_error(job_id, e)

        try:
            self.host.submit(execute_on_host_thread)
        except Exception as e:
            self._result_queue.cleanup(job_id)
            raise RuntimeError(
                f"Failed to schedule work on the host thread: {e}"
            ) from e

        try:
            if not event.wait(timeout=self.timeout):
                logger.warning(
                    "Job %s not confirmed after %s seconds; it may still complete on the host",
                    job_id[:8],
                    self.timeout,
                )
                raise HostTimeoutError(self.timeout)

            status, result, error = self._result_queue.get_result(job_id)
            if status == "error":
                raise error
            return result
        finally:
            # Late results for an abandoned slot are dropped by set_success/set_error
            self._result_queue.cleanup(job_id)

    def execute_command(self, command: str) -> str:
        """
        Run a host command and return the text it produced.

        Never fails on timeout: an unconfirmed command yields TIMEOUT_MESSAGE.
        """
        output = self.run(lambda: self._dispatch_with_capture(command))
        if output is PENDING:
            return TIMEOUT_MESSAGE
        return output

    def _dispatch_with_capture(self, command: str) -> str:
        # Runs on the host thread
        sink = CapturingSink(self.host.console())
        try:
            self.host.dispatch(command, sink)
        except SinkRejectedError as e:
            logger.debug("Wrapped sink rejected (%s), falling back to log capture", e)
            return self._dispatch_with_log_capture(command)

        return sink.output or NO_OUTPUT_MESSAGE

    def _dispatch_with_log_capture(self, command: str) -> str:
        # Runs on the host thread
        capture = _LogCapture()
        host_logger = self.host.logger
        host_logger.addHandler(capture)
        try:
            self.host.dispatch(command, self.host.console())
            time.sleep(self.capture_grace)
        finally:
            host_logger.removeHandler(capture)

        lines = capture.snapshot()
        if not lines:
            return CONSOLE_NO_OUTPUT_MESSAGE
        return "\n".join(lines)
