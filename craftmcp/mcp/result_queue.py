"""
Result Queue for thread-safe job management.

Deferred result slots shared between the HTTP worker threads and the host's
main thread.

Architecture:
- A slot is registered before its work is submitted to the host
- The host thread stores the result or the exception when the work finishes
- threading.Event wakes the blocked caller (no polling)
- Slots abandoned after a timeout are removed; a late result is discarded
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from .logger import get_logger

logger = get_logger("craftmcp-result-queue")


@dataclass
class JobEntry:
    """Represents a single deferred result."""

    status: str = "pending"  # pending, success, error
    result: Any = None
    error: Optional[BaseException] = None
    event: threading.Event = field(default_factory=threading.Event)
    created_at: float = field(default_factory=time.time)


class ResultQueue:
    """
    Thread-safe registry of deferred results.

    Usage:
        queue = ResultQueue()
        event = queue.register(job_id)

        # Submit work to the host; the work calls set_success/set_error

        if event.wait(timeout=10):
            status, result, error = queue.get_result(job_id)
        queue.cleanup(job_id)
    """

    def __init__(self):
        self._queue: dict[str, JobEntry] = {}
        self._lock = threading.Lock()

    def register(self, job_id: str) -> threading.Event:
        """
        Register a new job and return its synchronization event.

        Args:
            job_id: Unique identifier for the job

        Returns:
            threading.Event that will be set when the job completes
        """
        with self._lock:
            entry = JobEntry()
            self._queue[job_id] = entry
            return entry.event

    def exists(self, job_id: str) -> bool:
        """Check if a job exists in the queue."""
        with self._lock:
            return job_id in self._queue

    def get_status(self, job_id: str) -> Optional[str]:
        """Get the current status of a job."""
        with self._lock:
            entry = self._queue.get(job_id)
            return entry.status if entry else None

    def set_success(self, job_id: str, result: Any) -> bool:
        """
        Store a job's result.

        Returns:
            True if job was updated, False if the caller already gave up
        """
        with self._lock:
            entry = self._queue.get(job_id)
            if not entry:
                logger.debug("Discarding late result for job %s", job_id[:8])
                return False
            entry.status = "success"
            entry.result = result
            entry.event.set()
            return True

    def set_error(self, job_id: str, error: BaseException) -> bool:
        """
        Store the exception a job raised.

        Returns:
            True if job was updated, False if the caller already gave up
        """
        with self._lock:
            entry = self._queue.get(job_id)
            if not entry:
                logger.debug("Discarding late error for job %s: %s", job_id[:8], error)
                return False
            entry.status = "error"
            entry.error = error
            entry.event.set()
            return True

    def get_result(self, job_id: str) -> tuple[str, Any, Optional[BaseException]]:
        """
        Get the result of a completed job.

        Returns:
            Tuple of (status, result, error)

        Raises:
            KeyError: If job not found
        """
        with self._lock:
            entry = self._queue.get(job_id)
            if not entry:
                raise KeyError(f"Job {job_id} not found in queue")
            return entry.status, entry.result, entry.error

    def cleanup(self, job_id: str) -> bool:
        """Remove a job from the queue. Returns False if it was not there."""
        with self._lock:
            return self._queue.pop(job_id, None) is not None

    def clear_all(self) -> int:
        """Clear all jobs from the queue and return how many were dropped."""
        with self._lock:
            count = len(self._queue)
            self._queue.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)
