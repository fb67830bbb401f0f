"""
Session Registry

Tracks open push channels (GET /sse connections) by session id.

- create() registers a channel under a fresh UUID
- remove() is called once from the stream's finally block on disconnect
- get() returns None for unknown or vanished sessions; delivery to a
  vanished session is silently dropped

All mutation happens under one lock, so worker threads and the event loop
can touch the registry concurrently.
"""

import asyncio
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from ..logger import get_logger

logger = get_logger("craftmcp-sessions")


@dataclass
class SessionChannel:
    """Outbound event queue for one push-channel session."""

    messages: deque = field(default_factory=deque)
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    closed: bool = False
    _event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _loop: Optional[asyncio.AbstractEventLoop] = field(default=None, repr=False)

    def push(self, event: str, data: str) -> bool:
        """
        Queue one event for the stream and wake the consumer.

        Safe to call from any thread. Returns False if the channel is already closed.
        """
        if self.closed:
            return False
        self.last_activity = time.time()
        self.messages.append({"event": event, "data": data})
        self._wake()
        return True

    def popleft(self) -> Optional[dict]:
        """Pop the oldest queued event."""
        if self.messages:
            return self.messages.popleft()
        return None

    async def wait_for_message(self) -> None:
        """Block until at least one event has been pushed since the last wait."""
        self._loop = asyncio.get_running_loop()
        await self._event.wait()
        self._event.clear()

    def close(self) -> None:
        """Mark the channel closed and wake the consumer. Safe to call from any thread."""
        self.closed = True
        self.messages.clear()
        self._wake()

    def _wake(self) -> None:
        # asyncio.Event may only be set from the loop that waits on it
        loop = self._loop
        if loop is None or loop.is_closed():
            self._event.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._event.set()
            return
        try:
            loop.call_soon_threadsafe(self._event.set)
        except RuntimeError:
            # loop closed in the meantime; nobody is waiting any more
            self._event.set()

    def __len__(self):
        return len(self.messages)


class SessionRegistry:
    """Thread-safe map of session id -> SessionChannel."""

    def __init__(self):
        self._sessions: dict[str, SessionChannel] = {}
        self._lock = threading.Lock()

    def create(self, channel: Optional[SessionChannel] = None) -> str:
        """Register channel under a new globally unique id and return the id."""
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = channel or SessionChannel()
        logger.info("Session opened: %s", session_id)
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[SessionChannel]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        """Unregister and close a session. Returns False if it was already gone."""
        with self._lock:
            channel = self._sessions.pop(session_id, None)
        if channel is None:
            return False
        channel.close()
        logger.info("Session closed: %s", session_id)
        return True

    def clear(self) -> int:
        """Close every session (server shutdown) and return how many there were."""
        with self._lock:
            channels = list(self._sessions.values())
            self._sessions.clear()
        for channel in channels:
            channel.close()
        return len(channels)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
