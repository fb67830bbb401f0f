"""
Host capability interface.

The protocol core never touches host state directly. Everything it needs from
the running application is expressed here: a FIFO work queue drained by the
host's single main thread, a command bus that writes output to a sink, the
list of installed modules and the host's log stream.

Threading contract:
- submit() may be called from any thread; work runs later on the host thread
- dispatch(), console() and list_modules() must only be called on the host thread
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional


class SinkRejectedError(RuntimeError):
    """Raised by dispatch() when a command refuses a non-console sink."""


@dataclass(frozen=True)
class ModuleInfo:
    """An installed host module (plugin)."""

    name: str
    version: str
    enabled: bool = True


class CommandSink(ABC):
    """Receives the text a command produces."""

    @abstractmethod
    def send_message(self, text: str) -> None:
        """Deliver one line of command output."""


class ConsoleSink(CommandSink):
    """The host's default sink: command output goes to the host log."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def send_message(self, text: str) -> None:
        self.logger.info(text)


class CapturingSink(CommandSink):
    """
    Wraps another sink and records every message sent through it.

    Used by the bridge to capture a command's own output directly.
    """

    def __init__(self, delegate: Optional[CommandSink] = None):
        self.delegate = delegate
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def send_message(self, text: str) -> None:
        with self._lock:
            self._lines.append(text)
        if self.delegate is not None:
            self.delegate.send_message(text)

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


class Host(ABC):
    """Capability interface implemented by an adapter for each host application."""

    name: str = "host"
    version: str = "0.0.0"

    @property
    @abstractmethod
    def logger(self) -> logging.Logger:
        """Host log stream. Passive output capture attaches a handler here."""

    @abstractmethod
    def submit(self, work: Callable[[], None]) -> None:
        """Schedule work on the host thread (fire-and-forget)."""

    @abstractmethod
    def console(self) -> CommandSink:
        """Return the unmodified default sink."""

    @abstractmethod
    def dispatch(self, command: str, sink: CommandSink) -> bool:
        """
        Run a command, writing its output to sink.

        Returns:
            True if the command was found and executed

        Raises:
            SinkRejectedError: If the command requires the console sink
        """

    @abstractmethod
    def list_modules(self) -> List[ModuleInfo]:
        """Return installed modules in a stable order."""
