"""
Reference host adapter.

LocalHost owns one daemon "main" thread that drains a FIFO work queue, one
unit per tick. Commands live in a small table; a command registered as
console-only refuses any sink other than the console, the way some plugin
command frameworks reject wrapped senders.

The host writes its log to <root>/logs/latest.log so the get_logs tool has a
real file to tail.
"""

import logging
import queue
import shlex
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from ..mcp.logger import get_logger
from ..mcp.utils.config import DEFAULT_LOG_FILE
from .base import CommandSink, ConsoleSink, Host, ModuleInfo, SinkRejectedError

CommandHandler = Callable[[CommandSink, List[str]], None]

logger = get_logger("craftmcp-local-host")

_STOP = object()


class LocalHost(Host):
    """Single-threaded in-process host with a command table."""

    def __init__(
        self,
        root: Optional[Path] = None,
        name: str = "LocalHost",
        version: str = "1.0.0",
        log_file: Optional[str] = DEFAULT_LOG_FILE,
        modules: Optional[List[ModuleInfo]] = None,
    ):
        self.name = name
        self.version = version
        self.root = Path(root or Path.cwd()).resolve()
        self.log_path = self.root / log_file if log_file else None
        self._modules: List[ModuleInfo] = list(modules or [])
        self._commands: Dict[str, Tuple[CommandHandler, bool, str]] = {}
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._file_handler: Optional[logging.Handler] = None
        self._logger = logging.getLogger(f"host.{name}")
        self._logger.setLevel(logging.INFO)
        self._console = ConsoleSink(self._logger)
        self._register_builtin_commands()

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handler = logging.FileHandler(self.log_path, encoding="utf-8")
            self._file_handler.setFormatter(
                logging.Formatter("[%(asctime)s] [%(threadName)s/%(levelname)s]: %(message)s", "%H:%M:%S")
            )
            self._logger.addHandler(self._file_handler)

        self._thread = threading.Thread(
            target=self._run, name=f"{self.name}-main", daemon=True
        )
        self._thread.start()
        self._logger.info("Starting %s version %s", self.name, self.version)

    def stop(self, timeout: float = 2.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._queue.put(_STOP)
        thread.join(timeout=timeout)
        self._thread = None

        if self._file_handler is not None:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_host_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def _run(self) -> None:
        while True:
            work = self._queue.get()
            if work is _STOP:
                break
            try:
                work()
            except Exception:
                # A failing unit must not take down the host thread
                logger.exception("Unhandled error in host task")

    # ------------------------------------------------------------------ Host API

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def submit(self, work: Callable[[], None]) -> None:
        if not self.is_running():
            raise RuntimeError(f"{self.name} is not running")
        self._queue.put(work)

    def console(self) -> CommandSink:
        return self._console

    def dispatch(self, command: str, sink: CommandSink) -> bool:
        words = shlex.split(command.strip().lstrip("/"))
        if not words:
            return False

        entry = self._commands.get(words[0].lower())
        if entry is None:
            sink.send_message('Unknown command. Type "help" for help.')
            return False

        handler, console_only, _usage = entry
        if console_only and sink is not self._console:
            raise SinkRejectedError(
                f"Cannot make {type(sink).__name__} a vanilla command listener"
            )
        handler(sink, words[1:])
        return True

    def list_modules(self) -> List[ModuleInfo]:
        return sorted(self._modules, key=lambda m: m.name.lower())

    # ------------------------------------------------------------------ commands

    def register_command(
        self,
        name: str,
        handler: CommandHandler,
        console_only: bool = False,
        usage: str = "",
    ) -> None:
        """Add a command. console_only commands refuse wrapped sinks."""
        self._commands[name.lower()] = (handler, console_only, usage or name)

    def add_module(self, module: ModuleInfo) -> None:
        self._modules.append(module)

    def _register_builtin_commands(self) -> None:
        def help_command(sink: CommandSink, args: List[str]) -> None:
            for name in sorted(self._commands):
                sink.send_message(f"/{self._commands[name][2]}")

        def say_command(sink: CommandSink, args: List[str]) -> None:
            if not args:
                sink.send_message("Usage: /say <message>")
                return
            # Broadcasts go to the server log, not to the sender
            self._logger.info("[Server] %s", " ".join(args))

        def version_command(sink: CommandSink, args: List[str]) -> None:
            sink.send_message(f"This server is running {self.name} version {self.version}")

        def plugins_command(sink: CommandSink, args: List[str]) -> None:
            modules = self.list_modules()
            names = ", ".join(m.name if m.enabled else f"{m.name} (disabled)" for m in modules)
            sink.send_message(f"Plugins ({len(modules)}): {names}")

        self.register_command("help", help_command)
        self.register_command("say", say_command, usage="say <message>")
        self.register_command("version", version_command)
        self.register_command("plugins", plugins_command)
