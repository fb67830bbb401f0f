"""Tests for the reference LocalHost adapter."""

import pytest

from craftmcp.host import CapturingSink, LocalHost, ModuleInfo, SinkRejectedError


class TestDispatch:
    def test_unknown_command(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        sink = CapturingSink()
        assert host.dispatch("nope", sink) is False
        assert sink.lines == ['Unknown command. Type "help" for help.']

    def test_empty_command(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        sink = CapturingSink()
        assert host.dispatch("   ", sink) is False
        assert sink.lines == []

    def test_command_name_is_case_insensitive(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, name="Paper", version="1.20.4", log_file=None)
        sink = CapturingSink()
        assert host.dispatch("/VERSION", sink)
        assert sink.output == "This server is running Paper version 1.20.4"

    def test_say_usage(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        sink = CapturingSink()
        host.dispatch("say", sink)
        assert sink.output == "Usage: /say <message>"

    def test_quoted_arguments(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        seen = []
        host.register_command("echo", lambda sink, args: seen.extend(args))
        host.dispatch('echo "two words" three', CapturingSink())
        assert seen == ["two words", "three"]

    def test_console_only_rejects_wrapped_sink(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        host.register_command("stop", lambda sink, args: None, console_only=True)
        with pytest.raises(SinkRejectedError, match="CapturingSink"):
            host.dispatch("stop", CapturingSink(host.console()))
        assert host.dispatch("stop", host.console()) is True


class TestModules:
    def test_list_modules_sorted(self, tmp_path) -> None:
        host = LocalHost(
            root=tmp_path,
            log_file=None,
            modules=[ModuleInfo("b", "1"), ModuleInfo("A", "2"), ModuleInfo("c", "3")],
        )
        assert [m.name for m in host.list_modules()] == ["A", "b", "c"]

    def test_plugins_command(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        host.add_module(ModuleInfo("Vault", "1.7", enabled=False))
        host.add_module(ModuleInfo("LuckPerms", "5.4"))
        sink = CapturingSink()
        host.dispatch("plugins", sink)
        assert sink.output == "Plugins (2): LuckPerms, Vault (disabled)"


class TestLifecycle:
    def test_submit_requires_running_host(self, tmp_path) -> None:
        host = LocalHost(root=tmp_path, log_file=None)
        with pytest.raises(RuntimeError, match="not running"):
            host.submit(lambda: None)

    def test_failing_work_keeps_thread_alive(self, host) -> None:
        host.submit(lambda: 1 / 0)
        done = []
        host.submit(lambda: done.append(True))
        host.stop()
        assert done == [True]

    def test_writes_log_file(self, host, tmp_path) -> None:
        host.logger.info("hello from the host")
        log_text = (tmp_path / "logs" / "latest.log").read_text(encoding="utf-8")
        assert "Starting LocalHost version 1.0.0" in log_text
        assert "hello from the host" in log_text

    def test_stop_detaches_file_handler(self, host) -> None:
        handlers = len(host.logger.handlers)
        host.stop()
        assert len(host.logger.handlers) == handlers - 1
        assert not host.is_running()
