"""Tests for list_plugins and get_logs."""

from craftmcp.host import LocalHost, ModuleInfo
from craftmcp.mcp.bridge import HostBridge
from craftmcp.mcp.tools import server_info
from craftmcp.mcp.tools._internal.context import set_context


class TestListPlugins:
    async def test_lists_modules_sorted_with_disabled_flag(self, ctx) -> None:
        assert await server_info.list_plugins(ctx) == (
            "essentials (2.20.1) [DISABLED]\nWorldEdit (7.2.15)"
        )

    async def test_no_modules(self, tmp_path, ctx) -> None:
        empty = LocalHost(root=tmp_path, name="Bare", log_file=None)
        empty.start()
        try:
            set_context(HostBridge(empty, timeout=1.0), tmp_path)
            assert await server_info.list_plugins(ctx) == "No plugins installed."
        finally:
            empty.stop()

    def test_format_module(self) -> None:
        assert server_info.format_module(ModuleInfo("Vault", "1.7.3")) == "Vault (1.7.3)"
        assert server_info.format_module(ModuleInfo("Vault", "1.7.3", enabled=False)) == (
            "Vault (1.7.3) [DISABLED]"
        )


class TestGetLogs:
    def test_tails_host_log(self, ctx, host) -> None:
        host.logger.info("Done (3.2s)! For help, type \"help\"")
        text = server_info.get_logs(ctx)
        assert "Starting LocalHost version 1.0.0" in text
        assert text.splitlines()[-1].endswith('Done (3.2s)! For help, type "help"')

    def test_only_last_hundred_lines(self, ctx, bridge, tmp_path) -> None:
        lines = [f"line {i}" for i in range(250)]
        (tmp_path / "server.log").write_text("\n".join(lines) + "\n", encoding="utf-8")
        set_context(bridge, tmp_path, "server.log")

        tail = server_info.get_logs(ctx).split("\n")
        assert len(tail) == 100
        assert tail[0] == "line 150"
        assert tail[-1] == "line 249"

    def test_missing_log(self, ctx, bridge, tmp_path) -> None:
        set_context(bridge, tmp_path, "logs/missing.log")
        assert server_info.get_logs(ctx) == "No missing.log found."
