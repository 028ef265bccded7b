"""
Integration tests for the MCP server binding and the CLI.
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import AsyncMock, patch

from mcp import types

from edwin.core.session import Edwin
from edwin.main import cli
from edwin.mcp.adapter import McpToolAdapter
from edwin.mcp.server import auto_approved_tools, create_mcp_server, create_sse_app, run_mcp_server
from edwin.plugins.cookie import CookiePlugin
from edwin.utils.config import EdwinSettings

ETH_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


def make_settings(**overrides) -> EdwinSettings:
    return EdwinSettings(_env_file=None, **overrides)


@pytest.mark.integration
class TestMcpServer:
    """Test the MCP request handlers end to end."""

    def setup_method(self):
        self.settings = make_settings(mcp_server_name="edwin-test")
        self.cookie = CookiePlugin("test-key")
        self.session = Edwin(self.settings, wallets={}, plugins=[self.cookie])
        self.server = create_mcp_server(self.session, self.settings)

    def test_server_name(self):
        assert self.server.name == "edwin-test"

    @pytest.mark.asyncio
    async def test_list_tools(self):
        handler = self.server.request_handlers[types.ListToolsRequest]

        result = await handler(types.ListToolsRequest(method="tools/list"))
        tools = {tool.name: tool for tool in result.root.tools}

        assert sorted(tools) == ["COOKIE_GET_AGENT", "COOKIE_SEARCH_TWEETS"]
        assert "interval" in tools["COOKIE_GET_AGENT"].inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_call_tool(self):
        handler = self.server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name="COOKIE_GET_AGENT", arguments={"username": "cookiedotfun", "interval": "_3Days"}
            ),
        )

        with patch.object(self.cookie.service.client, "get", AsyncMock(return_value={"ok": {"agentName": "Cookie"}})):
            result = await handler(request)

        assert result.root.isError is False
        assert json.loads(result.root.content[0].text)["ok"]["agentName"] == "Cookie"

    @pytest.mark.asyncio
    async def test_call_tool_validation_error(self):
        handler = self.server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="COOKIE_GET_AGENT", arguments={"username": "cookiedotfun"}),
        )

        with patch.object(self.cookie.service.client, "get", AsyncMock()) as get:
            result = await handler(request)

        assert result.root.isError is True
        assert "interval: Required" in result.root.content[0].text
        get.assert_not_awaited()

    def test_auto_approved_tools(self):
        adapter = McpToolAdapter(self.session.get_tools())

        configured = make_settings(mcp_auto_approve_tools=["cookie_get_agent", "aave_supply"])
        everything = make_settings(mcp_auto_approve_all=True)

        assert auto_approved_tools(configured, adapter) == ["COOKIE_GET_AGENT"]
        assert auto_approved_tools(everything, adapter) == ["COOKIE_GET_AGENT", "COOKIE_SEARCH_TWEETS"]
        assert auto_approved_tools(self.settings, adapter) == []

    def test_sse_app_routes(self):
        app = create_sse_app(self.server, self.settings)
        assert "/sse" in [route.path for route in app.routes]

    @pytest.mark.asyncio
    async def test_unknown_transport(self):
        with pytest.raises(ValueError, match="Unknown transport: websocket"):
            await run_mcp_server(self.settings, transport="websocket")


@pytest.mark.integration
class TestCli:
    """Test the edwin command line."""

    def setup_method(self):
        self.runner = CliRunner()
        self.settings = make_settings(evm_public_key=ETH_ADDRESS, mcp_auto_approve_tools=["check_evm_wallet_balance"])

    def test_tools_json(self):
        with patch("edwin.main.get_settings", return_value=self.settings):
            result = self.runner.invoke(cli, ["tools", "--json"])

        assert result.exit_code == 0
        listing = {entry["name"]: entry for entry in json.loads(result.output)}
        assert listing["CHECK_EVM_WALLET_BALANCE"]["autoApprove"] is True
        assert listing["DEXSCREENER_SEARCH_PAIRS"]["autoApprove"] is False
        assert "AAVE_SUPPLY" not in listing

    def test_call_with_invalid_params(self):
        with patch("edwin.main.get_settings", return_value=self.settings):
            result = self.runner.invoke(cli, ["call", "dexscreener_search_pairs", "--params", "{}"])

        assert result.exit_code == 1
        assert '"isError": true' in result.output
        assert "query: Required" in result.output

    def test_call_with_malformed_json(self):
        result = self.runner.invoke(cli, ["call", "dexscreener_search_pairs", "--params", "{oops"])

        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_config(self):
        with patch("edwin.main.get_settings", return_value=self.settings):
            result = self.runner.invoke(cli, ["config"])

        assert result.exit_code == 0
        assert "Configuration valid" in result.output

    def test_config_invalid(self):
        with patch("edwin.main.get_settings", return_value=make_settings(mcp_port=0)):
            result = self.runner.invoke(cli, ["config"])

        assert result.exit_code == 1
        assert "MCP port out of range" in result.output
