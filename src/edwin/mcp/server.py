"""
MCP server implementation for Edwin.

Binds the tool adapter to an MCP ``Server`` and runs it over stdio or SSE.
The core does not know which transport is in use.
"""

import logging
import uuid

import mcp.server.stdio
import uvicorn
from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route

from edwin.core.session import Edwin
from edwin.mcp.adapter import McpToolAdapter
from edwin.utils.config import EdwinSettings, get_settings
from edwin.utils.errors import ToolExecutionError

logger = logging.getLogger(__name__)

TRANSPORTS = ("stdio", "sse")


def auto_approved_tools(settings: EdwinSettings, adapter: McpToolAdapter) -> list[str]:
    """Canonical names of tools that clients may run without confirmation."""
    if settings.mcp_auto_approve_all:
        return sorted(adapter.tools)
    return [name for name in settings.mcp_auto_approve_tools if name in adapter.tools]


def create_mcp_server(
    session: Edwin,
    settings: EdwinSettings | None = None,
    adapter: McpToolAdapter | None = None,
) -> Server:
    """Create and configure the MCP server.

    Args:
        session: Wired session providing the tool map
        settings: Optional settings override
        adapter: Optional prebuilt adapter

    Returns:
        Configured MCP server instance
    """
    settings = settings or session.settings or get_settings()
    adapter = adapter or McpToolAdapter(session.get_tools(), timeout=settings.tool_timeout_seconds)
    server = Server(settings.mcp_server_name)

    approved = auto_approved_tools(settings, adapter)
    logger.info(f"MCP server exposes {len(adapter.tools)} tools, {len(approved)} auto-approved")
    if approved:
        logger.debug(f"Auto-approved tools: {', '.join(approved)}")

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """List the tools of this session."""
        corr = str(uuid.uuid4())
        logger.info(f"[corr={corr}] list_tools called")
        tools = adapter.to_mcp_tools()
        logger.info(f"[corr={corr}] list_tools returning {len(tools)} tools")
        return tools

    # Input is validated by the tool schemas so every violation is reported.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
        """Dispatch one call through the adapter."""
        corr = str(uuid.uuid4())
        logger.info(f"[corr={corr}] call_tool start: name={name}")
        result = await adapter.call(name, arguments or {})
        if result.isError:
            logger.info(f"[corr={corr}] call_tool error: name={name}")
            # the SDK turns a raised exception into an isError result carrying its text
            raise ToolExecutionError(result.content[0].text if result.content else f"Tool {name} failed")
        logger.info(f"[corr={corr}] call_tool success: name={name}")
        return list(result.content)

    return server


def _initialization_options(server: Server, settings: EdwinSettings) -> InitializationOptions:
    return InitializationOptions(
        server_name=settings.mcp_server_name,
        server_version=settings.mcp_server_version,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )


def create_sse_app(server: Server, settings: EdwinSettings) -> Starlette:
    """Starlette app serving the MCP server over SSE at ``/sse``."""
    transport = SseServerTransport("/messages/")

    async def handle_sse(request: Request) -> Response:
        async with transport.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
            await server.run(read_stream, write_stream, _initialization_options(server, settings))
        return Response()

    return Starlette(
        routes=[
            Route("/sse", endpoint=handle_sse, methods=["GET"]),
            Mount("/messages/", app=transport.handle_post_message),
        ]
    )


async def run_mcp_server(settings: EdwinSettings | None = None, transport: str = "stdio") -> None:
    """Wire a session and serve it until the client disconnects.

    Args:
        settings: Optional settings override
        transport: ``stdio`` or ``sse``
    """
    settings = settings or get_settings()
    if transport not in TRANSPORTS:
        raise ValueError(f"Unknown transport: {transport} (expected one of {', '.join(TRANSPORTS)})")

    logger.info(f"🚀 Starting {settings.mcp_server_name} v{settings.mcp_server_version} ({transport})")

    async with Edwin(settings) as session:
        server = create_mcp_server(session, settings)
        try:
            if transport == "stdio":
                async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                    logger.info("📡 MCP server stdio streams established")
                    await server.run(read_stream, write_stream, _initialization_options(server, settings))
            else:
                app = create_sse_app(server, settings)
                logger.info(f"📡 MCP server listening on http://{settings.mcp_host}:{settings.mcp_port}/sse")
                config = uvicorn.Config(app, host=settings.mcp_host, port=settings.mcp_port, log_level="warning")
                await uvicorn.Server(config).serve()
        except KeyboardInterrupt:
            logger.info("⌨️ Keyboard interrupt received - shutting down gracefully")
        finally:
            logger.info("🏁 MCP server shutdown complete")
