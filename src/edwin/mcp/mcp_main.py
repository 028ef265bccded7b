#!/usr/bin/env python3
"""
MCP Server entry point with proper stdio handling.

Logging goes to stderr and the log file while the MCP protocol uses stdout.
"""

import asyncio
import logging
import sys

from edwin.utils.config import EdwinSettings, get_settings
from edwin.utils.logging import configure_root_logging


def setup_mcp_logging(settings: EdwinSettings) -> None:
    """Setup logging for the MCP server; never writes to stdout."""
    configure_root_logging(
        level=settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )


async def main(transport: str = "stdio") -> None:
    """Main entry point for MCP server."""
    settings = get_settings()
    setup_mcp_logging(settings)
    logger = logging.getLogger(__name__)

    # Import server after logging is configured
    from edwin.mcp.server import run_mcp_server

    status = settings.validate_settings()
    for warning in status.warnings:
        logger.warning(f"Settings warning: {warning}")
    if not status.valid:
        for error in status.errors:
            logger.error(f"Settings error: {error}")
        sys.exit(1)

    try:
        await run_mcp_server(settings, transport=transport)
    except Exception as e:
        logger.error(f"Failed to start MCP server: {e}")
        sys.exit(1)


def main_sync() -> None:
    """Synchronous entry point for scripts."""
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
