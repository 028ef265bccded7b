"""
Main entry point for the Edwin CLI.

Runs the MCP server and offers a few commands for inspecting the tool set
a configuration produces and dispatching single calls.
"""

import asyncio
import json
import logging
import sys

import click

from edwin.core.session import Edwin
from edwin.mcp.adapter import McpToolAdapter
from edwin.mcp.server import TRANSPORTS, auto_approved_tools, run_mcp_server
from edwin.utils.config import get_settings
from edwin.utils.errors import EdwinError, format_error
from edwin.utils.logging import configure_root_logging, setup_logging

logger = setup_logging(__name__)


def _load_settings_or_exit():
    settings = get_settings()
    status = settings.validate_settings()
    for warning in status.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not status.valid:
        for error in status.errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)
    return settings


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Edwin - wallet and DeFi tools for agents over MCP."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger('edwin').setLevel(logging.DEBUG)
        logger.info("Verbose logging enabled")


@cli.command()
@click.option('--transport', type=click.Choice(TRANSPORTS), default='stdio', help='MCP transport')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def mcp(ctx: click.Context, transport: str, debug: bool) -> None:
    """Start the MCP server."""
    settings = _load_settings_or_exit()
    level = "DEBUG" if debug or ctx.obj.get('verbose', False) else settings.log_level
    configure_root_logging(
        level=level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )

    logger.info("🚀 Starting Edwin MCP server...")
    try:
        asyncio.run(run_mcp_server(settings, transport=transport))
    except KeyboardInterrupt:
        logger.info("MCP server stopped by user")
    except EdwinError as e:
        click.echo(f"Error: {format_error(e)}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print the listing as JSON')
def tools(as_json: bool) -> None:
    """List the tools this configuration exposes."""
    settings = _load_settings_or_exit()

    async def _list() -> tuple[McpToolAdapter, dict]:
        async with Edwin(settings) as session:
            return McpToolAdapter(session.get_tools()), session.get_info()

    try:
        adapter, info = asyncio.run(_list())
    except EdwinError as e:
        click.echo(f"Error: {format_error(e)}", err=True)
        sys.exit(1)

    approved = set(auto_approved_tools(settings, adapter))
    listing = [
        {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
            "autoApprove": tool.name in approved,
        }
        for tool in adapter.tools.values()
    ]

    if as_json:
        click.echo(json.dumps(listing, indent=2))
        return

    click.echo(f"Plugins: {', '.join(p['name'] for p in info['plugins']) or 'none'}")
    for family, wallet in info["wallets"].items():
        click.echo(f"Wallet {family}: {wallet['address']} ({wallet['capability']})")
    click.echo(f"\n{len(listing)} tools:")
    for entry in listing:
        marker = " [auto-approve]" if entry["autoApprove"] else ""
        click.echo(f"  {entry['name']}{marker}")
        click.echo(f"      {entry['description']}")


@cli.command()
@click.argument('name')
@click.option('--params', 'params_json', default='{}', help='Tool parameters as a JSON object')
def call(name: str, params_json: str) -> None:
    """Dispatch one tool call and print the result envelope."""
    try:
        params = json.loads(params_json)
    except json.JSONDecodeError as e:
        click.echo(f"Error: --params is not valid JSON: {e}", err=True)
        sys.exit(1)

    settings = _load_settings_or_exit()

    async def _call() -> dict:
        async with Edwin(settings) as session:
            adapter = McpToolAdapter(session.get_tools(), timeout=settings.tool_timeout_seconds)
            return await adapter.execute(name, params)

    try:
        envelope = asyncio.run(_call())
    except EdwinError as e:
        click.echo(f"Error: {format_error(e)}", err=True)
        sys.exit(1)

    click.echo(json.dumps(envelope, indent=2))
    if envelope.get("isError"):
        sys.exit(1)


@cli.command()
def config() -> None:
    """Validate the current configuration."""
    settings = get_settings()
    status = settings.validate_settings()

    click.echo(f"Server: {settings.mcp_server_name} v{settings.mcp_server_version}")
    click.echo(f"Plugins allow-list: {', '.join(settings.plugins) or '(all enabled)'}")
    click.echo(f"Log file: {settings.log_file}")

    if status.errors:
        click.echo("\nErrors:")
        for error in status.errors:
            click.echo(f"  - {error}")
    if status.warnings:
        click.echo("\nWarnings:")
        for warning in status.warnings:
            click.echo(f"  - {warning}")

    click.echo(f"\nConfiguration {'valid' if status.valid else 'invalid'}")
    if not status.valid:
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
