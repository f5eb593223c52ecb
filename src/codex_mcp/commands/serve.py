"""codex-mcp serve — run the MCP server over stdio."""

from __future__ import annotations

import asyncio

import click

from codex_mcp.commands.options import (
    config_option,
    load_or_exit,
    setup_logging,
    verbose_option,
)
from codex_mcp.server import serve as serve_stdio


@click.command()
@config_option
@verbose_option
def serve(config_file: str | None, verbose: bool) -> None:
    """Serve the codex tool to an MCP client on stdin/stdout."""
    config = load_or_exit(config_file)
    setup_logging(config.log_level, verbose)

    try:
        asyncio.run(serve_stdio(config))
    except KeyboardInterrupt:
        pass
