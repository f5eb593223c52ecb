"""Root CLI group and version flag."""

import faulthandler

import click

# Dump tracebacks on fatal signals (e.g. a hung stdio transport killed by the client).
faulthandler.enable()

from codex_mcp import __version__
from codex_mcp.commands.run import run
from codex_mcp.commands.serve import serve


@click.group()
@click.version_option(version=__version__, prog_name="codex-mcp")
def cli() -> None:
    """codex-mcp — run the Codex CLI as an MCP tool."""


cli.add_command(serve)
cli.add_command(run)
