"""Options and helpers shared by codex-mcp commands."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from codex_mcp.config import ConfigError, ServerConfig, load_config
from codex_mcp.constants import CONFIG_ENV_VAR, LOG_FORMAT

config_option = click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(),
    default=None,
    help=f"Config file path (defaults to ${CONFIG_ENV_VAR} or ./codex-mcp.yaml).",
)

verbose_option = click.option(
    "-v", "--verbose", is_flag=True, help="Enable debug logging."
)


def load_or_exit(config_file: str | None) -> ServerConfig:
    """Load configuration, printing the error and exiting 1 on failure."""
    config_file = config_file or os.environ.get(CONFIG_ENV_VAR) or None
    try:
        return load_config(Path(config_file) if config_file else None)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc


def setup_logging(level: str, verbose: bool = False) -> None:
    """Send log records to stderr; stdout belongs to the MCP transport."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
