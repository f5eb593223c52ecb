"""Shared constants for the codex-mcp runtime."""

from __future__ import annotations

#: Log record format for messages written to stderr.
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

#: Environment variable naming a config file when ``--config`` is not given.
CONFIG_ENV_VAR = "CODEX_MCP_CONFIG"
