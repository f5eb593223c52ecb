"""Configuration model and loader for codex-mcp.yaml."""

from codex_mcp.config.models import ServerConfig
from codex_mcp.config.parser import ConfigError, load_config

__all__ = [
    "ConfigError",
    "ServerConfig",
    "load_config",
]
