"""codex-mcp — MCP server that runs the Codex CLI as a tool."""

__version__ = "0.1.0"
