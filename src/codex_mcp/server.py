"""MCP server exposing the ``codex`` tool over stdio."""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from codex_mcp import __version__
from codex_mcp.codex.models import CodexParams, CodexResult
from codex_mcp.codex.runner import run_codex
from codex_mcp.config.models import ServerConfig

logger = logging.getLogger(__name__)

SERVER_NAME = "Codex MCP Server"

TOOL_NAME = "codex"

INSTRUCTIONS = (
    "Codex MCP Server - AI-assisted coding tasks via the Codex CLI. "
    "Use the 'codex' tool to execute prompts in a secure sandbox environment."
)

TOOL_DESCRIPTION = """\
Executes a non-interactive Codex session via CLI to perform AI-assisted coding tasks in a secure workspace.
This tool wraps the `codex exec` command, enabling model-driven code generation, debugging, or automation based on natural language prompts.
It supports resuming ongoing sessions for continuity and enforces sandbox policies to prevent unsafe operations. Ideal for integrating Codex into MCP servers for agentic workflows, such as code reviews or repo modifications.

**Key Features:**
    - **Prompt-Driven Execution:** Send task instructions to Codex for step-by-step code handling.
    - **Workspace Isolation:** Operate within a specified directory, with optional Git repo skipping.
    - **Security Controls:** Three sandbox levels balance functionality and safety.
    - **Session Persistence:** Resume prior conversations via `SESSION_ID` for iterative tasks.

**Edge Cases & Best Practices:**
    - Ensure `cd` exists and is accessible; the tool fails with an error on invalid paths.
    - For most repos, prefer "read-only" to avoid accidental changes.
    - If needed, set `return_all_messages` to `True` to parse "all_messages" for detailed tracing (e.g., reasoning, tool calls, etc.)."""


def render_result(result: CodexResult) -> str:
    """Serialize *result* as the tool's text payload."""
    return json.dumps(result.to_payload(), indent=2, ensure_ascii=False)


class CodexToolHandler:
    """Implements the MCP ``tools/list`` and ``tools/call`` handlers."""

    def __init__(self, config: ServerConfig) -> None:
        self._config = config

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=TOOL_NAME,
                description=TOOL_DESCRIPTION,
                inputSchema=CodexParams.model_json_schema(by_alias=True),
            )
        ]

    async def call_tool(
        self, name: str, arguments: dict[str, Any]
    ) -> list[types.TextContent]:
        if name != TOOL_NAME:
            msg = f"Unknown tool: {name}"
            raise ValueError(msg)

        params = CodexParams.model_validate(arguments)
        result = await run_codex(
            params,
            executable=self._config.codex_bin,
            idle_timeout=self._config.stream_timeout,
            env=self._config.env,
        )
        logger.info(
            "codex run finished: success=%s session_id=%s",
            result.success,
            result.session_id,
        )
        return [types.TextContent(type="text", text=render_result(result))]


def create_server(config: ServerConfig) -> Server:
    """Build the MCP server with the codex tool registered."""
    handler = CodexToolHandler(config)
    server: Server = Server(SERVER_NAME, version=__version__, instructions=INSTRUCTIONS)
    server.list_tools()(handler.list_tools)
    server.call_tool()(handler.call_tool)
    return server


async def serve(config: ServerConfig) -> None:
    """Run the MCP server on stdin/stdout until the client disconnects."""
    server = create_server(config)
    logger.info("Starting %s %s", SERVER_NAME, __version__)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )
