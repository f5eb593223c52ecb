"""Tests for the MCP server surface."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from mcp import types
from pydantic import ValidationError

from codex_mcp import __version__
from codex_mcp.codex.models import CodexParams, CodexResult
from codex_mcp.config.models import ServerConfig
from codex_mcp.server import (
    SERVER_NAME,
    TOOL_NAME,
    CodexToolHandler,
    create_server,
    render_result,
)

# ------------------------------------------------------------------ #
# Tool listing
# ------------------------------------------------------------------ #


class TestListTools:
    async def test_single_codex_tool(self) -> None:
        tools = await CodexToolHandler(ServerConfig()).list_tools()
        assert len(tools) == 1
        tool = tools[0]
        assert tool.name == TOOL_NAME == "codex"
        assert "codex exec" in (tool.description or "")
        assert tool.inputSchema == CodexParams.model_json_schema(by_alias=True)
        assert "PROMPT" in tool.inputSchema["properties"]

    async def test_registered_on_server(self) -> None:
        server = create_server(ServerConfig())
        assert server.name == SERVER_NAME
        assert server.version == __version__
        assert types.ListToolsRequest in server.request_handlers
        assert types.CallToolRequest in server.request_handlers

        handler = server.request_handlers[types.ListToolsRequest]
        response = await handler(types.ListToolsRequest(method="tools/list"))
        assert [t.name for t in response.root.tools] == ["codex"]


# ------------------------------------------------------------------ #
# Tool calls
# ------------------------------------------------------------------ #


class TestCallTool:
    async def test_unknown_tool(self) -> None:
        handler = CodexToolHandler(ServerConfig())
        with pytest.raises(ValueError, match="Unknown tool: gemini"):
            await handler.call_tool("gemini", {})

    async def test_invalid_arguments(self) -> None:
        handler = CodexToolHandler(ServerConfig())
        with pytest.raises(ValidationError):
            await handler.call_tool("codex", {"cd": "/tmp"})

    async def test_runs_codex_and_renders(self, tmp_path: Path) -> None:
        config = ServerConfig(
            codex_bin="/opt/codex", stream_timeout=30, env={"CODEX_HOME": "/x"}
        )
        handler = CodexToolHandler(config)
        result = CodexResult(success=True, session_id="abc", agent_messages="hi")

        with patch(
            "codex_mcp.server.run_codex", new=AsyncMock(return_value=result)
        ) as mock_run:
            content = await handler.call_tool(
                "codex", {"PROMPT": "hello", "cd": str(tmp_path), "SESSION_ID": "abc"}
            )

        params = mock_run.call_args[0][0]
        assert params.prompt == "hello"
        assert params.session_id == "abc"
        assert mock_run.call_args[1] == {
            "executable": "/opt/codex",
            "idle_timeout": 30,
            "env": {"CODEX_HOME": "/x"},
        }

        assert len(content) == 1
        assert content[0].type == "text"
        assert json.loads(content[0].text) == {
            "success": True,
            "session_id": "abc",
            "agent_messages": "hi",
        }

    async def test_failure_is_a_normal_result(self, tmp_path: Path) -> None:
        handler = CodexToolHandler(ServerConfig())
        with patch("shutil.which", return_value=None):
            content = await handler.call_tool(
                "codex", {"PROMPT": "hello", "cd": str(tmp_path)}
            )
        payload = json.loads(content[0].text)
        assert payload["success"] is False
        assert "Codex executable not found" in payload["error"]
        assert "session_id" not in payload


class TestMcpCompatibility:
    def test_mcp_pinned_below_major_two(self) -> None:
        pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
        deps = tomllib.loads(pyproject.read_text(encoding="utf-8"))["project"][
            "dependencies"
        ]
        mcp_req = next(d for d in deps if d.startswith("mcp"))
        assert "<2" in mcp_req

    def test_lowlevel_decorators_available(self) -> None:
        server = create_server(ServerConfig())
        assert callable(server.list_tools)
        assert callable(server.call_tool)


class TestRenderResult:
    def test_indented_json_without_nulls(self) -> None:
        text = render_result(CodexResult(success=False, error="boom"))
        assert text == json.dumps({"success": False, "error": "boom"}, indent=2)

    def test_keeps_unicode(self) -> None:
        text = render_result(
            CodexResult(success=True, session_id="s", agent_messages="héllo ✓")
        )
        assert "héllo ✓" in text

    def test_all_messages_included_when_present(self) -> None:
        result = CodexResult(
            success=True,
            session_id="s",
            agent_messages="a",
            all_messages=[{"type": "x", "value": None}],
        )
        payload = json.loads(render_result(result))
        assert payload["all_messages"] == [{"type": "x", "value": None}]
