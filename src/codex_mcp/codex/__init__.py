"""Codex subprocess execution and event aggregation."""

from codex_mcp.codex.aggregator import RunState, finalize, fold, step
from codex_mcp.codex.errors import (
    CodexError,
    CodexIOError,
    ExecutableNotFound,
    InvalidWorkingDirectory,
    StdoutCaptureFailed,
    StreamTimeout,
)
from codex_mcp.codex.invocation import ChildCommand, build_command, windows_escape
from codex_mcp.codex.models import CodexParams, CodexResult, SandboxPolicy
from codex_mcp.codex.runner import run_codex
from codex_mcp.codex.supervisor import WAIT_TIMEOUT, ExitOutcome, spawn

__all__ = [
    "WAIT_TIMEOUT",
    "ChildCommand",
    "CodexError",
    "CodexIOError",
    "CodexParams",
    "CodexResult",
    "ExecutableNotFound",
    "ExitOutcome",
    "InvalidWorkingDirectory",
    "RunState",
    "SandboxPolicy",
    "StdoutCaptureFailed",
    "StreamTimeout",
    "build_command",
    "finalize",
    "fold",
    "run_codex",
    "spawn",
    "step",
    "windows_escape",
]
