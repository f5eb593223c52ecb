"""Run one codex invocation end to end."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Mapping

from codex_mcp.codex.aggregator import RunState, finalize, step
from codex_mcp.codex.errors import CodexError, StreamTimeout
from codex_mcp.codex.invocation import (
    build_command,
    ensure_working_directory,
    resolve_executable,
)
from codex_mcp.codex.models import CodexParams, CodexResult
from codex_mcp.codex.supervisor import spawn

logger = logging.getLogger(__name__)


async def run_codex(
    params: CodexParams,
    *,
    executable: str = "codex",
    idle_timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> CodexResult:
    """Execute ``codex exec`` for *params* and aggregate its output.

    Never raises for codex failures: precondition, transport, decode and
    exit problems are all reported through ``success`` and ``error`` on the
    returned result. Cancellation propagates after the child is killed.

    Args:
        params: Validated tool parameters.
        executable: Name or path of the codex program to resolve on PATH.
        idle_timeout: Seconds to wait for each output line; ``None`` waits
            forever.
        env: Extra environment variables for the child.
    """
    try:
        return await _execute(params, executable, idle_timeout, env)
    except CodexError as exc:
        logger.error("codex run failed: %s", exc)
        return CodexResult.failure(str(exc))


async def _execute(
    params: CodexParams,
    executable: str,
    idle_timeout: float | None,
    env: Mapping[str, str] | None,
) -> CodexResult:
    program = resolve_executable(executable)
    ensure_working_directory(params.cd)
    command = build_command(params, program)

    # Avoid logging the full command line because it includes the prompt content.
    logger.debug(
        "executing codex: sandbox=%s cd=%s has_session_id=%s yolo=%s "
        "return_all_messages=%s image_count=%d",
        params.sandbox,
        params.cd,
        bool(params.session_id),
        params.yolo,
        params.return_all_messages,
        len(params.image),
    )

    state = RunState.start(params.return_all_messages)
    async with spawn(command, env=env) as proc:
        try:
            async with contextlib.aclosing(proc.lines(idle_timeout)) as lines:
                async for line in lines:
                    state = step(state, line)
                    if state.completed:
                        break
        except StreamTimeout as exc:
            state = state.fail(f"[codex stream timeout] {exc.timeout:g}s")

        outcome = await proc.wait()

    return finalize(state, outcome)
