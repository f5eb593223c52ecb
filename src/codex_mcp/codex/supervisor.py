"""Process supervisor — owns the codex child process for one run."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

from codex_mcp.codex.errors import (
    CodexIOError,
    ExecutableNotFound,
    StdoutCaptureFailed,
    StreamTimeout,
)
from codex_mcp.codex.invocation import ChildCommand

logger = logging.getLogger(__name__)

#: Seconds to wait for the child to exit once its stdout has closed.
WAIT_TIMEOUT = 5.0

#: Maximum bytes per JSONL line from the child's stdout (16 MB).
_MAX_LINE_BYTES = 16 * 1_048_576


@dataclass(frozen=True)
class MalformedLine:
    """A stdout line that could not be turned into text."""

    raw: str
    reason: str


@dataclass(frozen=True)
class ExitOutcome:
    """How the child's exit went after the output stream ended."""

    kind: str  # "exited" | "failed" | "wait_error" | "wait_timeout"
    returncode: int | None = None
    detail: str = ""

    @classmethod
    def exited(cls, returncode: int) -> ExitOutcome:
        if returncode != 0:
            return cls(kind="failed", returncode=returncode)
        return cls(kind="exited", returncode=returncode)

    @classmethod
    def wait_error(cls, exc: BaseException) -> ExitOutcome:
        return cls(kind="wait_error", detail=str(exc))

    @classmethod
    def wait_timeout(cls, timeout: float) -> ExitOutcome:
        return cls(kind="wait_timeout", detail=f"{timeout:g}s")

    @property
    def ok(self) -> bool:
        return self.kind == "exited"

    def annotation(self) -> str | None:
        """Error annotation for this outcome, or None for a clean exit."""
        match self.kind:
            case "failed":
                return f"[codex exit] {_describe_returncode(self.returncode)}"
            case "wait_error":
                return f"[codex wait error] {self.detail}"
            case "wait_timeout":
                return f"[codex wait timeout] {self.detail}"
        return None


def _describe_returncode(returncode: int | None) -> str:
    if returncode is not None and returncode < 0:
        return f"killed by signal {-returncode}"
    return f"exit code {returncode}"


class CodexProcess:
    """Handle on a running codex child.

    Created by :func:`spawn`; do not construct directly.
    """

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def running(self) -> bool:
        return self._proc.returncode is None

    async def lines(
        self, idle_timeout: float | None = None
    ) -> AsyncIterator[str | MalformedLine]:
        """Yield stripped, non-empty stdout lines until EOF.

        Args:
            idle_timeout: Seconds to wait for each line. ``None`` waits forever.

        Raises:
            StdoutCaptureFailed: If stdout was not piped.
            StreamTimeout: If no line arrived within *idle_timeout*. The
                child is killed before this is raised.
            CodexIOError: On a read failure from the pipe.
        """
        stdout = self._proc.stdout
        if stdout is None:
            raise StdoutCaptureFailed()

        while True:
            try:
                if idle_timeout is None:
                    line_bytes = await _read_line(stdout)
                else:
                    line_bytes = await asyncio.wait_for(
                        _read_line(stdout), timeout=idle_timeout
                    )
            except TimeoutError:
                logger.warning(
                    "codex produced no output for %ss, killing pid %s",
                    idle_timeout,
                    self._proc.pid,
                )
                self.kill()
                raise StreamTimeout(idle_timeout or 0.0) from None
            except OSError as exc:
                raise CodexIOError(exc) from exc

            if line_bytes is None:
                logger.warning("codex stdout line exceeded buffer limit, skipping")
                yield MalformedLine(raw="", reason="line exceeds the stdout buffer limit")
                continue

            if not line_bytes:
                # EOF
                return

            try:
                text = line_bytes.decode("utf-8").strip()
            except UnicodeDecodeError as exc:
                yield MalformedLine(
                    raw=line_bytes.decode("utf-8", errors="replace").strip(),
                    reason=str(exc),
                )
                continue

            if not text:
                continue
            yield text

    async def wait(self, timeout: float | None = None) -> ExitOutcome:
        """Wait for the child to exit, killing it if *timeout* elapses.

        Defaults to ``WAIT_TIMEOUT``.
        """
        if timeout is None:
            timeout = WAIT_TIMEOUT
        try:
            returncode = await asyncio.wait_for(self._proc.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "codex pid %s did not exit within %ss, killing", self._proc.pid, timeout
            )
            self.kill()
            with contextlib.suppress(TimeoutError, OSError):
                await asyncio.wait_for(self._proc.wait(), timeout=timeout)
            return ExitOutcome.wait_timeout(timeout)
        except OSError as exc:
            logger.error("waiting for codex pid %s failed: %s", self._proc.pid, exc)
            return ExitOutcome.wait_error(exc)

        outcome = ExitOutcome.exited(returncode)
        if not outcome.ok:
            logger.warning("codex pid %s exited with code %s", self._proc.pid, returncode)
        return outcome

    def kill(self) -> None:
        with contextlib.suppress(ProcessLookupError):
            self._proc.kill()

    async def close(self) -> None:
        """Kill and reap the child if it is still running."""
        if not self.running:
            return
        logger.debug("killing codex pid %s", self._proc.pid)
        self.kill()
        with contextlib.suppress(TimeoutError, OSError):
            await asyncio.wait_for(self._proc.wait(), timeout=WAIT_TIMEOUT)


async def _read_line(stdout: asyncio.StreamReader) -> bytes | None:
    """Read through the next newline, or the unterminated tail at EOF.

    Returns ``b""`` at EOF. A line longer than the reader's limit is
    consumed up to and including its newline and reported as ``None``, so
    its tail is never mistaken for the next line.
    """
    try:
        return await stdout.readuntil(b"\n")
    except asyncio.IncompleteReadError as exc:
        return exc.partial
    except asyncio.LimitOverrunError as exc:
        consumed = exc.consumed

    while True:
        await stdout.readexactly(consumed)
        try:
            await stdout.readuntil(b"\n")
        except asyncio.IncompleteReadError:
            return None
        except asyncio.LimitOverrunError as exc:
            consumed = exc.consumed
            continue
        return None


def _child_env(extra: Mapping[str, str] | None) -> dict[str, str] | None:
    if not extra:
        return None
    return {**os.environ, **extra}


@contextlib.asynccontextmanager
async def spawn(
    command: ChildCommand,
    env: Mapping[str, str] | None = None,
) -> AsyncIterator[CodexProcess]:
    """Spawn *command* and guarantee the child is gone on every exit path.

    stdin is closed, stdout is piped for line reading and stderr is
    inherited so a slow consumer can never stall the child.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command.program,
            *command.args,
            cwd=str(command.cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=None,
            limit=_MAX_LINE_BYTES,
            env=_child_env(env),
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        raise ExecutableNotFound(command.program) from exc
    except OSError as exc:
        raise CodexIOError(exc) from exc

    handle = CodexProcess(proc)
    logger.debug("spawned codex pid %s", proc.pid)
    try:
        yield handle
    finally:
        await handle.close()
