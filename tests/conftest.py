"""Shared fixtures: mock subprocesses and a scriptable fake codex executable."""

from __future__ import annotations

import asyncio
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest


class MockAsyncStdout:
    """Async-aware mock stdout that yields lines on demand.

    Lines can be added at any time via ``feed()``.  ``readuntil()``
    blocks until a line is available or ``close()`` is called.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | BaseException] = asyncio.Queue()

    def feed(self, data: bytes) -> None:
        self._queue.put_nowait(data)

    def feed_line(self, text: str) -> None:
        self.feed(text.encode() + b"\n")

    def fail(self, exc: BaseException) -> None:
        """Make the next ``readuntil()`` raise *exc*."""
        self._queue.put_nowait(exc)

    def close(self) -> None:
        """Signal EOF."""
        self._queue.put_nowait(b"")

    async def readuntil(self, separator: bytes = b"\n") -> bytes:
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        return item


def make_mock_process(
    stdout: MockAsyncStdout | asyncio.StreamReader | None = None,
    returncode: int = 0,
    exits_on_its_own: bool = True,
) -> MagicMock:
    """Create a mock ``asyncio.subprocess.Process``.

    With ``exits_on_its_own=False`` the process only exits (with -9) once
    ``kill()`` is called.
    """
    proc = MagicMock()
    proc.pid = 4242
    proc.returncode = None
    proc.stdout = stdout if stdout is not None else MockAsyncStdout()
    killed = asyncio.Event()

    def _kill() -> None:
        killed.set()

    async def _wait() -> int:
        if not exits_on_its_own or killed.is_set():
            await killed.wait()
            proc.returncode = -9
            return -9
        proc.returncode = returncode
        return returncode

    proc.kill = MagicMock(side_effect=_kill)
    proc.wait = AsyncMock(side_effect=_wait)
    return proc


@pytest.fixture
def fake_codex(tmp_path: Path) -> Callable[[str], Path]:
    """Return a factory writing an executable Python script that stands in for codex."""

    def _write(body: str) -> Path:
        script = tmp_path / "fake-codex"
        script.write_text(
            f"#!{sys.executable}\n" + textwrap.dedent(body), encoding="utf-8"
        )
        script.chmod(0o755)
        return script

    return _write
