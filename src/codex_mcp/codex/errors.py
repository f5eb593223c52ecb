"""Exceptions raised while preparing or running a codex subprocess."""

from __future__ import annotations

from pathlib import Path


class CodexError(Exception):
    """Base class for failures that abort a codex run."""


class ExecutableNotFound(CodexError):
    """The codex executable could not be located on PATH."""

    def __init__(self, name: str = "codex") -> None:
        self.name = name
        super().__init__(
            f"Codex executable not found. Please ensure '{name}' is installed and in PATH."
        )


class InvalidWorkingDirectory(CodexError):
    """The requested working directory is missing or not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"Working directory does not exist or is not a directory: {str(path)!r}"
        )


class StdoutCaptureFailed(CodexError):
    """The child's stdout pipe was not available."""

    def __init__(self) -> None:
        super().__init__("Failed to capture codex stdout (pipe not available).")


class CodexIOError(CodexError):
    """I/O failure while spawning or reading from the codex process."""

    def __init__(self, exc: OSError) -> None:
        self.original = exc
        super().__init__(f"I/O error while running codex: {exc}")


class StreamTimeout(CodexError):
    """The child went quiet for longer than the configured idle timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"codex produced no output for {timeout:g}s")
