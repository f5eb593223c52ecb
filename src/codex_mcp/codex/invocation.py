"""Translate validated codex parameters into a concrete child command line."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from codex_mcp.codex.errors import ExecutableNotFound, InvalidWorkingDirectory
from codex_mcp.codex.models import CodexParams


@dataclass(frozen=True)
class ChildCommand:
    """Program, ordered arguments and working directory for one codex run."""

    program: str
    args: tuple[str, ...]
    cwd: Path

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def resolve_executable(name: str = "codex") -> str:
    """Return the absolute path of *name* on PATH.

    Raises:
        ExecutableNotFound: If the program cannot be located.
    """
    path = shutil.which(name)
    if path is None:
        raise ExecutableNotFound(name)
    return path


def ensure_working_directory(path: Path) -> Path:
    """Fail fast with a clearer error than whatever the CLI might emit."""
    if not Path(path).is_dir():
        raise InvalidWorkingDirectory(path)
    return Path(path)


def windows_escape(prompt: str) -> str:
    """Escape special characters for the Windows command line."""
    return (
        prompt.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\b", "\\b")
        .replace("\f", "\\f")
        .replace("'", "\\'")
    )


def _non_empty(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def build_command(
    params: CodexParams,
    program: str,
    *,
    windows: bool | None = None,
) -> ChildCommand:
    """Build the ``codex exec`` command line for *params*.

    The same parameters always produce the same argument vector. The prompt
    is always the final argument, after an explicit ``--``, so it can never
    be read as a flag.

    Args:
        params: Validated tool parameters.
        program: Resolved path of the codex executable.
        windows: Apply Windows prompt escaping. Defaults to the host platform.
    """
    if windows is None:
        windows = os.name == "nt"

    args: list[str] = [
        "exec",
        "--sandbox",
        params.sandbox,
        "--cd",
        str(params.cd),
        "--json",
    ]

    if params.image:
        args.extend(["--image", ",".join(str(p) for p in params.image)])

    model = _non_empty(params.model)
    if model is not None:
        args.extend(["--model", model])

    profile = _non_empty(params.profile)
    if profile is not None:
        args.extend(["--profile", profile])

    if params.yolo:
        args.append("--yolo")

    if params.skip_git_repo_check:
        args.append("--skip-git-repo-check")

    if params.session_id:
        args.extend(["resume", params.session_id])

    prompt = windows_escape(params.prompt) if windows else params.prompt
    args.extend(["--", prompt])

    return ChildCommand(program=program, args=tuple(args), cwd=Path(params.cd))
