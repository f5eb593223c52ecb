"""Pydantic v2 models for the codex tool's parameters and result."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

#: Sandbox policy for model-generated commands.
SandboxPolicy = Literal["read-only", "workspace-write", "danger-full-access"]


class CodexParams(BaseModel):
    """Parameters accepted by the ``codex`` tool."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    prompt: str = Field(
        alias="PROMPT",
        description="Instruction for the task to send to codex.",
    )
    cd: Path = Field(
        description="Set the workspace root for codex before executing the task.",
    )
    sandbox: SandboxPolicy = Field(
        default="read-only",
        description="Sandbox policy for model-generated commands. Defaults to `read-only`.",
    )
    session_id: str | None = Field(
        default=None,
        alias="SESSION_ID",
        description=(
            "Resume the specified session of the codex. "
            "Defaults to `None`, start a new session."
        ),
    )
    skip_git_repo_check: bool = Field(
        default=True,
        description=(
            "Allow codex running outside a Git repository "
            "(useful for one-off directories)."
        ),
    )
    return_all_messages: bool = Field(
        default=False,
        description=(
            "Return all messages (e.g. reasoning, tool calls, etc.) from the codex "
            "session. Set to `False` by default, only the agent's final reply "
            "message is returned."
        ),
    )
    image: list[Path] = Field(
        default_factory=list,
        description="Attach one or more image files to the initial prompt.",
    )
    model: str | None = Field(
        default=None,
        description=(
            "The model to use for the codex session. This parameter is strictly "
            "prohibited unless explicitly specified by the user."
        ),
    )
    yolo: bool = Field(
        default=False,
        description=(
            "Run every command without approvals or sandboxing. "
            "Only use when `sandbox` couldn't be applied."
        ),
    )
    profile: str | None = Field(
        default=None,
        description=(
            "Configuration profile name to load from `~/.codex/config.toml`. This "
            "parameter is strictly prohibited unless explicitly specified by the user."
        ),
    )


class CodexResult(BaseModel):
    """Result returned by the ``codex`` tool."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="Whether the execution was successful.")
    session_id: str | None = Field(
        default=None,
        description="Session ID for resuming the conversation.",
    )
    agent_messages: str | None = Field(
        default=None,
        description="Agent's response messages.",
    )
    error: str | None = Field(
        default=None,
        description="Error message if execution failed.",
    )
    all_messages: list[Any] | None = Field(
        default=None,
        description=(
            "All messages from the session "
            "(only included when return_all_messages is true)."
        ),
    )

    @classmethod
    def failure(cls, error: str) -> CodexResult:
        """Result for a run that failed before any output was collected."""
        return cls(success=False, error=error)

    def to_payload(self) -> dict[str, Any]:
        """Serializable dict with unset optional fields omitted."""
        return {
            key: value for key, value in self.model_dump().items() if value is not None
        }
