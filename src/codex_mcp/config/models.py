"""Pydantic v2 model for codex-mcp.yaml configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ServerConfig(BaseModel):
    """Process-wide settings shared by every codex run."""

    model_config = ConfigDict(extra="forbid")

    codex_bin: str = Field(
        default="codex",
        min_length=1,
        description="Codex executable name or path, resolved on PATH",
    )
    stream_timeout: float | None = Field(
        default=None,
        gt=0,
        description=(
            "Seconds to wait for each line of codex output before killing it "
            "(unset waits forever)"
        ),
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for messages written to stderr",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables passed to the codex process",
    )
