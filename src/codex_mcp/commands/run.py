"""codex-mcp run — execute one codex task and print the result."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from pydantic import ValidationError

from codex_mcp.codex.models import CodexParams
from codex_mcp.codex.runner import run_codex
from codex_mcp.commands.options import (
    config_option,
    load_or_exit,
    setup_logging,
    verbose_option,
)
from codex_mcp.server import render_result


@click.command()
@click.argument("prompt")
@click.option(
    "--cd",
    "cd",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Workspace root for codex.",
)
@click.option(
    "--sandbox",
    type=click.Choice(["read-only", "workspace-write", "danger-full-access"]),
    default="read-only",
    show_default=True,
    help="Sandbox policy for model-generated commands.",
)
@click.option("--session-id", default=None, help="Resume this codex session.")
@click.option(
    "--image",
    "images",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Attach an image to the prompt (repeatable).",
)
@click.option("--model", default=None, help="Model override.")
@click.option("--profile", default=None, help="Profile from ~/.codex/config.toml.")
@click.option("--yolo", is_flag=True, help="Run without approvals or sandboxing.")
@click.option(
    "--skip-git-repo-check/--no-skip-git-repo-check",
    default=True,
    show_default=True,
    help="Allow running outside a Git repository.",
)
@click.option(
    "--all-messages",
    "return_all_messages",
    is_flag=True,
    help="Include every codex event in the output.",
)
@config_option
@verbose_option
def run(
    prompt: str,
    cd: Path,
    sandbox: str,
    session_id: str | None,
    images: tuple[Path, ...],
    model: str | None,
    profile: str | None,
    yolo: bool,
    skip_git_repo_check: bool,
    return_all_messages: bool,
    config_file: str | None,
    verbose: bool,
) -> None:
    """Run PROMPT through codex once and print the JSON result."""
    config = load_or_exit(config_file)
    setup_logging(config.log_level, verbose)

    try:
        params = CodexParams(
            prompt=prompt,
            cd=cd,
            sandbox=sandbox,
            session_id=session_id,
            image=list(images),
            model=model,
            profile=profile,
            yolo=yolo,
            skip_git_repo_check=skip_git_repo_check,
            return_all_messages=return_all_messages,
        )
    except ValidationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    result = asyncio.run(
        run_codex(
            params,
            executable=config.codex_bin,
            idle_timeout=config.stream_timeout,
            env=config.env,
        )
    )
    click.echo(render_result(result))
    if not result.success:
        raise SystemExit(1)
