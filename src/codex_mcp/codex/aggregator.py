"""Event aggregator — folds codex ``--json`` output into a single result.

Codex CLI ``exec --json`` writes one JSON event per line. The events this
module cares about look like::

    {"type": "thread.started", "thread_id": "..."}
    {"type": "item.completed", "item": {"type": "agent_message", "text": "..."}}
    {"type": "turn.failed", "error": {"message": "..."}}
    {"type": "error", "message": "..."}
    {"type": "turn.completed", "usage": {...}}

Every other field is ignored. Aggregation is an explicit fold: :func:`step`
turns ``(RunState, line)`` into a new ``RunState``, and :func:`finalize`
combines the last state with the process exit outcome into a
:class:`~codex_mcp.codex.models.CodexResult`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from codex_mcp.codex.models import CodexResult
from codex_mcp.codex.supervisor import ExitOutcome, MalformedLine

logger = logging.getLogger(__name__)

#: Transient notice emitted while codex retries its connection.
RECONNECT_PREFIX = "Reconnecting..."

MISSING_SESSION_ID = "Failed to get `SESSION_ID` from the codex session."

MISSING_AGENT_MESSAGES = (
    "Failed to get `agent_messages` from the codex session.\n\n"
    "You can try to set `return_all_messages` to `True` to get the full "
    "reasoning information."
)

#: Longest slice of an undecodable line quoted in its error annotation.
_MAX_RAW_CHARS = 500


@dataclass(frozen=True)
class RunState:
    """Accumulated state of one codex run.

    Agent replies and retained events are kept as ``(item, previous)``
    chains so each step is O(1); :attr:`agent_messages` and
    :attr:`all_messages` materialize them on access.
    """

    thread_id: str | None = None
    errors: tuple[str, ...] = ()
    success: bool = True
    completed: bool = False
    retain_events: bool = False
    replies: tuple[Any, ...] | None = field(default=None, repr=False)
    events: tuple[Any, ...] | None = field(default=None, repr=False)

    @classmethod
    def start(cls, retain_events: bool = False) -> RunState:
        return cls(retain_events=retain_events)

    @property
    def agent_messages(self) -> str:
        return "".join(_unwind(self.replies))

    @property
    def all_messages(self) -> tuple[Any, ...] | None:
        if not self.retain_events:
            return None
        return tuple(_unwind(self.events))

    def fail(self, annotation: str | None = None) -> RunState:
        """Mark the run unsuccessful, optionally recording *annotation*."""
        errors = self.errors if annotation is None else (*self.errors, annotation)
        return replace(self, success=False, errors=errors)


def _unwind(chain: tuple[Any, ...] | None) -> list[Any]:
    items: list[Any] = []
    while chain is not None:
        item, chain = chain
        items.append(item)
    items.reverse()
    return items


def _clip(raw: str) -> str:
    if len(raw) <= _MAX_RAW_CHARS:
        return raw
    return f"{raw[:_MAX_RAW_CHARS]}... ({len(raw)} chars)"


# ------------------------------------------------------------------ #
# Field accessors
# ------------------------------------------------------------------ #


def _get_str(value: Any, *path: str) -> str | None:
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value if isinstance(value, str) else None


def item_type(event: Any) -> str | None:
    return _get_str(event, "item", "type")


def item_text(event: Any) -> str | None:
    return _get_str(event, "item", "text")


def thread_id(event: Any) -> str | None:
    return _get_str(event, "thread_id")


def event_type(event: Any) -> str | None:
    return _get_str(event, "type")


def error_message(event: Any) -> str | None:
    return _get_str(event, "error", "message")


def message(event: Any) -> str | None:
    return _get_str(event, "message")


# ------------------------------------------------------------------ #
# Event classification
# ------------------------------------------------------------------ #


def _is_failure(kind: str, event: Any) -> bool:
    return "fail" in kind


def _is_reconnect_notice(kind: str, event: Any) -> bool:
    text = message(event)
    return "error" in kind and text is not None and text.startswith(RECONNECT_PREFIX)


def _is_error(kind: str, event: Any) -> bool:
    return "error" in kind and message(event) is not None


def _is_turn_completed(kind: str, event: Any) -> bool:
    return kind == "turn.completed"


def _on_failure(state: RunState, event: Any) -> RunState:
    text = error_message(event)
    return state.fail(None if text is None else f"[codex error] {text}")


def _on_reconnect_notice(state: RunState, event: Any) -> RunState:
    logger.debug("ignoring codex reconnect notice: %s", message(event))
    return state


def _on_error(state: RunState, event: Any) -> RunState:
    return state.fail(f"[codex error] {message(event)}")


def _on_turn_completed(state: RunState, event: Any) -> RunState:
    return replace(state, completed=True)


#: Evaluated top to bottom; the first matching predicate decides the action.
EVENT_RULES: tuple[
    tuple[str, Callable[[str, Any], bool], Callable[[RunState, Any], RunState]], ...
] = (
    ("failure", _is_failure, _on_failure),
    ("reconnect", _is_reconnect_notice, _on_reconnect_notice),
    ("error", _is_error, _on_error),
    ("turn_completed", _is_turn_completed, _on_turn_completed),
)


def classify(event: Any) -> str | None:
    """Name of the first rule in ``EVENT_RULES`` matching *event*, if any."""
    kind = event_type(event)
    if kind is None:
        return None
    for name, predicate, _ in EVENT_RULES:
        if predicate(kind, event):
            return name
    return None


_ACTIONS = {name: action for name, _, action in EVENT_RULES}


# ------------------------------------------------------------------ #
# Fold
# ------------------------------------------------------------------ #


def step(state: RunState, line: str | MalformedLine) -> RunState:
    """Apply one decoded stdout line to *state*.

    A malformed line marks the run unsuccessful but never stops it.
    """
    if isinstance(line, MalformedLine):
        logger.warning("undecodable line from codex stdout: %s", line.reason)
        return state.fail(f"[json decode error] {line.reason}: {_clip(line.raw)}")

    try:
        event = json.loads(line)
    except (json.JSONDecodeError, RecursionError) as exc:
        # Nesting deeper than the interpreter stack raises RecursionError.
        logger.warning("malformed JSON from codex stdout: %s", line[:200])
        return state.fail(f"[json decode error] {exc}: {_clip(line)}")

    if state.retain_events:
        state = replace(state, events=(event, state.events))

    if item_type(event) == "agent_message":
        text = item_text(event)
        if text is not None:
            state = replace(state, replies=(text, state.replies))

    tid = thread_id(event)
    if tid is not None:
        state = replace(state, thread_id=tid)

    rule = classify(event)
    if rule is None:
        return state
    return _ACTIONS[rule](state, event)


def fold(lines: Iterable[str | MalformedLine], retain_events: bool = False) -> RunState:
    """Fold *lines* in order, stopping after ``turn.completed``."""
    state = RunState.start(retain_events)
    for line in lines:
        state = step(state, line)
        if state.completed:
            break
    return state


def finalize(state: RunState, outcome: ExitOutcome | None = None) -> CodexResult:
    """Turn the final *state* and the exit *outcome* into the tool result."""
    if outcome is not None:
        annotation = outcome.annotation()
        if annotation is not None:
            state = state.fail(annotation)

    success = state.success
    error_text = "\n\n".join(state.errors)
    agent_messages = state.agent_messages
    events = state.all_messages
    all_messages = list(events) if events is not None else None

    if state.thread_id is None:
        success = False
        error_text = _prepend(MISSING_SESSION_ID, error_text)

    if not agent_messages:
        success = False
        error_text = _prepend(MISSING_AGENT_MESSAGES, error_text)

    if success:
        return CodexResult(
            success=True,
            session_id=state.thread_id,
            agent_messages=agent_messages,
            all_messages=all_messages,
        )

    return CodexResult(
        success=False,
        session_id=state.thread_id,
        agent_messages=agent_messages or None,
        error=error_text,
        all_messages=all_messages,
    )


def _prepend(head: str, rest: str) -> str:
    return f"{head}\n\n{rest}" if rest else head
