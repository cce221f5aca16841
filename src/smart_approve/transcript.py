"""Reader for the host's conversation transcript.

The transcript is newline-delimited JSON. Each line is an event; only
``user`` and ``assistant`` events matter here. ``message.content`` is either
a string or a list of typed blocks, of which ``text`` and ``tool_use`` are
used. Text starting with ``<`` is machine-generated (command output,
system reminders) and is skipped. Malformed lines are skipped.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from smart_approve.constants import (
    CONTEXT_TURN_MAX_LENGTH,
    SHELL_TOOL_NAME,
    truncate,
)
from smart_approve.logging import Loggers

logger = Loggers.hitl()


@dataclass
class Turn:
    """One conversational entry from the transcript."""

    role: str  # user, assistant
    text: str = ""
    commands: list[str] = field(default_factory=list)  # shell tool_use inputs
    timestamp: float | None = None

    def render(self, max_length: int = CONTEXT_TURN_MAX_LENGTH) -> str:
        """Render for inclusion in an oracle prompt."""
        speaker = "User" if self.role == "user" else "Assistant"
        parts = [self.text] if self.text else []
        parts += [f"[runs: {command}]" for command in self.commands]
        return f"{speaker}: {truncate(' '.join(parts), max_length)}"


class TranscriptReader:
    """Parses a transcript file into conversational turns.

    A missing or unreadable transcript reads as empty.
    """

    def __init__(self, path: str | Path | None):
        self.path = Path(path).expanduser() if path else None
        self._turns: list[Turn] | None = None

    def turns(self) -> list[Turn]:
        """All user and assistant turns, in order."""
        if self._turns is None:
            self._turns = self._parse()
        return self._turns

    def recent_context(self, limit: int = 6) -> str:
        """The last ``limit`` turns rendered one per line."""
        if limit <= 0:
            return ""
        return "\n".join(turn.render() for turn in self.turns()[-limit:])

    def recent_user_messages(
        self, limit: int = 3, since: float | None = None
    ) -> list[str]:
        """Texts of the last ``limit`` user messages.

        Args:
            limit: Maximum number of messages returned.
            since: When given, drop messages timestamped before it. Messages
                without a timestamp are kept.
        """
        messages = [
            turn
            for turn in self.turns()
            if turn.role == "user"
            and (since is None or turn.timestamp is None or turn.timestamp >= since)
        ]
        if limit <= 0:
            return []
        return [turn.text for turn in messages[-limit:]]

    def last_assistant_turn(self) -> Turn | None:
        """Everything the assistant said since the last user message, merged."""
        trailing: list[Turn] = []
        for turn in reversed(self.turns()):
            if turn.role == "user":
                break
            trailing.append(turn)

        if not trailing:
            return None

        trailing.reverse()
        return Turn(
            role="assistant",
            text="\n".join(turn.text for turn in trailing if turn.text),
            commands=[command for turn in trailing for command in turn.commands],
            timestamp=trailing[-1].timestamp,
        )

    def _parse(self) -> list[Turn]:
        if self.path is None:
            return []

        turns: list[Turn] = []
        try:
            with open(self.path, encoding="utf-8", errors="replace") as f:
                for line in f:
                    turn = _parse_line(line)
                    if turn is not None:
                        turns.append(turn)
        except OSError as e:
            logger.debug("transcript_unreadable", path=str(self.path), error=str(e))
            return []
        return turns


def _parse_line(line: str) -> Turn | None:
    line = line.strip()
    if not line:
        return None
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(entry, dict) or entry.get("isMeta"):
        return None

    role = entry.get("type")
    if role not in ("user", "assistant"):
        return None

    message = entry.get("message")
    if not isinstance(message, dict):
        return None

    texts, commands = _content_parts(message.get("content"))
    if role == "user":
        # Tool results and injected markup are not things the user said
        commands = []
    if not texts and not commands:
        return None

    return Turn(
        role=role,
        text="\n".join(texts),
        commands=commands,
        timestamp=parse_timestamp(entry.get("timestamp")),
    )


def _content_parts(content: Any) -> tuple[list[str], list[str]]:
    texts: list[str] = []
    commands: list[str] = []

    if isinstance(content, str):
        blocks: list[Any] = [{"type": "text", "text": content}]
    elif isinstance(content, list):
        blocks = content
    else:
        return texts, commands

    for block in blocks:
        if not isinstance(block, dict):
            continue
        if block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str) and text.strip() and not text.lstrip().startswith("<"):
                texts.append(text.strip())
        elif block.get("type") == "tool_use" and block.get("name") == SHELL_TOOL_NAME:
            tool_input = block.get("input")
            command = tool_input.get("command") if isinstance(tool_input, dict) else None
            if isinstance(command, str) and command.strip():
                commands.append(command.strip())

    return texts, commands


def parse_timestamp(value: Any) -> float | None:
    """Epoch seconds from an ISO-8601 string or a numeric timestamp."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Millisecond timestamps
        return value / 1000.0 if value > 1e12 else float(value)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None
