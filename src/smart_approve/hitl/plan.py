"""Extraction of planned shell commands from an assistant turn.

An assistant that is about to run several commands usually lists them
first, in a fenced shell block or a bulleted list of inline code. Those,
plus any shell tool calls in the same turn, form the plan.
"""

import re

from smart_approve.transcript import Turn

_FENCE = re.compile(
    r"^[ \t]*```[ \t]*(?P<lang>bash|sh|shell|zsh|console|terminal|shell-session)[ \t]*\n"
    r"(?P<body>.*?)^[ \t]*```",
    re.DOTALL | re.MULTILINE | re.IGNORECASE,
)
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(?:\*\*)?`([^`\n]+)`", re.MULTILINE)
_PROMPT = re.compile(r"^\$\s+")
_PROMPT_LANGS = ("console", "terminal", "shell-session")


def _block_commands(body: str, prompted: bool) -> list[str]:
    commands: list[str] = []
    pending = ""
    for raw in body.splitlines():
        line = raw.strip()
        if prompted and not pending:
            # Transcript-style blocks: only prompt lines are commands
            if not line.startswith("$ "):
                continue
        if not pending and line.startswith("#"):
            continue
        line = _PROMPT.sub("", line)
        if line.endswith("\\"):
            pending += line[:-1].rstrip() + " "
            continue
        line = (pending + line).strip()
        pending = ""
        if line:
            commands.append(line)
    if pending.strip():
        commands.append(pending.strip())
    return commands


def extract_plan_commands(turn: Turn | None) -> list[str]:
    """Commands an assistant turn says it will run, de-duplicated in order."""
    if turn is None:
        return []

    found: list[str] = []
    for match in _FENCE.finditer(turn.text):
        prompted = match.group("lang").lower() in _PROMPT_LANGS
        found.extend(_block_commands(match.group("body"), prompted))

    for match in _LIST_ITEM.finditer(turn.text):
        found.append(_PROMPT.sub("", match.group(1).strip()))

    found.extend(turn.commands)

    seen: set[str] = set()
    unique: list[str] = []
    for command in found:
        command = command.strip()
        if command and command not in seen:
            seen.add(command)
            unique.append(command)
    return unique
