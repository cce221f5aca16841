"""PreToolUse hook entry point.

The host writes one JSON envelope to stdin::

    {"tool_name": "Bash", "tool_input": {"command": "git status"},
     "cwd": "/app", "session_id": "...", "transcript_path": "..."}

and reads back at most one JSON line on stdout. No output means "ask the
user as usual". The exit status is always 0.
"""

import json
import os
import sys
from typing import IO

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from smart_approve.config import SmartApproveSettings, get_settings
from smart_approve.constants import SHELL_TOOL_NAME
from smart_approve.decision import Decision, DecisionKind
from smart_approve.engine import ApprovalEngine
from smart_approve.logging import Loggers, bind_context, clear_context, configure_logging
from smart_approve.oracle.backends import NESTED_ENV_VAR, OracleBackend

__all__ = [
    "Decision",
    "DecisionKind",
    "HookInput",
    "ToolInput",
    "main",
    "parse_hook_input",
    "run",
]


class ToolInput(BaseModel):
    """Arguments of the tool call under review."""

    model_config = ConfigDict(extra="ignore")

    command: str = ""


class HookInput(BaseModel):
    """The envelope the host sends for one tool call."""

    model_config = ConfigDict(extra="ignore")

    tool_name: str = ""
    tool_input: ToolInput = Field(default_factory=ToolInput)
    cwd: str = ""
    session_id: str = ""
    transcript_path: str | None = None

    @property
    def command(self) -> str:
        return self.tool_input.command.strip()


def parse_hook_input(raw: str) -> HookInput | None:
    """Parse the stdin envelope, or None if it is malformed."""
    try:
        return HookInput.model_validate_json(raw)
    except ValidationError:
        return None


def run(
    stdin: IO[str],
    stdout: IO[str],
    settings: SmartApproveSettings | None = None,
    backend: OracleBackend | None = None,
) -> int:
    """Handle one hook invocation.

    Args:
        stdin: Stream carrying the JSON envelope.
        stdout: Stream the decision is written to.
        settings: Settings override (defaults to get_settings()).
        backend: Oracle backend override.

    Returns:
        Process exit status, always 0.
    """
    try:
        settings = settings or get_settings()
        configure_logging(settings)
    except Exception:
        # Nothing is configured to log to yet; silence means "ask as usual"
        return 0
    logger = Loggers.hook()

    # An oracle call runs the host CLI, which may run this hook again
    if os.environ.get(NESTED_ENV_VAR):
        return 0

    try:
        raw = stdin.read()
    except (OSError, ValueError) as e:
        logger.info("unreadable_input", error=str(e), error_type=type(e).__name__)
        return 0

    request = parse_hook_input(raw)
    if request is None:
        logger.info("malformed_input")
        return 0

    if request.tool_name != SHELL_TOOL_NAME or not request.command:
        return 0

    bind_context(session_id=request.session_id)
    try:
        engine = ApprovalEngine.from_settings(settings, backend=backend)
        decision = engine.decide(request)
    except Exception as e:
        logger.error("engine_failed", error=str(e), error_type=type(e).__name__)
        return 0
    finally:
        clear_context()

    logger.info("decision", command=request.command, decision=decision.kind.value)

    output = decision.to_output()
    if output is not None:
        stdout.write(json.dumps(output, ensure_ascii=False) + "\n")
        stdout.flush()
    return 0


def main() -> None:
    """Console script entry point."""
    sys.exit(run(sys.stdin, sys.stdout))
