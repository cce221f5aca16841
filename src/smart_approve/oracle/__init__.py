"""External oracle consulted for commands the rules cannot settle."""

from smart_approve.oracle.adapter import OracleAdapter, parse_verdict
from smart_approve.oracle.backends import (
    AnthropicApiBackend,
    ClaudeCliBackend,
    DisabledBackend,
    OracleBackend,
    create_backend,
)
from smart_approve.oracle.models import Framing, Verdict
from smart_approve.oracle.prompts import build_prompt

__all__ = [
    "AnthropicApiBackend",
    "ClaudeCliBackend",
    "DisabledBackend",
    "Framing",
    "OracleAdapter",
    "OracleBackend",
    "Verdict",
    "build_prompt",
    "create_backend",
    "parse_verdict",
]
