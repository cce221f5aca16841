"""smart-approve - automatic approval of safe shell commands for coding agents.

Runs as a PreToolUse hook. Each proposed shell command goes through:

- Rule classification of every sub-command (read-only commands are allowed)
- Package alias and script analysis for commands the rules cannot place
- A decision cache of earlier approvals
- An external LLM oracle, serialized by a cross-process lock
- Batch approval, which turns a multi-step plan into one user question

Anything the pipeline cannot settle is left to the host's own prompt.
"""

from smart_approve.config import (
    SettingsContext,
    SmartApproveSettings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from smart_approve.decision import Decision, DecisionKind
from smart_approve.engine import ApprovalEngine, LayeredClassifier
from smart_approve.hook import HookInput, main, parse_hook_input, run

__version__ = "0.1.0"

__all__ = [
    "ApprovalEngine",
    "Decision",
    "DecisionKind",
    "HookInput",
    "LayeredClassifier",
    "SettingsContext",
    "SmartApproveSettings",
    "get_settings",
    "main",
    "parse_hook_input",
    "reload_settings",
    "run",
    "set_context_settings",
    "set_settings",
]
