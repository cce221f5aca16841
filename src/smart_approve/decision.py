"""Hook decisions and their wire format."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from smart_approve.constants import HOOK_EVENT_NAME


class DecisionKind(Enum):
    """What the host should do with the command."""

    ALLOW = "allow"
    DENY = "deny"
    DEFER = "defer"  # No output; the host asks the user as usual


@dataclass(frozen=True)
class Decision:
    """Outcome of one hook invocation."""

    kind: DecisionKind
    reason: str = ""

    @classmethod
    def allow(cls, reason: str) -> "Decision":
        return cls(DecisionKind.ALLOW, reason)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(DecisionKind.DENY, reason)

    @classmethod
    def defer(cls) -> "Decision":
        return cls(DecisionKind.DEFER)

    @property
    def is_allow(self) -> bool:
        return self.kind == DecisionKind.ALLOW

    @property
    def is_deny(self) -> bool:
        return self.kind == DecisionKind.DENY

    @property
    def is_defer(self) -> bool:
        return self.kind == DecisionKind.DEFER

    def to_output(self) -> dict[str, Any] | None:
        """The JSON object written to stdout, or None for a deferral."""
        if self.kind == DecisionKind.DEFER:
            return None
        return {
            "hookSpecificOutput": {
                "hookEventName": HOOK_EVENT_NAME,
                "permissionDecision": self.kind.value,
                "permissionDecisionReason": self.reason,
            }
        }
