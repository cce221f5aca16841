"""Oracle verdicts and question framings."""

from enum import Enum


class Verdict(Enum):
    """Single-word answer from the oracle."""

    APPROVE = "approve"
    DENY = "deny"
    READONLY = "readonly"
    MODIFYING = "modifying"
    AMBIGUOUS = "ambiguous"  # No usable answer


class Framing(Enum):
    """What the oracle is being asked."""

    CLASSIFY = "classify"  # Safe to run without asking? (read-only or already agreed)
    CONSENT = "consent"  # Did the user agree to this exact side effect?
    EFFECT = "effect"  # Read-only or modifying? (no conversation to consult)

    @property
    def answers(self) -> tuple[Verdict, Verdict]:
        """The two verdicts this framing accepts."""
        if self is Framing.EFFECT:
            return (Verdict.READONLY, Verdict.MODIFYING)
        return (Verdict.APPROVE, Verdict.DENY)

    @property
    def approving(self) -> Verdict:
        """The verdict that lets the command run."""
        return self.answers[0]
