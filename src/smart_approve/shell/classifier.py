"""Rule-based command classifier.

Classifies a (possibly compound) shell command as readonly, modifying or
ambiguous using the pattern tables:

- Any atomic sub-command matching a modifying rule taints the whole command
- Otherwise, if every sub-command matches a readonly rule, it is readonly
- Otherwise it is ambiguous and later stages decide
"""

from typing import TYPE_CHECKING

from smart_approve.shell.models import Classification, PatternRule
from smart_approve.shell.patterns import MODIFYING_RULES, READONLY_RULES
from smart_approve.shell.tokenizer import CommandTokenizer, unwrap_shell

if TYPE_CHECKING:
    from smart_approve.shell.config import RulesConfig

# Nesting bound for bash -c wrappers and command substitutions
MAX_EXPANSION_DEPTH = 5


class RuleClassifier:
    """Classifies shell commands against the readonly/modifying tables.

    Supports user-configurable extra rules that are appended to the
    built-in tables.
    """

    def __init__(
        self,
        config: "RulesConfig | None" = None,
        tokenizer: CommandTokenizer | None = None,
    ):
        """Initialize classifier with optional user rules.

        Args:
            config: Optional RulesConfig with extra patterns.
            tokenizer: Tokenizer to use (a default one if omitted).
        """
        self.tokenizer = tokenizer or CommandTokenizer()

        user_modifying: list[PatternRule] = []
        user_readonly: list[PatternRule] = []
        if config is not None:
            user_modifying, user_readonly = config.compile()

        self._modifying = [*MODIFYING_RULES, *user_modifying]
        self._readonly = [*READONLY_RULES, *user_readonly]

    def classify(self, command: str) -> Classification:
        """Classify a full command string.

        Args:
            command: Raw command text, possibly compound or shell-wrapped.

        Returns:
            The Classification for the command as a whole.
        """
        segments = self.atomic_commands(command)
        if not segments:
            return Classification.AMBIGUOUS

        results = [self.classify_atomic(segment) for segment in segments]

        if Classification.MODIFYING in results:
            return Classification.MODIFYING
        if all(r == Classification.READONLY for r in results):
            return Classification.READONLY
        return Classification.AMBIGUOUS

    def atomic_commands(self, command: str) -> list[str]:
        """Expand a command into every atomic sub-command it would run.

        Shell wrappers are unwrapped and the bodies of command
        substitutions are expanded too, so ``echo $(rm x)`` yields both
        ``echo $(rm x)`` and ``rm x``.
        """
        segments: list[str] = []
        self._expand(command, 0, segments)
        return segments

    def _expand(self, command: str, depth: int, out: list[str]) -> None:
        inner = unwrap_shell(command)
        if inner is not None:
            command = inner

        for segment in self.tokenizer.split(command):
            if depth < MAX_EXPANSION_DEPTH:
                nested = unwrap_shell(segment)
                if nested is not None:
                    self._expand(nested, depth + 1, out)
                    continue
            out.append(segment)
            if depth < MAX_EXPANSION_DEPTH:
                for body in self.tokenizer.substitutions(segment):
                    self._expand(body, depth + 1, out)

    def classify_atomic(self, segment: str) -> Classification:
        """Classify a single atomic sub-command."""
        rule = self.match(segment)
        if rule is None:
            return Classification.AMBIGUOUS
        return Classification(rule.category.value)

    def match(self, segment: str) -> PatternRule | None:
        """Return the rule deciding a segment, modifying rules first."""
        masked = self.tokenizer.mask_quoted(segment)

        for rule in self._modifying:
            if rule.matches(segment, masked):
                return rule
        for rule in self._readonly:
            if rule.matches(segment, masked):
                return rule
        return None
