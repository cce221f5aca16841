"""User-configurable classification rules.

A YAML rules file can extend the built-in pattern tables::

    readonly:
      - '^just\\s+(?:--list|-l)\\b'
    modifying:
      - '^deploy\\b'

User modifying patterns join the modifying table, so they still take
precedence over every readonly rule.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from smart_approve.exceptions import SmartApproveError
from smart_approve.shell.models import Domain, PatternRule, RuleCategory


@dataclass
class RulesConfig:
    """Extra regex rules supplied by the user.

    Attributes:
        readonly: Patterns for commands to treat as read-only.
        modifying: Patterns for commands to treat as modifying.
    """

    readonly: list[str] = field(default_factory=list)
    modifying: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RulesConfig":
        """Create config from dictionary."""
        return cls(
            readonly=[str(p) for p in data.get("readonly") or []],
            modifying=[str(p) for p in data.get("modifying") or []],
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "RulesConfig":
        """Load config from YAML file.

        A missing file yields an empty config.

        Raises:
            SmartApproveError: If the file is not valid YAML or not a mapping.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SmartApproveError(f"Cannot read rules file {path}: {e}") from e

        if not isinstance(data, dict):
            raise SmartApproveError(f"Rules file {path} must contain a mapping")
        return cls.from_dict(data)

    def compile(self) -> tuple[list[PatternRule], list[PatternRule]]:
        """Compile into (modifying, readonly) rule lists.

        Invalid regexes are skipped.
        """
        return (
            _compile_user(self.modifying, RuleCategory.MODIFYING),
            _compile_user(self.readonly, RuleCategory.READONLY),
        )


def _compile_user(patterns: list[str], category: RuleCategory) -> list[PatternRule]:
    rules = []
    for pattern in patterns:
        try:
            compiled = re.compile(pattern)
        except re.error:
            continue
        rules.append(
            PatternRule(
                pattern=compiled,
                category=category,
                domain=Domain.USER,
                description=f"user rule: {pattern}",
            )
        )
    return rules
