"""Data models for shell command analysis."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Classification(Enum):
    """What a command does to the world, as far as static analysis can tell."""

    READONLY = "readonly"  # No side effects
    MODIFYING = "modifying"  # Writes files, mutates state or sends data
    AMBIGUOUS = "ambiguous"  # Unknown; needs a later stage


class RuleCategory(Enum):
    """Which table a pattern rule belongs to."""

    READONLY = "readonly"
    MODIFYING = "modifying"


class Domain(Enum):
    """Human-readable area a pattern rule covers."""

    FILESYSTEM = "filesystem"
    REDIRECTION = "redirection"
    PACKAGE_MANAGER = "package manager"
    VCS = "version control"
    NETWORK = "network"
    PROCESS = "process control"
    TEXT_EDIT = "text editing"
    CONTAINER = "container"
    SYSTEM = "system"
    SEARCH = "search"
    CHECKSUM = "checksum"
    BUILD = "build"
    RUNTIME = "runtime"
    PERFORCE = "perforce"
    USER = "user rule"


@dataclass(frozen=True)
class PatternRule:
    """A compiled matcher tagged with its category and domain."""

    pattern: re.Pattern[str]
    category: RuleCategory
    domain: Domain
    description: str = ""
    ignore_quoted: bool = False  # Match with quoted text masked and comments dropped

    def matches(self, command: str, masked: str | None = None) -> bool:
        target = masked if self.ignore_quoted and masked is not None else command
        return self.pattern.search(target) is not None


@dataclass
class TokenizeResult:
    """Result of splitting a compound command."""

    commands: list[str]
    operators: list[str] = field(default_factory=list)
    unterminated: bool = False  # An opening quote or paren never closed

    @property
    def is_compound(self) -> bool:
        return len(self.commands) > 1


@dataclass
class LayeredResult:
    """Classification produced by the rule, alias and static layers together."""

    classification: Classification
    source: str = "rule"  # rule, alias or static
    script_path: str | None = None
    reason: str | None = None

    @property
    def is_readonly(self) -> bool:
        return self.classification == Classification.READONLY

    @property
    def is_modifying(self) -> bool:
        return self.classification == Classification.MODIFYING
