"""Static shell command analysis.

Three layers answer "what would this command do?" without running it:
- Tokenization: split compound commands on unquoted control operators
- Rule classification: readonly/modifying pattern tables per sub-command
- Script and alias resolution: look through ``node x.js`` and
  ``npm run x`` to the code or command they actually run

Usage:
    from smart_approve.shell import RuleClassifier

    classifier = RuleClassifier()
    classifier.classify("ls -la && cat f.txt")  # Classification.READONLY
    classifier.classify("ls && rm -rf x")  # Classification.MODIFYING
"""

from smart_approve.shell.aliases import (
    AliasResolver,
    ResolvedAlias,
    extract_alias,
    find_manifest,
)
from smart_approve.shell.classifier import RuleClassifier
from smart_approve.shell.config import RulesConfig
from smart_approve.shell.models import (
    Classification,
    Domain,
    LayeredResult,
    PatternRule,
    RuleCategory,
    TokenizeResult,
)
from smart_approve.shell.scripts import (
    ScriptAnalyzer,
    extract_script_path,
    source_language,
)
from smart_approve.shell.tokenizer import CommandTokenizer, unwrap_shell

__all__ = [
    "AliasResolver",
    "Classification",
    "CommandTokenizer",
    "Domain",
    "LayeredResult",
    "PatternRule",
    "ResolvedAlias",
    "RuleCategory",
    "RuleClassifier",
    "RulesConfig",
    "ScriptAnalyzer",
    "TokenizeResult",
    "extract_alias",
    "extract_script_path",
    "find_manifest",
    "source_language",
    "unwrap_shell",
]
