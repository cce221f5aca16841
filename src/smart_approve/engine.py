"""The decision pipeline.

    command
       |
    LayeredClassifier (rules -> package aliases -> script analysis)
       |
       +-- readonly  -> allow
       |
       +-- modifying -> batch prior approval -> cache -> oracle (consent)
       |                                                       |
       +-- ambiguous -> cache -> oracle (classify) ------------+
                                                               |
                                                        batch evaluate

Oracle approvals are cached. Every stage that fails unexpectedly is
logged and treated as having no opinion, so the worst outcome of a bug
is an extra question to the user.
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING, Callable, TypeVar

from smart_approve.decision import Decision
from smart_approve.exceptions import SmartApproveError
from smart_approve.hitl.batch import BatchApprovalManager
from smart_approve.logging import Loggers
from smart_approve.oracle.adapter import OracleAdapter
from smart_approve.oracle.backends import OracleBackend, create_backend
from smart_approve.oracle.models import Framing
from smart_approve.persistence.batch_store import BatchStore
from smart_approve.persistence.cache import APPROVE, DecisionCache
from smart_approve.persistence.lock import LockPolicy, OracleLock
from smart_approve.shell.aliases import AliasResolver, extract_alias
from smart_approve.shell.classifier import RuleClassifier
from smart_approve.shell.config import RulesConfig
from smart_approve.shell.models import Classification, LayeredResult
from smart_approve.shell.scripts import ScriptAnalyzer, extract_script_path
from smart_approve.transcript import TranscriptReader

if TYPE_CHECKING:
    from smart_approve.config import SmartApproveSettings
    from smart_approve.hook import HookInput

logger = Loggers.engine()

T = TypeVar("T")

MAX_ALIAS_DEPTH = 3

RULE_READONLY_REASON = "Rule-based: read-only command"
ALIAS_READONLY_REASON = "Alias resolution: package script runs read-only commands"
STATIC_READONLY_REASON = "Static analysis: no write operations found in script"
CACHE_REASON = "Cache: command previously approved"
ORACLE_CLASSIFY_REASON = "LLM analysis: predicted safe to run"
ORACLE_CONSENT_REASON = "LLM analysis: user already consented to this command"

_READONLY_REASONS = {
    "rule": RULE_READONLY_REASON,
    "alias": ALIAS_READONLY_REASON,
    "static": STATIC_READONLY_REASON,
}

_CD = re.compile(r"""^cd(?:\s+(?P<target>"[^"]*"|'[^']*'|\S+))?\s*$""")


class LayeredClassifier:
    """Rule classification, then alias and script resolution for what is left.

    The rules decide first. Only when they call the command ambiguous are
    its sub-commands looked at one by one: ``npm run X`` is replaced by
    the script it names and classified again, and ``node x.js`` style
    commands get their script analyzed. ``cd`` sub-commands move the
    working directory used for the segments after them.
    """

    def __init__(
        self,
        classifier: RuleClassifier | None = None,
        aliases: AliasResolver | None = None,
        analyzer: ScriptAnalyzer | None = None,
    ):
        self.classifier = classifier or RuleClassifier()
        self.aliases = aliases or AliasResolver()
        self.analyzer = analyzer or ScriptAnalyzer()

    def classify(self, command: str, cwd: str | Path | None) -> LayeredResult:
        result = self._classify(command, Path(cwd) if cwd else None, 0)
        if result.reason is None and result.is_readonly:
            result.reason = _READONLY_REASONS[result.source]
        return result

    def _classify(self, command: str, cwd: Path | None, depth: int) -> LayeredResult:
        ruled = self.classifier.classify(command)
        if ruled != Classification.AMBIGUOUS:
            return LayeredResult(ruled, source="rule")

        results: list[LayeredResult] = []
        for segment in self.classifier.atomic_commands(command):
            match = _CD.match(segment)
            if match:
                cwd = _change_dir(cwd, match.group("target"))
                results.append(LayeredResult(Classification.READONLY, source="rule"))
                continue
            results.append(self._classify_segment(segment, cwd, depth))

        return _combine(results)

    def _classify_segment(
        self, segment: str, cwd: Path | None, depth: int
    ) -> LayeredResult:
        ruled = self.classifier.classify_atomic(segment)
        if ruled != Classification.AMBIGUOUS:
            return LayeredResult(ruled, source="rule")

        name = extract_alias(segment)
        if name is not None and cwd is not None and depth < MAX_ALIAS_DEPTH:
            resolved = self.aliases.resolve(name, cwd)
            if resolved is not None:
                logger.debug("alias_resolved", alias=name, command=resolved.command)
                inner = self._classify(resolved.command, resolved.manifest_dir, depth + 1)
                return LayeredResult(
                    inner.classification,
                    source="alias",
                    script_path=inner.script_path,
                )

        script = extract_script_path(segment)
        if script is not None:
            classification = self.analyzer.analyze(script, cwd)
            return LayeredResult(
                classification,
                source="static",
                script_path=str(cwd / script) if cwd and not Path(script).is_absolute() else script,
            )

        return LayeredResult(Classification.AMBIGUOUS, source="rule")


def _change_dir(cwd: Path | None, target: str | None) -> Path | None:
    if not target:
        return Path.home()
    target = target.strip("\"'")
    if target == "-":
        return cwd
    path = Path(target).expanduser()
    if path.is_absolute():
        return path
    return cwd / path if cwd else None


def _combine(results: list[LayeredResult]) -> LayeredResult:
    script_path = next((r.script_path for r in results if r.script_path), None)

    for r in results:
        if r.is_modifying:
            return LayeredResult(Classification.MODIFYING, r.source, script_path)

    if results and all(r.is_readonly for r in results):
        # Report the most specific layer that was needed
        sources = {r.source for r in results}
        source = "static" if "static" in sources else "alias" if "alias" in sources else "rule"
        return LayeredResult(Classification.READONLY, source, script_path)

    return LayeredResult(Classification.AMBIGUOUS, "rule", script_path)


class ApprovalEngine:
    """Decides one command request.

    Example:
        engine = ApprovalEngine.from_settings(settings)
        decision = engine.decide(request)
    """

    def __init__(
        self,
        layered: LayeredClassifier,
        cache: DecisionCache,
        oracle: OracleAdapter,
        batch: BatchApprovalManager,
        context_turns: int = 6,
    ):
        self.layered = layered
        self.cache = cache
        self.oracle = oracle
        self.batch = batch
        self.context_turns = context_turns

    @classmethod
    def from_settings(
        cls,
        settings: "SmartApproveSettings",
        backend: OracleBackend | None = None,
    ) -> "ApprovalEngine":
        """Build the pipeline from settings.

        Args:
            settings: Thresholds and state file locations.
            backend: Oracle backend override (defaults to the configured one).
        """
        rules = None
        if settings.rules_file is not None:
            try:
                rules = RulesConfig.from_yaml(settings.rules_file)
            except SmartApproveError as e:
                logger.warning("rules_file_ignored", error=str(e))

        classifier = RuleClassifier(rules)
        analyzer = ScriptAnalyzer()
        lock = OracleLock(
            settings.lock_path,
            LockPolicy(
                stale_after=settings.lock_stale_seconds,
                max_wait=settings.lock_max_wait_seconds,
                poll_interval=settings.lock_poll_seconds,
            ),
        )

        return cls(
            layered=LayeredClassifier(
                classifier,
                AliasResolver(settings.manifest_search_depth),
                analyzer,
            ),
            cache=DecisionCache(
                settings.cache_path,
                ttl_seconds=settings.cache_ttl_seconds,
                purge_seconds=settings.cache_purge_seconds,
            ),
            oracle=OracleAdapter(
                backend or create_backend(settings),
                lock,
                analyzer,
                timeout=settings.oracle_timeout_seconds,
                excerpt_chars=settings.script_excerpt_chars,
            ),
            batch=BatchApprovalManager(
                BatchStore(settings.batch_path, ttl_seconds=settings.batch_ttl_seconds),
                classifier,
                consent_turns=settings.consent_turns,
            ),
            context_turns=settings.context_turns,
        )

    def decide(self, request: "HookInput") -> Decision:
        """Run the pipeline for one hook request."""
        command = request.command
        session_id = request.session_id
        cwd = request.cwd or None
        transcript = TranscriptReader(request.transcript_path)

        result = self._stage(
            "classify",
            lambda: self.layered.classify(command, cwd),
            LayeredResult(Classification.AMBIGUOUS),
        )
        logger.info(
            "classified",
            command=command,
            classification=result.classification.value,
            source=result.source,
        )

        if result.is_readonly:
            return Decision.allow(result.reason or RULE_READONLY_REASON)

        if result.is_modifying:
            prior = self._stage(
                "batch_prior",
                lambda: self.batch.check_prior_approval(session_id, command, transcript),
                None,
            )
            if prior is not None:
                return prior
            framing = Framing.CONSENT
            approved_reason = ORACLE_CONSENT_REASON
        else:
            framing = Framing.CLASSIFY
            approved_reason = ORACLE_CLASSIFY_REASON

        if self._stage("cache_get", lambda: self.cache.get(session_id, command), None) == APPROVE:
            return Decision.allow(CACHE_REASON)

        context = self._stage(
            "context", lambda: transcript.recent_context(self.context_turns), ""
        )
        if framing is Framing.CLASSIFY and result.script_path and not context:
            # Nothing to find consent in; only the script's effect decides
            framing = Framing.EFFECT

        verdict = self.oracle.ask(
            command,
            framing=framing,
            cwd=cwd,
            context=context,
            script_path=result.script_path,
        )
        if verdict == framing.approving:
            self._stage("cache_put", lambda: self.cache.put(session_id, command, APPROVE), None)
            return Decision.allow(approved_reason)

        return self._stage(
            "batch_evaluate",
            lambda: self.batch.evaluate(session_id, command, transcript),
            Decision.defer(),
        )

    def _stage(self, name: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except Exception as e:
            logger.warning(
                "stage_failed",
                stage=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return default
