"""Oracle adapter: prompt in, verdict out, never an exception."""

import re
from pathlib import Path

from smart_approve.exceptions import OracleUnavailable
from smart_approve.logging import Loggers
from smart_approve.oracle.backends import OracleBackend
from smart_approve.oracle.models import Framing, Verdict
from smart_approve.oracle.prompts import build_prompt
from smart_approve.persistence.lock import OracleLock
from smart_approve.shell.scripts import ScriptAnalyzer

logger = Loggers.oracle()

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_EXCERPT_CHARS = 5000

_NON_WORD = re.compile(r"[^A-Za-z]")


def parse_verdict(response: str, framing: Framing) -> Verdict:
    """Map a raw oracle response to a verdict.

    The response must be a single word (surrounding quotes, markdown and
    punctuation are ignored) naming one of the framing's two answers.
    Anything else is AMBIGUOUS.
    """
    words = response.split()
    if len(words) != 1:
        return Verdict.AMBIGUOUS

    word = _NON_WORD.sub("", words[0]).upper()
    for verdict in framing.answers:
        if word == verdict.name:
            return verdict
    return Verdict.AMBIGUOUS


class OracleAdapter:
    """Asks the external oracle one question under the oracle lock.

    Example:
        >>> adapter = OracleAdapter(ClaudeCliBackend(), OracleLock(path))
        >>> adapter.ask("make deploy", framing=Framing.CONSENT, cwd="/app",
        ...             context=transcript.recent_context(6))
        <Verdict.DENY: 'deny'>
    """

    def __init__(
        self,
        backend: OracleBackend,
        lock: OracleLock,
        analyzer: ScriptAnalyzer | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ):
        self.backend = backend
        self.lock = lock
        self.analyzer = analyzer or ScriptAnalyzer()
        self.timeout = timeout
        self.excerpt_chars = excerpt_chars

    def ask(
        self,
        command: str,
        *,
        framing: Framing,
        cwd: str | Path | None,
        context: str = "",
        script_path: str | None = None,
    ) -> Verdict:
        """Ask one question. Failures of any kind yield AMBIGUOUS."""
        try:
            excerpt = None
            if script_path:
                excerpt = self.analyzer.read_excerpt(
                    script_path, cwd, self.excerpt_chars + 1
                )

            prompt = build_prompt(
                command,
                framing,
                cwd=str(cwd) if cwd else None,
                context=context,
                script_path=script_path,
                script_excerpt=excerpt,
                excerpt_limit=self.excerpt_chars,
            )

            with self.lock.hold() as held:
                logger.debug(
                    "oracle_request",
                    framing=framing.value,
                    command=command,
                    locked=held,
                )
                response = self.backend.complete(prompt, self.timeout)
        except OracleUnavailable as e:
            logger.info("oracle_unavailable", framing=framing.value, error=str(e))
            return Verdict.AMBIGUOUS
        except Exception as e:
            logger.warning(
                "oracle_error",
                framing=framing.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Verdict.AMBIGUOUS

        verdict = parse_verdict(response, framing)
        logger.info(
            "oracle_verdict",
            framing=framing.value,
            verdict=verdict.value,
            response=response.strip()[:50],
        )
        return verdict
