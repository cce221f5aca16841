"""Batch approval: one user confirmation for a multi-step plan.

States of the single batch record:

    absent   -> pending   a modifying/ambiguous command reaches the last
                          stage; the plan in the latest assistant turn is
                          stored and the command is denied with a summary
    pending  -> approved  a planned command arrives after the user said yes
    pending  -> pending   an unplanned command replaces the record
    approved -> (kept)    planned commands are allowed, others defer

Records expire after the batch TTL and belong to one session.
"""

from smart_approve.decision import Decision
from smart_approve.hitl.consent import detect_consent
from smart_approve.hitl.plan import extract_plan_commands
from smart_approve.logging import Loggers
from smart_approve.persistence.batch_store import APPROVED, PENDING, BatchRecord, BatchStore
from smart_approve.persistence.cache import normalize_command
from smart_approve.shell.classifier import RuleClassifier
from smart_approve.shell.models import Classification
from smart_approve.transcript import TranscriptReader

logger = Loggers.hitl()

APPROVED_REASON = "Batch approval: user approved the planned commands"


def format_summary(commands: list[str]) -> str:
    """Numbered, human-readable description of a batch."""
    lines = [
        f"The following {len(commands)} command(s) change files or system state "
        "and need the user's confirmation:",
        "",
    ]
    lines += [f"  {index}. {command}" for index, command in enumerate(commands, 1)]
    lines += [
        "",
        "Show this list to the user and ask whether to proceed. "
        "Once they agree, run the commands again.",
    ]
    return "\n".join(lines)


class BatchApprovalManager:
    """Drives the batch record through its states.

    Example:
        manager = BatchApprovalManager(store, classifier)
        decision = manager.check_prior_approval(session_id, command, transcript)
        if decision is None:
            decision = manager.evaluate(session_id, command, transcript)
    """

    def __init__(
        self,
        store: BatchStore,
        classifier: RuleClassifier | None = None,
        consent_turns: int = 3,
    ):
        """Initialize the manager.

        Args:
            store: Where the batch record lives.
            classifier: Used to drop read-only commands from a new plan.
            consent_turns: How many recent user messages are scanned.
        """
        self.store = store
        self.classifier = classifier or RuleClassifier()
        self.consent_turns = consent_turns

    def check_prior_approval(
        self, session_id: str, command: str, transcript: TranscriptReader
    ) -> Decision | None:
        """Allow a command already covered by the batch, else None.

        A pending record flips to approved here when the user has agreed
        since it was created.
        """
        record = self._load(session_id)
        if record is None or not self.is_member(record, command):
            return None

        if record.is_approved:
            return Decision.allow(APPROVED_REASON)

        if self._has_consent(record, transcript):
            return self._approve(record)
        return None

    def evaluate(
        self, session_id: str, command: str, transcript: TranscriptReader
    ) -> Decision:
        """Final stage for a command nothing else approved."""
        record = self._load(session_id)

        if record is None:
            return self._create(session_id, command, transcript)

        member = self.is_member(record, command)

        if record.is_approved:
            if member:
                return Decision.allow(APPROVED_REASON)
            logger.info("batch_not_member", command=command, status=record.status)
            return Decision.defer()

        if not member:
            logger.info("batch_replaced", command=command)
            return self._create(session_id, command, transcript)

        if self._has_consent(record, transcript):
            return self._approve(record)
        return Decision.deny(record.summary)

    @staticmethod
    def is_member(record: BatchRecord, command: str) -> bool:
        key = normalize_command(command)
        return any(normalize_command(c) == key for c in record.commands)

    def _load(self, session_id: str) -> BatchRecord | None:
        record = self.store.load()
        if record is None or record.session_id != session_id:
            return None
        return record

    def _has_consent(self, record: BatchRecord, transcript: TranscriptReader) -> bool:
        messages = transcript.recent_user_messages(
            self.consent_turns, since=record.created_at
        )
        return detect_consent(messages)

    def _approve(self, record: BatchRecord) -> Decision:
        record.status = APPROVED
        self.store.save(record)
        logger.info("batch_approved", commands=len(record.commands))
        return Decision.allow(APPROVED_REASON)

    def _create(
        self, session_id: str, command: str, transcript: TranscriptReader
    ) -> Decision:
        planned = [
            c
            for c in extract_plan_commands(transcript.last_assistant_turn())
            if self.classifier.classify(c) != Classification.READONLY
        ]

        key = normalize_command(command)
        if not any(normalize_command(c) == key for c in planned):
            planned.insert(0, command)

        record = BatchRecord(
            session_id=session_id,
            commands=planned,
            status=PENDING,
            summary=format_summary(planned),
            created_at=self.store.now(),
        )
        self.store.save(record)
        logger.info("batch_created", commands=len(planned))
        return Decision.deny(record.summary)
