"""Tests for batch approval: consent, plan extraction and the batch record."""

import json
from pathlib import Path

import pytest

from smart_approve.decision import DecisionKind
from smart_approve.hitl import (
    BatchApprovalManager,
    detect_consent,
    extract_plan_commands,
    format_summary,
    is_affirmative,
)
from smart_approve.hitl.batch import APPROVED_REASON
from smart_approve.persistence import BatchRecord, BatchStore
from smart_approve.transcript import TranscriptReader, Turn
from tests.conftest import assistant_entry, user_entry

# 2023-11-14T22:13:20Z
NOW = 1_700_000_000.0
BEFORE = "2023-11-14T22:00:00.000Z"
AFTER = "2023-11-14T22:20:00.000Z"

PLAN_TEXT = (
    "Here is the plan:\n"
    "```bash\n"
    "ls\n"
    "npm run build\n"
    "make deploy\n"
    "```\n"
)


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestConsent:
    @pytest.mark.parametrize(
        "message",
        [
            "yes",
            "OK, go ahead",
            "sounds good!",
            "lgtm",
            "진행해주세요",
            "네",
            "넵!",
            "좋아요 계속 가자",
            "ㅇㅋ",
        ],
    )
    def test_affirmative(self, message):
        assert is_affirmative(message)

    @pytest.mark.parametrize(
        "message",
        [
            "",
            "no, don't proceed",
            "wait, not yet",
            "what does this command do?",
            "네트워크 확인해줘",
            "잠깐만 진행하지 마",
            "아니요",
            "yesterday's build was fine",
        ],
    )
    def test_not_affirmative(self, message):
        assert not is_affirmative(message)

    def test_detect_consent_any_message(self):
        assert detect_consent(["what is this?", "ok"])
        assert not detect_consent(["what is this?"])
        assert not detect_consent([])


class TestPlanExtraction:
    def test_fenced_block(self):
        turn = Turn(
            role="assistant",
            text=(
                "I'll run:\n"
                "```bash\n"
                "# build first\n"
                "npm run build\n"
                "rm -rf dist \\\n"
                "  --verbose\n"
                "```\n"
            ),
        )

        assert extract_plan_commands(turn) == ["npm run build", "rm -rf dist --verbose"]

    def test_console_block_keeps_prompt_lines_only(self):
        turn = Turn(
            role="assistant",
            text="```console\n$ ls\nfile.txt\n$ make test\nok\n```",
        )

        assert extract_plan_commands(turn) == ["ls", "make test"]

    def test_non_shell_fence_ignored(self):
        turn = Turn(role="assistant", text="```python\nimport os\n```")

        assert extract_plan_commands(turn) == []

    def test_list_items_and_tool_calls(self):
        turn = Turn(
            role="assistant",
            text="Steps:\n1. `git push`\n2) **`npm publish`**\n- `npm run build`\n",
            commands=["npm run build", "make clean"],
        )

        assert extract_plan_commands(turn) == [
            "git push",
            "npm publish",
            "npm run build",
            "make clean",
        ]

    def test_no_turn(self):
        assert extract_plan_commands(None) == []


class TestFormatSummary:
    def test_numbered(self):
        summary = format_summary(["npm run build", "make deploy"])

        assert "  1. npm run build\n  2. make deploy" in summary
        assert "2 command(s)" in summary


class TestBatchStore:
    def test_roundtrip_uses_camel_case(self, tmp_path: Path):
        store = BatchStore(tmp_path / "batch.json", clock=FakeClock())
        store.save(BatchRecord("s1", ["make deploy"], "pending", "summary", NOW))

        raw = json.loads((tmp_path / "batch.json").read_text())
        assert raw == {
            "sessionId": "s1",
            "commands": ["make deploy"],
            "status": "pending",
            "summary": "summary",
            "createdAt": NOW,
        }
        assert store.load() == BatchRecord("s1", ["make deploy"], "pending", "summary", NOW)

    def test_expired(self, tmp_path: Path):
        clock = FakeClock()
        store = BatchStore(tmp_path / "batch.json", clock=clock)
        store.save(BatchRecord("s1", ["x"], "pending", "", NOW))

        clock.now = NOW + 600

        assert store.load() is None

    @pytest.mark.parametrize(
        "content",
        [
            "{ broken",
            json.dumps({"commands": []}),
            json.dumps({"sessionId": "s1", "status": "weird", "createdAt": NOW}),
            json.dumps(["not", "an", "object"]),
        ],
    )
    def test_unusable_records(self, tmp_path: Path, content):
        (tmp_path / "batch.json").write_text(content)

        assert BatchStore(tmp_path / "batch.json", clock=FakeClock()).load() is None


class TestBatchApprovalManager:
    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def store(self, tmp_path: Path, clock) -> BatchStore:
        return BatchStore(tmp_path / "state" / "batch.json", clock=clock)

    @pytest.fixture
    def manager(self, store) -> BatchApprovalManager:
        return BatchApprovalManager(store)

    @pytest.fixture
    def planned(self, write_transcript) -> Path:
        return write_transcript(
            user_entry("deploy the app", timestamp=BEFORE),
            assistant_entry(PLAN_TEXT, timestamp=BEFORE),
        )

    def test_creates_pending_record(self, manager, store, planned):
        decision = manager.evaluate("s1", "npm run build", TranscriptReader(planned))

        assert decision.kind == DecisionKind.DENY
        assert "  1. npm run build\n  2. make deploy" in decision.reason

        record = store.load()
        assert record.is_pending
        assert record.session_id == "s1"
        # Read-only plan steps are not part of the batch
        assert record.commands == ["npm run build", "make deploy"]
        assert record.created_at == NOW

    def test_current_command_joins_batch(self, manager, store, planned):
        manager.evaluate("s1", "make clean", TranscriptReader(planned))

        assert store.load().commands == ["make clean", "npm run build", "make deploy"]

    def test_no_plan_batches_current_command(self, manager, store, write_transcript):
        path = write_transcript(user_entry("clean up", timestamp=BEFORE))

        decision = manager.evaluate("s1", "rm -rf build", TranscriptReader(path))

        assert decision.is_deny
        assert store.load().commands == ["rm -rf build"]

    def test_pending_member_without_consent_is_denied_again(self, manager, planned):
        first = manager.evaluate("s1", "npm run build", TranscriptReader(planned))
        again = manager.evaluate("s1", "make deploy", TranscriptReader(planned))

        assert again.is_deny
        assert again.reason == first.reason

    def test_consent_before_creation_does_not_count(self, manager, write_transcript):
        path = write_transcript(
            user_entry("yes go ahead", timestamp=BEFORE),
            assistant_entry(PLAN_TEXT, timestamp=BEFORE),
        )
        transcript = TranscriptReader(path)
        manager.evaluate("s1", "npm run build", transcript)

        assert manager.check_prior_approval("s1", "npm run build", transcript) is None
        assert manager.evaluate("s1", "npm run build", transcript).is_deny

    def test_consent_approves_batch(self, manager, store, planned, write_transcript):
        manager.evaluate("s1", "npm run build", TranscriptReader(planned))

        replied = write_transcript(
            user_entry("deploy the app", timestamp=BEFORE),
            assistant_entry(PLAN_TEXT, timestamp=BEFORE),
            user_entry("네, 진행해주세요", timestamp=AFTER),
            name="replied.jsonl",
        )
        transcript = TranscriptReader(replied)

        decision = manager.check_prior_approval("s1", "npm run build", transcript)

        assert decision.is_allow
        assert decision.reason == APPROVED_REASON
        assert store.load().is_approved

        assert manager.check_prior_approval("s1", "make deploy", transcript).is_allow

    def test_consent_via_evaluate(self, manager, store, planned, write_transcript):
        manager.evaluate("s1", "npm run build", TranscriptReader(planned))
        replied = write_transcript(
            assistant_entry(PLAN_TEXT, timestamp=BEFORE),
            user_entry("ok", timestamp=AFTER),
            name="replied.jsonl",
        )

        assert manager.evaluate("s1", "make deploy", TranscriptReader(replied)).is_allow
        assert store.load().is_approved

    def test_approved_non_member_defers(self, manager, store):
        store.save(BatchRecord("s1", ["make deploy"], "approved", "summary", NOW))
        transcript = TranscriptReader(None)

        assert manager.check_prior_approval("s1", "rm -rf /", transcript) is None
        assert manager.evaluate("s1", "rm -rf /", transcript).is_defer
        assert store.load().commands == ["make deploy"]

    def test_membership_uses_normalized_form(self, manager, store):
        store.save(BatchRecord("s1", ["cd /app && make deploy"], "approved", "", NOW))

        decision = manager.check_prior_approval("s1", "cd /app;  make deploy", TranscriptReader(None))

        assert decision.is_allow

    def test_pending_non_member_replaces_record(self, manager, store, planned):
        manager.evaluate("s1", "npm run build", TranscriptReader(planned))

        decision = manager.evaluate("s1", "git push", TranscriptReader(planned))

        assert decision.is_deny
        assert store.load().commands == ["git push", "npm run build", "make deploy"]

    def test_other_session_is_absent(self, manager, store, planned):
        store.save(BatchRecord("s1", ["npm run build"], "approved", "", NOW))

        assert manager.check_prior_approval("s2", "npm run build", TranscriptReader(planned)) is None
        assert manager.evaluate("s2", "npm run build", TranscriptReader(planned)).is_deny
        assert store.load().session_id == "s2"

    def test_expired_record_is_absent(self, manager, store, clock, planned):
        store.save(BatchRecord("s1", ["npm run build"], "approved", "", NOW - 601))

        assert manager.check_prior_approval("s1", "npm run build", TranscriptReader(planned)) is None
