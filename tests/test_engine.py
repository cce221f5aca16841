"""Tests for the layered classifier and the decision pipeline."""

import json
from pathlib import Path

import pytest

from smart_approve.engine import (
    ALIAS_READONLY_REASON,
    CACHE_REASON,
    ORACLE_CLASSIFY_REASON,
    ORACLE_CONSENT_REASON,
    RULE_READONLY_REASON,
    STATIC_READONLY_REASON,
    ApprovalEngine,
    LayeredClassifier,
)
from smart_approve.hitl.batch import APPROVED_REASON
from smart_approve.hook import HookInput
from smart_approve.oracle.prompts import (
    CLASSIFY_INSTRUCTIONS,
    CONSENT_INSTRUCTIONS,
    EFFECT_INSTRUCTIONS,
)
from smart_approve.shell import Classification
from tests.conftest import FakeBackend, MockContext, assistant_entry, user_entry


def write_package(directory: Path, scripts: dict[str, str]) -> None:
    (directory / "package.json").write_text(json.dumps({"name": "app", "scripts": scripts}))


@pytest.fixture
def layered() -> LayeredClassifier:
    return LayeredClassifier()


class TestLayeredClassifier:
    def test_rule_readonly(self, layered, project_dir):
        result = layered.classify("git status", project_dir)

        assert result.classification == Classification.READONLY
        assert result.source == "rule"
        assert result.reason == RULE_READONLY_REASON

    def test_rule_modifying_short_circuits(self, layered, project_dir):
        write_package(project_dir, {"check": "tsc --noEmit"})

        result = layered.classify("npm run check && rm -rf dist", project_dir)

        assert result.classification == Classification.MODIFYING
        assert result.reason is None

    def test_alias_readonly(self, layered, project_dir):
        write_package(project_dir, {"check": "tsc --noEmit"})

        result = layered.classify("npm run check", project_dir)

        assert result.classification == Classification.READONLY
        assert result.source == "alias"
        assert result.reason == ALIAS_READONLY_REASON

    def test_alias_modifying(self, layered, project_dir):
        write_package(project_dir, {"clean": "rm -rf dist"})

        result = layered.classify("npm run clean", project_dir)

        assert result.classification == Classification.MODIFYING
        assert result.source == "alias"

    def test_pre_script_runs_first(self, layered, project_dir):
        write_package(project_dir, {"prebuild": "rm -rf dist", "build": "tsc --noEmit"})

        result = layered.classify("npm run build", project_dir)

        assert result.classification == Classification.MODIFYING
        assert result.source == "alias"

    def test_readonly_post_script(self, layered, project_dir):
        write_package(project_dir, {"check": "tsc --noEmit", "postcheck": "git status"})

        assert layered.classify("npm run check", project_dir).is_readonly

    def test_nested_alias(self, layered, project_dir):
        write_package(
            project_dir,
            {"ci": "npm run check && git status", "check": "tsc --noEmit"},
        )

        assert layered.classify("npm run ci", project_dir).is_readonly

    def test_self_referencing_alias_terminates(self, layered, project_dir):
        write_package(project_dir, {"loop": "npm run loop"})

        assert layered.classify("npm run loop", project_dir).classification == Classification.AMBIGUOUS

    def test_unknown_alias_is_ambiguous(self, layered, project_dir):
        write_package(project_dir, {"build": "vite build"})

        assert layered.classify("npm run deploy", project_dir).classification == Classification.AMBIGUOUS

    def test_alias_to_script(self, layered, project_dir):
        write_package(project_dir, {"gen": "node tools/gen.js"})
        (project_dir / "tools").mkdir()
        (project_dir / "tools" / "gen.js").write_text("require('fs').writeFileSync('out.json', '{}');\n")

        result = layered.classify("yarn gen", project_dir)

        assert result.classification == Classification.MODIFYING
        assert result.script_path == str(project_dir / "tools/gen.js")

    def test_static_readonly(self, layered, project_dir):
        (project_dir / "build.mjs").write_text("console.log('nothing to do');\n")

        result = layered.classify("node build.mjs", project_dir)

        assert result.classification == Classification.READONLY
        assert result.reason == STATIC_READONLY_REASON

    def test_cd_moves_working_directory(self, layered, project_dir):
        sub = project_dir / "sub"
        sub.mkdir()
        (sub / "build.mjs").write_text("console.log('ok');\n")

        result = layered.classify("cd sub && node build.mjs", project_dir)

        assert result.is_readonly
        assert result.source == "static"
        assert result.script_path == str(sub / "build.mjs")

    def test_static_modifying_reports_script(self, layered, project_dir):
        (project_dir / "gen.js").write_text("require('child_process').execSync('make');\n")

        result = layered.classify("node gen.js", project_dir)

        assert result.is_modifying
        assert result.script_path == str(project_dir / "gen.js")

    def test_missing_script_is_ambiguous(self, layered, project_dir):
        result = layered.classify("node missing.js", project_dir)

        assert result.classification == Classification.AMBIGUOUS
        assert result.script_path == str(project_dir / "missing.js")

    def test_unknown_command(self, layered, project_dir):
        assert layered.classify("frobnicate --all", project_dir).classification == Classification.AMBIGUOUS


@pytest.fixture
def context():
    with MockContext() as ctx:
        yield ctx


def request(command: str, cwd: Path, transcript: Path | None = None, session: str = "s1") -> HookInput:
    return HookInput(
        tool_name="Bash",
        tool_input={"command": command},
        cwd=str(cwd),
        session_id=session,
        transcript_path=str(transcript) if transcript else None,
    )


class TestApprovalEngine:
    def test_readonly_skips_oracle(self, context, project_dir):
        backend = FakeBackend("DENY")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        decision = engine.decide(request("git status", project_dir))

        assert decision.is_allow
        assert decision.reason == RULE_READONLY_REASON
        assert backend.calls == 0

    def test_modifying_asks_consent_and_caches(self, context, project_dir, write_transcript):
        transcript = write_transcript(user_entry("please delete the dist folder"))
        backend = FakeBackend("APPROVE")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        first = engine.decide(request("rm -rf dist", project_dir, transcript))

        assert first.is_allow
        assert first.reason == ORACLE_CONSENT_REASON
        assert CONSENT_INSTRUCTIONS in backend.prompts[0]
        assert "User: please delete the dist folder" in backend.prompts[0]

        second = engine.decide(request("rm -rf dist", project_dir, transcript))

        assert second.reason == CACHE_REASON
        assert backend.calls == 1

    def test_cache_shared_across_sessions_within_ttl(self, context, project_dir):
        backend = FakeBackend("APPROVE")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)
        engine.decide(request("make release", project_dir, session="s1"))

        decision = engine.decide(request("make release", project_dir, session="s2"))

        assert decision.reason == CACHE_REASON

    def test_ambiguous_asks_classify_with_script(self, context, project_dir, write_transcript):
        transcript = write_transcript(user_entry("regenerate the fixtures"))
        backend = FakeBackend("APPROVE")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        decision = engine.decide(request("node missing.js", project_dir, transcript))

        assert decision.reason == ORACLE_CLASSIFY_REASON
        assert CLASSIFY_INSTRUCTIONS in backend.prompts[0]

    def test_script_without_conversation_asks_effect(self, context, project_dir):
        backend = FakeBackend("READONLY")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        decision = engine.decide(request("node missing.js", project_dir))

        assert decision.reason == ORACLE_CLASSIFY_REASON
        assert EFFECT_INSTRUCTIONS in backend.prompts[0]
        assert engine.decide(request("node missing.js", project_dir)).reason == CACHE_REASON

    def test_effect_question_ignores_approve(self, context, project_dir):
        engine = ApprovalEngine.from_settings(context.settings, backend=FakeBackend("APPROVE"))

        assert not engine.decide(request("node missing.js", project_dir)).is_allow

    def test_script_content_sent_to_oracle(self, context, project_dir):
        (project_dir / "gen.js").write_text("require('fs').writeFileSync('a', 'b');\n")
        backend = FakeBackend("DENY")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        engine.decide(request("node gen.js", project_dir))

        assert f"Script file content ({project_dir / 'gen.js'}):" in backend.prompts[0]
        assert "writeFileSync" in backend.prompts[0]

    def test_oracle_deny_creates_batch(self, context, project_dir, write_transcript):
        transcript = write_transcript(
            user_entry("ship it"),
            assistant_entry("Plan:\n```bash\nnpm run build\nmake deploy\n```"),
        )
        engine = ApprovalEngine.from_settings(context.settings, backend=FakeBackend("DENY"))

        decision = engine.decide(request("make deploy", project_dir, transcript))

        assert decision.is_deny
        assert "  1. npm run build\n  2. make deploy" in decision.reason
        assert context.settings.batch_path.exists()
        assert not context.settings.cache_path.exists()

    def test_batch_approval_after_consent(self, context, project_dir, write_transcript):
        plan = assistant_entry("Plan:\n```bash\nrm -rf dist\ngit push\nmake deploy\n```")
        backend = FakeBackend("DENY")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)
        denied = engine.decide(request("rm -rf dist", project_dir, write_transcript(plan)))

        assert denied.is_deny
        assert "  1. rm -rf dist\n  2. git push\n  3. make deploy" in denied.reason

        replied = write_transcript(plan, user_entry("yes, go ahead"), name="replied.jsonl")
        calls = backend.calls

        decision = engine.decide(request("rm -rf dist", project_dir, replied))

        # Modifying commands find the approval before the oracle is asked
        assert decision.reason == APPROVED_REASON
        assert backend.calls == calls
        assert engine.decide(request("git push", project_dir, replied)).reason == APPROVED_REASON

        ambiguous = engine.decide(request("make deploy", project_dir, replied))

        assert ambiguous.reason == APPROVED_REASON

    def test_approved_batch_defers_other_commands(self, context, project_dir, write_transcript):
        plan = assistant_entry("```bash\nmake deploy\n```")
        engine = ApprovalEngine.from_settings(context.settings, backend=FakeBackend("DENY"))
        engine.decide(request("make deploy", project_dir, write_transcript(plan)))
        replied = write_transcript(plan, user_entry("ok"), name="replied.jsonl")
        engine.decide(request("make deploy", project_dir, replied))

        decision = engine.decide(request("git push", project_dir, replied))

        assert decision.is_defer

    def test_oracle_unavailable_falls_through_to_batch(self, context, project_dir, unavailable_backend):
        engine = ApprovalEngine.from_settings(context.settings, backend=unavailable_backend)

        decision = engine.decide(request("rm -rf dist", project_dir))

        assert decision.is_deny
        assert "  1. rm -rf dist" in decision.reason

    def test_failing_stage_degrades(self, context, project_dir, monkeypatch):
        backend = FakeBackend("APPROVE")
        engine = ApprovalEngine.from_settings(context.settings, backend=backend)

        def broken(command, cwd):
            raise RuntimeError("classifier bug")

        monkeypatch.setattr(engine.layered, "classify", broken)

        decision = engine.decide(request("git status", project_dir))

        assert decision.reason == ORACLE_CLASSIFY_REASON
        assert CLASSIFY_INSTRUCTIONS in backend.prompts[0]

    def test_failing_batch_defers(self, context, project_dir, monkeypatch):
        engine = ApprovalEngine.from_settings(context.settings, backend=FakeBackend("DENY"))

        def broken(*args):
            raise OSError("disk full")

        monkeypatch.setattr(engine.batch, "evaluate", broken)

        assert engine.decide(request("frobnicate", project_dir)).is_defer

    def test_user_rules_file(self, project_dir):
        rules = project_dir / "rules.yaml"
        rules.write_text("readonly:\n  - '^frobnicate\\b'\n")

        with MockContext(rules_file=rules) as ctx:
            engine = ApprovalEngine.from_settings(ctx.settings, backend=FakeBackend())
            decision = engine.decide(request("frobnicate --all", project_dir))

        assert decision.reason == RULE_READONLY_REASON

    def test_broken_rules_file_ignored(self, project_dir):
        rules = project_dir / "rules.yaml"
        rules.write_text("readonly: [unclosed\n")

        with MockContext(rules_file=rules) as ctx:
            engine = ApprovalEngine.from_settings(ctx.settings, backend=FakeBackend())

            assert engine.decide(request("git status", project_dir)).is_allow
