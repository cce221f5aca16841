"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from smart_approve.config import (
    SettingsContext,
    SmartApproveSettings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
)


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "state"


class TestSmartApproveSettings:
    """Tests for SmartApproveSettings class."""

    def test_default_values(self, state_dir: Path):
        """Test default settings values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SmartApproveSettings(state_dir=state_dir)

        assert settings.cache_ttl_seconds == 24 * 60 * 60
        assert settings.cache_purge_seconds == 7 * 24 * 60 * 60
        assert settings.lock_stale_seconds == 30.0
        assert settings.lock_max_wait_seconds == 10.0
        assert settings.lock_poll_seconds == 1.0
        assert settings.batch_ttl_seconds == 10 * 60
        assert settings.consent_turns == 3
        assert settings.oracle_backend == "cli"
        assert settings.oracle_timeout_seconds == 15.0
        assert settings.script_excerpt_chars == 5000
        assert settings.context_turns == 6
        assert settings.manifest_search_depth == 10
        assert settings.log_level == "warning"
        assert settings.debug is False
        assert settings.anthropic_api_key is None
        assert settings.rules_file is None

    def test_default_state_dir(self):
        """Test the state directory lives under the host's config dir."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SmartApproveSettings()

        assert settings.state_dir == Path.home() / ".claude" / "smart-approve"

    def test_path_expansion(self):
        """Test that ~ is expanded in state_dir and rules_file."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SmartApproveSettings(
                state_dir="~/sa_state",
                rules_file="~/sa_rules.yaml",
            )

        assert settings.state_dir == Path.home() / "sa_state"
        assert settings.rules_file == Path.home() / "sa_rules.yaml"

    def test_derived_paths(self, state_dir: Path):
        """Test derived state file paths."""
        with patch.dict(os.environ, {}, clear=True):
            settings = SmartApproveSettings(state_dir=state_dir)

        assert settings.cache_path == state_dir / "decision_cache.json"
        assert settings.lock_path == state_dir / "oracle.lock"
        assert settings.batch_path == state_dir / "batch.json"
        assert settings.debug_log_path == state_dir / "debug.log"

    def test_env_prefix(self, state_dir: Path):
        """Test SMART_APPROVE_* environment variables are read."""
        env = {
            "SMART_APPROVE_CACHE_TTL_SECONDS": "60",
            "SMART_APPROVE_ORACLE_BACKEND": "api",
            "SMART_APPROVE_DEBUG": "true",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = SmartApproveSettings(state_dir=state_dir)

        assert settings.cache_ttl_seconds == 60
        assert settings.oracle_backend == "api"
        assert settings.debug is True

    def test_api_key_from_unprefixed_env(self, state_dir: Path):
        """Test the Anthropic key uses its conventional variable name."""
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-test"}, clear=True):
            settings = SmartApproveSettings(state_dir=state_dir)

        assert settings.anthropic_api_key == "sk-test"

    def test_invalid_backend_rejected(self, state_dir: Path):
        """Test unknown oracle backends fail validation."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError):
                SmartApproveSettings(state_dir=state_dir, oracle_backend="carrier-pigeon")

    def test_project_json_config(self, state_dir: Path, tmp_path: Path, monkeypatch):
        """Test project settings.json sits below environment variables."""
        config_dir = tmp_path / ".smart_approve"
        config_dir.mkdir()
        (config_dir / "settings.json").write_text(
            json.dumps({"consent_turns": 5, "context_turns": 2})
        )
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {"SMART_APPROVE_CONTEXT_TURNS": "9"}, clear=True):
            settings = SmartApproveSettings(state_dir=state_dir)

        assert settings.consent_turns == 5
        assert settings.context_turns == 9


class TestGlobalSettings:
    """Tests for global settings management."""

    def test_get_settings_creates_default(self):
        """Test get_settings creates default instance."""
        reload_settings()

        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()

        assert isinstance(settings, SmartApproveSettings)

    def test_set_settings(self, state_dir: Path):
        """Test set_settings replaces global instance."""
        with patch.dict(os.environ, {}, clear=True):
            custom_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=5)

        set_settings(custom_settings)
        retrieved = get_settings()

        assert retrieved.consent_turns == 5
        assert retrieved.state_dir == state_dir

    def test_reload_settings(self, state_dir: Path):
        """Test reload_settings clears and recreates."""
        with patch.dict(os.environ, {}, clear=True):
            custom = SmartApproveSettings(state_dir=state_dir, consent_turns=5)
        set_settings(custom)

        with patch.dict(os.environ, {}, clear=True):
            reloaded = reload_settings()

        assert reloaded.consent_turns == 3


class TestSettingsContext:
    """Tests for context-based settings management."""

    def test_settings_context_basic(self, state_dir: Path):
        """Test SettingsContext sets and clears context."""
        with patch.dict(os.environ, {}, clear=True):
            global_settings = SmartApproveSettings(state_dir=state_dir)
            context_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=7)

        set_settings(global_settings)

        assert get_settings().consent_turns == 3

        with SettingsContext(context_settings):
            assert get_settings().consent_turns == 7

        assert get_settings().consent_turns == 3

    def test_settings_context_nested(self, state_dir: Path):
        """Test nested SettingsContext works correctly."""
        with patch.dict(os.environ, {}, clear=True):
            outer_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=4)
            inner_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=8)

        with SettingsContext(outer_settings):
            assert get_settings().consent_turns == 4

            with SettingsContext(inner_settings):
                assert get_settings().consent_turns == 8

            assert get_settings().consent_turns == 4

    def test_context_takes_precedence_over_global(self, state_dir: Path):
        """Test that context settings take precedence over global."""
        with patch.dict(os.environ, {}, clear=True):
            global_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=4)
            context_settings = SmartApproveSettings(state_dir=state_dir, consent_turns=7)

        set_settings(global_settings)
        set_context_settings(context_settings)

        assert get_settings().consent_turns == 7

        set_context_settings(None)
        assert get_settings().consent_turns == 4
