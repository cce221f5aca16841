"""Settings mixins for state layout, engine thresholds and logging.

AppSettingsMixin: Disk layout (state dir, file paths).
EngineSettingsMixin: Pipeline thresholds (cache TTLs, lock policy, oracle).
CLISettingsMixin: Logging settings.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator


class AppSettingsMixin:
    """Settings for the on-disk state layout.

    Should be composed with BaseSettings via multiple inheritance.
    """

    state_dir: Path = Field(
        default_factory=lambda: Path.home() / ".claude" / "smart-approve",
        title="State Directory",
        description="Per-user directory holding the cache, lock and batch files",
    )

    rules_file: Path | None = Field(
        default=None,
        title="Rules File",
        description="Optional YAML file with extra readonly/modifying patterns",
    )

    @field_validator("state_dir", "rules_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        """Expand ~ in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def cache_path(self) -> Path:
        """Decision cache file."""
        return self.state_dir / "decision_cache.json"

    @property
    def lock_path(self) -> Path:
        """Oracle lock marker file."""
        return self.state_dir / "oracle.lock"

    @property
    def batch_path(self) -> Path:
        """Batch approval record file."""
        return self.state_dir / "batch.json"

    @property
    def debug_log_path(self) -> Path:
        """Append-only debug log."""
        return self.state_dir / "debug.log"


class EngineSettingsMixin:
    """Thresholds for the decision pipeline.

    Should be composed with BaseSettings via multiple inheritance.
    """

    # Decision cache
    cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Entries from other sessions are honoured for this long",
    )
    cache_purge_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        description="Entries older than this are deleted on every write",
    )

    # Oracle lock
    lock_stale_seconds: float = Field(
        default=30.0,
        description="A lock marker older than this is considered abandoned",
    )
    lock_max_wait_seconds: float = Field(
        default=10.0,
        description="Give up waiting for the lock after this long and run unlocked",
    )
    lock_poll_seconds: float = Field(
        default=1.0,
        description="Interval between lock acquisition attempts",
    )

    # Batch approval
    batch_ttl_seconds: int = Field(
        default=10 * 60,
        description="A batch record older than this is ignored",
    )
    consent_turns: int = Field(
        default=3,
        description="Number of recent user messages scanned for consent",
    )

    # Oracle
    oracle_backend: Literal["cli", "api", "none"] = Field(
        default="cli",
        title="Oracle Backend",
        description="How the external oracle is reached",
    )
    oracle_model: str = Field(
        default="haiku",
        description="Model alias passed to the claude CLI",
    )
    oracle_api_model: str = Field(
        default="claude-3-5-haiku-latest",
        description="Model id used with the Messages API backend",
    )
    oracle_timeout_seconds: float = Field(
        default=15.0,
        description="Hard timeout for a single oracle call (no retry)",
    )
    script_excerpt_chars: int = Field(
        default=5000,
        description="Maximum script content included in the oracle prompt",
    )
    context_turns: int = Field(
        default=6,
        description="Conversation turns included in the oracle prompt",
    )
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key for the api oracle backend",
        validation_alias="ANTHROPIC_API_KEY",
    )

    # Alias resolution
    manifest_search_depth: int = Field(
        default=10,
        description="Parent directories searched for package.json",
    )


class CLISettingsMixin:
    """Logging configuration.

    Note: This is a mixin, not a BaseSettings subclass, to avoid
    MRO issues when composed with other settings classes.
    """

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format (console for dev, json for production)",
    )
    debug: bool = Field(
        default=False,
        title="Debug Log",
        description="Append every event to debug.log in the state directory",
    )
