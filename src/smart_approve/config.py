"""Configuration for smart-approve.

Settings Management:
    1. Global singleton (simple cases):
        set_settings(my_settings)
        settings = get_settings()

    2. Context-based (tests, isolated runs):
        with SettingsContext(my_settings):
            settings = get_settings()  # Returns my_settings

Settings Loading Priority (highest to lowest):
    1. Constructor arguments
    2. Environment variables (SMART_APPROVE_* prefix)
    3. Project config (./.smart_approve/settings.json)
    4. User config (~/.smart_approve/settings.json)
    5. .env file
    6. Default values
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Generator, Tuple, Type

from pydantic_settings import (
    BaseSettings as PydanticBaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from smart_approve.settings_mixins import (
    AppSettingsMixin,
    CLISettingsMixin,
    EngineSettingsMixin,
)

__all__ = [
    "SmartApproveSettings",
    "SettingsContext",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "reload_settings",
]

APP_NAME = "smart_approve"


def _get_json_config_source(
    settings_cls: Type[PydanticBaseSettings],
    json_file: Path,
) -> PydanticBaseSettingsSource | None:
    """Create a JSON config source if the file exists."""
    if not json_file.exists():
        return None
    return JsonConfigSettingsSource(settings_cls, json_file=json_file)


class SmartApproveSettings(
    EngineSettingsMixin, AppSettingsMixin, CLISettingsMixin, PydanticBaseSettings
):
    """Settings for the smart-approve hook.

    Mixins provide organized settings:
    - EngineSettingsMixin: Cache, lock, batch and oracle thresholds
    - AppSettingsMixin: State directory layout
    - CLISettingsMixin: Logging
    """

    model_config = SettingsConfigDict(
        env_prefix="SMART_APPROVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[PydanticBaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Layer JSON config files between env vars and .env.

        Note: JSON sources are only included if the files exist.
        """
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
        ]

        project_json = _get_json_config_source(
            settings_cls,
            Path.cwd() / f".{APP_NAME}" / "settings.json",
        )
        if project_json:
            sources.append(project_json)

        user_json = _get_json_config_source(
            settings_cls,
            Path.home() / f".{APP_NAME}" / "settings.json",
        )
        if user_json:
            sources.append(user_json)

        sources.append(dotenv_settings)

        return tuple(sources)


_settings_context: ContextVar[SmartApproveSettings | None] = ContextVar(
    "settings_context", default=None
)

_settings_instance: SmartApproveSettings | None = None


def get_settings() -> SmartApproveSettings:
    """Get the current settings instance.

    Resolution order:
    1. Context variable (set via SettingsContext or set_context_settings)
    2. Global singleton (set via set_settings)
    3. Fresh SmartApproveSettings instance (created on first access)
    """
    context_settings = _settings_context.get()
    if context_settings is not None:
        return context_settings

    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SmartApproveSettings()
    return _settings_instance


def set_settings(settings: SmartApproveSettings) -> None:
    """Set the global settings instance."""
    global _settings_instance
    _settings_instance = settings


def set_context_settings(settings: SmartApproveSettings | None) -> Token:
    """Set settings for the current context.

    Returns:
        Token that can be used to reset the context variable.
    """
    return _settings_context.set(settings)


@contextmanager
def SettingsContext(
    settings: SmartApproveSettings,
) -> Generator[SmartApproveSettings, None, None]:
    """Context manager for isolated settings.

    Example:
        with SettingsContext(test_settings) as s:
            decision = engine.decide(request)
    """
    token = _settings_context.set(settings)
    try:
        yield settings
    finally:
        _settings_context.reset(token)


def reload_settings() -> SmartApproveSettings:
    """Reload settings (clears global singleton and context)."""
    global _settings_instance
    _settings_instance = None
    _settings_context.set(None)
    return get_settings()
