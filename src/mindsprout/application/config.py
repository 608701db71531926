import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mindsprout.domain.constants import DEFAULT_SESSION_LIMIT
from mindsprout.domain.models import Strategy


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mindsprout/config.toml",
        Path.home() / ".mindsprout.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mindsprout.
    Supports loading from:
    1. Config file (~/.config/mindsprout/config.toml or ~/.mindsprout.toml)
    2. Environment variables (MINDSPROUT_*)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MINDSPROUT_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/mindsprout")

    # Storage
    backend: Literal["json", "memory"] = "json"

    # Deck defaults for newly created decks
    default_session_limit: int = Field(default=DEFAULT_SESSION_LIMIT, gt=0)
    default_strategy: Strategy = Strategy.STANDARD

    # 0 warnings only, 1 info, 2+ debug
    verbose: int = Field(default=1, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins; earlier sources take priority
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @property
    def log_level(self) -> int:
        if self.verbose >= 2:
            return logging.DEBUG
        if self.verbose == 1:
            return logging.INFO
        return logging.WARNING


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mindsprout/config.toml (if exists)
    3. Environment variables (MINDSPROUT_*)
    4. cli_overrides (passed from Typer); None values are ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
