from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_DIR = Path.home() / ".config/rememberer"


class AppConfig(BaseSettings):
    """
    Configuration model for rememberer.
    Supports loading from:
    1. Environment variables (REMEMBERER_*)
    2. Config file (~/.config/rememberer/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="REMEMBERER_",
        extra="ignore",
    )

    # Storage
    backend: Literal["json", "memory"] = "json"
    data_file: Path = Field(default_factory=lambda: CONFIG_DIR / "data.json")

    # Server
    host: str = "127.0.0.1"
    port: int = 8778

    verbose: int = 1

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

        # Init kwargs (CLI overrides) win, then environment, then the TOML file.
        toml_file = Path.home() / ".config/rememberer/config.toml"
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/rememberer/config.toml (if exists)
    3. Environment variables (REMEMBERER_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
