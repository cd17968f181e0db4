from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from repeater.application.scheduler import (
    DEFAULT_WEIGHTS,
    WEIGHT_BOUNDS,
    WEIGHT_COUNT,
    FsrsParameters,
)
from repeater.consts import APP_NAME
from repeater.domain.constants import MAX_INTERVAL_DAYS, MIN_INTERVAL_DAYS, TARGET_RETENTION


def default_config_file() -> Path:
    return Path.home() / ".config" / APP_NAME / "config.toml"


def default_db_path() -> Path:
    return Path.home() / ".local/share" / APP_NAME / "cards.db"


class AppConfig(BaseSettings):
    """
    Configuration model for repeater.
    Supports loading from:
    1. Config file (~/.config/repeater/config.toml)
    2. Environment variables (REPEATER_*)
    3. Manual overrides (CLI)
    Later sources win.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPEATER_",
        extra="ignore",
    )

    # Storage
    db_path: Path = Field(default_factory=default_db_path)

    # Session caps
    card_limit: int | None = Field(default=None, ge=0)
    new_card_limit: int | None = Field(default=None, ge=0)

    # Scheduler
    fsrs_weights: list[float] | None = None
    desired_retention: float = Field(default=TARGET_RETENTION, gt=0, lt=1)
    maximum_interval: int = MAX_INTERVAL_DAYS

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

        # First source has the highest priority.
        toml_file = default_config_file()
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("db_path", mode="before")
    @classmethod
    def resolve_db_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("fsrs_weights")
    @classmethod
    def check_weights(cls, v: list[float] | None) -> list[float] | None:
        if v is not None and len(v) != WEIGHT_COUNT:
            raise ValueError(f"fsrs_weights needs exactly {WEIGHT_COUNT} values, got {len(v)}")
        for i, (w, (low, high)) in enumerate(zip(v or [], WEIGHT_BOUNDS)):
            if not low <= w <= high:
                raise ValueError(f"fsrs_weights[{i}] = {w} outside [{low}, {high}]")
        return v

    @field_validator("maximum_interval")
    @classmethod
    def check_maximum_interval(cls, v: int) -> int:
        if not MIN_INTERVAL_DAYS <= v <= MAX_INTERVAL_DAYS:
            raise ValueError(
                f"maximum_interval must be between {MIN_INTERVAL_DAYS} and {MAX_INTERVAL_DAYS}"
            )
        return v

    def scheduler_params(self) -> FsrsParameters:
        return FsrsParameters(
            weights=tuple(self.fsrs_weights) if self.fsrs_weights else DEFAULT_WEIGHTS,
            desired_retention=self.desired_retention,
            maximum_interval=self.maximum_interval,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/repeater/config.toml (if exists)
    3. Environment variables (REPEATER_*)
    4. cli_overrides (passed from Typer, None values dropped)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
