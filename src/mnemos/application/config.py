from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemos.application.scheduling.policy import SchedulerParameters
from mnemos.consts import CONFIG_DIR_NAME
from mnemos.domain import constants as c

CONFIG_FILES = [
    Path.home() / CONFIG_DIR_NAME / "config.toml",
    Path.home() / ".mnemos.toml",
]


class AppConfig(BaseSettings):
    """
    Configuration model for mnemos.
    Supports loading from:
    1. Environment variables (MNEMOS_*)
    2. Config file (~/.config/mnemos/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMOS_",
        extra="ignore",
    )

    # Paths
    deck_file: Path | None = None

    # Identity (CLI only; the engine takes user IDs from its caller)
    user_id: str = "local"

    # Calendar
    timezone: str | None = None

    # Selection / forecast
    daily_new_limit: int = Field(default=c.DEFAULT_DAILY_NEW_LIMIT, ge=0)
    forecast_horizon_days: int = Field(default=c.DEFAULT_FORECAST_HORIZON_DAYS, ge=1)
    graduated_threshold_days: float = Field(default=c.GRADUATED_THRESHOLD_DAYS, gt=0)

    # Scheduler tuning
    interval_modifier: float = Field(default=c.INTERVAL_MODIFIER, gt=0)
    easy_bonus: float = Field(default=c.EASY_BONUS, gt=0)

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

        # Find the first existing file
        toml_file = None
        for f in CONFIG_FILES:
            if f.exists():
                toml_file = f
                break

        # Overrides beat env, env beats the file.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("deck_file", mode="before")
    @classmethod
    def resolve_deck_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if not v:
            return None
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    def scheduler_parameters(self) -> SchedulerParameters:
        return SchedulerParameters(
            interval_modifier=self.interval_modifier,
            easy_bonus=self.easy_bonus,
        )


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """Build the effective config. `None` values in overrides are ignored."""
    clean = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**clean)
