from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mastery.domain import constants as c
from mastery.domain.cards.models import RatingBand
from mastery.domain.content.models import ErrorCatalog, ErrorType
from mastery.domain.errors import InvalidRating


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mastery/config.toml",
        Path.home() / ".mastery.toml",
    ]


class RatingBands(BaseModel):
    """
    Upper bounds (inclusive) of the lapse, hard and good bands on the 1-10 scale.
    Ratings above good_max are easy.
    """

    model_config = ConfigDict(frozen=True)

    lapse_max: int = c.DEFAULT_LAPSE_MAX
    hard_max: int = c.DEFAULT_HARD_MAX
    good_max: int = c.DEFAULT_GOOD_MAX

    @model_validator(mode="after")
    def check_order(self) -> "RatingBands":
        if not (c.RATING_MIN <= self.lapse_max < self.hard_max < self.good_max < c.RATING_MAX):
            raise ValueError(
                "Rating bands must satisfy "
                f"{c.RATING_MIN} <= lapse_max < hard_max < good_max < {c.RATING_MAX}"
            )
        return self

    @property
    def good_min(self) -> int:
        return self.hard_max + 1

    def band_of(self, rating: int) -> RatingBand:
        """
        Classify a rating.

        Raises:
            InvalidRating: rating is not an int in [1, 10].
        """
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise InvalidRating(rating)
        if not c.RATING_MIN <= rating <= c.RATING_MAX:
            raise InvalidRating(rating)
        if rating <= self.lapse_max:
            return RatingBand.LAPSE
        if rating <= self.hard_max:
            return RatingBand.HARD
        if rating <= self.good_max:
            return RatingBand.GOOD
        return RatingBand.EASY


class ModelParameters(BaseModel):
    """Tunable coefficients of the memory model and the interval scheduler."""

    model_config = ConfigDict(frozen=True)

    desired_retention: float = Field(default=c.DEFAULT_DESIRED_RETENTION, gt=0.0, lt=1.0)

    min_stability: float = Field(default=c.MIN_STABILITY, gt=0.0)
    initial_stability: float = Field(default=c.DEFAULT_INITIAL_STABILITY, gt=0.0)
    initial_stability_lapse: float = Field(default=c.INITIAL_STABILITY_LAPSE, gt=0.0)
    initial_stability_hard: float = Field(default=c.INITIAL_STABILITY_HARD, gt=0.0)
    initial_stability_good: float = Field(default=c.INITIAL_STABILITY_GOOD, gt=0.0)
    initial_stability_easy: float = Field(default=c.INITIAL_STABILITY_EASY, gt=0.0)
    easy_rating_bonus: float = Field(default=c.EASY_RATING_BONUS, ge=0.0)

    difficulty_min: float = c.DIFFICULTY_MIN
    difficulty_max: float = c.DIFFICULTY_MAX
    initial_difficulty: float = c.DEFAULT_INITIAL_DIFFICULTY
    difficulty_step: float = Field(default=c.DIFFICULTY_STEP, ge=0.0)
    lapse_difficulty_penalty: float = Field(default=c.LAPSE_DIFFICULTY_PENALTY, ge=0.0)
    lapse_stability_factor: float = Field(default=c.LAPSE_STABILITY_FACTOR, gt=0.0, lt=1.0)

    stability_gain: float = Field(default=c.STABILITY_GAIN, gt=0.0)
    difficulty_damping: float = Field(default=c.DIFFICULTY_DAMPING, ge=0.0, lt=1.0)
    spacing_bonus: float = Field(default=c.SPACING_BONUS, ge=0.0)

    graduation_stability: float = Field(default=c.GRADUATION_STABILITY, gt=0.0)
    mastery_stability: float = Field(default=c.MASTERY_STABILITY, gt=0.0)
    min_interval_days: float = Field(default=c.MIN_INTERVAL_DAYS, gt=0.0)
    max_interval_days: float = Field(default=c.MAX_INTERVAL_DAYS, gt=0.0)

    @model_validator(mode="after")
    def check_ranges(self) -> "ModelParameters":
        if self.difficulty_min >= self.difficulty_max:
            raise ValueError("difficulty_min must be below difficulty_max")
        if not self.difficulty_min <= self.initial_difficulty <= self.difficulty_max:
            raise ValueError("initial_difficulty must lie within the difficulty bounds")
        if self.min_interval_days > self.max_interval_days:
            raise ValueError("min_interval_days must not exceed max_interval_days")
        return self


class ErrorTypeSettings(BaseModel):
    id: int
    name: str
    multiplier: float = Field(gt=0.0)
    description: str | None = None


def _default_error_types() -> list[ErrorTypeSettings]:
    return [
        ErrorTypeSettings(id=i, name=name, multiplier=m, description=desc)
        for i, name, m, desc in c.DEFAULT_ERROR_TYPES
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mastery.
    Supports loading from:
    1. Environment variables (MASTERY_*, nested with "__", e.g. MASTERY_MODEL__DESIRED_RETENTION)
    2. Config file (~/.config/mastery/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MASTERY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Storage / content collaborators
    backend: Literal["memory", "json"] = "json"
    store_path: Path = Field(
        default_factory=lambda: Path.home() / ".config/mastery" / c.DEFAULT_STORE_FILENAME
    )
    content_file: Path | None = None

    # Queries
    timezone: str = "UTC"
    due_limit: int = Field(default=c.DEFAULT_DUE_LIMIT, gt=0)

    # Algorithm
    bands: RatingBands = Field(default_factory=RatingBands)
    model: ModelParameters = Field(default_factory=ModelParameters)
    error_types: list[ErrorTypeSettings] = Field(default_factory=_default_error_types)

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

        toml_file = next((f for f in config_files() if f.exists()), None)

        # Earlier sources win: overrides > env > toml
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("store_path", "content_file", mode="before")
    @classmethod
    def resolve_paths(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {v!r}") from e
        return v

    @field_validator("error_types")
    @classmethod
    def check_unique_error_ids(cls, v: list[ErrorTypeSettings]) -> list[ErrorTypeSettings]:
        ids = [t.id for t in v]
        if len(ids) != len(set(ids)):
            raise ValueError("error_types ids must be unique")
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def error_catalog(self) -> ErrorCatalog:
        return ErrorCatalog(
            [
                ErrorType(id=t.id, name=t.name, multiplier=t.multiplier, description=t.description)
                for t in self.error_types
            ]
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mastery/config.toml (if exists)
    3. Environment variables (MASTERY_*)
    4. cli_overrides (passed from Typer), None values dropped
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
