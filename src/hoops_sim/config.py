"""Static season configuration constants and environment-driven settings."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFERENCES: tuple[str, ...] = ("east", "west")

DEFAULT_SEASON_START = date(2025, 10, 21)
DEFAULT_PLAYOFF_START = date(2026, 4, 15)
PLAYOFF_START_GAP_DAYS = 3

PLAYOFF_SEEDS = 8

# (higher seed, lower seed) in bracket order. Round-two slots are built from
# adjacent pairs, so the order of this table is part of the bracket shape.
ROUND_ONE_PAIRINGS: tuple[tuple[int, int], ...] = ((1, 8), (4, 5), (3, 6), (2, 7))

# slot label -> (round-one pairing that takes the team1 position, the other pairing)
ROUND_TWO_SLOTS: tuple[tuple[str, tuple[int, int], tuple[int, int]], ...] = (
    ("A", (1, 8), (4, 5)),
    ("B", (2, 7), (3, 6)),
)

SERIES_LENGTH = 7
SERIES_WINS_NEEDED = 4

# 2-2-1-1-1: True when team1 (higher seed) hosts game n.
HOME_COURT_PATTERN: tuple[bool, ...] = (True, True, False, False, True, False, True)

# Days between game n and game n+1; travel days after games 2 and 4.
SERIES_GAME_GAPS: tuple[int, ...] = (2, 3, 2, 3, 2, 2)

PLAYOFF_ROUND_NAMES: dict[int, str] = {
    1: "First Round",
    2: "Conference Semifinals",
    3: "Conference Finals",
    4: "Finals",
}

MVP_WEIGHTS: dict[str, float] = {
    "points": 1.0,
    "rebounds": 1.2,
    "assists": 1.5,
    "steals": 3.0,
    "blocks": 3.0,
    "turnovers": -1.5,
}
MVP_MIN_GAMES = 2

COMPACT_BOX_FIELDS: tuple[str, ...] = ("player_id", "name", "points", "rebounds", "assists", "minutes")

RECENT_RESULTS_WINDOW = 10


class Settings(BaseSettings):
    """Tunables for schedule construction and logging.

    Every value can be overridden through the environment (or a ``.env`` file)
    using the alias shown on the field.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    games_per_team: int = Field(
        default=54,
        alias="HOOPS_GAMES_PER_TEAM",
        ge=1,
        description="Target regular season games per team",
    )
    max_games_per_day: int = Field(
        default=10,
        alias="HOOPS_MAX_GAMES_PER_DAY",
        ge=1,
        description="Maximum games placed on one calendar day",
    )
    user_team_max_gap_days: int = Field(
        default=2,
        alias="HOOPS_USER_TEAM_MAX_GAP_DAYS",
        ge=1,
        description="Days without a game after which the user team is placed first",
    )
    fill_max_passes: int = Field(
        default=100,
        alias="HOOPS_FILL_MAX_PASSES",
        ge=1,
        description="Pass cap for the same-conference fairness filling loop",
    )
    max_schedule_days: int = Field(
        default=400,
        alias="HOOPS_MAX_SCHEDULE_DAYS",
        ge=1,
        description="Day cap for distributing matchups across the calendar",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_dir: str = Field(
        default="logs",
        alias="LOG_DIR",
        description="Directory for log files",
    )

    @field_validator("log_dir")
    @classmethod
    def validate_log_dir(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("Path cannot be empty or whitespace")
        return v


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
