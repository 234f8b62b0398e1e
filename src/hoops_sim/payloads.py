"""Boundary models for records handed to the season engine by the game resolver."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import COMPACT_BOX_FIELDS


class BoxScoreLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    player_id: str | None = Field(default=None, validation_alias=AliasChoices("player_id", "playerId"))
    name: str = "Unknown"
    started: bool = Field(default=False, validation_alias=AliasChoices("started", "is_starter", "isStarter"))
    minutes: float = 0.0
    points: int = 0
    rebounds: int = 0
    offensive_rebounds: int = Field(default=0, validation_alias=AliasChoices("offensive_rebounds", "offensiveRebounds"))
    defensive_rebounds: int = Field(default=0, validation_alias=AliasChoices("defensive_rebounds", "defensiveRebounds"))
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    personal_fouls: int = Field(default=0, validation_alias=AliasChoices("personal_fouls", "personalFouls", "fouls"))
    field_goals_made: int = Field(default=0, validation_alias=AliasChoices("field_goals_made", "fieldGoalsMade", "fgm"))
    field_goals_attempted: int = Field(
        default=0, validation_alias=AliasChoices("field_goals_attempted", "fieldGoalsAttempted", "fga")
    )
    three_pointers_made: int = Field(
        default=0, validation_alias=AliasChoices("three_pointers_made", "threePointersMade", "fg3m")
    )
    three_pointers_attempted: int = Field(
        default=0, validation_alias=AliasChoices("three_pointers_attempted", "threePointersAttempted", "fg3a")
    )
    free_throws_made: int = Field(default=0, validation_alias=AliasChoices("free_throws_made", "freeThrowsMade", "ftm"))
    free_throws_attempted: int = Field(
        default=0, validation_alias=AliasChoices("free_throws_attempted", "freeThrowsAttempted", "fta")
    )

    @field_validator("player_id", mode="before")
    @classmethod
    def _stringify_player_id(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, v: Any) -> str:
        return "Unknown" if v is None else str(v)


class BoxScore(BaseModel):
    model_config = ConfigDict(extra="ignore")

    home: list[BoxScoreLine] = Field(default_factory=list)
    away: list[BoxScoreLine] = Field(default_factory=list)

    def side(self, side: str) -> list[BoxScoreLine]:
        return self.home if side == "home" else self.away

    def full(self) -> dict[str, list[dict[str, Any]]]:
        return {side: [line.model_dump() for line in self.side(side)] for side in ("home", "away")}

    def compact(self) -> dict[str, list[dict[str, Any]]]:
        return {
            side: [line.model_dump(include=set(COMPACT_BOX_FIELDS)) for line in self.side(side)]
            for side in ("home", "away")
        }


class GameResult(BaseModel):
    """Final score and box score of one game, keyed by the scheduled game id."""

    model_config = ConfigDict(extra="ignore")

    game_id: str = Field(validation_alias=AliasChoices("game_id", "gameId"))
    home_score: int = Field(ge=0, validation_alias=AliasChoices("home_score", "homeScore"))
    away_score: int = Field(ge=0, validation_alias=AliasChoices("away_score", "awayScore"))
    box_score: BoxScore | None = Field(default=None, validation_alias=AliasChoices("box_score", "boxScore"))
    quarter_scores: dict[str, list[int]] | None = Field(
        default=None, validation_alias=AliasChoices("quarter_scores", "quarterScores")
    )
    is_user_game: bool = Field(default=False, validation_alias=AliasChoices("is_user_game", "isUserGame"))

    @model_validator(mode="after")
    def _reject_ties(self) -> GameResult:
        if self.home_score == self.away_score:
            raise ValueError(f"Game {self.game_id} ended tied {self.home_score}-{self.away_score}; ties are not allowed")
        return self

    @property
    def home_won(self) -> bool:
        return self.home_score > self.away_score


def parse_result(raw: GameResult | dict[str, Any]) -> GameResult:
    if isinstance(raw, GameResult):
        return raw
    return GameResult.model_validate(raw)
