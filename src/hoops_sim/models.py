from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterator

from .config import RECENT_RESULTS_WINDOW

SERIES_PENDING = "pending"
SERIES_IN_PROGRESS = "in_progress"
SERIES_COMPLETE = "complete"
SERIES_STATUS_RANK: dict[str, int] = {SERIES_PENDING: 0, SERIES_IN_PROGRESS: 1, SERIES_COMPLETE: 2}

# Counters shared by box-score lines, player totals and team totals.
STAT_FIELDS: tuple[str, ...] = (
    "minutes",
    "points",
    "rebounds",
    "offensive_rebounds",
    "defensive_rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "personal_fouls",
    "field_goals_made",
    "field_goals_attempted",
    "three_pointers_made",
    "three_pointers_attempted",
    "free_throws_made",
    "free_throws_attempted",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Team:
    id: int
    abbreviation: str
    conference: str
    name: str = ""
    city: str = ""
    primary_color: str = "#6B7280"

    def __post_init__(self) -> None:
        conference = (self.conference or "").strip().lower()
        if not conference:
            raise ValueError(f"Team {self.abbreviation or self.id} has no conference.")
        self.conference = conference


@dataclass(slots=True, frozen=True)
class Streak:
    won: bool
    count: int = 1

    def extend(self, won: bool) -> Streak:
        if won == self.won:
            return Streak(won=won, count=self.count + 1)
        return Streak(won=won, count=1)

    def __str__(self) -> str:
        return f"{'W' if self.won else 'L'}{self.count}"


@dataclass(slots=True)
class SubRecord:
    wins: int = 0
    losses: int = 0

    def record(self, won: bool) -> None:
        if won:
            self.wins += 1
        else:
            self.losses += 1

    def __str__(self) -> str:
        return f"{self.wins}-{self.losses}"


@dataclass(slots=True)
class Standing:
    team_id: int
    team_abbreviation: str
    conference: str
    wins: int = 0
    losses: int = 0
    streak: Streak | None = None
    home: SubRecord = field(default_factory=SubRecord)
    away: SubRecord = field(default_factory=SubRecord)
    conference_record: SubRecord = field(default_factory=SubRecord)
    points_for: int = 0
    points_against: int = 0
    recent_results: list[str] = field(default_factory=list)

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        gp = self.games_played
        if gp <= 0:
            return 0.0
        return self.wins / gp

    @property
    def point_diff(self) -> int:
        return self.points_for - self.points_against

    @property
    def home_record(self) -> str:
        return str(self.home)

    @property
    def away_record(self) -> str:
        return str(self.away)

    @property
    def last10(self) -> str:
        sample = self.recent_results[-RECENT_RESULTS_WINDOW:]
        return f"{sample.count('W')}-{sample.count('L')}"

    @property
    def streak_display(self) -> str:
        if self.streak is None:
            return "-"
        return str(self.streak)

    def register_game(
        self,
        points_for: int,
        points_against: int,
        is_home: bool,
        same_conference: bool = False,
    ) -> None:
        won = points_for > points_against
        if won:
            self.wins += 1
        else:
            self.losses += 1
        self.streak = Streak(won=won) if self.streak is None else self.streak.extend(won)
        if is_home:
            self.home.record(won)
        else:
            self.away.record(won)
        if same_conference:
            self.conference_record.record(won)
        self.points_for += points_for
        self.points_against += points_against
        self.recent_results.append("W" if won else "L")
        if len(self.recent_results) > RECENT_RESULTS_WINDOW:
            self.recent_results = self.recent_results[-RECENT_RESULTS_WINDOW:]


@dataclass(slots=True)
class StatTotals:
    minutes: float = 0.0
    points: int = 0
    rebounds: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    personal_fouls: int = 0
    field_goals_made: int = 0
    field_goals_attempted: int = 0
    three_pointers_made: int = 0
    three_pointers_attempted: int = 0
    free_throws_made: int = 0
    free_throws_attempted: int = 0

    def add(self, line: Any) -> None:
        for name in STAT_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(line, name, 0))


@dataclass(slots=True)
class PlayerStat:
    player_id: str
    player_name: str
    team_id: int
    games_played: int = 0
    games_started: int = 0
    totals: StatTotals = field(default_factory=StatTotals)

    def record_game(self, line: Any) -> None:
        self.games_played += 1
        if getattr(line, "started", False):
            self.games_started += 1
        self.totals.add(line)

    def per_game(self, stat: str) -> float:
        if self.games_played <= 0:
            return 0.0
        return getattr(self.totals, stat) / self.games_played


@dataclass(slots=True)
class TeamStat:
    team_id: int
    team_abbreviation: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    home_wins: int = 0
    home_losses: int = 0
    points_scored: int = 0
    points_allowed: int = 0
    playoff_seed: int | None = None
    playoff_result: str | None = None
    totals: StatTotals = field(default_factory=StatTotals)

    def register_game(self, points_for: int, points_against: int, is_home: bool) -> None:
        self.games_played += 1
        if points_for > points_against:
            self.wins += 1
            if is_home:
                self.home_wins += 1
        else:
            self.losses += 1
            if is_home:
                self.home_losses += 1
        self.points_scored += points_for
        self.points_allowed += points_against


@dataclass(slots=True)
class Game:
    id: str
    home_team_id: int
    home_team_abbreviation: str
    away_team_id: int
    away_team_abbreviation: str
    game_date: date
    is_playoff: bool = False
    playoff_round: int | None = None
    playoff_series_id: str | None = None
    playoff_game_number: int | None = None
    is_complete: bool = False
    is_cancelled: bool = False
    home_score: int | None = None
    away_score: int | None = None
    box_score: dict[str, list[dict[str, Any]]] | None = None
    quarter_scores: dict[str, list[int]] | None = None

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    @property
    def winner_id(self) -> int | None:
        if not self.is_complete or self.home_score is None or self.away_score is None:
            return None
        return self.home_team_id if self.home_score > self.away_score else self.away_team_id


@dataclass(slots=True)
class SeriesTeam:
    team_id: int
    seed: int
    abbreviation: str
    name: str = ""
    city: str = ""
    primary_color: str = "#6B7280"
    wins: int = 0
    losses: int = 0


@dataclass(slots=True)
class SeriesMVP:
    player_id: str
    name: str
    team_id: int
    games: int
    ppg: float
    rpg: float
    apg: float
    spg: float
    bpg: float
    mvp_score: float


@dataclass(slots=True)
class Series:
    series_id: str
    conference: str
    round: int
    team1: SeriesTeam
    team2: SeriesTeam
    team1_wins: int = 0
    team2_wins: int = 0
    games: list[str] = field(default_factory=list)
    status: str = SERIES_PENDING
    winner: SeriesTeam | None = None
    series_mvp: SeriesMVP | None = None
    counted_games: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.status == SERIES_COMPLETE

    @property
    def loser(self) -> SeriesTeam | None:
        if self.winner is None:
            return None
        return self.team2 if self.winner.team_id == self.team1.team_id else self.team1

    def involves(self, team_id: int) -> bool:
        return team_id in (self.team1.team_id, self.team2.team_id)

    def advance_status(self, status: str) -> bool:
        """Move forward through pending -> in_progress -> complete; never back."""
        if SERIES_STATUS_RANK[status] <= SERIES_STATUS_RANK[self.status]:
            return False
        self.status = status
        return True


@dataclass(slots=True)
class ConferenceBracket:
    conference: str
    prefix: str
    round1: list[Series] = field(default_factory=list)
    round2: list[Series] = field(default_factory=list)
    conf_finals: Series | None = None


@dataclass(slots=True)
class Bracket:
    conferences: dict[str, ConferenceBracket] = field(default_factory=dict)
    finals: Series | None = None
    champion: SeriesTeam | None = None

    def series_for_round(self, round_number: int) -> list[Series]:
        out: list[Series] = []
        if round_number == 4:
            return [self.finals] if self.finals is not None else []
        for conf in self.conferences.values():
            if round_number == 1:
                out.extend(conf.round1)
            elif round_number == 2:
                out.extend(conf.round2)
            elif round_number == 3 and conf.conf_finals is not None:
                out.append(conf.conf_finals)
        return out

    def all_series(self) -> Iterator[Series]:
        for round_number in (1, 2, 3, 4):
            yield from self.series_for_round(round_number)

    def find_series(self, series_id: str) -> Series | None:
        for series in self.all_series():
            if series.series_id == series_id:
                return series
        return None


@dataclass(slots=True)
class SeasonData:
    year: int
    campaign_id: int | str | None = None
    schedule: list[Game] = field(default_factory=list)
    standings: dict[str, list[Standing]] = field(default_factory=dict)
    team_stats: dict[int, TeamStat] = field(default_factory=dict)
    player_stats: dict[str, PlayerStat] = field(default_factory=dict)
    playoff_bracket: Bracket | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def find_game(self, game_id: str) -> Game | None:
        for game in self.schedule:
            if game.id == game_id:
                return game
        return None

    def standing_for(self, team_id: int) -> Standing | None:
        for rows in self.standings.values():
            for standing in rows:
                if standing.team_id == team_id:
                    return standing
        return None
