from __future__ import annotations

import random
from datetime import date
from typing import Any, Iterable

from .config import DEFAULT_SEASON_START, PLAYOFF_ROUND_NAMES
from .logging import get_logger
from .models import Bracket, Game, PlayerStat, SeasonData, Series, SeriesTeam, Standing, Team, TeamStat
from .payloads import GameResult
from .playoffs import (
    advance_bracket,
    advance_winner_to_next_round,
    generate_bracket,
    generate_round_schedule,
    get_series,
    next_user_series,
    update_series_after_game,
    user_playoff_status,
)
from .schedule import (
    games_on_date,
    generate_schedule,
    is_regular_season_complete,
    next_team_game,
    simulate_to_next_game_preview,
    upcoming_games,
)
from .standings import (
    apply_game_result,
    bulk_merge_results,
    conference_standings,
    conferences,
    initialize_season,
    migrate_player_stats,
    rank_standings,
    update_player_stats_team,
)

logger = get_logger(__name__)


class LeagueSeason:
    """One season of a league: schedule, results, standings and the playoff bracket.

    Game outcomes come from outside; this class only books them.
    """

    def __init__(
        self,
        teams: Iterable[Team],
        year: int,
        user_team_id: int | None = None,
        seed: int | None = None,
        campaign_id: int | str | None = None,
        start_date: date = DEFAULT_SEASON_START,
    ) -> None:
        self.teams = list(teams)
        team_ids = [team.id for team in self.teams]
        if len(set(team_ids)) != len(team_ids):
            raise ValueError("Team ids must be unique.")
        if user_team_id is not None and user_team_id not in team_ids:
            raise ValueError(f"User team {user_team_id} is not in the league.")
        self.year = year
        self.user_team_id = user_team_id
        self.start_date = start_date
        self._rng = random.Random(seed)
        self.season: SeasonData = initialize_season(self.teams, year, campaign_id)

    def generate_schedule(self, **overrides: Any) -> int:
        return generate_schedule(
            self.season,
            self.teams,
            self.user_team_id,
            start_date=self.start_date,
            rng=self._rng,
            **overrides,
        )

    def record_result(self, result: GameResult | dict[str, Any]) -> Game | None:
        game = apply_game_result(self.season, result)
        if game is not None and game.is_playoff:
            self._process_playoff_games([game])
        return game

    def record_results(self, results: Iterable[GameResult | dict[str, Any]]) -> list[Game]:
        applied = bulk_merge_results(self.season, results)
        playoff_games = sorted(
            (game for game in applied if game.is_playoff),
            key=lambda g: (g.playoff_round or 0, g.playoff_game_number or 0, g.game_date),
        )
        if playoff_games:
            self._process_playoff_games(playoff_games)
        return applied

    def _process_playoff_games(self, games: list[Game]) -> None:
        for game in games:
            update = update_series_after_game(self.season, game)
            created = advance_winner_to_next_round(self.season, update)
            for round_number in sorted({series.round for series in created}):
                generate_round_schedule(self.season, round_number, self.year)

    def start_playoffs(self) -> Bracket | None:
        if not self.is_complete():
            return None
        if self.season.playoff_bracket is not None:
            return self.season.playoff_bracket
        bracket = generate_bracket(self.season, self.teams)
        generate_round_schedule(self.season, 1, self.year)
        return bracket

    def sync_playoffs(self) -> int:
        """Recount finished playoff games, advance winners and schedule pending rounds.

        Returns the number of playoff games scheduled by this call.
        """
        if self.season.playoff_bracket is None:
            return 0
        for game in self.season.schedule:
            if game.is_playoff and game.is_complete:
                update_series_after_game(self.season, game)

        scheduled = 0
        for round_number in sorted(PLAYOFF_ROUND_NAMES):
            advance_bracket(self.season)
            scheduled += generate_round_schedule(self.season, round_number, self.year)
        if scheduled:
            logger.info("Playoff sync scheduled {} games", scheduled)
        return scheduled

    def get_conferences(self) -> list[str]:
        return conferences(self.season)

    def get_standings(self) -> list[Standing]:
        return rank_standings(row for rows in self.season.standings.values() for row in rows)

    def get_conference_standings(self, conference: str) -> list[Standing]:
        return conference_standings(self.season, conference)

    def get_team(self, team_id: int) -> Team | None:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def get_team_stats(self, team_id: int) -> TeamStat | None:
        return self.season.team_stats.get(team_id)

    def get_player_stats(self, team_id: int | None = None) -> list[PlayerStat]:
        players = [p for p in self.season.player_stats.values() if team_id is None or p.team_id == team_id]
        return sorted(
            players,
            key=lambda p: (-p.per_game("points"), -p.totals.points, -p.games_played, p.player_name),
        )

    def get_day_schedule(self, game_date: date) -> list[Game]:
        return games_on_date(self.season, game_date)

    def upcoming_games(self, team_id: int | None = None, limit: int = 5, from_date: date | None = None) -> list[Game]:
        team_id = team_id if team_id is not None else self.user_team_id
        if team_id is None:
            return []
        return upcoming_games(self.season, team_id, limit=limit, from_date=from_date)

    def next_user_game(self, from_date: date | None = None) -> Game | None:
        if self.user_team_id is None:
            return None
        return next_team_game(self.season, self.user_team_id, from_date=from_date)

    def simulate_to_next_game_preview(self, current_date: date) -> dict[str, object] | None:
        if self.user_team_id is None:
            return None
        return simulate_to_next_game_preview(self.season, self.user_team_id, current_date)

    def user_playoff_status(self) -> dict[str, Any]:
        if self.user_team_id is None:
            return {"qualified": False}
        return user_playoff_status(self.season, self.user_team_id, self.teams)

    def next_user_series(self) -> Series | None:
        if self.user_team_id is None:
            return None
        return next_user_series(self.season, self.user_team_id)

    def get_series(self, series_id: str) -> Series | None:
        return get_series(self.season, series_id)

    def migrate_player_stats(
        self,
        old_player_id: str | int,
        new_player_id: str | int,
        new_team_id: int,
        new_player_name: str | None = None,
    ) -> bool:
        return migrate_player_stats(self.season, old_player_id, new_player_id, new_team_id, new_player_name)

    def update_player_stats_team(self, player_id: str | int, new_team_id: int) -> bool:
        return update_player_stats_team(self.season, player_id, new_team_id)

    def is_complete(self) -> bool:
        return is_regular_season_complete(self.season)

    def has_playoff_session(self) -> bool:
        return self.season.playoff_bracket is not None

    def playoffs_finished(self) -> bool:
        return self.champion is not None

    @property
    def champion(self) -> SeriesTeam | None:
        if self.season.playoff_bracket is None:
            return None
        return self.season.playoff_bracket.champion
