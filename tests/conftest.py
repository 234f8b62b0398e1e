from __future__ import annotations

import random
from typing import Any, Generator

import pytest

from hoops_sim.app import build_default_teams
from hoops_sim.config import reset_settings
from hoops_sim.models import Game, SeasonData, Series, Team
from hoops_sim.playoffs import update_series_after_game
from hoops_sim.standings import apply_game_result

POINT_SHARES = (30, 25, 20, 15)


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def teams() -> list[Team]:
    return build_default_teams()


def box_lines(team_id: int, total_points: int) -> list[dict[str, Any]]:
    """Five starters; the first player always carries the biggest line."""
    lines: list[dict[str, Any]] = []
    for slot in range(5):
        points = POINT_SHARES[slot] if slot < len(POINT_SHARES) else total_points - sum(POINT_SHARES)
        lines.append(
            {
                "player_id": f"{team_id}-{slot + 1}",
                "name": f"Player {team_id}-{slot + 1}",
                "started": True,
                "minutes": 34.0,
                "points": points,
                "rebounds": 5 + slot,
                "offensive_rebounds": 1,
                "defensive_rebounds": 4 + slot,
                "assists": 3,
                "steals": 1,
                "blocks": 0,
                "turnovers": 2,
                "personal_fouls": 2,
                "field_goals_made": points // 2,
                "field_goals_attempted": points,
            }
        )
    return lines


def make_result(
    game: Game,
    home_score: int,
    away_score: int,
    *,
    with_box: bool = True,
    is_user_game: bool = False,
) -> dict[str, Any]:
    result: dict[str, Any] = {
        "game_id": game.id,
        "home_score": home_score,
        "away_score": away_score,
        "is_user_game": is_user_game,
    }
    if with_box:
        result["box_score"] = {
            "home": box_lines(game.home_team_id, home_score),
            "away": box_lines(game.away_team_id, away_score),
        }
    return result


def random_result(game: Game, rng: random.Random) -> dict[str, Any]:
    home_score = rng.randint(95, 125)
    away_score = rng.randint(95, 125)
    if home_score == away_score:
        home_score += 1
    return make_result(game, home_score, away_score)


def result_for_winner(game: Game, winner_id: int, margin: int = 10) -> dict[str, Any]:
    if game.home_team_id == winner_id:
        return make_result(game, 100 + margin, 100)
    return make_result(game, 100, 100 + margin)


def play_series(season: SeasonData, series: Series, winner_id: int, loser_wins: int = 0) -> None:
    """Play the series in game order: the loser takes the first ``loser_wins`` games."""
    loser_id = series.team2.team_id if series.team1.team_id == winner_id else series.team1.team_id
    for idx, game_id in enumerate(list(series.games)):
        game = season.find_game(game_id)
        assert game is not None
        if game.is_cancelled or series.is_complete:
            break
        game_winner = loser_id if idx < loser_wins else winner_id
        completed = apply_game_result(season, result_for_winner(game, game_winner))
        assert completed is not None
        update_series_after_game(season, completed)


def rank_by_team_id(season: SeasonData) -> None:
    """Give every conference a fixed order: lowest team id has the best record."""
    for rows in season.standings.values():
        rows.sort(key=lambda s: s.team_id)
        for idx, standing in enumerate(rows):
            standing.wins = 40 - idx
            standing.losses = 14 + idx
            standing.points_for = 5000
            standing.points_against = 4900 + idx
