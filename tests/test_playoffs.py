from datetime import date

import pytest

from conftest import play_series, rank_by_team_id, result_for_winner
from hoops_sim.models import SERIES_COMPLETE, SERIES_IN_PROGRESS, SERIES_PENDING, Team
from hoops_sim.playoffs import (
    advance_bracket,
    calculate_series_mvp,
    generate_bracket,
    generate_round_schedule,
    get_series,
    next_user_series,
    series_prefixes,
    update_series_after_game,
    user_playoff_status,
)
from hoops_sim.standings import apply_game_result, initialize_season


@pytest.fixture
def season(teams):
    season = initialize_season(teams, 2025)
    rank_by_team_id(season)
    return season


@pytest.fixture
def bracket_season(season, teams):
    generate_bracket(season, teams)
    generate_round_schedule(season, 1)
    return season


def test_round_one_pairings_and_ids(season, teams) -> None:
    bracket = generate_bracket(season, teams)
    east = bracket.conferences["east"]
    assert [s.series_id for s in east.round1] == ["E_R1_1v8", "E_R1_4v5", "E_R1_3v6", "E_R1_2v7"]
    assert [(s.team1.seed, s.team2.seed) for s in east.round1] == [(1, 8), (4, 5), (3, 6), (2, 7)]
    assert east.round1[0].team1.team_id == 1
    assert east.round1[0].team2.team_id == 8
    west = bracket.conferences["west"]
    assert west.round1[0].series_id == "W_R1_1v8"
    assert west.round1[0].team1.team_id == 16
    assert all(s.status == SERIES_PENDING for s in bracket.all_series())
    assert season.team_stats[1].playoff_seed == 1
    assert season.team_stats[9].playoff_seed is None


def test_regenerating_bracket_is_a_no_op(season, teams) -> None:
    first = generate_bracket(season, teams)
    assert generate_bracket(season, teams) is first


def test_round_one_schedule_dates_and_home_court(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_1v8")
    games = [bracket_season.find_game(gid) for gid in series.games]
    assert len(games) == 7
    assert series.status == SERIES_IN_PROGRESS
    assert [g.game_date for g in games] == [
        date(2026, 4, 15),
        date(2026, 4, 17),
        date(2026, 4, 20),
        date(2026, 4, 22),
        date(2026, 4, 25),
        date(2026, 4, 27),
        date(2026, 4, 29),
    ]
    assert [g.home_team_id for g in games] == [1, 1, 8, 8, 1, 8, 1]
    assert [g.playoff_game_number for g in games] == [1, 2, 3, 4, 5, 6, 7]
    assert all(g.is_playoff and g.playoff_round == 1 for g in games)
    assert len(bracket_season.schedule) == 56
    assert bracket_season.schedule[0].id == "game_2025_0001"


def test_round_schedule_only_once(bracket_season) -> None:
    assert generate_round_schedule(bracket_season, 1) == 0
    assert len(bracket_season.schedule) == 56


def test_round_two_slot_a_created_after_its_feeders(bracket_season) -> None:
    play_series(bracket_season, get_series(bracket_season, "E_R1_1v8"), winner_id=1)
    assert advance_bracket(bracket_season) == []
    play_series(bracket_season, get_series(bracket_season, "E_R1_4v5"), winner_id=4, loser_wins=2)

    created = advance_bracket(bracket_season)
    assert [s.series_id for s in created] == ["E_R2_A"]
    slot_a = get_series(bracket_season, "E_R2_A")
    assert slot_a.status == SERIES_PENDING
    assert (slot_a.team1_wins, slot_a.team2_wins) == (0, 0)
    assert slot_a.team1.team_id == 1 and slot_a.team2.team_id == 4
    assert get_series(bracket_season, "E_R2_B") is None

    assert generate_round_schedule(bracket_season, 2) == 7
    assert slot_a.status == SERIES_IN_PROGRESS
    assert bracket_season.find_game(slot_a.games[0]).game_date == date(2026, 5, 2)


def test_sweep_cancels_remaining_games(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_1v8")
    play_series(bracket_season, series, winner_id=1)
    assert series.status == SERIES_COMPLETE
    assert (series.team1_wins, series.team2_wins) == (4, 0)
    assert series.winner.team_id == 1
    games = [bracket_season.find_game(gid) for gid in series.games]
    assert [g.is_cancelled for g in games] == [False] * 4 + [True] * 3
    assert bracket_season.team_stats[8].playoff_result == "Lost in First Round"


def test_playoff_games_do_not_touch_standings(bracket_season) -> None:
    before = bracket_season.standing_for(1).wins
    play_series(bracket_season, get_series(bracket_season, "E_R1_1v8"), winner_id=1)
    assert bracket_season.standing_for(1).wins == before
    assert "1-1" not in bracket_season.player_stats


@pytest.mark.regression
def test_series_never_exceeds_four_wins(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_1v8")
    play_series(bracket_season, series, winner_id=8)
    extra = bracket_season.find_game(series.games[-1])
    assert extra.is_cancelled
    assert apply_game_result(bracket_season, result_for_winner(extra, 1)) is None

    # Force a stray completed game through the counter.
    extra.is_cancelled = False
    extra.is_complete = True
    extra.home_score, extra.away_score = 120, 100
    assert update_series_after_game(bracket_season, extra) is None
    assert (series.team1_wins, series.team2_wins) == (0, 4)
    assert series.status == SERIES_COMPLETE


def test_same_game_counted_once(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_2v7")
    game = apply_game_result(bracket_season, result_for_winner(bracket_season.find_game(series.games[0]), 2))
    assert update_series_after_game(bracket_season, game) is not None
    assert update_series_after_game(bracket_season, game) is None
    assert series.team1_wins == 1


def test_status_only_moves_forward(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_3v6")
    seen = [series.status]
    for idx in range(7):
        game = bracket_season.find_game(series.games[idx])
        if game.is_cancelled:
            break
        winner = 3 if idx % 2 == 0 else 6
        update_series_after_game(bracket_season, apply_game_result(bracket_season, result_for_winner(game, winner)))
        seen.append(series.status)
    assert seen[0] == SERIES_IN_PROGRESS
    assert seen[-1] == SERIES_COMPLETE
    ranks = {SERIES_PENDING: 0, SERIES_IN_PROGRESS: 1, SERIES_COMPLETE: 2}
    assert [ranks[s] for s in seen] == sorted(ranks[s] for s in seen)
    assert series.advance_status(SERIES_IN_PROGRESS) is False
    assert series.status == SERIES_COMPLETE
    assert series.winner.team_id == 3


def test_series_mvp_from_winning_side(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_1v8")
    play_series(bracket_season, series, winner_id=1)
    mvp = series.series_mvp
    assert mvp is not None
    assert mvp.player_id == "1-1"
    assert mvp.team_id == 1
    assert mvp.games == 4
    assert (mvp.ppg, mvp.rpg, mvp.apg, mvp.spg, mvp.bpg) == (30.0, 5.0, 3.0, 1.0, 0.0)
    assert mvp.mvp_score == 162.0
    assert calculate_series_mvp(bracket_season, series) == mvp


def test_series_mvp_needs_two_games(bracket_season) -> None:
    series = get_series(bracket_season, "E_R1_1v8")
    play_series(bracket_season, series, winner_id=1)
    first = bracket_season.find_game(series.games[0])
    side = "home" if first.home_team_id == 1 else "away"
    first.box_score[side].append({"player_id": "cameo", "name": "Cameo", "points": 90, "steals": 10})
    assert calculate_series_mvp(bracket_season, series).player_id == "1-1"


def test_absent_series_lookups(season, teams) -> None:
    assert get_series(season, "E_R1_1v8") is None
    generate_bracket(season, teams)
    assert get_series(season, "E_R2_A") is None
    assert get_series(season, "X_R9") is None
    assert advance_bracket(season) == []


def test_user_playoff_status_and_next_series(bracket_season, teams) -> None:
    status = user_playoff_status(bracket_season, 3, teams)
    assert status["qualified"] is True
    assert status["seed"] == 3
    assert status["opponent"]["seed"] == 6
    assert status["opponent"]["team_id"] == 6
    assert user_playoff_status(bracket_season, 12, teams)["qualified"] is False

    assert next_user_series(bracket_season, 3).series_id == "E_R1_3v6"
    assert next_user_series(bracket_season, 12) is None


def test_user_playoff_status_ranks_unsorted_rows(season, teams) -> None:
    season.standings["east"].reverse()
    status = user_playoff_status(season, 3, teams)
    assert status["seed"] == 3
    assert status["opponent"]["team_id"] == 6
    assert [row.team_id for row in season.standings["east"]][:2] == [15, 14]


def _play_out_bracket(season) -> None:
    """Top seed of every series wins in four; each round is scheduled as soon as it exists."""
    generate_round_schedule(season, 1)
    for round_number in (1, 2, 3, 4):
        for series in season.playoff_bracket.series_for_round(round_number):
            play_series(season, series, winner_id=series.team1.team_id)
        advance_bracket(season)
        if round_number < 4:
            generate_round_schedule(season, round_number + 1)


@pytest.mark.regression
def test_custom_conference_names_reach_the_finals(teams) -> None:
    renamed = [
        Team(
            id=team.id,
            abbreviation=team.abbreviation,
            conference="Eastern" if team.conference == "east" else "Western",
            name=team.name,
            city=team.city,
        )
        for team in teams
    ]
    season = initialize_season(renamed, 2025)
    assert set(season.standings) == {"eastern", "western"}
    rank_by_team_id(season)

    bracket = generate_bracket(season, renamed)
    assert set(bracket.conferences) == {"eastern", "western"}
    _play_out_bracket(season)

    assert bracket.finals is not None
    assert bracket.finals.series_id == "FINALS"
    assert {bracket.finals.team1.team_id, bracket.finals.team2.team_id} == {1, 16}
    assert bracket.finals.team1.team_id == 1
    assert bracket.champion is not None
    assert bracket.champion.team_id == 1
    assert season.team_stats[1].playoff_result == "Champion"


def test_series_prefix_falls_back_to_full_name_on_clash() -> None:
    assert series_prefixes(["east", "west"]) == {"east": "E", "west": "W"}
    assert series_prefixes(["north", "northwest", "south"]) == {
        "north": "NORTH",
        "northwest": "NORTHWEST",
        "south": "S",
    }


@pytest.mark.regression
def test_conferences_sharing_an_initial_get_distinct_series() -> None:
    league = [
        Team(id=idx + 1, abbreviation=f"T{idx + 1:02d}", conference="north" if idx < 8 else "northwest")
        for idx in range(16)
    ]
    season = initialize_season(league, 2025)
    rank_by_team_id(season)
    bracket = generate_bracket(season, league)

    ids = [series.series_id for series in bracket.all_series()]
    assert len(ids) == len(set(ids)) == 8
    assert get_series(season, "NORTH_R1_1v8").conference == "north"
    assert get_series(season, "NORTH_R1_1v8").team1.team_id == 1
    assert get_series(season, "NORTHWEST_R1_1v8").conference == "northwest"
    assert get_series(season, "NORTHWEST_R1_1v8").team1.team_id == 9

    _play_out_bracket(season)
    assert get_series(season, "NORTH_CF").team1.team_id == 1
    assert get_series(season, "NORTHWEST_CF").team1.team_id == 9
    assert bracket.champion is not None
    assert bracket.champion.team_id == 1
