from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Iterable

from .config import DEFAULT_SEASON_START, get_settings
from .logging import get_logger
from .models import Game, SeasonData, Team

logger = get_logger(__name__)

# (home team id, away team id)
Matchup = tuple[int, int]


def _orient(first: int, second: int, rng: random.Random) -> Matchup:
    if rng.random() < 0.5:
        return (first, second)
    return (second, first)


def build_pair_matchups(team_ids: list[int], rng: random.Random) -> list[Matchup]:
    """One game for every unordered pair, home side picked at random."""
    matchups: list[Matchup] = []
    for idx, first in enumerate(team_ids):
        for second in team_ids[idx + 1 :]:
            matchups.append(_orient(first, second, rng))
    return matchups


def fill_conference_matchups(
    teams: Iterable[Team],
    game_counts: dict[int, int],
    target: int,
    rng: random.Random,
    max_passes: int = 100,
) -> list[Matchup]:
    """Add same-conference games until every team reaches ``target`` or nothing fits.

    ``game_counts`` is updated in place. The pass cap keeps lopsided
    conferences (odd sizes, a single team) from looping forever; whatever
    balance was reached by then is accepted.
    """
    groups: dict[str, list[int]] = {}
    for team in teams:
        groups.setdefault(team.conference, []).append(team.id)

    extra: list[Matchup] = []
    for conference, conf_ids in groups.items():
        pairs = [(a, b) for idx, a in enumerate(conf_ids) for b in conf_ids[idx + 1 :]]
        if not pairs:
            continue
        passes = 0
        for passes in range(1, max_passes + 1):
            rng.shuffle(pairs)
            added_any = False
            for first, second in pairs:
                if game_counts[first] < target and game_counts[second] < target:
                    extra.append(_orient(first, second, rng))
                    game_counts[first] += 1
                    game_counts[second] += 1
                    added_any = True
            if not added_any:
                break
            if min(game_counts[team_id] for team_id in conf_ids) >= target:
                break
        else:
            logger.warning("Conference {} fill stopped at pass cap {}", conference, max_passes)
        logger.debug(
            "Conference {} filled in {} passes (min {} / max {} games)",
            conference,
            passes,
            min(game_counts[team_id] for team_id in conf_ids),
            max(game_counts[team_id] for team_id in conf_ids),
        )
    return extra


def distribute_matchups(
    matchups: list[Matchup],
    start_date: date,
    rng: random.Random,
    user_team_id: int | None = None,
    max_games_per_day: int = 10,
    user_team_max_gap_days: int = 2,
    max_days: int = 400,
) -> list[tuple[date, list[Matchup]]]:
    """Spread the matchup pool over calendar days.

    No team plays twice on one day. When the user team has gone
    ``user_team_max_gap_days`` without a game (or has not played yet) its next
    matchup is placed before anything else that day.
    """
    remaining = list(matchups)
    rng.shuffle(remaining)
    days: list[tuple[date, list[Matchup]]] = []
    current = start_date
    user_last_played: date | None = None

    for _day_idx in range(max_days):
        if not remaining:
            break
        day_games: list[Matchup] = []
        playing: set[int] = set()

        user_due = user_team_id is not None and (
            user_last_played is None or (current - user_last_played).days >= user_team_max_gap_days
        )
        if user_due:
            for idx, (home, away) in enumerate(remaining):
                if user_team_id in (home, away):
                    day_games.append(remaining.pop(idx))
                    playing.update((home, away))
                    break

        unscheduled: list[Matchup] = []
        for home, away in remaining:
            if len(day_games) >= max_games_per_day or home in playing or away in playing:
                unscheduled.append((home, away))
                continue
            day_games.append((home, away))
            playing.update((home, away))

        if user_team_id is not None and user_team_id in playing:
            user_last_played = current
        if day_games:
            days.append((current, day_games))

        rng.shuffle(unscheduled)
        remaining = unscheduled
        current += timedelta(days=1)

    if remaining:
        logger.warning("Schedule day cap {} reached; dropping {} unplaced matchups", max_days, len(remaining))
    return days


def generate_schedule(
    season: SeasonData,
    teams: Iterable[Team],
    user_team_id: int | None = None,
    *,
    start_date: date = DEFAULT_SEASON_START,
    games_per_team: int | None = None,
    rng: random.Random | None = None,
    max_games_per_day: int | None = None,
    user_team_max_gap_days: int | None = None,
    fill_max_passes: int | None = None,
    max_schedule_days: int | None = None,
) -> int:
    """Build the regular season and store it on ``season.schedule``.

    Returns the number of games created.
    """
    settings = get_settings()
    rng = rng or random.Random()
    team_list = list(teams)
    target = games_per_team if games_per_team is not None else settings.games_per_team
    abbreviations = {team.id: team.abbreviation for team in team_list}
    team_ids = [team.id for team in team_list]

    matchups = build_pair_matchups(team_ids, rng)
    game_counts = {team_id: len(team_ids) - 1 for team_id in team_ids}
    matchups.extend(
        fill_conference_matchups(
            team_list,
            game_counts,
            target,
            rng,
            max_passes=fill_max_passes if fill_max_passes is not None else settings.fill_max_passes,
        )
    )

    days = distribute_matchups(
        matchups,
        start_date,
        rng,
        user_team_id=user_team_id,
        max_games_per_day=max_games_per_day if max_games_per_day is not None else settings.max_games_per_day,
        user_team_max_gap_days=(
            user_team_max_gap_days if user_team_max_gap_days is not None else settings.user_team_max_gap_days
        ),
        max_days=max_schedule_days if max_schedule_days is not None else settings.max_schedule_days,
    )

    schedule: list[Game] = []
    for game_date, day_games in days:
        for home, away in day_games:
            schedule.append(
                Game(
                    id=f"game_{season.year}_{len(schedule) + 1:04d}",
                    home_team_id=home,
                    home_team_abbreviation=abbreviations[home],
                    away_team_id=away,
                    away_team_abbreviation=abbreviations[away],
                    game_date=game_date,
                )
            )

    season.schedule = schedule
    season.touch()
    logger.info(
        "Generated {} regular season games over {} days for {} teams",
        len(schedule),
        len(days),
        len(team_list),
    )
    return len(schedule)


def team_game_counts(season: SeasonData, include_playoffs: bool = False) -> dict[int, int]:
    totals: dict[int, int] = {}
    for game in season.schedule:
        if game.is_playoff and not include_playoffs:
            continue
        totals[game.home_team_id] = totals.get(game.home_team_id, 0) + 1
        totals[game.away_team_id] = totals.get(game.away_team_id, 0) + 1
    return totals


def games_on_date(season: SeasonData, game_date: date) -> list[Game]:
    return [game for game in season.schedule if game.game_date == game_date]


def upcoming_games(
    season: SeasonData,
    team_id: int,
    limit: int = 5,
    from_date: date | None = None,
) -> list[Game]:
    games = [
        game
        for game in season.schedule
        if not game.is_complete
        and not game.is_cancelled
        and game.involves(team_id)
        and (from_date is None or game.game_date >= from_date)
    ]
    games.sort(key=lambda g: g.game_date)
    return games[:limit]


def next_team_game(season: SeasonData, team_id: int, from_date: date | None = None) -> Game | None:
    games = upcoming_games(season, team_id, limit=1, from_date=from_date)
    return games[0] if games else None


def completed_games(season: SeasonData) -> list[Game]:
    return [game for game in season.schedule if game.is_complete]


def is_regular_season_complete(season: SeasonData) -> bool:
    regular = [game for game in season.schedule if not game.is_playoff]
    if not regular:
        return False
    return all(game.is_complete for game in regular)


def simulate_to_next_game_preview(
    season: SeasonData,
    user_team_id: int,
    current_date: date,
) -> dict[str, object] | None:
    """Games to play before the user's next game, grouped by date."""
    next_game = next_team_game(season, user_team_id, from_date=current_date)
    if next_game is None:
        # The calendar may have moved past an unplayed user game.
        next_game = next_team_game(season, user_team_id)
        if next_game is None:
            return None
        current_date = next_game.game_date

    target_date = next_game.game_date
    games_by_date: dict[date, list[Game]] = {}
    for game in season.schedule:
        if game.is_complete or game.is_cancelled:
            continue
        if game.game_date < current_date or game.game_date > target_date:
            continue
        if game.game_date == target_date and game.involves(user_team_id):
            continue
        games_by_date.setdefault(game.game_date, []).append(game)

    ordered = {day: games_by_date[day] for day in sorted(games_by_date)}
    return {
        "next_user_game": next_game,
        "days_to_simulate": len(ordered),
        "games_by_date": ordered,
        "total_games_to_simulate": sum(len(games) for games in ordered.values()),
    }
