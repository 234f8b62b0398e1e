"""Apply completed game results to standings, team stats and player stats."""

from __future__ import annotations

from typing import Any, Iterable

from .config import CONFERENCES
from .logging import get_logger
from .models import Game, PlayerStat, SeasonData, Standing, TeamStat, Team
from .payloads import BoxScore, BoxScoreLine, GameResult, parse_result

logger = get_logger(__name__)


def initialize_season(teams: Iterable[Team], year: int, campaign_id: int | str | None = None) -> SeasonData:
    season = SeasonData(year=year, campaign_id=campaign_id)
    for team in teams:
        season.standings.setdefault(team.conference, []).append(
            Standing(team_id=team.id, team_abbreviation=team.abbreviation, conference=team.conference)
        )
        season.team_stats[team.id] = TeamStat(team_id=team.id, team_abbreviation=team.abbreviation)
    return season


def standings_sort_key(standing: Standing) -> tuple[float, int]:
    return (standing.win_pct, standing.point_diff)


def rank_standings(rows: Iterable[Standing]) -> list[Standing]:
    return sorted(rows, key=standings_sort_key, reverse=True)


def sort_standings(season: SeasonData, conferences: Iterable[str] | None = None) -> None:
    for conference in conferences if conferences is not None else list(season.standings):
        rows = season.standings.get(conference)
        if rows:
            rows.sort(key=standings_sort_key, reverse=True)


def compact_box_score(box_score: BoxScore | dict[str, Any]) -> dict[str, list[dict[str, Any]]]:
    """Reduce a box score to identity, points, rebounds, assists and minutes."""
    if not isinstance(box_score, BoxScore):
        box_score = BoxScore.model_validate(box_score)
    return box_score.compact()


def _standing_index(season: SeasonData) -> dict[int, Standing]:
    return {standing.team_id: standing for rows in season.standings.values() for standing in rows}


def update_standings_after_game(
    season: SeasonData,
    home_team_id: int,
    away_team_id: int,
    home_score: int,
    away_score: int,
    *,
    sort: bool = True,
    index: dict[int, Standing] | None = None,
) -> None:
    index = index if index is not None else _standing_index(season)
    home = index.get(home_team_id)
    away = index.get(away_team_id)
    same_conference = home is not None and away is not None and home.conference == away.conference

    if home is not None:
        home.register_game(home_score, away_score, is_home=True, same_conference=same_conference)
    else:
        logger.warning("No standing for home team {}; skipping its record update", home_team_id)
    if away is not None:
        away.register_game(away_score, home_score, is_home=False, same_conference=same_conference)
    else:
        logger.warning("No standing for away team {}; skipping its record update", away_team_id)

    for team_id, points_for, points_against, is_home in (
        (home_team_id, home_score, away_score, True),
        (away_team_id, away_score, home_score, False),
    ):
        stats = season.team_stats.get(team_id)
        if stats is None:
            continue
        stats.register_game(points_for, points_against, is_home)

    if sort:
        sort_standings(season, {row.conference for row in (home, away) if row is not None})


def update_player_stats(
    season: SeasonData,
    player_id: str,
    player_name: str,
    team_id: int,
    line: BoxScoreLine,
) -> PlayerStat:
    key = str(player_id)
    stats = season.player_stats.get(key)
    if stats is None:
        stats = PlayerStat(player_id=key, player_name=player_name, team_id=team_id)
        season.player_stats[key] = stats
    stats.record_game(line)
    return stats


def _record_box_score(season: SeasonData, game: Game, box_score: BoxScore) -> None:
    for side, team_id in (("home", game.home_team_id), ("away", game.away_team_id)):
        team_stats = season.team_stats.get(team_id)
        for line in box_score.side(side):
            if team_stats is not None:
                team_stats.totals.add(line)
            if not line.player_id:
                continue
            update_player_stats(season, line.player_id, line.name, team_id, line)


def _apply(
    season: SeasonData,
    game: Game,
    result: GameResult,
    *,
    sort: bool,
    index: dict[int, Standing] | None = None,
) -> bool:
    if game.is_complete or game.is_cancelled:
        logger.debug("Game {} already settled; ignoring duplicate result", game.id)
        return False

    game.is_complete = True
    game.home_score = result.home_score
    game.away_score = result.away_score
    game.quarter_scores = result.quarter_scores
    if result.box_score is None:
        game.box_score = None
    elif result.is_user_game or game.is_playoff:
        game.box_score = result.box_score.full()
    else:
        game.box_score = result.box_score.compact()

    # Playoff games feed series records, not the regular season tables.
    if game.is_playoff:
        return True

    update_standings_after_game(
        season,
        game.home_team_id,
        game.away_team_id,
        result.home_score,
        result.away_score,
        sort=sort,
        index=index,
    )
    if result.box_score is not None:
        _record_box_score(season, game, result.box_score)
    return True


def apply_game_result(season: SeasonData, result: GameResult | dict[str, Any]) -> Game | None:
    """Complete one scheduled game. Returns the game, or None when nothing changed."""
    parsed = parse_result(result)
    game = season.find_game(parsed.game_id)
    if game is None:
        logger.warning("Result for unknown game {} ignored", parsed.game_id)
        return None
    if not _apply(season, game, parsed, sort=True):
        return None
    season.touch()
    return game


def bulk_merge_results(season: SeasonData, results: Iterable[GameResult | dict[str, Any]]) -> list[Game]:
    """Merge a batch of results; games already complete are skipped.

    The batch is validated up front so a malformed payload leaves the season
    untouched. Standings are sorted once after the whole batch.
    """
    parsed = [parse_result(raw) for raw in results]
    if not parsed:
        return []

    schedule_index = {game.id: game for game in season.schedule}
    standing_index = _standing_index(season)
    applied: list[Game] = []
    for result in parsed:
        game = schedule_index.get(result.game_id)
        if game is None:
            logger.warning("Result for unknown game {} ignored", result.game_id)
            continue
        if _apply(season, game, result, sort=False, index=standing_index):
            applied.append(game)

    if applied:
        sort_standings(season)
        season.touch()
    logger.debug("Merged {} of {} results", len(applied), len(parsed))
    return applied


def migrate_player_stats(
    season: SeasonData,
    old_player_id: str | int,
    new_player_id: str | int,
    new_team_id: int,
    new_player_name: str | None = None,
) -> bool:
    """Re-key a player's season totals after a trade without resetting them."""
    old_key = str(old_player_id)
    new_key = str(new_player_id)
    stats = season.player_stats.pop(old_key, None)
    if stats is None:
        logger.info("No stats to migrate for player {}", old_key)
        return True

    stats.player_id = new_key
    stats.team_id = new_team_id
    if new_player_name:
        stats.player_name = new_player_name
    season.player_stats[new_key] = stats
    season.touch()
    logger.info(
        "Migrated player stats {} -> {} (team {}, {} games)",
        old_key,
        new_key,
        new_team_id,
        stats.games_played,
    )
    return True


def update_player_stats_team(season: SeasonData, player_id: str | int, new_team_id: int) -> bool:
    stats = season.player_stats.get(str(player_id))
    if stats is None:
        return False
    stats.team_id = new_team_id
    season.touch()
    return True


def conference_standings(season: SeasonData, conference: str) -> list[Standing]:
    return list(season.standings.get(conference.lower(), []))


def conferences(season: SeasonData) -> list[str]:
    known = [conf for conf in CONFERENCES if conf in season.standings]
    return known + sorted(conf for conf in season.standings if conf not in CONFERENCES)
