"""Seeded 16-team bracket: seeding, series scheduling, series results and advancement."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Iterable

from .config import (
    DEFAULT_PLAYOFF_START,
    HOME_COURT_PATTERN,
    MVP_MIN_GAMES,
    MVP_WEIGHTS,
    PLAYOFF_ROUND_NAMES,
    PLAYOFF_SEEDS,
    PLAYOFF_START_GAP_DAYS,
    ROUND_ONE_PAIRINGS,
    ROUND_TWO_SLOTS,
    SERIES_GAME_GAPS,
    SERIES_LENGTH,
    SERIES_WINS_NEEDED,
)
from .logging import get_logger
from .models import (
    SERIES_COMPLETE,
    SERIES_IN_PROGRESS,
    SERIES_PENDING,
    Bracket,
    ConferenceBracket,
    Game,
    SeasonData,
    Series,
    SeriesMVP,
    SeriesTeam,
    Standing,
    Team,
)
from .standings import conferences, rank_standings, sort_standings

logger = get_logger(__name__)

FINALS_ID = "FINALS"
FINALS_CONFERENCE = "finals"


@dataclass(slots=True)
class SeriesUpdate:
    series: Series
    game_id: str
    winner_id: int
    series_complete: bool

    @property
    def round(self) -> int:
        return self.series.round


def series_prefixes(conference_names: Iterable[str]) -> dict[str, str]:
    """Series id prefix per conference: the initial, or the full name when initials clash."""
    names = list(conference_names)
    initials = [name[:1].upper() for name in names]
    return {
        name: initial if initials.count(initial) == 1 else name.upper()
        for name, initial in zip(names, initials)
    }


def round_one_id(prefix: str, high: int, low: int) -> str:
    return f"{prefix}_R1_{high}v{low}"


def round_two_id(prefix: str, label: str) -> str:
    return f"{prefix}_R2_{label}"


def conference_finals_id(prefix: str) -> str:
    return f"{prefix}_CF"


def _new_series(series_id: str, conference: str, round_number: int, team1: SeriesTeam, team2: SeriesTeam) -> Series:
    return Series(
        series_id=series_id,
        conference=conference,
        round=round_number,
        team1=replace(team1),
        team2=replace(team2),
    )


def seed_conference(standings: Iterable[Standing], teams_by_id: dict[int, Team]) -> list[SeriesTeam]:
    """Top seeds in standings order. ``standings`` must already be ranked."""
    seeds: list[SeriesTeam] = []
    for standing in standings:
        if len(seeds) >= PLAYOFF_SEEDS:
            break
        team = teams_by_id.get(standing.team_id)
        if team is None:
            logger.warning("Standing for unknown team {} skipped during seeding", standing.team_id)
            continue
        seeds.append(
            SeriesTeam(
                team_id=team.id,
                seed=len(seeds) + 1,
                abbreviation=team.abbreviation,
                name=team.name,
                city=team.city,
                primary_color=team.primary_color,
                wins=standing.wins,
                losses=standing.losses,
            )
        )
    return seeds


def generate_bracket(season: SeasonData, teams: Iterable[Team]) -> Bracket:
    if season.playoff_bracket is not None:
        logger.debug("Bracket for {} already exists; keeping it", season.year)
        return season.playoff_bracket

    sort_standings(season)
    teams_by_id = {team.id: team for team in teams}
    bracket = Bracket()
    seeded = [conference for conference in conferences(season) if season.standings[conference]]
    prefixes = series_prefixes(seeded)
    for conference in seeded:
        seeds = seed_conference(season.standings[conference], teams_by_id)
        by_seed = {entry.seed: entry for entry in seeds}
        conf_bracket = ConferenceBracket(conference=conference, prefix=prefixes[conference])
        for high, low in ROUND_ONE_PAIRINGS:
            if high not in by_seed or low not in by_seed:
                logger.warning("Conference {} has no seed {} or {}; series skipped", conference, high, low)
                continue
            conf_bracket.round1.append(
                _new_series(
                    round_one_id(conf_bracket.prefix, high, low), conference, 1, by_seed[high], by_seed[low]
                )
            )
        for entry in seeds:
            stats = season.team_stats.get(entry.team_id)
            if stats is not None:
                stats.playoff_seed = entry.seed
        bracket.conferences[conference] = conf_bracket

    season.playoff_bracket = bracket
    season.touch()
    logger.info(
        "Seeded {} bracket with {} first round series",
        season.year,
        len(bracket.series_for_round(1)),
    )
    return bracket


def _playoff_start_date(season: SeasonData) -> date:
    if not season.schedule:
        return DEFAULT_PLAYOFF_START
    latest = max(game.game_date for game in season.schedule)
    return latest + timedelta(days=PLAYOFF_START_GAP_DAYS)


def generate_round_schedule(season: SeasonData, round_number: int, year: int | None = None) -> int:
    """Schedule all seven potential games of every pending series in a round.

    Returns the number of games created; 0 when nothing was pending.
    """
    bracket = season.playoff_bracket
    if bracket is None:
        return 0
    pending = [s for s in bracket.series_for_round(round_number) if s.status == SERIES_PENDING and not s.games]
    if not pending:
        return 0

    year = year if year is not None else season.year
    start = _playoff_start_date(season)
    created = 0
    for series in pending:
        game_date = start
        for game_number in range(1, SERIES_LENGTH + 1):
            team1_home = HOME_COURT_PATTERN[game_number - 1]
            home, away = (series.team1, series.team2) if team1_home else (series.team2, series.team1)
            game = Game(
                id=f"game_{year}_{len(season.schedule) + 1:04d}",
                home_team_id=home.team_id,
                home_team_abbreviation=home.abbreviation,
                away_team_id=away.team_id,
                away_team_abbreviation=away.abbreviation,
                game_date=game_date,
                is_playoff=True,
                playoff_round=round_number,
                playoff_series_id=series.series_id,
                playoff_game_number=game_number,
            )
            season.schedule.append(game)
            series.games.append(game.id)
            created += 1
            if game_number - 1 < len(SERIES_GAME_GAPS):
                game_date += timedelta(days=SERIES_GAME_GAPS[game_number - 1])
        series.advance_status(SERIES_IN_PROGRESS)

    season.touch()
    logger.info(
        "Scheduled {} ({} series, {} games) starting {}",
        PLAYOFF_ROUND_NAMES.get(round_number, f"round {round_number}"),
        len(pending),
        created,
        start.isoformat(),
    )
    return created


def _cancel_remaining_games(season: SeasonData, series: Series) -> int:
    series_games = set(series.games)
    cancelled = 0
    for game in season.schedule:
        if game.id in series_games and not game.is_complete and not game.is_cancelled:
            game.is_cancelled = True
            cancelled += 1
    return cancelled


def _record_playoff_results(season: SeasonData, series: Series) -> None:
    loser = series.loser
    if loser is not None:
        stats = season.team_stats.get(loser.team_id)
        if stats is not None:
            stats.playoff_result = f"Lost in {PLAYOFF_ROUND_NAMES.get(series.round, f'round {series.round}')}"
    if series.round == 4 and series.winner is not None:
        stats = season.team_stats.get(series.winner.team_id)
        if stats is not None:
            stats.playoff_result = "Champion"


def update_series_after_game(season: SeasonData, game: Game) -> SeriesUpdate | None:
    """Count a completed playoff game toward its series.

    Returns None for non-playoff games, unknown series, results arriving after
    the series was decided and games that were already counted.
    """
    if not game.is_playoff or not game.playoff_series_id or not game.is_complete or game.is_cancelled:
        return None
    bracket = season.playoff_bracket
    if bracket is None:
        return None
    series = bracket.find_series(game.playoff_series_id)
    if series is None:
        logger.warning("Game {} references unknown series {}", game.id, game.playoff_series_id)
        return None
    if game.id in series.counted_games:
        return None
    if series.is_complete:
        logger.warning("Series {} already decided; result of {} ignored", series.series_id, game.id)
        return None

    winner_id = game.winner_id
    if winner_id == series.team1.team_id:
        series.team1_wins += 1
    elif winner_id == series.team2.team_id:
        series.team2_wins += 1
    else:
        logger.warning("Game {} winner {} is not part of series {}", game.id, winner_id, series.series_id)
        return None
    series.counted_games.append(game.id)
    series.advance_status(SERIES_IN_PROGRESS)

    complete = max(series.team1_wins, series.team2_wins) >= SERIES_WINS_NEEDED
    if complete:
        series.winner = series.team1 if series.team1_wins >= SERIES_WINS_NEEDED else series.team2
        series.advance_status(SERIES_COMPLETE)
        series.series_mvp = calculate_series_mvp(season, series)
        cancelled = _cancel_remaining_games(season, series)
        _record_playoff_results(season, series)
        logger.info(
            "{} wins series {} {}-{} ({} unplayed games cancelled)",
            series.winner.abbreviation,
            series.series_id,
            max(series.team1_wins, series.team2_wins),
            min(series.team1_wins, series.team2_wins),
            cancelled,
        )

    season.touch()
    return SeriesUpdate(series=series, game_id=game.id, winner_id=winner_id, series_complete=complete)


def _record_key(season: SeasonData, entry: SeriesTeam, conf_rank: int) -> tuple[float, int, int]:
    standing = season.standing_for(entry.team_id)
    if standing is None:
        return (0.0, 0, -conf_rank)
    return (standing.win_pct, standing.point_diff, -conf_rank)


def _advance_conference(bracket: Bracket, conf_bracket: ConferenceBracket) -> list[Series]:
    conference = conf_bracket.conference
    prefix = conf_bracket.prefix
    created: list[Series] = []

    for label, top_pairing, other_pairing in ROUND_TWO_SLOTS:
        series_id = round_two_id(prefix, label)
        if bracket.find_series(series_id) is not None:
            continue
        top = bracket.find_series(round_one_id(prefix, *top_pairing))
        other = bracket.find_series(round_one_id(prefix, *other_pairing))
        if top is None or other is None or top.winner is None or other.winner is None:
            continue
        series = _new_series(series_id, conference, 2, top.winner, other.winner)
        conf_bracket.round2.append(series)
        created.append(series)
    if created:
        slot_order = [round_two_id(prefix, label) for label, _, _ in ROUND_TWO_SLOTS]
        conf_bracket.round2.sort(key=lambda s: slot_order.index(s.series_id))

    if conf_bracket.conf_finals is None:
        slot_a = bracket.find_series(round_two_id(prefix, ROUND_TWO_SLOTS[0][0]))
        slot_b = bracket.find_series(round_two_id(prefix, ROUND_TWO_SLOTS[1][0]))
        if slot_a is not None and slot_b is not None and slot_a.winner and slot_b.winner:
            team1, team2 = sorted((slot_a.winner, slot_b.winner), key=lambda entry: entry.seed)
            conf_bracket.conf_finals = _new_series(conference_finals_id(prefix), conference, 3, team1, team2)
            created.append(conf_bracket.conf_finals)
    return created


def advance_bracket(season: SeasonData) -> list[Series]:
    """Create every next-round series whose feeders are decided. Safe to re-run."""
    bracket = season.playoff_bracket
    if bracket is None:
        return []

    created: list[Series] = []
    for conf_bracket in bracket.conferences.values():
        created.extend(_advance_conference(bracket, conf_bracket))

    # Only conferences that actually seeded a first round contend for the title.
    contenders = [conf_bracket for conf_bracket in bracket.conferences.values() if conf_bracket.round1]
    if bracket.finals is None and len(contenders) == 2:
        champions = [
            (rank, conf_bracket.conf_finals.winner)
            for rank, conf_bracket in enumerate(contenders)
            if conf_bracket.conf_finals is not None and conf_bracket.conf_finals.winner is not None
        ]
        if len(champions) == 2:
            ranked = sorted(
                champions,
                key=lambda pair: _record_key(season, pair[1], pair[0]),
                reverse=True,
            )
            bracket.finals = _new_series(FINALS_ID, FINALS_CONFERENCE, 4, ranked[0][1], ranked[1][1])
            created.append(bracket.finals)

    if bracket.champion is None and bracket.finals is not None and bracket.finals.winner is not None:
        bracket.champion = bracket.finals.winner
        logger.info("{} are {} champions", bracket.champion.abbreviation, season.year)

    for series in created:
        logger.info(
            "Created {} series {}: ({}) {} vs ({}) {}",
            PLAYOFF_ROUND_NAMES.get(series.round, series.round),
            series.series_id,
            series.team1.seed,
            series.team1.abbreviation,
            series.team2.seed,
            series.team2.abbreviation,
        )
    if created:
        season.touch()
    return created


def advance_winner_to_next_round(season: SeasonData, update: SeriesUpdate | None) -> list[Series]:
    if update is None or not update.series_complete:
        return []
    return advance_bracket(season)


def calculate_series_mvp(season: SeasonData, series: Series) -> SeriesMVP | None:
    """Best weighted series line on the winning side, minimum two games played."""
    if series.winner is None or not series.games:
        return None
    winning_team_id = series.winner.team_id
    series_games = set(series.games)

    totals: dict[str, dict[str, Any]] = {}
    for game in season.schedule:
        if game.id not in series_games or not game.is_complete or not game.box_score:
            continue
        side = "home" if game.home_team_id == winning_team_id else "away"
        for line in game.box_score.get(side, []):
            player_id = line.get("player_id")
            if not player_id:
                continue
            row = totals.setdefault(
                str(player_id),
                {"name": line.get("name") or "Unknown", "games": 0, **{stat: 0 for stat in MVP_WEIGHTS}},
            )
            row["games"] += 1
            for stat in MVP_WEIGHTS:
                row[stat] += line.get(stat) or 0

    best_id: str | None = None
    best_score = float("-inf")
    for player_id, row in totals.items():
        if row["games"] < MVP_MIN_GAMES:
            continue
        score = sum(row[stat] * weight for stat, weight in MVP_WEIGHTS.items())
        if score > best_score:
            best_id, best_score = player_id, score
    if best_id is None:
        return None

    row = totals[best_id]
    games = row["games"]
    return SeriesMVP(
        player_id=best_id,
        name=row["name"],
        team_id=winning_team_id,
        games=games,
        ppg=round(row["points"] / games, 1),
        rpg=round(row["rebounds"] / games, 1),
        apg=round(row["assists"] / games, 1),
        spg=round(row["steals"] / games, 1),
        bpg=round(row["blocks"] / games, 1),
        mvp_score=round(best_score, 1),
    )


def get_series(season: SeasonData, series_id: str) -> Series | None:
    if season.playoff_bracket is None:
        return None
    return season.playoff_bracket.find_series(series_id)


def user_playoff_status(season: SeasonData, user_team_id: int, teams: Iterable[Team]) -> dict[str, Any]:
    """Where the user's team would be seeded right now and who it would face."""
    teams_by_id = {team.id: team for team in teams}
    for conference in conferences(season):
        ranked = rank_standings(season.standings[conference])
        for idx, standing in enumerate(ranked, start=1):
            if standing.team_id != user_team_id:
                continue
            status: dict[str, Any] = {
                "qualified": idx <= PLAYOFF_SEEDS,
                "seed": idx,
                "conference": conference,
                "wins": standing.wins,
                "losses": standing.losses,
            }
            if idx <= PLAYOFF_SEEDS:
                opponent_seed = PLAYOFF_SEEDS + 1 - idx
                if opponent_seed <= len(ranked):
                    opp_standing = ranked[opponent_seed - 1]
                    opponent = teams_by_id.get(opp_standing.team_id)
                    if opponent is not None:
                        status["opponent"] = {
                            "team_id": opponent.id,
                            "name": opponent.name,
                            "abbreviation": opponent.abbreviation,
                            "seed": opponent_seed,
                            "wins": opp_standing.wins,
                            "losses": opp_standing.losses,
                        }
            return status
    return {"qualified": False}


def next_user_series(season: SeasonData, user_team_id: int) -> Series | None:
    if season.playoff_bracket is None:
        return None
    for series in season.playoff_bracket.all_series():
        if not series.is_complete and series.involves(user_team_id):
            return series
    return None
