from __future__ import annotations

from typing import Iterable

from .config import PLAYOFF_ROUND_NAMES
from .league import LeagueSeason
from .logging import get_logger, setup_logging
from .models import Bracket, PlayerStat, Series, Standing, Team

logger = get_logger(__name__)


def build_default_teams() -> list[Team]:
    conferences: dict[str, list[tuple[str, str, str, str]]] = {
        "east": [
            ("BOS", "Boston", "Harbor Kings", "#5b2c83"),
            ("NYK", "New York", "Liberty Blades", "#c1121f"),
            ("PHI", "Philadelphia", "Metro Sparks", "#f97316"),
            ("BKN", "Brooklyn", "Atlantic Wolves", "#4338ca"),
            ("TOR", "Toronto", "Northern Foxes", "#b45309"),
            ("MIL", "Milwaukee", "Lake Vipers", "#0f766e"),
            ("CHI", "Chicago", "Red Hawks", "#dc2626"),
            ("CLE", "Cleveland", "Iron Rangers", "#1f2937"),
            ("DET", "Detroit", "Steel River", "#334155"),
            ("IND", "Indianapolis", "Prairie Storm", "#0891b2"),
            ("ATL", "Atlanta", "Peach Comets", "#0369a1"),
            ("MIA", "Miami", "Bay Flames", "#be123c"),
            ("ORL", "Orlando", "Sun Rays", "#2563eb"),
            ("CHA", "Charlotte", "Hornet Swarm", "#0d9488"),
            ("WAS", "Washington", "Capital Eagles", "#1d4ed8"),
        ],
        "west": [
            ("LAL", "Los Angeles", "Golden Peaks", "#ca8a04"),
            ("LAC", "Los Angeles", "Pacific Tide", "#2563eb"),
            ("GSW", "San Francisco", "Bridge Runners", "#f59e0b"),
            ("SAC", "Sacramento", "Valley Kings", "#6d28d9"),
            ("PHX", "Phoenix", "Desert Fire", "#ea580c"),
            ("DEN", "Denver", "Summit Eagles", "#0f766e"),
            ("UTA", "Salt Lake City", "Canyon Coyotes", "#92400e"),
            ("POR", "Portland", "Timberwolves", "#166534"),
            ("SEA", "Seattle", "Emerald Orcas", "#059669"),
            ("MIN", "Minneapolis", "Glaciers", "#0c2340"),
            ("OKC", "Oklahoma City", "Thunderbirds", "#0284c7"),
            ("DAL", "Dallas", "Lone Stars", "#1e40af"),
            ("HOU", "Houston", "Rocket Jets", "#b91c1c"),
            ("SAS", "San Antonio", "Silver Spurs", "#6b7280"),
            ("MEM", "Memphis", "River Grizzlies", "#1e3a8a"),
        ],
    }

    teams: list[Team] = []
    for conference, entries in conferences.items():
        for abbreviation, city, name, color in entries:
            teams.append(
                Team(
                    id=len(teams) + 1,
                    abbreviation=abbreviation,
                    conference=conference,
                    name=name,
                    city=city,
                    primary_color=color,
                )
            )
    return teams


def format_standings(rows: Iterable[Standing], title: str = "") -> str:
    lines = [title] if title else []
    lines.append("Pos Team    W   L   PCT    GB  Home   Away   Conf   L10   Strk  Diff")
    ranked = list(rows)
    leader = ranked[0] if ranked else None
    for idx, rec in enumerate(ranked, start=1):
        games_back = 0.0
        if leader is not None:
            games_back = ((leader.wins - rec.wins) + (rec.losses - leader.losses)) / 2
        gb = "-" if games_back == 0 else f"{games_back:.1f}"
        lines.append(
            f"{idx:>3} {rec.team_abbreviation:<5} {rec.wins:>3} {rec.losses:>3} {rec.win_pct:.3f} {gb:>5}"
            f"  {rec.home_record:<6} {rec.away_record:<6} {str(rec.conference_record):<6} {rec.last10:<5}"
            f" {rec.streak_display:<5} {rec.point_diff:>+5}"
        )
    return "\n".join(lines)


def format_league_standings(season: LeagueSeason) -> str:
    blocks = [
        format_standings(season.get_conference_standings(conference), title=conference.title())
        for conference in season.get_conferences()
    ]
    return "\n\n".join(blocks)


def format_player_stats(players: Iterable[PlayerStat], title: str, limit: int = 20) -> str:
    lines = [title, "Player                 Team  GP  GS   MIN   PPG   RPG   APG   SPG   BPG"]
    for player in list(players)[:limit]:
        lines.append(
            f"{player.player_name:<22} {player.team_id:>4} {player.games_played:>3} {player.games_started:>3}"
            f" {player.per_game('minutes'):>5.1f} {player.per_game('points'):>5.1f}"
            f" {player.per_game('rebounds'):>5.1f} {player.per_game('assists'):>5.1f}"
            f" {player.per_game('steals'):>5.1f} {player.per_game('blocks'):>5.1f}"
        )
    return "\n".join(lines)


def _format_series(series: Series) -> str:
    line = (
        f"  {series.series_id:<9} ({series.team1.seed}) {series.team1.abbreviation:<4}"
        f" {series.team1_wins}-{series.team2_wins} ({series.team2.seed}) {series.team2.abbreviation:<4}"
        f" {series.status}"
    )
    if series.winner is not None:
        line += f"  winner {series.winner.abbreviation}"
    if series.series_mvp is not None:
        line += f"  MVP {series.series_mvp.name} ({series.series_mvp.ppg:.1f} ppg)"
    return line


def format_bracket(bracket: Bracket | None) -> str:
    if bracket is None:
        return "Playoffs not started"
    lines: list[str] = []
    for round_number, round_name in sorted(PLAYOFF_ROUND_NAMES.items()):
        round_series = bracket.series_for_round(round_number)
        if not round_series:
            continue
        lines.append(round_name)
        lines.extend(_format_series(series) for series in round_series)
    if bracket.champion is not None:
        lines.append(f"Champion: {bracket.champion.abbreviation}")
    return "\n".join(lines)


def start_default_league(
    year: int,
    user_team_id: int | None = None,
    seed: int | None = None,
    *,
    configure_logging: bool = True,
) -> LeagueSeason:
    """Build the 30-team league and its regular-season schedule.

    Logging is configured from ``LOG_LEVEL`` / ``LOG_DIR`` unless the caller
    already installed its own sinks.
    """
    if configure_logging:
        setup_logging()
    season = LeagueSeason(build_default_teams(), year, user_team_id=user_team_id, seed=seed)
    total = season.generate_schedule()
    logger.info("Started {} season with {} games", year, total)
    return season
