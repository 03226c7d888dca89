from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import polars as pl
from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import aliased

from matchgraph.scraping.models import EndResult

from .models import Game, Player, PlayerPlayedGame

UNRESOLVED_GAMES_SCHEMA: dict[str, pl.DataType] = {
    "game_id": pl.Utf8,
    "end_result": pl.Utf8,
    "player_a": pl.Utf8,
    "player_b": pl.Utf8,
    "start_date": pl.Datetime("us"),
}

LEADERBOARD_SCHEMA: dict[str, pl.DataType] = {
    "player_id": pl.Utf8,
    "display_name": pl.Utf8,
    "elo": pl.Int64,
    "last_checked": pl.Datetime("us"),
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a driver timestamp to an aware UTC datetime.

    SQLite hands back naive values even for ``DateTime(timezone=True)``
    columns; those are stored as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    aware = as_utc(value)
    return aware.replace(tzinfo=None) if aware is not None else None


def unresolved_games_query() -> Select:
    """Games with exactly two edges, both unrated and decisive, oldest first.

    ``player_a`` is the lexicographically smaller player id and the result is
    taken from A's edge. Games with any other edge count, or with a coop edge
    on either side, are never rated.
    """
    edge_a = aliased(PlayerPlayedGame)
    edge_b = aliased(PlayerPlayedGame)
    coop = [EndResult.COOP_WIN, EndResult.COOP_LOSS]
    two_edge_games = (
        select(PlayerPlayedGame.game_id)
        .group_by(PlayerPlayedGame.game_id)
        .having(func.count() == 2)
    )
    return (
        select(
            Game.game_id,
            edge_a.end_result,
            edge_a.player_id.label("player_a"),
            edge_b.player_id.label("player_b"),
            Game.start_date,
        )
        .join(edge_a, edge_a.game_id == Game.game_id)
        .join(
            edge_b,
            and_(
                edge_b.game_id == Game.game_id,
                edge_a.player_id < edge_b.player_id,
            ),
        )
        .where(
            Game.game_id.in_(two_edge_games),
            edge_a.elo_diff.is_(None),
            edge_b.elo_diff.is_(None),
            edge_a.end_result.not_in(coop),
            edge_b.end_result.not_in(coop),
        )
        .order_by(Game.start_date.asc(), Game.game_id.asc())
    )


def leaderboard_query(limit: int = 10) -> Select:
    return (
        select(
            Player.player_id,
            Player.display_name,
            Player.elo,
            Player.last_checked,
        )
        .order_by(Player.elo.desc(), Player.player_id.asc())
        .limit(limit)
    )


def unresolved_games_frame(rows: Iterable[Any]) -> pl.DataFrame:
    """Build the rating-pass input frame from result rows."""
    columns: dict[str, list] = {name: [] for name in UNRESOLVED_GAMES_SCHEMA}
    for row in rows:
        result = row.end_result
        columns["game_id"].append(row.game_id)
        columns["end_result"].append(
            result.value if isinstance(result, EndResult) else str(result)
        )
        columns["player_a"].append(row.player_a)
        columns["player_b"].append(row.player_b)
        columns["start_date"].append(_naive_utc(row.start_date))
    return pl.DataFrame(columns, schema=UNRESOLVED_GAMES_SCHEMA)


def leaderboard_frame(rows: Iterable[Any]) -> pl.DataFrame:
    columns: dict[str, list] = {name: [] for name in LEADERBOARD_SCHEMA}
    for row in rows:
        columns["player_id"].append(row.player_id)
        columns["display_name"].append(row.display_name)
        columns["elo"].append(row.elo)
        columns["last_checked"].append(_naive_utc(row.last_checked))
    return pl.DataFrame(columns, schema=LEADERBOARD_SCHEMA)
