"""
Relational store for players, games and player-game edges.

Every public operation runs as one explicit transaction through
:meth:`MatchStore._retry_and_commit`, which retries until the transaction
commits. Statement-level failures roll back and rerun the unit,
connection-level failures reopen the connection first, and I/O failures are
raised as :class:`~matchgraph.core.errors.FatalStorageError`.

A store owns a single connection and is meant to be used by one thread at a
time; worker callbacks open their own store from the shared engine.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, TypeVar

import polars as pl
from sqlalchemy import exc as sa_exc
from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine

from matchgraph.core.constants import (
    DEFAULT_ELO,
    DEFAULT_STORAGE_RETRY_DELAY_SECONDS,
    DELETED_PLAYER_ID,
    DELETED_PLAYER_NAME,
    MIN_DATETIME,
)
from matchgraph.core.errors import (
    FatalStorageError,
    MatchgraphError,
    RatingInvariantError,
)
from matchgraph.core.retry import StorageErrorKind, classify_storage_error
from matchgraph.scraping.models import HistoryEntry, UserProfile

from .engine import Base
from .load import (
    as_utc,
    leaderboard_frame,
    leaderboard_query,
    unresolved_games_frame,
    unresolved_games_query,
)
from .models import Game, Player, PlayerPlayedGame

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MatchStore:
    def __init__(
        self,
        engine: Engine,
        *,
        retry_delay: float = DEFAULT_STORAGE_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._conn: Optional[Connection] = None

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _connection(self) -> Connection:
        if self._conn is None or self._conn.closed:
            self._conn = self.engine.connect()
        return self._conn

    def _reset_connection(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.invalidate()
            conn.close()
        except sa_exc.SQLAlchemyError as e:
            logger.debug(f"Ignoring error while invalidating connection: {e}")

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None and not conn.closed:
            conn.close()

    def __enter__(self) -> "MatchStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _retry_and_commit(
        self, unit: Callable[[Connection], T], description: str
    ) -> T:
        """Run ``unit`` in a transaction, retrying until it commits."""
        attempt = 0
        while True:
            attempt += 1
            try:
                conn = self._connection()
                with conn.begin():
                    return unit(conn)
            except sa_exc.SQLAlchemyError as e:
                kind = classify_storage_error(e)
                if kind is StorageErrorKind.FATAL:
                    logger.error(f"Fatal storage error during {description}: {e}")
                    self._reset_connection()
                    raise FatalStorageError(
                        f"{description} failed with an I/O error: {e}"
                    ) from e
                if kind is StorageErrorKind.CONNECTION:
                    logger.warning(
                        f"Connection lost during {description} "
                        f"(attempt {attempt}): {e}; reconnecting"
                    )
                    self._reset_connection()
                else:
                    logger.warning(
                        f"{description} rolled back (attempt {attempt}): {e}; "
                        "retrying"
                    )
                if self.retry_delay > 0:
                    self._sleep(self.retry_delay)

    def _insert(self, model):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            return pg_insert(model)
        if dialect == "sqlite":
            return sqlite_insert(model)
        raise MatchgraphError(f"Unsupported database dialect: {dialect}")

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create tables, indexes and the sentinel player if missing."""

        def _unit(conn: Connection) -> None:
            Base.metadata.create_all(conn)
            conn.execute(
                self._insert(Player)
                .values(
                    player_id=DELETED_PLAYER_ID,
                    display_name=DELETED_PLAYER_NAME,
                    normalized_display_name=DELETED_PLAYER_NAME.lower(),
                    last_checked=MIN_DATETIME,
                    elo=DEFAULT_ELO,
                    visibility_restricted=False,
                    trigger_update=False,
                )
                .on_conflict_do_nothing(index_elements=["player_id"])
            )

        self._retry_and_commit(_unit, "ensure_schema")

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def player_exists(self, player_id: str) -> bool:
        def _unit(conn: Connection) -> bool:
            found = conn.execute(
                select(Player.player_id)
                .where(Player.player_id == player_id)
                .limit(1)
            ).scalar()
            return found is not None

        return self._retry_and_commit(_unit, f"player_exists({player_id})")

    def create_player(self, profile: UserProfile) -> None:
        """Insert ``profile`` as a never-checked, unrated player (no-op if present)."""

        def _unit(conn: Connection) -> None:
            conn.execute(
                self._insert(Player)
                .values(
                    player_id=profile.player_id,
                    display_name=profile.display_name,
                    normalized_display_name=profile.normalized_display_name,
                    last_checked=MIN_DATETIME,
                    elo=DEFAULT_ELO,
                    visibility_restricted=profile.visibility_restricted,
                    trigger_update=False,
                )
                .on_conflict_do_nothing(index_elements=["player_id"])
            )

        self._retry_and_commit(_unit, f"create_player({profile.player_id})")

    def get_elo(self, player_id: str) -> int:
        def _unit(conn: Connection) -> int:
            elo = conn.execute(
                select(Player.elo).where(Player.player_id == player_id)
            ).scalar()
            return DEFAULT_ELO if elo is None else int(elo)

        return self._retry_and_commit(_unit, f"get_elo({player_id})")

    def get_players_to_update(
        self, max_batch: int, last_game_after: datetime
    ) -> list[str]:
        """Ids due for a re-crawl, least recently checked first.

        A player is due when its most recent game started at or after
        ``last_game_after``, when it has no recorded games, or when
        ``trigger_update`` is set. The sentinel player is never returned.
        """
        latest_game = (
            select(func.max(Game.start_date))
            .select_from(Game)
            .join(PlayerPlayedGame, PlayerPlayedGame.game_id == Game.game_id)
            .where(PlayerPlayedGame.player_id == Player.player_id)
            .scalar_subquery()
        )
        has_games = exists().where(
            PlayerPlayedGame.player_id == Player.player_id
        )
        stmt = (
            select(Player.player_id)
            .where(
                Player.player_id != DELETED_PLAYER_ID,
                or_(
                    latest_game >= last_game_after,
                    ~has_games,
                    Player.trigger_update.is_(True),
                ),
            )
            .order_by(Player.last_checked.asc(), Player.player_id.asc())
            .limit(max_batch)
        )

        def _unit(conn: Connection) -> list[str]:
            return [row[0] for row in conn.execute(stmt)]

        return self._retry_and_commit(_unit, "get_players_to_update")

    def mark_player_updated(
        self, player_id: str, now: Optional[datetime] = None
    ) -> None:
        checked_at = now or datetime.now(timezone.utc)

        def _unit(conn: Connection) -> None:
            conn.execute(
                update(Player)
                .where(Player.player_id == player_id)
                .values(trigger_update=False, last_checked=checked_at)
            )

        self._retry_and_commit(_unit, f"mark_player_updated({player_id})")

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    def insert_games(
        self, entries: Iterable[HistoryEntry], for_player_id: str
    ) -> int:
        """Persist games and ``for_player_id``'s edges as one batch.

        Games and edges that already exist are left untouched. Returns the
        number of distinct games in the batch.
        """
        unique: dict[str, HistoryEntry] = {}
        for entry in entries:
            unique.setdefault(entry.game_id, entry)
        if not unique:
            return 0

        game_rows = [
            {"game_id": e.game_id, "start_date": e.start_date}
            for e in unique.values()
        ]
        edge_rows = [
            {
                "game_id": e.game_id,
                "player_id": for_player_id,
                "end_result": e.end_result,
            }
            for e in unique.values()
        ]

        def _unit(conn: Connection) -> int:
            conn.execute(
                self._insert(Game).on_conflict_do_nothing(
                    index_elements=["game_id"]
                ),
                game_rows,
            )
            conn.execute(
                self._insert(PlayerPlayedGame).on_conflict_do_nothing(
                    index_elements=["game_id", "player_id"]
                ),
                edge_rows,
            )
            return len(unique)

        return self._retry_and_commit(_unit, f"insert_games({for_player_id})")

    def get_latest_game(self, player_id: str) -> datetime:
        def _unit(conn: Connection) -> datetime:
            latest = conn.execute(
                select(func.max(Game.start_date))
                .select_from(Game)
                .join(
                    PlayerPlayedGame, PlayerPlayedGame.game_id == Game.game_id
                )
                .where(PlayerPlayedGame.player_id == player_id)
            ).scalar()
            return as_utc(latest) if latest is not None else MIN_DATETIME

        return self._retry_and_commit(_unit, f"get_latest_game({player_id})")

    def update_elo_values(
        self,
        game_id: str,
        player_a: str,
        delta_a: int,
        player_b: str,
        delta_b: int,
    ) -> bool:
        """Apply one game's rating change to both edges and both players.

        Edges are only written while their ``elo_diff`` is still null, so a
        game already rated is left alone and ``False`` is returned.
        """

        def _edge(player_id: str, delta: int):
            return (
                update(PlayerPlayedGame)
                .where(
                    PlayerPlayedGame.game_id == game_id,
                    PlayerPlayedGame.player_id == player_id,
                    PlayerPlayedGame.elo_diff.is_(None),
                )
                .values(elo_diff=delta)
            )

        def _unit(conn: Connection) -> bool:
            changed_a = conn.execute(_edge(player_a, delta_a)).rowcount
            changed_b = conn.execute(_edge(player_b, delta_b)).rowcount
            if changed_a == 0 and changed_b == 0:
                return False
            if changed_a != 1 or changed_b != 1:
                raise RatingInvariantError(
                    f"Game {game_id} has a half-rated edge pair "
                    f"({player_a}: {changed_a}, {player_b}: {changed_b})"
                )
            for player_id, delta in ((player_a, delta_a), (player_b, delta_b)):
                conn.execute(
                    update(Player)
                    .where(Player.player_id == player_id)
                    .values(elo=Player.elo + delta)
                )
            return True

        return self._retry_and_commit(_unit, f"update_elo_values({game_id})")

    # ------------------------------------------------------------------
    # Frames and reporting
    # ------------------------------------------------------------------

    def load_unresolved_games(self) -> pl.DataFrame:
        """Decisive games with both edges unrated, in rating order."""

        def _unit(conn: Connection) -> pl.DataFrame:
            return unresolved_games_frame(conn.execute(unresolved_games_query()))

        return self._retry_and_commit(_unit, "load_unresolved_games")

    def load_leaderboard(self, limit: int = 10) -> pl.DataFrame:
        def _unit(conn: Connection) -> pl.DataFrame:
            return leaderboard_frame(conn.execute(leaderboard_query(limit)))

        return self._retry_and_commit(_unit, "load_leaderboard")

    def summary(self) -> dict[str, int]:
        def _count(conn: Connection, stmt) -> int:
            return int(conn.execute(stmt).scalar() or 0)

        def _unit(conn: Connection) -> dict[str, int]:
            return {
                "players": _count(
                    conn,
                    select(func.count())
                    .select_from(Player)
                    .where(Player.player_id != DELETED_PLAYER_ID),
                ),
                "games": _count(conn, select(func.count()).select_from(Game)),
                "edges": _count(
                    conn, select(func.count()).select_from(PlayerPlayedGame)
                ),
                "rated_edges": _count(
                    conn,
                    select(func.count())
                    .select_from(PlayerPlayedGame)
                    .where(PlayerPlayedGame.elo_diff.is_not(None)),
                ),
            }

        return self._retry_and_commit(_unit, "summary")
