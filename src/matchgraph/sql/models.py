from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
)

from matchgraph.core.constants import DEFAULT_ELO, DELETED_PLAYER_ID, MIN_DATETIME
from matchgraph.scraping.models import EndResult

from .constants import (
    END_RESULT_TYPE,
    GAMES_TABLE,
    PLAYER_GAMES_TABLE,
    PLAYERS_TABLE,
)
from .engine import Base


class Player(Base):
    __tablename__ = PLAYERS_TABLE
    __table_args__ = (
        Index(
            "ix_players_normalized_display_name", "normalized_display_name"
        ),
    )

    player_id = Column(String, primary_key=True)
    display_name = Column(Text, nullable=False)
    normalized_display_name = Column(Text, nullable=False)
    last_checked = Column(
        DateTime(timezone=True), nullable=False, default=MIN_DATETIME
    )
    elo = Column(Integer, nullable=False, default=DEFAULT_ELO)
    visibility_restricted = Column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    # Set externally to force a player into the next refill
    trigger_update = Column(
        Boolean, nullable=False, default=False, server_default=false()
    )


class Game(Base):
    __tablename__ = GAMES_TABLE

    game_id = Column(String, primary_key=True)
    start_date = Column(DateTime(timezone=True), nullable=False)


class PlayerPlayedGame(Base):
    __tablename__ = PLAYER_GAMES_TABLE
    __table_args__ = (
        Index("ix_player_played_game_player_id", "player_id"),
        Index("ix_player_played_game_game_id", "game_id"),
    )

    game_id = Column(
        String,
        ForeignKey(
            f"{GAMES_TABLE}.game_id", ondelete="CASCADE", onupdate="CASCADE"
        ),
        primary_key=True,
    )
    # Removed players fall back to the sentinel row
    player_id = Column(
        String,
        ForeignKey(
            f"{PLAYERS_TABLE}.player_id",
            ondelete="SET DEFAULT",
            onupdate="CASCADE",
        ),
        primary_key=True,
        server_default=DELETED_PLAYER_ID,
    )
    end_result = Column(
        Enum(
            EndResult,
            name=END_RESULT_TYPE,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    elo_diff = Column(Integer, nullable=True)
