"""Data returned by the game API: user profiles and match-history entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EndResult(Enum):
    """Outcome of a game from one player's point of view."""

    WIN = "Win"
    LOSS = "Loss"
    DRAW = "Draw"
    COOP_WIN = "Coop Win"
    COOP_LOSS = "Coop Loss"

    @property
    def is_decisive(self) -> bool:
        """True for 1-vs-1 outcomes that take part in rating."""
        return self in (EndResult.WIN, EndResult.LOSS, EndResult.DRAW)

    @classmethod
    def from_api(cls, condition: str) -> EndResult:
        """Map an API end condition (e.g. ``win_concede``) onto a result."""
        key = str(condition).strip().lower().replace(" ", "_")
        try:
            return _API_END_CONDITIONS[key]
        except KeyError:
            raise ValueError(f"Unknown end condition: {condition!r}") from None


_API_END_CONDITIONS = {
    "win": EndResult.WIN,
    "win_concede": EndResult.WIN,
    "loss": EndResult.LOSS,
    "loss_concede": EndResult.LOSS,
    "draw": EndResult.DRAW,
    "coop_win": EndResult.COOP_WIN,
    "coop_loss": EndResult.COOP_LOSS,
}


@dataclass(frozen=True)
class UserProfile:
    """Public profile of a player."""

    player_id: str
    display_name: str
    visibility_restricted: bool = False

    @property
    def normalized_display_name(self) -> str:
        return self.display_name.lower()


@dataclass(frozen=True)
class HistoryEntry:
    """One game in a player's match history."""

    game_id: str
    start_date: datetime
    end_result: EndResult
    opponent_id: str | None = None
