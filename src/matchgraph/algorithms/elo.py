from __future__ import annotations

from tqdm import tqdm

from matchgraph.core.constants import (
    DEFAULT_PROGRESS_EVERY,
    ELO_K_FACTOR,
    ELO_SCALE,
)
from matchgraph.core.errors import RatingInvariantError
from matchgraph.core.logging import get_logger
from matchgraph.scraping.models import EndResult


def win_expectancy(
    elo_a: float, elo_b: float, scale: float = ELO_SCALE
) -> float:
    """Expected score of A against B."""
    normalized_diff = (elo_b - elo_a) / scale
    return 1.0 / (1.0 + 10.0**normalized_diff)


def score_for(result: EndResult) -> float:
    """Score of the player whose edge carries ``result``."""
    if result is EndResult.WIN:
        return 1.0
    if result is EndResult.LOSS:
        return 0.0
    if result is EndResult.DRAW:
        return 0.5
    raise RatingInvariantError(f"Cannot rate a {result.value!r} game")


def clamp_delta(raw_delta: float) -> int:
    """Round a raw rating change to an integer that is never zero.

    Changes in [0, 1) become +1 and changes in (-1, 0) become -1; anything
    larger is truncated toward zero.
    """
    if 0.0 <= raw_delta < 1.0:
        return 1
    if -1.0 < raw_delta < 0.0:
        return -1
    return int(raw_delta)


def elo_delta(
    elo_a: float,
    elo_b: float,
    result: EndResult,
    *,
    k_factor: float = ELO_K_FACTOR,
    scale: float = ELO_SCALE,
) -> int:
    """Rating change for A given A's ``result`` against B; B gets the negation."""
    raw = k_factor * (score_for(result) - win_expectancy(elo_a, elo_b, scale))
    return clamp_delta(raw)


class EloRatingEngine:
    """Chronological Elo pass over games whose edges are still unrated.

    Each game reads both players' current ratings from the store, so a
    player's earlier games in the same pass feed into later ones.
    """

    def __init__(
        self,
        k_factor: float = ELO_K_FACTOR,
        scale: float = ELO_SCALE,
        *,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        show_progress_bar: bool = False,
    ) -> None:
        self.k_factor = k_factor
        self.scale = scale
        self.progress_every = progress_every
        self.show_progress_bar = show_progress_bar
        self.logger = get_logger(self.__class__.__name__)

    def delta(self, elo_a: float, elo_b: float, result: EndResult) -> int:
        return elo_delta(
            elo_a, elo_b, result, k_factor=self.k_factor, scale=self.scale
        )

    def run(self, store) -> int:
        """Rate every unresolved game in ``store``; returns games rated."""
        games = store.load_unresolved_games()
        total = games.height
        if total == 0:
            self.logger.info("No unrated games")
            return 0

        self.logger.info(f"Rating {total} games")
        rows = games.iter_rows(named=True)
        if self.show_progress_bar:
            rows = tqdm(rows, total=total, desc="Rating games")

        rated = 0
        for row in rows:
            player_a, player_b = row["player_a"], row["player_b"]
            change = self.delta(
                store.get_elo(player_a),
                store.get_elo(player_b),
                EndResult(row["end_result"]),
            )
            if store.update_elo_values(
                row["game_id"], player_a, change, player_b, -change
            ):
                rated += 1
                if rated % self.progress_every == 0:
                    self.logger.info(f"Rated {rated}/{total} games")
            else:
                self.logger.debug(f"Game {row['game_id']} was already rated")

        self.logger.info(f"Rating pass complete: {rated}/{total} games rated")
        return rated
