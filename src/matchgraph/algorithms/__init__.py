"""Rating algorithms."""

from matchgraph.algorithms.elo import (
    EloRatingEngine,
    clamp_delta,
    elo_delta,
    score_for,
    win_expectancy,
)

__all__ = [
    "EloRatingEngine",
    "clamp_delta",
    "elo_delta",
    "score_for",
    "win_expectancy",
]
