import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from matchgraph.core.errors import ApiRequestError
from matchgraph.scraping.models import EndResult, HistoryEntry, UserProfile
from matchgraph.sql.engine import create_engine
from matchgraph.sql.models import PlayerPlayedGame
from matchgraph.sql.store import MatchStore


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("matchgraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'matchgraph.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    s = MatchStore(engine)
    s.ensure_schema()
    yield s
    s.close()


def ts(day: int, hour: int = 12) -> datetime:
    return datetime(2024, 5, day, hour, tzinfo=timezone.utc)


def entry(game_id, start, result, opponent):
    return HistoryEntry(
        game_id=game_id,
        start_date=start,
        end_result=EndResult(result),
        opponent_id=opponent,
    )


def edge_diffs(engine, game_id):
    with engine.connect() as conn:
        rows = conn.execute(
            select(PlayerPlayedGame.player_id, PlayerPlayedGame.elo_diff)
            .where(PlayerPlayedGame.game_id == game_id)
            .order_by(PlayerPlayedGame.player_id)
        ).all()
    return {player_id: diff for player_id, diff in rows}


class FakeHandle:
    """In-memory API handle backed by a small thread pool."""

    def __init__(self, profiles, histories, failures):
        self.profiles = profiles
        self.histories = histories
        self.failures = failures
        self.history_calls = []
        self.user_calls = []
        self.closed = False
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=4)

    def retrieve_user(self, player_id):
        def _run():
            with self._lock:
                self.user_calls.append(player_id)
            return self.profiles.get(
                player_id, UserProfile(player_id, f"Player {player_id}")
            )

        return self._executor.submit(_run)

    def fetch_match_history(self, player_id, on_complete):
        def _run():
            with self._lock:
                self.history_calls.append(player_id)
                remaining = self.failures.get(player_id, 0)
                if remaining:
                    self.failures[player_id] = remaining - 1
            if remaining:
                raise ApiRequestError(f"history of {player_id} unavailable")
            on_complete(list(self.histories.get(player_id, [])))

        return self._executor.submit(_run)

    def close(self):
        self.closed = True
        self._executor.shutdown(wait=True)


class FakeProvider:
    def __init__(self, histories=None, profiles=None, failures=None):
        self.histories = histories or {}
        self.profiles = profiles or {}
        self.failures = failures or {}
        self.handles = []

    def get_handle(self):
        handle = FakeHandle(self.profiles, self.histories, self.failures)
        self.handles.append(handle)
        return handle


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)
