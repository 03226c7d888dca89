"""Protocol definitions for the pluggable API session components."""

from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from matchgraph.scraping.models import HistoryEntry, UserProfile


@runtime_checkable
class ApiHandle(Protocol):
    """An authenticated, rate-limited connection to the game API.

    Calls are asynchronous: each returns a future that can be joined by the
    control loop.
    """

    def retrieve_user(self, player_id: str) -> Future[UserProfile]:
        """Fetch the public profile of ``player_id``."""
        ...

    def fetch_match_history(
        self,
        player_id: str,
        on_complete: Callable[[list[HistoryEntry]], None],
    ) -> Future[None]:
        """Fetch the match history of ``player_id`` and hand it to ``on_complete``.

        The returned future resolves once ``on_complete`` has returned and
        raises if either the fetch or the callback raised.
        """
        ...

    def close(self) -> None:
        """Release threads and connections held by the handle."""
        ...


@runtime_checkable
class SessionProvider(Protocol):
    """Produces fresh authenticated API handles."""

    def get_handle(self) -> ApiHandle:
        """Authenticate and return a new handle. May raise ApiRequestError."""
        ...
