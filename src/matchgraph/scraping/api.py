"""
HTTP adapter for the game API.

This module contains the session provider that logs in against the API and
the handle used by the crawl loop to fetch user profiles and match
histories. Requests go through a shared ``requests.Session`` and are
throttled by a token bucket; each call runs on the handle's thread pool and
is exposed to the caller as a future.

The JSON contract spoken here is:

- ``POST {base}/auth/login`` with ``{"username", "password"}`` -> ``{"token"}``
- ``GET {base}/users/{id}`` -> ``{"userId", "displayName", "visibilityRestricted"?}``
- ``GET {base}/users/{id}/matches`` -> ``[{"gameId", "startDate", "endCondition", "opponentId"?}]``
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import quote

import requests

from matchgraph.core.constants import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_RATELIMIT_BURST,
    DEFAULT_RATELIMIT_PER_SECOND,
    DEFAULT_REQUEST_TIMEOUT,
)
from matchgraph.core.errors import ApiRequestError
from matchgraph.scraping.models import EndResult, HistoryEntry, UserProfile
from matchgraph.scraping.ratelimit import TokenBucket

logger = logging.getLogger(__name__)


def build_api_url(base_url: str, *parts: str) -> str:
    """Join ``parts`` onto ``base_url``, escaping each path segment."""
    path = "/".join(quote(str(p), safe="") for p in parts)
    return f"{base_url.rstrip('/')}/{path}"


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 or epoch timestamp into an aware UTC datetime."""
    if isinstance(value, (int, float)):
        # Heuristic: treat values > 10^12 as milliseconds
        seconds = value / 1000 if value > 1_000_000_000_000 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_user_profile(payload: dict) -> UserProfile:
    """Validate and convert a user payload."""
    try:
        return UserProfile(
            player_id=str(payload["userId"]),
            display_name=str(payload["displayName"]),
            visibility_restricted=bool(
                payload.get("visibilityRestricted", False)
            ),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ApiRequestError(f"Malformed user payload: {e}") from e


def parse_history_entry(payload: dict) -> HistoryEntry:
    """Validate and convert one match-history item."""
    try:
        opponent = payload.get("opponentId")
        return HistoryEntry(
            game_id=str(payload["gameId"]),
            start_date=parse_timestamp(payload["startDate"]),
            end_result=EndResult.from_api(payload["endCondition"]),
            opponent_id=str(opponent) if opponent not in (None, "") else None,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ApiRequestError(f"Malformed history entry: {e}") from e


def _request_json(
    session: requests.Session,
    method: str,
    url: str,
    timeout: float,
    **kwargs: Any,
) -> Any:
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise ApiRequestError(f"{method} {url} failed: {e}") from e

    if response.status_code >= 400:
        raise ApiRequestError(
            f"{method} {url} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as e:
        raise ApiRequestError(f"Invalid JSON from {url}: {e}") from e


class HttpApiHandle:
    """Authenticated handle returned by :class:`HttpSessionProvider`."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session,
        bucket: TokenBucket,
        *,
        max_workers: int = DEFAULT_MAX_CONCURRENCY,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url
        self.session = session
        self.bucket = bucket
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="matchgraph-api"
        )

    def _get(self, *parts: str) -> Any:
        self.bucket.consume()
        url = build_api_url(self.base_url, *parts)
        logger.debug(f"GET {url}")
        return _request_json(self.session, "GET", url, self.timeout)

    def _load_user(self, player_id: str) -> UserProfile:
        return parse_user_profile(self._get("users", player_id))

    def _load_history(self, player_id: str) -> list[HistoryEntry]:
        payload = self._get("users", player_id, "matches")
        if isinstance(payload, dict):
            payload = payload.get("matches", [])
        if not isinstance(payload, list):
            raise ApiRequestError(
                f"Malformed match history for {player_id}: expected a list"
            )
        return [parse_history_entry(item) for item in payload]

    def retrieve_user(self, player_id: str) -> Future[UserProfile]:
        return self._executor.submit(self._load_user, player_id)

    def fetch_match_history(
        self,
        player_id: str,
        on_complete: Callable[[list[HistoryEntry]], None],
    ) -> Future[None]:
        def _run() -> None:
            on_complete(self._load_history(player_id))

        return self._executor.submit(_run)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self.session.close()


class HttpSessionProvider:
    """Logs into the game API and builds rate-limited handles.

    Every handle gets a fresh token bucket, so a re-login also resets the
    request budget.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        burst: int = DEFAULT_RATELIMIT_BURST,
        per_second: float = DEFAULT_RATELIMIT_PER_SECOND,
        max_workers: int = DEFAULT_MAX_CONCURRENCY,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.base_url = base_url
        self.username = username
        self.password = password
        self.burst = burst
        self.per_second = per_second
        self.max_workers = max_workers
        self.timeout = timeout
        self.session_factory = session_factory

    def get_handle(self) -> HttpApiHandle:
        session = self.session_factory()
        url = build_api_url(self.base_url, "auth", "login")
        try:
            payload = _request_json(
                session,
                "POST",
                url,
                self.timeout,
                json={"username": self.username, "password": self.password},
            )
            token = payload["token"]
        except (KeyError, TypeError) as e:
            session.close()
            raise ApiRequestError(f"Login response missing token: {e}") from e
        except ApiRequestError:
            session.close()
            raise

        session.headers.update({"Authorization": f"Bearer {token}"})
        logger.info(f"Logged in to {self.base_url} as {self.username}")
        return HttpApiHandle(
            self.base_url,
            session,
            TokenBucket(self.burst, self.per_second),
            max_workers=self.max_workers,
            timeout=self.timeout,
        )
