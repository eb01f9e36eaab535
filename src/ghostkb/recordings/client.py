"""Recordings API client for fetching voice-recording transcripts."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import requests
from pydantic import ValidationError

from ..config import API_MAX_PAGE_SIZE, API_TIMEOUT, DEFAULT_API_URL, ConfigurationError
from ..models import Recording, RecordingPage

log = logging.getLogger(__name__)


class RecordingsAPIError(Exception):
    """Raised when the recordings API request fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)


class RateLimitError(RecordingsAPIError):
    """Raised on HTTP 429; retry_after holds the server's hint in seconds."""

    def __init__(self, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        wait = retry_after if retry_after is not None else "a few"
        super().__init__(f"Rate limit exceeded. Retry after {wait} seconds.", status=429)


class AuthenticationError(RecordingsAPIError):
    """Raised on HTTP 401."""

    def __init__(self) -> None:
        super().__init__("Invalid API key. Please check your credentials.", status=401)


class NotFoundError(RecordingsAPIError):
    """Raised on HTTP 404."""

    def __init__(self) -> None:
        super().__init__("Resource not found.", status=404)


def _retry_after(response: requests.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _raise_for_status(response: requests.Response) -> None:
    if response.status_code < 400:
        return

    if response.status_code == 429:
        raise RateLimitError(_retry_after(response))
    if response.status_code == 401:
        raise AuthenticationError()
    if response.status_code == 404:
        raise NotFoundError()

    message = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = str(body["message"])
    raise RecordingsAPIError(message, status=response.status_code)


class RecordingsClient:
    """Client for the recordings (lifelog) API.

    Pages are capped at 10 recordings by the server; fetch_all() follows
    nextCursor until enough recordings are collected.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = API_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key sent as X-API-Key.
            base_url: API root URL.
            timeout: Per-request timeout in seconds.

        Raises:
            ConfigurationError: If no API key is provided.
        """
        if not api_key:
            raise ConfigurationError(
                "Recordings API key not found. Set LIMITLESS_API_KEY or api_key in ghost.yaml."
            )
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        headers = {
            "X-API-Key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RecordingsAPIError(f"Request to {path} failed: {e}") from e

        _raise_for_status(response)
        try:
            return response.json()
        except ValueError as e:
            raise RecordingsAPIError(f"Invalid JSON from {path}", status=response.status_code) from e

    def list_recordings(self, **params: Any) -> RecordingPage:
        """Fetch one page of recordings.

        Keyword arguments are passed through as API query parameters
        (search, date, start, end, timezone, cursor, limit, direction, ...).
        """
        query = {k: v for k, v in params.items() if v is not None}
        query["limit"] = min(int(query.get("limit") or 3), API_MAX_PAGE_SIZE)
        query.setdefault("direction", "desc")
        query.setdefault("includeMarkdown", "true")
        query.setdefault("includeHeadings", "true")

        payload = self._get("/lifelogs", query)
        try:
            raw = payload["data"]["lifelogs"]
            cursor = (payload.get("meta") or {}).get("lifelogs", {}).get("nextCursor")
            recordings = [Recording.model_validate(item) for item in raw]
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise RecordingsAPIError(f"Unexpected response shape: {e}") from e

        return RecordingPage(recordings=recordings, next_cursor=cursor or None)

    def get_recording(self, recording_id: str) -> Recording:
        """Fetch a single recording by ID."""
        payload = self._get(f"/lifelogs/{recording_id}")
        try:
            return Recording.model_validate(payload["data"])
        except (KeyError, TypeError, ValidationError) as e:
            raise RecordingsAPIError(f"Unexpected response shape: {e}") from e

    def fetch_all(self, max_results: int = 50, **params: Any) -> list[Recording]:
        """Follow pagination until max_results recordings or the last page."""
        recordings: list[Recording] = []
        cursor: str | None = None

        while len(recordings) < max_results:
            remaining = max_results - len(recordings)
            page = self.list_recordings(
                **params,
                cursor=cursor,
                limit=min(remaining, API_MAX_PAGE_SIZE),
            )
            recordings.extend(page.recordings)
            log.debug("Fetched %d recordings (total %d)", len(page.recordings), len(recordings))

            cursor = page.next_cursor
            if not cursor or not page.recordings:
                break

        return recordings[:max_results]

    def search(
        self,
        query: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        timezone: str | None = None,
        max_results: int = 50,
    ) -> list[Recording]:
        """Search recordings by natural-language query."""
        return self.fetch_all(
            max_results,
            search=query,
            start=start.isoformat() if start else None,
            end=end.isoformat() if end else None,
            timezone=timezone,
        )

    def recent(
        self,
        days: int = 7,
        *,
        timezone: str | None = None,
        max_results: int = 100,
        now: datetime | None = None,
    ) -> list[Recording]:
        """Recordings from the last N days."""
        end = now or datetime.now(UTC)
        start = end - timedelta(days=days)
        return self.fetch_all(
            max_results,
            start=start.isoformat(),
            end=end.isoformat(),
            timezone=timezone,
        )

    def for_date(
        self,
        date: str,
        *,
        timezone: str | None = None,
        max_results: int = 20,
    ) -> list[Recording]:
        """Recordings for one calendar date (YYYY-MM-DD)."""
        return self.fetch_all(max_results, date=date, timezone=timezone)
