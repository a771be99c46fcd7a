import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from wastage_tracker.config import FetchConfig
from wastage_tracker.entry_repo import EntryRepo
from wastage_tracker.fetch_client import fetch_with_retry

logger = logging.getLogger(__name__)


class InvalidResponseError(Exception):
    def __init__(self, url: str, problem: str):
        super().__init__(f"Unexpected response from {url}: {problem}")
        self.url = url
        self.problem = problem


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class EntrySource(ABC):
    """Read side of the event store: ``get_events(start, end)``."""

    def prepare(self) -> None:
        """Hook run once before the first query."""

    @abstractmethod
    def get_events(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        ...


class HttpEntrySource(EntrySource):
    def __init__(
        self,
        base_url: str,
        token: str,
        fetch: FetchConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._fetch = fetch
        self._session = session or requests.Session()
        self._sleep = sleep

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        url = f"{self._base_url}{path}"
        response = fetch_with_retry(
            self._session,
            "GET",
            url,
            max_attempts=self._fetch.max_attempts,
            initial_delay_ms=self._fetch.initial_delay_ms,
            max_total_wait_ms=self._fetch.max_total_wait_ms,
            sleep=self._sleep,
            params=params,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {self._token}",
                "Cache-Control": "no-cache",
            },
        )
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponseError(url, "body is not JSON") from exc

    def prepare(self) -> None:
        """Wake a possibly cold host before querying it."""
        body = self._get("/health")
        if not isinstance(body, dict) or body.get("status") != "healthy":
            raise InvalidResponseError(f"{self._base_url}/health", f"unhealthy status {body!r}")
        if self._fetch.prewarm_seconds:
            logger.info("Host is up, waiting %ds for it to warm up", self._fetch.prewarm_seconds)
            self._sleep(self._fetch.prewarm_seconds)

    def get_events(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        params = {}
        if start is not None:
            params["start"] = _iso(start)
        if end is not None:
            params["end"] = _iso(end)

        body = self._get("/api/entries", params=params or None)
        entries = body.get("entries") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            raise InvalidResponseError(f"{self._base_url}/api/entries", "missing entries array")
        logger.info("Fetched %d entries for %s", len(entries), params or "all time")
        return entries


class DatabaseEntrySource(EntrySource):
    """Queries the event store in-process; no network boundary, no retries."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get_events(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        with self._session_factory() as session:
            entries = EntryRepo(session).list_entries(start=start, end=end)
        logger.info("Loaded %d entries from the database", len(entries))
        return entries
