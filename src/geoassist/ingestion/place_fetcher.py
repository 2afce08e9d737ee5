"""
Place fetcher.

Retrieves place records from the configured remote endpoint (JSON array over HTTP)
or from the bundled fallback dataset. Failures are returned as values
(`FetchResult.failure`) rather than raised, so callers handle exactly two outcomes:
places, or an error message.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Literal

import httpx

from geoassist.catalog.loader import load_bundled_places, load_places, parse_places
from geoassist.config.settings import Settings
from geoassist.core.http import get_json
from geoassist.domain.models import Place

logger = logging.getLogger(__name__)

FetchSource = Literal["remote", "bundled"]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch: `places` + `source` on success, `error` on failure."""

    places: list[Place] = field(default_factory=list)
    source: FetchSource | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, places: list[Place], source: FetchSource) -> "FetchResult":
        return cls(places=list(places), source=source)

    @classmethod
    def failure(cls, message: str) -> "FetchResult":
        return cls(error=message)


class PlaceFetcher:
    """Fetches place records from the network or the bundled dataset."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def fetch_bundled(self) -> FetchResult:
        """Load the local fallback dataset (configured file or packaged JSON)."""
        path = self._settings.source.fallback_path
        try:
            places = load_places(path) if path else load_bundled_places()
        except Exception as exc:
            logger.warning("Loading bundled places failed: %s", exc)
            return FetchResult.failure(f"Failed to load local data: {exc}")
        logger.info("Loaded %d place(s) from %s", len(places), path or "packaged dataset")
        return FetchResult.success(places, "bundled")

    def fetch_remote(self, url: str) -> FetchResult:
        """GET `url` and parse the JSON array it returns."""
        try:
            payload = get_json(url, timeout_seconds=self._settings.app.http_timeout_seconds)
        except httpx.HTTPError as exc:
            logger.warning("Fetching places from %s failed: %s", url, exc)
            return FetchResult.failure(f"Network error: {str(exc) or 'Unknown error'}")
        except ValueError as exc:
            return FetchResult.failure(f"JSON parsing error: {exc}")

        try:
            places = parse_places(payload)
        except ValueError as exc:
            return FetchResult.failure(f"JSON parsing error: {exc}")
        logger.info("Fetched %d place(s) from %s", len(places), url)
        return FetchResult.success(places, "remote")

    def fetch(self) -> FetchResult:
        """Network first (when a URL is configured), then the bundled dataset."""
        source = self._settings.source
        if not source.remote_url:
            return self.fetch_bundled()

        result = self.fetch_remote(source.remote_url)
        if result.ok or not source.fallback_to_bundled:
            return result

        logger.info("Falling back to bundled places after: %s", result.error)
        return self.fetch_bundled()

    def fetch_async(self, executor: Executor | None = None) -> Future[FetchResult]:
        """Run `fetch()` off the caller's thread; the future resolves to a FetchResult."""
        if executor is not None:
            return executor.submit(self.fetch)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geoassist-fetch")
        try:
            return pool.submit(self.fetch)
        finally:
            pool.shutdown(wait=False)
