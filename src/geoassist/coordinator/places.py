"""
Session-level orchestration for the presentation layer.

- fetch -> persist -> observe (the store pushes snapshots back to us)
- category toggles and the last known user position
- filtered and proximity-ranked views for the API/CLI (`visible_ranked`)

The coordinator owns no I/O of its own; the store and fetcher are injected.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from geoassist.core.geo import GeoPoint
from geoassist.core.proximity import rank_by_proximity
from geoassist.domain.models import CategoryFilters, HOSPITAL, LIBRARY, POLICE, Place, RankedPlace
from geoassist.ingestion.place_fetcher import FetchResult, PlaceFetcher
from geoassist.storage.place_store import PlaceStore

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Working offline - showing cached data"


def filter_places(places: Iterable[Place], filters: CategoryFilters) -> list[Place]:
    """Keep places whose category is switched on; unknown categories always pass."""
    return [p for p in places if filters.allows(p.category)]


def visible_ranked(
    places: Iterable[Place], filters: CategoryFilters, origin: GeoPoint | None
) -> list[RankedPlace]:
    """Filter by category, then rank nearest first when `origin` is known (store order otherwise)."""
    visible = filter_places(places, filters)
    if origin is None:
        return [RankedPlace(place=p) for p in visible]
    return rank_by_proximity(visible, origin)


class PlaceCoordinator:
    """Glue between fetcher, store and the views handed to the presentation layer."""

    def __init__(
        self,
        store: PlaceStore,
        fetcher: PlaceFetcher,
        *,
        filters: CategoryFilters | None = None,
    ):
        self._store = store
        self._fetcher = fetcher
        self._lock = threading.Lock()
        self._places: list[Place] = []
        self._filters = filters or CategoryFilters()
        self._user_position: GeoPoint | None = None
        self._location_accuracy_m: float | None = None
        self._is_loading = False
        self._is_offline = False
        self._error_message: str | None = None
        self._subscription = store.subscribe(self._on_snapshot)

    def _on_snapshot(self, places: list[Place]) -> None:
        with self._lock:
            self._places = list(places)

    # Filters

    @property
    def filters(self) -> CategoryFilters:
        return self._filters

    def set_category_visible(self, category: str, visible: bool) -> None:
        with self._lock:
            self._filters = self._filters.with_category(category, visible)

    def _toggle(self, category: str) -> None:
        with self._lock:
            current = self._filters.allows(category)
            self._filters = self._filters.with_category(category, not current)

    def toggle_hospitals(self) -> None:
        self._toggle(HOSPITAL)

    def toggle_police(self) -> None:
        self._toggle(POLICE)

    def toggle_libraries(self) -> None:
        self._toggle(LIBRARY)

    # Location

    @property
    def user_position(self) -> GeoPoint | None:
        return self._user_position

    @property
    def location_accuracy_m(self) -> float | None:
        return self._location_accuracy_m

    def update_user_location(self, lat: float, lon: float, accuracy_m: float | None = None) -> None:
        with self._lock:
            self._user_position = GeoPoint(lat=lat, lon=lon)
            self._location_accuracy_m = accuracy_m

    # Status

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_offline(self) -> bool:
        return self._is_offline

    def set_offline(self, offline: bool) -> None:
        self._is_offline = bool(offline)

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def clear_error(self) -> None:
        self._error_message = None

    # Data

    def refresh(self) -> FetchResult:
        """Fetch places and persist them; the store subscription updates our snapshot."""
        self._is_loading = True
        self._error_message = None
        try:
            result = self._fetcher.fetch()
            if result.ok:
                try:
                    self._store.upsert_all(result.places)
                except SQLAlchemyError as exc:
                    logger.exception("Persisting fetched places failed")
                    result = FetchResult.failure(f"Failed to save data: {exc}")
            if not result.ok:
                self._error_message = (
                    OFFLINE_MESSAGE if self._is_offline else f"Failed to load places: {result.error}"
                )
            else:
                logger.info("Refreshed %d place(s) from %s", len(result.places), result.source)
            return result
        finally:
            self._is_loading = False

    def all_places(self) -> list[Place]:
        with self._lock:
            return list(self._places)

    def filtered_places(self) -> list[Place]:
        with self._lock:
            places, filters = list(self._places), self._filters
        return filter_places(places, filters)

    def ranked_places(self) -> list[RankedPlace]:
        """Filtered places, nearest first when the user position is known."""
        with self._lock:
            places, filters, origin = list(self._places), self._filters, self._user_position
        return visible_ranked(places, filters, origin)

    def close(self) -> None:
        self._subscription.cancel()
