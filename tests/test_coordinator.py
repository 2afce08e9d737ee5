import pytest
from sqlalchemy.exc import SQLAlchemyError

from geoassist.coordinator.places import OFFLINE_MESSAGE, PlaceCoordinator, filter_places, visible_ranked
from geoassist.core.geo import GeoPoint
from geoassist.domain.models import CategoryFilters, Place
from geoassist.ingestion.place_fetcher import FetchResult
from geoassist.storage.place_store import PlaceStore


def _place(pid: int, category: str, lat: float) -> Place:
    return Place(id=pid, name=f"P{pid}", category=category, latitude=lat, longitude=0.0, address="-")


PLACES = [
    _place(1, "Hospital", 0.02),
    _place(2, "Police", 0.01),
    _place(3, "Library", 0.03),
    _place(4, "Museum", 0.005),
]


class StubFetcher:
    def __init__(self, result: FetchResult):
        self.result = result
        self.calls = 0

    def fetch(self) -> FetchResult:
        self.calls += 1
        return self.result


def _coordinator(result: FetchResult | None = None) -> tuple[PlaceCoordinator, PlaceStore]:
    store = PlaceStore("sqlite://")
    fetcher = StubFetcher(result or FetchResult.success(PLACES, "bundled"))
    return PlaceCoordinator(store, fetcher), store


def test_filter_places_passes_unknown_categories():
    filters = CategoryFilters(hospitals=False, police=False, libraries=False)
    assert [p.id for p in filter_places(PLACES, filters)] == [4]


def test_refresh_persists_and_snapshot_follows_store():
    coordinator, store = _coordinator()
    assert coordinator.all_places() == []

    result = coordinator.refresh()

    assert result.ok
    assert store.count() == 4
    assert [p.id for p in coordinator.all_places()] == [1, 2, 3, 4]
    assert coordinator.error_message is None
    assert coordinator.is_loading is False


def test_toggles_hide_and_show_categories():
    coordinator, _ = _coordinator()
    coordinator.refresh()

    coordinator.toggle_hospitals()
    coordinator.toggle_libraries()
    assert [p.id for p in coordinator.filtered_places()] == [2, 4]

    coordinator.toggle_hospitals()
    coordinator.toggle_police()
    assert [p.id for p in coordinator.filtered_places()] == [1, 4]
    assert coordinator.filters == CategoryFilters(hospitals=True, police=False, libraries=False)


def test_set_category_visible_rejects_unknown_category():
    coordinator, _ = _coordinator()
    with pytest.raises(ValueError, match="Unknown category"):
        coordinator.set_category_visible("hospital", False)


def test_ranked_places_without_position_keep_store_order():
    coordinator, _ = _coordinator()
    coordinator.refresh()

    ranked = coordinator.ranked_places()

    assert [r.place.id for r in ranked] == [1, 2, 3, 4]
    assert all(r.distance_m is None and r.distance_label is None for r in ranked)


def test_ranked_places_with_position_are_nearest_first():
    coordinator, _ = _coordinator()
    coordinator.refresh()
    coordinator.toggle_libraries()
    coordinator.update_user_location(0.0, 0.0, accuracy_m=12.5)

    ranked = coordinator.ranked_places()

    assert [r.place.id for r in ranked] == [4, 2, 1]
    assert ranked[0].distance_label == "556 m"
    assert coordinator.location_accuracy_m == 12.5


def test_refresh_failure_sets_error_message():
    coordinator, _ = _coordinator(FetchResult.failure("Network error: timeout"))

    result = coordinator.refresh()

    assert not result.ok
    assert coordinator.error_message == "Failed to load places: Network error: timeout"
    assert coordinator.is_loading is False

    coordinator.clear_error()
    assert coordinator.error_message is None


def test_refresh_failure_while_offline_reports_cached_data():
    coordinator, _ = _coordinator(FetchResult.failure("Network error: timeout"))
    coordinator.set_offline(True)

    coordinator.refresh()

    assert coordinator.error_message == OFFLINE_MESSAGE


def test_refresh_reports_store_failure(monkeypatch):
    coordinator, store = _coordinator()

    def broken_upsert(_places):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(store, "upsert_all", broken_upsert)

    result = coordinator.refresh()

    assert not result.ok
    assert "Failed to save data: disk full" in coordinator.error_message


def test_close_stops_following_the_store():
    coordinator, store = _coordinator()
    coordinator.close()

    store.upsert_all(PLACES)

    assert coordinator.all_places() == []


def test_visible_ranked_matches_coordinator_view():
    filters = CategoryFilters(police=False)
    origin = GeoPoint(0.0, 0.0)

    ranked = visible_ranked(PLACES, filters, origin)
    assert [r.place.id for r in ranked] == [4, 1, 3]

    unranked = visible_ranked(PLACES, filters, None)
    assert [r.place.id for r in unranked] == [1, 3, 4]
    assert unranked[0].distance_label is None

    coordinator, _ = _coordinator()
    coordinator.refresh()
    coordinator.toggle_police()
    coordinator.update_user_location(0.0, 0.0)
    assert coordinator.ranked_places() == ranked
