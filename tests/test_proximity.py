import math

from geoassist.core.geo import EARTH_RADIUS_METERS, GeoPoint
from geoassist.core.proximity import distance_to, rank_by_proximity, sort_by_proximity
from geoassist.domain.models import Place

ORIGIN = GeoPoint(lat=0.0, lon=0.0)


def _place(pid: int, lat: float, lon: float, category: str = "Hospital") -> Place:
    return Place(id=pid, name=f"P{pid}", category=category, latitude=lat, longitude=lon, address=f"Street {pid}")


def _north_of_origin(pid: int, meters: float) -> Place:
    # Along a meridian the great-circle distance is R * dlat.
    return _place(pid, math.degrees(meters / EARTH_RADIUS_METERS), 0.0)


def test_distance_to_uses_entity_coordinates():
    p = _north_of_origin(1, 700.0)
    assert math.isclose(distance_to(ORIGIN, p), 700.0, rel_tol=1e-9)


def test_sort_by_proximity_orders_and_formats_end_to_end():
    places = [_north_of_origin(1, 700.0), _north_of_origin(2, 50.0), _north_of_origin(3, 1200.0)]

    ordered = sort_by_proximity(places, ORIGIN)
    assert [p.id for p in ordered] == [2, 1, 3]

    ranked = rank_by_proximity(places, ORIGIN)
    assert [r.place.id for r in ranked] == [2, 1, 3]
    assert [r.distance_label for r in ranked] == ["50 m", "700 m", "1.20 km"]


def test_sort_by_proximity_does_not_mutate_input():
    places = [_north_of_origin(1, 900.0), _north_of_origin(2, 10.0)]
    snapshot = list(places)
    out = sort_by_proximity(places, ORIGIN)
    assert places == snapshot
    assert out is not places


def test_sort_by_proximity_is_idempotent():
    places = [_north_of_origin(i, m) for i, m in enumerate([300.0, 20.0, 4500.0, 800.0, 20.5])]
    once = sort_by_proximity(places, ORIGIN)
    assert sort_by_proximity(once, ORIGIN) == once


def test_sort_by_proximity_preserves_multiset():
    assert sort_by_proximity([], ORIGIN) == []
    single = [_north_of_origin(1, 10.0)]
    assert sort_by_proximity(single, ORIGIN) == single

    places = [_north_of_origin(i, float(m)) for i, m in enumerate([5, 1, 4, 1, 3])]
    out = sort_by_proximity(places, ORIGIN)
    assert sorted(p.id for p in out) == sorted(p.id for p in places)
    assert len(out) == len(places)


def test_sort_by_proximity_is_stable_for_equal_distances():
    d = 0.01
    north = _place(1, d, 0.0)
    south = _place(2, -d, 0.0)
    east = _place(3, 0.0, d)
    far = _place(4, 1.0, 0.0)

    out = sort_by_proximity([far, south, east, north], ORIGIN)
    assert [p.id for p in out] == [2, 3, 1, 4]


def test_sort_by_proximity_accepts_any_located_object():
    class Marker:
        def __init__(self, latitude, longitude):
            self.latitude = latitude
            self.longitude = longitude

    a, b = Marker(0.5, 0.0), Marker(0.1, 0.0)
    assert sort_by_proximity([a, b], ORIGIN) == [b, a]


def test_sort_by_proximity_puts_undefined_distances_last():
    class Marker:
        def __init__(self, name, latitude, longitude):
            self.name = name
            self.latitude = latitude
            self.longitude = longitude

    broken = Marker("broken", math.nan, 0.0)
    near = Marker("near", 0.001, 0.0)
    far = Marker("far", 0.5, 0.0)

    out = sort_by_proximity([broken, far, near], ORIGIN)
    assert [m.name for m in out] == ["near", "far", "broken"]
