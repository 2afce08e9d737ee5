"""
Proximity ranking.

Orders located entities by great-circle distance from a reference point. The
functions are pure: callers hand in a snapshot (any iterable) and get a new list
back, so ranking a collection that a store is concurrently rewriting is safe as
long as the caller passes a copy.
"""

from __future__ import annotations

from math import isnan
from typing import Iterable, Protocol, TypeVar

from geoassist.core.geo import GeoPoint, format_distance, haversine_m
from geoassist.domain.models import Place, RankedPlace


class Located(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


T = TypeVar("T", bound=Located)


def distance_to(origin: GeoPoint, entity: Located) -> float:
    """Distance in meters from `origin` to the entity's coordinates."""
    return haversine_m(origin, GeoPoint(lat=entity.latitude, lon=entity.longitude))


def _proximity_key(distance: float) -> tuple[bool, float]:
    # NaN sorts after every real distance.
    return (isnan(distance), distance)


def sort_by_proximity(entities: Iterable[T], origin: GeoPoint) -> list[T]:
    """Return entities ordered by ascending distance from `origin`.

    `sorted` evaluates the key once per entity and is stable, so equidistant
    entities keep their input order.
    """
    return sorted(entities, key=lambda e: _proximity_key(distance_to(origin, e)))


def rank_by_proximity(places: Iterable[Place], origin: GeoPoint) -> list[RankedPlace]:
    """Like `sort_by_proximity`, but attach the distance and its display label."""
    measured = [(distance_to(origin, p), p) for p in places]
    measured.sort(key=lambda pair: _proximity_key(pair[0]))
    return [
        RankedPlace(place=p, distance_m=d, distance_label=format_distance(d))
        for d, p in measured
    ]
