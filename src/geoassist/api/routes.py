"""
API routes.

Endpoints:
- GET  `/api/health`: liveness + cached place count.
- GET  `/api/places`: category-filtered places, nearest first when `lat`/`lon` are given.
- GET  `/api/categories`: known categories and per-category counts.
- POST `/api/places/refresh`: fetch places and persist them into the local store.
- GET  `/api/distance`: distance between two points, raw and formatted.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from geoassist.config.settings import get_settings
from geoassist.coordinator.places import visible_ranked
from geoassist.core.geo import GeoPoint, format_distance, haversine_m
from geoassist.domain.models import KNOWN_CATEGORIES, CategoryFilters
from geoassist.ingestion.place_fetcher import PlaceFetcher
from geoassist.storage.place_store import PlaceStore

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _store() -> PlaceStore:
    return PlaceStore.from_settings(get_settings())


@lru_cache
def _fetcher() -> PlaceFetcher:
    return PlaceFetcher(get_settings())


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok", "place_count": _store().count()}


@router.get("/api/places")
def get_places(
    lat: float | None = None,
    lon: float | None = None,
    hospitals: bool = True,
    police: bool = True,
    libraries: bool = True,
    limit: int | None = Query(default=None, ge=1, le=500),
) -> dict:
    """Return visible places; ranked with distances when a position is supplied."""
    if (lat is None) != (lon is None):
        raise HTTPException(status_code=422, detail="lat and lon must be given together")

    filters = CategoryFilters(hospitals=hospitals, police=police, libraries=libraries)
    origin = GeoPoint(lat=lat, lon=lon) if lat is not None and lon is not None else None
    items = visible_ranked(_store().all_places(), filters, origin)
    if limit is not None:
        items = items[:limit]

    return {
        "places": [item.model_dump(mode="json") for item in items],
        "meta": {
            "count": len(items),
            "filters": filters.model_dump(),
            "origin": {"lat": lat, "lon": lon} if lat is not None else None,
        },
    }


@router.get("/api/categories")
def get_categories() -> dict:
    counts: dict[str, int] = {}
    for place in _store().all_places():
        counts[place.category] = counts.get(place.category, 0) + 1
    return {
        "categories": list(KNOWN_CATEGORIES),
        "counts": dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))),
    }


@router.post("/api/places/refresh")
def post_refresh() -> dict:
    """Fetch places (network first, bundled fallback) and persist them."""
    result = _fetcher().fetch()
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Failed to load places: {result.error}")
    try:
        written = _store().upsert_all(result.places)
    except SQLAlchemyError as exc:
        logger.exception("Persisting fetched places failed")
        raise HTTPException(status_code=500, detail=f"Failed to save data: {exc}") from exc
    return {"source": result.source, "count": written}


@router.get("/api/distance")
def get_distance(from_lat: float, from_lon: float, to_lat: float, to_lon: float) -> dict:
    meters = haversine_m(GeoPoint(lat=from_lat, lon=from_lon), GeoPoint(lat=to_lat, lon=to_lon))
    return {"meters": meters, "label": format_distance(meters)}
