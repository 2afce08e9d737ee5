from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from math import atan2, cos, floor, isfinite, isnan, radians, sin, sqrt

"""
Geospatial helpers.

Great-circle distance (Haversine) and display formatting for distances. Everything
here is pure and safe to call from any thread.
"""

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_KILOMETER = 1000.0

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees (not range-checked)."""

    lat: float
    lon: float


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points.

    The intermediate term is clamped into [0, 1] so rounding near antipodal points
    can never turn into NaN. NaN coordinates still yield NaN.
    """
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    if not isnan(h):
        h = min(1.0, max(0.0, h))
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def format_distance(meters: float) -> str:
    """Render a distance for display: `"850 m"` below one kilometer, else `"1.23 km"`.

    Both branches round half-up. Negative values are not clamped and land in the
    meters branch.
    """
    if meters < METERS_PER_KILOMETER and isfinite(meters):
        return f"{int(floor(meters + 0.5))} m"
    km = Decimal(repr(meters / METERS_PER_KILOMETER))
    if not km.is_finite():
        return f"{km} km"
    # quantize needs every integer digit plus two decimals of precision.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, km.adjusted() + 3)
        return f"{km.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)} km"
