from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, isfinite, nan, radians, sin, sqrt

from routescore.core.errors import InvalidArgumentError

"""
Geospatial helpers.

A tiny geometry layer (Haversine on a spherical Earth) so ETA and ranking code can
compute distances without pulling in heavier GIS dependencies.

Out-of-range coordinates are not rejected by `distance_km`; they yield a defined
but physically meaningless number. Use `GeoPoint.validated` at the edges where
input comes from users or devices.
"""

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    @classmethod
    def validated(cls, lat: float, lng: float) -> "GeoPoint":
        """Build a point, rejecting latitude/longitude outside their valid ranges."""
        lat = float(lat)
        lng = float(lng)
        if not -90 <= lat <= 90:
            raise InvalidArgumentError(f"lat must be within [-90, 90], got {lat}")
        if not -180 <= lng <= 180:
            raise InvalidArgumentError(f"lng must be within [-180, 180], got {lng}")
        return cls(lat=lat, lng=lng)


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in kilometers between two points.

    Non-finite coordinates give `nan` instead of raising (`math.sin` rejects `inf`).
    """
    if not all(isfinite(v) for v in (a.lat, a.lng, b.lat, b.lng)):
        return nan

    d_lat = radians(b.lat - a.lat)
    d_lng = radians(b.lng - a.lng)

    h = sin(d_lat / 2) ** 2 + cos(radians(a.lat)) * cos(radians(b.lat)) * sin(d_lng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_KM * c
