"""
Nearest-facility lookup.

Dispatch screens list the closest hospitals (or stations) to an ambulance by
straight-line distance. This is a linear scan; facility lists are small (tens to
hundreds), so no spatial index is needed.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from routescore.core.errors import InvalidArgumentError
from routescore.core.geo import GeoPoint, distance_km

T = TypeVar("T")


def nearest(
    origin: GeoPoint,
    places: Iterable[T],
    *,
    location: Callable[[T], GeoPoint],
    limit: int = 10,
) -> list[tuple[T, float]]:
    """Return up to `limit` `(place, distance_km)` pairs, closest first.

    Places at equal distance keep their input order.
    """
    if limit < 1:
        raise InvalidArgumentError(f"limit must be >= 1, got {limit}")
    measured = [(place, distance_km(origin, location(place))) for place in places]
    measured.sort(key=lambda pair: pair[1])
    return measured[:limit]
