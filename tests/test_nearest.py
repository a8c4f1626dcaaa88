import pytest

from routescore.core.errors import InvalidArgumentError
from routescore.core.geo import GeoPoint
from routescore.places.nearest import nearest

HOSPITALS = [
    ("far", GeoPoint(13.0500, 77.6000)),
    ("near", GeoPoint(12.9720, 77.5950)),
    ("mid", GeoPoint(12.9900, 77.6100)),
    ("near-twin", GeoPoint(12.9720, 77.5950)),
]
ORIGIN = GeoPoint(12.9716, 77.5946)


def test_nearest_sorts_by_distance_and_keeps_ties_in_order():
    result = nearest(ORIGIN, HOSPITALS, location=lambda h: h[1])
    assert [name for (name, _), _km in result] == ["near", "near-twin", "mid", "far"]
    distances = [km for _, km in result]
    assert distances == sorted(distances)


def test_nearest_applies_limit():
    result = nearest(ORIGIN, HOSPITALS, location=lambda h: h[1], limit=2)
    assert len(result) == 2


def test_nearest_handles_empty_input():
    assert nearest(ORIGIN, [], location=lambda h: h) == []


def test_nearest_rejects_non_positive_limit():
    with pytest.raises(InvalidArgumentError):
        nearest(ORIGIN, HOSPITALS, location=lambda h: h[1], limit=0)
