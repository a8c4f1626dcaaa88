"""
Directions payload normalization.

Routing providers (Google Directions and compatible services) return nested JSON:
routes -> legs -> steps, with distances in meters and durations in seconds. This
module validates that shape with Pydantic and reduces each route alternative to a
flat `RouteCandidate` the scorer understands.

Turn counting follows the dispatch convention: every step whose maneuver mentions
"turn" or "ramp" counts once (`turn-left`, `ramp-right`, `uturn-left`, ...).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel, Field

from routescore.core.errors import InvalidArgumentError
from routescore.core.geo import GeoPoint, distance_km
from routescore.eta.estimator import DEFAULT_SPEED_KMH
from routescore.scoring.route_score import RouteCandidate

logger = logging.getLogger(__name__)

TURN_MANEUVER_MARKERS = ("turn", "ramp")


class DirectionsError(RuntimeError):
    """Raised when a provider response carries no usable routes."""


class TextValue(BaseModel):
    value: float = Field(..., ge=0)
    text: str | None = None


class DirectionsStep(BaseModel):
    maneuver: str | None = None


class DirectionsLeg(BaseModel):
    distance: TextValue
    duration: TextValue
    duration_in_traffic: TextValue | None = None
    steps: list[DirectionsStep] = Field(default_factory=list)


class DirectionsRoute(BaseModel):
    summary: str | None = None
    legs: list[DirectionsLeg] = Field(..., min_length=1)
    warnings: list[str] = Field(default_factory=list)


class DirectionsResponse(BaseModel):
    status: str = "OK"
    routes: list[DirectionsRoute] = Field(default_factory=list)
    error_message: str | None = None


def count_turns(maneuvers: Iterable[str | None]) -> int:
    """Count maneuvers that are turns or ramps; missing maneuvers are ignored."""
    return sum(
        1
        for m in maneuvers
        if m and any(marker in m.lower() for marker in TURN_MANEUVER_MARKERS)
    )


def route_to_candidate(route: DirectionsRoute, route_id: str | None = None) -> RouteCandidate:
    """Flatten one provider route (summing its legs) into a `RouteCandidate`."""
    meters = sum(leg.distance.value for leg in route.legs)
    nominal = sum(leg.duration.value for leg in route.legs)
    # No traffic model on the request means no traffic figure; treat as nominal.
    traffic = sum(
        (leg.duration_in_traffic or leg.duration).value for leg in route.legs
    )
    turns = count_turns(step.maneuver for leg in route.legs for step in leg.steps)
    return RouteCandidate(
        distance_km=meters / 1000,
        nominal_duration_sec=int(round(nominal)),
        traffic_duration_sec=int(round(traffic)),
        turn_count=turns,
        warning_count=len(route.warnings),
        route_id=route_id,
        summary=route.summary,
    )


def candidates_from_directions(payload: dict[str, Any] | DirectionsResponse) -> list[RouteCandidate]:
    """Parse a provider response into candidates, numbered from 1 in provider order.

    Raises:
        DirectionsError: if the provider reports a non-OK status or no routes.
        pydantic.ValidationError: if the payload does not have the expected shape.
    """
    response = payload if isinstance(payload, DirectionsResponse) else DirectionsResponse.model_validate(payload)
    if response.status != "OK":
        detail = f": {response.error_message}" if response.error_message else ""
        raise DirectionsError(f"Directions status {response.status}{detail}")
    if not response.routes:
        raise DirectionsError("Directions response contained no routes")

    candidates = [route_to_candidate(route, route_id=str(i)) for i, route in enumerate(response.routes, start=1)]
    logger.debug("Parsed %d directions route(s)", len(candidates))
    return candidates


def straight_line_candidate(
    origin: GeoPoint,
    destination: GeoPoint,
    speed_kmh: float = DEFAULT_SPEED_KMH,
) -> RouteCandidate:
    """Fallback candidate when no provider route is available.

    Uses Haversine distance at an assumed average speed; no traffic data, turns or
    warnings are known, so the candidate scores as an undelayed route.
    """
    if speed_kmh <= 0:
        raise InvalidArgumentError(f"speed_kmh must be > 0, got {speed_kmh}")
    km = distance_km(origin, destination)
    seconds = int(round(km / speed_kmh * 3600))
    return RouteCandidate(
        distance_km=km,
        nominal_duration_sec=seconds,
        traffic_duration_sec=seconds,
        route_id="straight-line",
        summary="Straight-line estimate",
    )
