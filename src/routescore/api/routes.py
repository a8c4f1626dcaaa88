"""
API routes.

Endpoints:
- GET  `/api/health`: liveness probe.
- POST `/api/distance`: Haversine distance between two points.
- POST `/api/eta`: ETA from a distance (or two points) and an average speed.
- POST `/api/routes/score`: score one candidate with its penalty breakdown.
- POST `/api/routes/rank`: rank candidates, best first, with traffic ETAs.
- POST `/api/routes/directions`: normalize a raw directions payload, then rank it.
- POST `/api/routes/plan`: fetch live alternatives from the directions provider, then rank them.
- POST `/api/nearest`: closest facilities to a point.
- GET  `/api/settings`: public settings for dashboards (secrets redacted).

Error contract: bad input -> 400 `VALIDATION_ERROR`; unusable provider payload ->
422 `DIRECTIONS_ERROR`; provider unreachable -> 502 `UPSTREAM_ERROR`; anything else ->
500 `INTERNAL_ERROR`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, TypeVar

import httpx
from fastapi import APIRouter, HTTPException

from routescore.config.settings import get_settings
from routescore.core.geo import distance_km
from routescore.domain.models import (
    DirectionsRankRequest,
    DistanceRequest,
    DistanceResponse,
    EtaOut,
    EtaRequest,
    NearestItem,
    NearestRequest,
    NearestResponse,
    PlanRequest,
    RankRequest,
    RankResponse,
    ScoredRouteOut,
    ScoreRequest,
)
from routescore.eta.estimator import estimate_eta, eta_from_traffic
from routescore.eta.formatting import format_distance
from routescore.ingestion.directions import DirectionsError
from routescore.ingestion.directions_client import DirectionsClient
from routescore.places.nearest import nearest
from routescore.planner.plan import plan_from_directions, plan_routes, plan_trip, resolve_now
from routescore.scoring.route_score import ScoredRoute, explain_route_score

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")


@lru_cache(maxsize=1)
def _clients() -> DirectionsClient:
    # One client per process, built from settings at first use.
    return DirectionsClient(get_settings())


def _guarded(fn: Callable[[], T]) -> T:
    """Run `fn`, translating core errors into the API error contract."""
    try:
        return fn()
    except DirectionsError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": "DIRECTIONS_ERROR", "message": str(e)},
        ) from e
    except httpx.HTTPError as e:
        logger.warning("Directions provider request failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"code": "UPSTREAM_ERROR", "message": str(e)},
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e
    except Exception as e:
        logger.exception("Unhandled error in API handler")
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": str(e)},
        ) from e


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.post("/api/distance", response_model=DistanceResponse)
def post_distance(req: DistanceRequest) -> DistanceResponse:
    """Great-circle distance in kilometers."""
    km = distance_km(req.origin.to_core(), req.destination.to_core())
    return DistanceResponse(distance_km=km, formatted=format_distance(km))


@router.post("/api/eta", response_model=EtaOut)
def post_eta(req: EtaRequest) -> EtaOut:
    """ETA at an assumed speed; distance comes from the request or the two points."""
    settings = get_settings()

    def run() -> EtaOut:
        km = req.distance_km
        if km is None:
            km = distance_km(req.origin.to_core(), req.destination.to_core())
        speed = req.speed_kmh if req.speed_kmh is not None else settings.eta.default_speed_kmh
        eta = estimate_eta(km, speed, now=resolve_now(req.now, settings))
        return EtaOut.from_core(eta, distance_km=km)

    return _guarded(run)


@router.post("/api/routes/score", response_model=ScoredRouteOut)
def post_score(req: ScoreRequest) -> ScoredRouteOut:
    """Score one candidate and explain the applied penalties."""
    settings = get_settings()

    def run() -> ScoredRouteOut:
        route = req.route.to_core()
        breakdown = explain_route_score(route, req.emergency_level, settings.scoring.policy())
        eta = eta_from_traffic(
            route.nominal_duration_sec, route.traffic_duration_sec, now=resolve_now(None, settings)
        )
        return ScoredRouteOut.from_core(
            ScoredRoute(route=route, score=breakdown.score, breakdown=breakdown), eta=eta
        )

    return _guarded(run)


@router.post("/api/routes/rank", response_model=RankResponse)
def post_rank(req: RankRequest) -> RankResponse:
    """Rank candidates (score desc, then shorter traffic duration)."""
    return _guarded(
        lambda: plan_routes(
            [r.to_core() for r in req.routes],
            emergency_level=req.emergency_level,
            max_alternatives=req.max_alternatives,
            now=req.now,
        )
    )


@router.post("/api/routes/directions", response_model=RankResponse)
def post_rank_directions(req: DirectionsRankRequest) -> RankResponse:
    """Normalize a provider directions payload and rank its alternatives."""
    return _guarded(
        lambda: plan_from_directions(
            req.directions,
            emergency_level=req.emergency_level,
            max_alternatives=req.max_alternatives,
            now=req.now,
        )
    )


@router.post("/api/routes/plan", response_model=RankResponse)
def post_plan(req: PlanRequest) -> RankResponse:
    """Fetch provider alternatives between two points and rank them."""
    return _guarded(
        lambda: plan_trip(
            req.origin.to_core(),
            req.destination.to_core(),
            client=_clients(),
            fallback_to_straight_line=req.fallback_to_straight_line,
            emergency_level=req.emergency_level,
            max_alternatives=req.max_alternatives,
            now=req.now,
        )
    )


@router.post("/api/nearest", response_model=NearestResponse)
def post_nearest(req: NearestRequest) -> NearestResponse:
    """Closest places to `origin` by straight-line distance."""
    settings = get_settings()
    limit = req.limit or settings.nearest.limit
    pairs = nearest(req.origin.to_core(), req.places, location=lambda p: p.location.to_core(), limit=limit)
    return NearestResponse(
        results=[
            NearestItem(place=place, distance_km=km, formatted_distance=format_distance(km))
            for place, km in pairs
        ]
    )


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings for UI defaults (credentials removed)."""
    data = get_settings().model_dump(mode="json")
    data.get("directions", {}).pop("api_key", None)
    return {
        "app": {"name": data["app"]["name"], "timezone": data["app"]["timezone"]},
        "eta": data["eta"],
        "scoring": data["scoring"],
        "nearest": data["nearest"],
        "directions": data["directions"],
    }
