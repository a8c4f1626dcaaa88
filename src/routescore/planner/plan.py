"""
Route planning orchestration.

Glue shared by the API and CLI:
1) take candidates (already parsed, straight from a directions payload, or fetched
   live through `DirectionsClient`),
2) rank them with the scoring policy from settings,
3) attach a traffic-aware ETA to every ranked route,
4) return the JSON-ready `RankResponse`.

The core functions stay pure; this layer is where settings and "now" are resolved.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from routescore.config.settings import Settings, get_settings
from routescore.core.geo import GeoPoint
from routescore.core.time import ensure_tz
from routescore.domain.models import RankResponse, ScoredRouteOut
from routescore.eta.estimator import eta_from_traffic
from routescore.ingestion.directions import candidates_from_directions
from routescore.ingestion.directions_client import DirectionsClient
from routescore.scoring.route_score import (
    EmergencyPriorityLevel,
    RouteCandidate,
    ScoredRoute,
    parse_emergency_level,
    select_best_route,
)

logger = logging.getLogger(__name__)


def resolve_now(now: datetime | None, settings: Settings) -> datetime:
    """Return `now` made timezone-aware, or the current time in the app timezone."""
    if now is None:
        return datetime.now(ZoneInfo(settings.app.timezone))
    return ensure_tz(now, settings.app.timezone)


def _out(scored: ScoredRoute, now: datetime) -> ScoredRouteOut:
    route = scored.route
    eta = eta_from_traffic(route.nominal_duration_sec, route.traffic_duration_sec, now=now)
    return ScoredRouteOut.from_core(scored, eta=eta)


def plan_routes(
    candidates: Iterable[RouteCandidate],
    *,
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    max_alternatives: int | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> RankResponse:
    """Rank `candidates` and attach ETAs; raises `InvalidArgumentError` on bad input."""
    settings = settings or get_settings()
    now = resolve_now(now, settings)

    ranked = select_best_route(
        candidates,
        emergency_level,
        policy=settings.scoring.policy(),
        max_alternatives=max_alternatives,
    )
    logger.info(
        "Best route %s score=%d (%d alternative(s))",
        ranked.best.route.route_id or "-",
        ranked.best.score,
        len(ranked.alternatives),
    )
    return RankResponse(
        best=_out(ranked.best, now),
        alternatives=[_out(s, now) for s in ranked.alternatives],
        generated_at=now,
    )


def plan_from_directions(
    payload: dict[str, Any],
    *,
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    max_alternatives: int | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> RankResponse:
    """Normalize a provider payload, then rank it like `plan_routes`."""
    return plan_routes(
        candidates_from_directions(payload),
        emergency_level=emergency_level,
        max_alternatives=max_alternatives,
        now=now,
        settings=settings,
    )


def plan_trip(
    origin: GeoPoint,
    destination: GeoPoint,
    *,
    client: DirectionsClient | None = None,
    fallback_to_straight_line: bool = False,
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    max_alternatives: int | None = None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> RankResponse:
    """Fetch live alternatives for `origin` -> `destination` and rank them.

    The emergency level is checked before any provider request is made.
    """
    settings = settings or get_settings()
    level = parse_emergency_level(emergency_level)
    client = client or DirectionsClient(settings)
    candidates = client.get_candidates(origin, destination, fallback_to_straight_line=fallback_to_straight_line)
    return plan_routes(
        candidates,
        emergency_level=level,
        max_alternatives=max_alternatives,
        now=now,
        settings=settings,
    )
