"""
Route quality scoring and ranking.

A heuristic 0..100 score for comparing route alternatives returned by a routing
provider. The score starts at `base_score` and subtracts:
- a fixed penalty per provider warning,
- one traffic-delay penalty, picked from descending bands (first match wins),
- a per-turn penalty, only for `high` emergency priority (ambulances on a live call
  prefer fewer, straighter segments).

The result is clamped to [0, 100]. Ranking sorts by score (highest first) and breaks
ties by the shorter traffic-aware duration.

Everything here is pure: tuning knobs arrive as an explicit `ScoringPolicy` rather
than being read from settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from routescore.core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class EmergencyPriorityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_emergency_level(value: EmergencyPriorityLevel | str) -> EmergencyPriorityLevel:
    """Coerce `value` to a priority level.

    Only the exact enum values are accepted; anything else (including `"HIGH"`) is
    rejected rather than defaulted.
    """
    if isinstance(value, EmergencyPriorityLevel):
        return value
    try:
        return EmergencyPriorityLevel(value)
    except ValueError:
        allowed = ", ".join(level.value for level in EmergencyPriorityLevel)
        raise InvalidArgumentError(
            f"Unknown emergency level {value!r}; expected one of: {allowed}"
        ) from None


@dataclass(frozen=True)
class RouteCandidate:
    """One provider route alternative, reduced to the fields the scorer needs."""

    distance_km: float
    nominal_duration_sec: int
    traffic_duration_sec: int
    turn_count: int = 0
    warning_count: int = 0
    route_id: str | None = None
    summary: str | None = None

    def __post_init__(self) -> None:
        for name in ("distance_km", "nominal_duration_sec", "traffic_duration_sec", "turn_count", "warning_count"):
            if getattr(self, name) < 0:
                raise InvalidArgumentError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass(frozen=True)
class DelayBand:
    """Penalty applied when the traffic delay exceeds `above_pct` percent."""

    above_pct: float
    penalty: int


@dataclass(frozen=True)
class ScoringPolicy:
    base_score: int = 100
    warning_penalty: int = 5
    turn_penalty_high: int = 2
    # Ordered by threshold, highest first.
    delay_bands: tuple[DelayBand, ...] = (
        DelayBand(above_pct=50, penalty=30),
        DelayBand(above_pct=20, penalty=15),
        DelayBand(above_pct=10, penalty=5),
    )


DEFAULT_POLICY = ScoringPolicy()


@dataclass(frozen=True)
class Penalty:
    name: str
    points: int
    reason: str


@dataclass(frozen=True)
class ScoreBreakdown:
    """Explainable score: every applied penalty plus raw and clamped totals."""

    score: int
    base_score: int
    raw_score: int
    delay_pct: float | None
    emergency_level: EmergencyPriorityLevel
    penalties: list[Penalty] = field(default_factory=list)

    @property
    def reasons(self) -> list[str]:
        return [p.reason for p in self.penalties]


@dataclass(frozen=True)
class ScoredRoute:
    route: RouteCandidate
    score: int
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class RankedRoutes:
    """Best route plus the remaining alternatives, in ranking order."""

    best: ScoredRoute
    alternatives: list[ScoredRoute]


def delay_percentage(route: RouteCandidate) -> float | None:
    """Relative traffic delay over nominal duration, or None for zero-length routes."""
    if route.nominal_duration_sec <= 0:
        return None
    # Multiply first so whole-percent delays stay exact at band boundaries.
    return (route.traffic_duration_sec - route.nominal_duration_sec) * 100 / route.nominal_duration_sec


def _delay_penalty(delay_pct: float, policy: ScoringPolicy) -> Penalty | None:
    for band in policy.delay_bands:
        if delay_pct > band.above_pct:
            return Penalty(
                name="traffic_delay",
                points=band.penalty,
                reason=f"traffic delay {delay_pct:.0f}% (>{band.above_pct:g}%)",
            )
    return None


def explain_route_score(
    route: RouteCandidate,
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> ScoreBreakdown:
    """Score `route` and return the full breakdown of applied penalties."""
    level = parse_emergency_level(emergency_level)
    penalties: list[Penalty] = []

    if route.warning_count > 0:
        penalties.append(
            Penalty(
                name="warnings",
                points=route.warning_count * policy.warning_penalty,
                reason=f"{route.warning_count} provider warning(s)",
            )
        )

    delay_pct = delay_percentage(route)
    if delay_pct is not None:
        penalty = _delay_penalty(delay_pct, policy)
        if penalty is not None:
            penalties.append(penalty)

    if level is EmergencyPriorityLevel.HIGH and route.turn_count > 0:
        penalties.append(
            Penalty(
                name="turns",
                points=route.turn_count * policy.turn_penalty_high,
                reason=f"{route.turn_count} turn(s) on a high-priority run",
            )
        )

    raw = int(policy.base_score - sum(p.points for p in penalties))
    score = max(0, min(100, raw))
    return ScoreBreakdown(
        score=score,
        base_score=policy.base_score,
        raw_score=raw,
        delay_pct=delay_pct,
        emergency_level=level,
        penalties=penalties,
    )


def score_route(
    route: RouteCandidate,
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> int:
    """Return the clamped 0..100 quality score for `route` (higher is better)."""
    return explain_route_score(route, emergency_level, policy).score


def rank_routes(
    routes: Iterable[RouteCandidate],
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> list[ScoredRoute]:
    """Score every route and sort best-first.

    Order: score descending, then traffic duration ascending. Routes still tied keep
    their input order.
    """
    level = parse_emergency_level(emergency_level)
    scored = []
    for route in routes:
        breakdown = explain_route_score(route, level, policy)
        scored.append(ScoredRoute(route=route, score=breakdown.score, breakdown=breakdown))

    scored.sort(key=lambda s: (-s.score, s.route.traffic_duration_sec))
    logger.debug("Ranked %d route(s) at level=%s", len(scored), level.value)
    return scored


def select_best_route(
    routes: Iterable[RouteCandidate],
    emergency_level: EmergencyPriorityLevel | str = EmergencyPriorityLevel.MEDIUM,
    policy: ScoringPolicy = DEFAULT_POLICY,
    max_alternatives: int | None = None,
) -> RankedRoutes:
    """Split a ranking into the best route and its alternatives."""
    ranked = rank_routes(routes, emergency_level, policy)
    if not ranked:
        raise InvalidArgumentError("at least one route candidate is required")
    alternatives = ranked[1:]
    if max_alternatives is not None:
        alternatives = alternatives[: max(0, int(max_alternatives))]
    return RankedRoutes(best=ranked[0], alternatives=alternatives)
