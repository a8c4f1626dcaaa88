"""
Domain models (Pydantic).

These types are the JSON contract between the API/CLI and the core:
- request payloads (`EtaRequest`, `ScoreRequest`, `RankRequest`, ...)
- serialized outputs (`EtaOut`, `ScoredRouteOut`, `RankResponse`, ...)

The core itself works on frozen dataclasses (`GeoPoint`, `RouteCandidate`); the
`to_core()` / `from_core()` helpers below are the only conversion points.

Numeric guards that belong to the core (speed > 0, known emergency level) are left
to the core so every caller gets the same `InvalidArgumentError`.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from routescore.core.geo import GeoPoint
from routescore.eta.estimator import EtaResult, TrafficEta
from routescore.eta.formatting import format_duration_minutes
from routescore.scoring.route_score import RouteCandidate, ScoredRoute


class GeoPointIn(BaseModel):
    """A geographic point in decimal degrees (range-checked at the edge)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_core(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class DistanceRequest(BaseModel):
    origin: GeoPointIn
    destination: GeoPointIn


class DistanceResponse(BaseModel):
    distance_km: float
    formatted: str


class EtaRequest(BaseModel):
    """Either `distance_km` or both endpoints must be supplied."""

    distance_km: float | None = None
    origin: GeoPointIn | None = None
    destination: GeoPointIn | None = None
    speed_kmh: float | None = None
    now: datetime | None = None

    @model_validator(mode="after")
    def _require_distance_source(self) -> "EtaRequest":
        if self.distance_km is None and (self.origin is None or self.destination is None):
            raise ValueError("provide distance_km or both origin and destination")
        return self


class EtaOut(BaseModel):
    minutes: int
    arrival_time: datetime
    formatted_minutes: str
    formatted_arrival: str
    formatted_duration: str
    distance_km: float | None = None
    is_delayed: bool | None = None

    @classmethod
    def from_core(cls, eta: EtaResult | TrafficEta, distance_km: float | None = None) -> "EtaOut":
        return cls(
            minutes=eta.minutes,
            arrival_time=eta.arrival_time,
            formatted_minutes=eta.formatted_minutes,
            formatted_arrival=eta.formatted_arrival,
            formatted_duration=format_duration_minutes(eta.minutes),
            distance_km=distance_km,
            is_delayed=getattr(eta, "is_delayed", None),
        )


class RouteCandidateIn(BaseModel):
    distance_km: float = Field(..., ge=0)
    nominal_duration_sec: int = Field(..., ge=0)
    traffic_duration_sec: int = Field(..., ge=0)
    turn_count: int = Field(0, ge=0)
    warning_count: int = Field(0, ge=0)
    route_id: str | None = None
    summary: str | None = None

    def to_core(self) -> RouteCandidate:
        return RouteCandidate(**self.model_dump())


class PenaltyOut(BaseModel):
    name: str
    points: int
    reason: str


class ScoredRouteOut(BaseModel):
    route: RouteCandidateIn
    score: int = Field(..., ge=0, le=100)
    raw_score: int
    delay_pct: float | None = None
    emergency_level: str
    penalties: list[PenaltyOut] = Field(default_factory=list)
    eta: EtaOut | None = None

    @classmethod
    def from_core(cls, scored: ScoredRoute, eta: TrafficEta | None = None) -> "ScoredRouteOut":
        b = scored.breakdown
        return cls(
            route=RouteCandidateIn.model_validate(asdict(scored.route)),
            score=scored.score,
            raw_score=b.raw_score,
            delay_pct=b.delay_pct,
            emergency_level=b.emergency_level.value,
            penalties=[PenaltyOut(name=p.name, points=p.points, reason=p.reason) for p in b.penalties],
            eta=EtaOut.from_core(eta) if eta is not None else None,
        )


class ScoreRequest(BaseModel):
    route: RouteCandidateIn
    emergency_level: str = "medium"


class RankRequest(BaseModel):
    routes: list[RouteCandidateIn] = Field(..., min_length=1)
    emergency_level: str = "medium"
    max_alternatives: int | None = Field(default=None, ge=0)
    now: datetime | None = None


class DirectionsRankRequest(BaseModel):
    """A raw provider payload (routes -> legs -> steps) to normalize and rank."""

    directions: dict[str, Any]
    emergency_level: str = "medium"
    max_alternatives: int | None = Field(default=None, ge=0)
    now: datetime | None = None


class PlanRequest(BaseModel):
    """Two endpoints to fetch live alternatives for, then rank."""

    origin: GeoPointIn
    destination: GeoPointIn
    emergency_level: str = "medium"
    max_alternatives: int | None = Field(default=None, ge=0)
    now: datetime | None = None
    fallback_to_straight_line: bool = False


class RankResponse(BaseModel):
    best: ScoredRouteOut
    alternatives: list[ScoredRouteOut]
    generated_at: datetime


class PlaceIn(BaseModel):
    id: str
    name: str
    location: GeoPointIn


class NearestRequest(BaseModel):
    origin: GeoPointIn
    places: list[PlaceIn]
    limit: int | None = Field(default=None, ge=1, le=100)


class NearestItem(BaseModel):
    place: PlaceIn
    distance_km: float
    formatted_distance: str


class NearestResponse(BaseModel):
    results: list[NearestItem]
