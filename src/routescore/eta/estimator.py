"""
ETA estimation.

Two ways to project an arrival:
- `estimate_eta`: from a distance and an assumed average speed (used when only
  straight-line or provider distance is known).
- `eta_from_traffic`: from a routing provider's traffic-aware duration, flagging
  whether traffic makes the trip slower than nominal.

Both round minutes up so an ETA is never under-promised. Results are snapshots: they
are valid for the `now` they were computed against and must be recomputed as the
vehicle moves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from math import ceil, isfinite

from routescore.core.errors import InvalidArgumentError
from routescore.core.time import utc_now
from routescore.eta.formatting import format_clock, format_minutes

logger = logging.getLogger(__name__)

DEFAULT_SPEED_KMH = 40.0


@dataclass(frozen=True)
class EtaResult:
    """Projected duration and arrival for one trip."""

    minutes: int
    arrival_time: datetime
    formatted_minutes: str
    formatted_arrival: str


@dataclass(frozen=True)
class TrafficEta:
    """ETA derived from provider durations (seconds)."""

    minutes: int
    arrival_time: datetime
    formatted_minutes: str
    formatted_arrival: str
    is_delayed: bool


def estimate_eta(
    distance_km: float,
    speed_kmh: float = DEFAULT_SPEED_KMH,
    now: datetime | None = None,
) -> EtaResult:
    """Project minutes-to-arrival and the arrival timestamp for `distance_km`.

    Raises:
        InvalidArgumentError: if `speed_kmh` is not a positive finite number, or
            `distance_km` is negative or non-finite.
    """
    distance_km = float(distance_km)
    speed_kmh = float(speed_kmh)
    if not isfinite(speed_kmh) or speed_kmh <= 0:
        raise InvalidArgumentError(f"speed_kmh must be > 0, got {speed_kmh}")
    if not isfinite(distance_km) or distance_km < 0:
        raise InvalidArgumentError(f"distance_km must be >= 0, got {distance_km}")

    time_hours = distance_km / speed_kmh
    minutes = int(ceil(time_hours * 60))

    start = now if now is not None else utc_now()
    arrival = start + timedelta(minutes=minutes)
    logger.debug("ETA %.3f km @ %.1f km/h -> %d min", distance_km, speed_kmh, minutes)

    return EtaResult(
        minutes=minutes,
        arrival_time=arrival,
        formatted_minutes=format_minutes(minutes),
        formatted_arrival=format_clock(arrival),
    )


def eta_from_traffic(
    nominal_duration_sec: int,
    traffic_duration_sec: int,
    now: datetime | None = None,
) -> TrafficEta:
    """Project arrival from a provider's traffic-aware duration.

    The arrival timestamp keeps second resolution; `minutes` is rounded up.
    """
    if nominal_duration_sec < 0 or traffic_duration_sec < 0:
        raise InvalidArgumentError("durations must be >= 0")

    start = now if now is not None else utc_now()
    arrival = start + timedelta(seconds=int(traffic_duration_sec))
    minutes = int(ceil(traffic_duration_sec / 60))
    return TrafficEta(
        minutes=minutes,
        arrival_time=arrival,
        formatted_minutes=format_minutes(minutes),
        formatted_arrival=format_clock(arrival),
        is_delayed=traffic_duration_sec > nominal_duration_sec,
    )
