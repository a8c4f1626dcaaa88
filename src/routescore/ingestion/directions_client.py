"""
Directions ingestion client.

Fetches driving alternatives (with traffic-aware durations) from a Directions-compatible
endpoint and returns them as `RouteCandidate`s. When the provider is unreachable the
caller can opt into a straight-line fallback so dispatch screens still get an ETA.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from routescore.config.settings import Settings
from routescore.core.geo import GeoPoint
from routescore.core.http import get_json
from routescore.ingestion.directions import (
    DirectionsError,
    candidates_from_directions,
    straight_line_candidate,
)
from routescore.scoring.route_score import RouteCandidate

logger = logging.getLogger(__name__)


def _fmt_point(p: GeoPoint) -> str:
    return f"{p.lat:.6f},{p.lng:.6f}"


class DirectionsClient:
    """Thin wrapper over the provider's directions endpoint."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _fetch(self, origin: GeoPoint, destination: GeoPoint) -> dict[str, Any]:
        cfg = self._settings.directions
        if not cfg.api_key:
            raise DirectionsError("DIRECTIONS_API_KEY is not configured")

        params = {
            "origin": _fmt_point(origin),
            "destination": _fmt_point(destination),
            "mode": "driving",
            "alternatives": "true" if cfg.alternatives else "false",
            "departure_time": cfg.departure_time,
            "traffic_model": cfg.traffic_model,
            "avoid": "ferries",
            "units": "metric",
            "key": cfg.api_key,
        }
        return get_json(
            cfg.base_url,
            params=params,
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

    def get_candidates(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        *,
        fallback_to_straight_line: bool = False,
    ) -> list[RouteCandidate]:
        """Return provider route alternatives for `origin` -> `destination`.

        With `fallback_to_straight_line`, transport errors, non-JSON bodies, malformed
        payloads and empty responses yield a single straight-line candidate instead of
        raising. `pydantic.ValidationError` is a `ValueError`, so it is covered too.
        """
        logger.info("Fetching directions %s -> %s", _fmt_point(origin), _fmt_point(destination))
        try:
            return candidates_from_directions(self._fetch(origin, destination))
        except (httpx.HTTPError, DirectionsError, ValueError) as exc:
            if not fallback_to_straight_line:
                raise
            logger.warning("Directions unavailable (%s); using straight-line estimate.", exc)
            return [
                straight_line_candidate(
                    origin, destination, speed_kmh=self._settings.eta.default_speed_kmh
                )
            ]
