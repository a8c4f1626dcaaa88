"""
RouteScore CLI entrypoint.

Quick local checks of the distance/ETA/scoring core without running the API.
Ranking and live planning delegate to `routescore.planner.plan`, same as the
`/api/routes/*` endpoints.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import httpx

from routescore.config.settings import get_settings
from routescore.core.errors import InvalidArgumentError
from routescore.core.geo import GeoPoint, distance_km
from routescore.core.logging import configure_logging
from routescore.core.time import parse_datetime
from routescore.domain.models import RankResponse, RouteCandidateIn
from routescore.eta.estimator import estimate_eta
from routescore.eta.formatting import format_distance
from routescore.ingestion.directions import DirectionsError
from routescore.planner.plan import plan_from_directions, plan_routes, plan_trip, resolve_now
from routescore.scoring.route_score import EmergencyPriorityLevel, RouteCandidate, explain_route_score

LEVEL_CHOICES = [level.value for level in EmergencyPriorityLevel]
LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _point(lat: float, lng: float) -> GeoPoint:
    return GeoPoint.validated(lat, lng)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _cmd_distance(args: argparse.Namespace) -> int:
    km = distance_km(_point(args.from_lat, args.from_lng), _point(args.to_lat, args.to_lng))
    if args.json:
        _print_json({"distance_km": km, "formatted": format_distance(km)})
    else:
        print(f"{km:.3f} km ({format_distance(km)})")
    return 0


def _cmd_eta(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.distance_km is not None:
        km = float(args.distance_km)
    elif None not in (args.from_lat, args.from_lng, args.to_lat, args.to_lng):
        km = distance_km(_point(args.from_lat, args.from_lng), _point(args.to_lat, args.to_lng))
    else:
        raise InvalidArgumentError("provide --distance-km or all of --from-lat/--from-lng/--to-lat/--to-lng")

    now = parse_datetime(args.now, settings.app.timezone) if args.now else None
    speed = args.speed if args.speed is not None else settings.eta.default_speed_kmh
    eta = estimate_eta(km, speed, now=resolve_now(now, settings))
    if args.json:
        _print_json(
            {
                "distance_km": km,
                "minutes": eta.minutes,
                "arrival_time": eta.arrival_time.isoformat(),
                "formatted_minutes": eta.formatted_minutes,
                "formatted_arrival": eta.formatted_arrival,
            }
        )
    else:
        print(f"{format_distance(km)} at {speed:g} km/h: {eta.formatted_minutes}, arriving {eta.formatted_arrival}")
    return 0


def _cmd_score(args: argparse.Namespace) -> int:
    settings = get_settings()
    route = RouteCandidate(
        distance_km=args.distance_km,
        nominal_duration_sec=args.duration,
        traffic_duration_sec=args.traffic_duration if args.traffic_duration is not None else args.duration,
        turn_count=args.turns,
        warning_count=args.warnings,
    )
    breakdown = explain_route_score(route, args.level, settings.scoring.policy())
    if args.json:
        _print_json(
            {
                "score": breakdown.score,
                "raw_score": breakdown.raw_score,
                "delay_pct": breakdown.delay_pct,
                "penalties": [{"name": p.name, "points": p.points, "reason": p.reason} for p in breakdown.penalties],
            }
        )
        return 0

    print(f"score={breakdown.score}")
    for p in breakdown.penalties:
        print(f"  -{p.points:<3} {p.name}: {p.reason}")
    return 0


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _cmd_rank(args: argparse.Namespace) -> int:
    """Rank routes from a JSON file: a list of candidates or a raw directions payload."""
    settings = get_settings()
    data = _load_json(args.file)
    now = parse_datetime(args.now, settings.app.timezone) if args.now else None

    items = data.get("routes") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise InvalidArgumentError(f"{args.file}: expected a list of candidates or an object with 'routes'")

    if isinstance(data, dict) and items and isinstance(items[0], dict) and "legs" in items[0]:
        result = plan_from_directions(
            data, emergency_level=args.level, max_alternatives=args.max_alternatives, now=now, settings=settings
        )
    else:
        candidates = [RouteCandidateIn.model_validate(item).to_core() for item in items]
        result = plan_routes(
            candidates, emergency_level=args.level, max_alternatives=args.max_alternatives, now=now, settings=settings
        )

    _print_ranking(result, as_json=args.json)
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    """Fetch live alternatives between two points, then rank them."""
    settings = get_settings()
    now = parse_datetime(args.now, settings.app.timezone) if args.now else None
    result = plan_trip(
        _point(args.from_lat, args.from_lng),
        _point(args.to_lat, args.to_lng),
        fallback_to_straight_line=args.fallback,
        emergency_level=args.level,
        max_alternatives=args.max_alternatives,
        now=now,
        settings=settings,
    )
    _print_ranking(result, as_json=args.json)
    return 0


def _print_ranking(result: RankResponse, *, as_json: bool) -> None:
    if as_json:
        _print_json(result.model_dump(mode="json"))
        return

    for i, item in enumerate([result.best, *result.alternatives], start=1):
        route = item.route
        label = route.summary or route.route_id or f"route {i}"
        eta = f"{item.eta.formatted_duration} ({item.eta.formatted_arrival})" if item.eta else "-"
        print(f"{i:>2}. {label}  score={item.score}  {format_distance(route.distance_km)}  eta={eta}")
        for p in item.penalties:
            print(f"    - {p.reason} (-{p.points})")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the RouteScore CLI."""
    parser = argparse.ArgumentParser(prog="routescore")
    parser.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVEL_CHOICES, default=None, help="Override ROUTESCORE_LOG_LEVEL"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    dist = sub.add_parser("distance", help="Great-circle distance between two points (km).")
    dist.add_argument("--from-lat", required=True, type=float)
    dist.add_argument("--from-lng", required=True, type=float)
    dist.add_argument("--to-lat", required=True, type=float)
    dist.add_argument("--to-lng", required=True, type=float)
    dist.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    dist.set_defaults(func=_cmd_distance)

    eta = sub.add_parser("eta", help="ETA for a distance (or two points) at an average speed.")
    eta.add_argument("--distance-km", type=float, default=None)
    eta.add_argument("--from-lat", type=float, default=None)
    eta.add_argument("--from-lng", type=float, default=None)
    eta.add_argument("--to-lat", type=float, default=None)
    eta.add_argument("--to-lng", type=float, default=None)
    eta.add_argument("--speed", type=float, default=None, help="km/h (default from config)")
    eta.add_argument("--now", default=None, help="ISO datetime to project from (default: current time)")
    eta.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    eta.set_defaults(func=_cmd_eta)

    score = sub.add_parser("score", help="Score a single route candidate (0..100).")
    score.add_argument("--distance-km", required=True, type=float)
    score.add_argument("--duration", required=True, type=int, help="Nominal duration, seconds")
    score.add_argument("--traffic-duration", type=int, default=None, help="Traffic duration, seconds")
    score.add_argument("--turns", type=int, default=0)
    score.add_argument("--warnings", type=int, default=0)
    score.add_argument("--level", choices=LEVEL_CHOICES, default="medium")
    score.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    score.set_defaults(func=_cmd_score)

    rank = sub.add_parser("rank", help="Rank route candidates from a JSON file.")
    rank.add_argument("file", help="JSON list of candidates, or a directions payload with routes/legs")
    rank.add_argument("--level", choices=LEVEL_CHOICES, default="medium")
    rank.add_argument("--max-alternatives", type=int, default=None)
    rank.add_argument("--now", default=None, help="ISO datetime to project ETAs from")
    rank.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rank.set_defaults(func=_cmd_rank)

    plan = sub.add_parser("plan", help="Fetch live alternatives from the directions provider and rank them.")
    plan.add_argument("--from-lat", required=True, type=float)
    plan.add_argument("--from-lng", required=True, type=float)
    plan.add_argument("--to-lat", required=True, type=float)
    plan.add_argument("--to-lng", required=True, type=float)
    plan.add_argument("--level", choices=LEVEL_CHOICES, default="medium")
    plan.add_argument("--max-alternatives", type=int, default=None)
    plan.add_argument("--now", default=None, help="ISO datetime to project ETAs from")
    plan.add_argument(
        "--fallback", action="store_true", help="Use a straight-line estimate if the provider is unavailable"
    )
    plan.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    plan.set_defaults(func=_cmd_plan)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m routescore.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        configure_logging(args.log_level)
        return int(func(args))
    except (ValueError, DirectionsError, httpx.HTTPError) as e:
        parser.exit(2, f"routescore: error: {e}\n")


if __name__ == "__main__":
    raise SystemExit(main())
