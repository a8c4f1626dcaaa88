import httpx
from starlette.testclient import TestClient

from routescore.api import routes
from routescore.api.app import app
from routescore.config.settings import get_settings
from routescore.ingestion.directions_client import DirectionsClient
from routescore.scoring.route_score import RouteCandidate

NOW = "2026-01-05T10:00:00+05:30"
MG_ROAD = {"lat": 12.9716, "lng": 77.5946}
INDIRANAGAR = {"lat": 12.9784, "lng": 77.6408}


def _route(**overrides):
    route = {
        "distance_km": 10,
        "nominal_duration_sec": 600,
        "traffic_duration_sec": 600,
        "turn_count": 5,
        "warning_count": 0,
    }
    route.update(overrides)
    return route


def test_health():
    with TestClient(app) as c:
        resp = c.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_distance_endpoint():
    with TestClient(app) as c:
        resp = c.post("/api/distance", json={"origin": MG_ROAD, "destination": INDIRANAGAR})
    assert resp.status_code == 200
    data = resp.json()
    assert 4.9 < data["distance_km"] < 5.3
    assert data["formatted"].endswith(" km")


def test_distance_endpoint_rejects_out_of_range_points():
    with TestClient(app) as c:
        resp = c.post("/api/distance", json={"origin": {"lat": 91, "lng": 0}, "destination": MG_ROAD})
    assert resp.status_code == 422


def test_eta_endpoint_from_distance():
    with TestClient(app) as c:
        resp = c.post("/api/eta", json={"distance_km": 1, "speed_kmh": 40, "now": NOW})
    assert resp.status_code == 200
    data = resp.json()
    assert data["minutes"] == 2
    assert data["formatted_minutes"] == "2 min"
    assert data["formatted_arrival"] == "10:02"


def test_eta_endpoint_from_points_uses_default_speed():
    with TestClient(app) as c:
        resp = c.post("/api/eta", json={"origin": MG_ROAD, "destination": INDIRANAGAR, "now": NOW})
    assert resp.status_code == 200
    data = resp.json()
    # ~5.1 km at 40 km/h
    assert data["minutes"] == 8
    assert data["distance_km"] > 5


def test_eta_endpoint_rejects_zero_speed():
    with TestClient(app) as c:
        resp = c.post("/api/eta", json={"distance_km": 5, "speed_kmh": 0})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_eta_endpoint_requires_a_distance_source():
    with TestClient(app) as c:
        resp = c.post("/api/eta", json={"origin": MG_ROAD})
    assert resp.status_code == 422


def test_score_endpoint_explains_penalties():
    with TestClient(app) as c:
        resp = c.post(
            "/api/routes/score",
            json={"route": _route(traffic_duration_sec=960), "emergency_level": "high"},
        )
    assert resp.status_code == 200
    data = resp.json()
    assert data["score"] == 60
    assert [p["name"] for p in data["penalties"]] == ["traffic_delay", "turns"]
    assert data["eta"]["minutes"] == 16


def test_score_endpoint_rejects_unknown_level():
    with TestClient(app) as c:
        resp = c.post("/api/routes/score", json={"route": _route(), "emergency_level": "urgent"})
    assert resp.status_code == 400
    assert "urgent" in resp.json()["detail"]["message"]


def test_rank_endpoint_orders_routes():
    routes = [
        _route(route_id="warned", warning_count=3),
        _route(route_id="slow", traffic_duration_sec=640),
        _route(route_id="fast", traffic_duration_sec=610),
    ]
    with TestClient(app) as c:
        resp = c.post("/api/routes/rank", json={"routes": routes, "now": NOW})
    assert resp.status_code == 200
    data = resp.json()
    assert data["best"]["route"]["route_id"] == "fast"
    assert [a["route"]["route_id"] for a in data["alternatives"]] == ["slow", "warned"]
    assert data["alternatives"][1]["score"] == 85


def test_directions_endpoint_ranks_provider_payload():
    payload = {
        "status": "OK",
        "routes": [
            {
                "summary": "Jammed",
                "legs": [
                    {
                        "distance": {"value": 8000},
                        "duration": {"value": 600},
                        "duration_in_traffic": {"value": 1000},
                        "steps": [],
                    }
                ],
            },
            {
                "summary": "Clear",
                "legs": [
                    {
                        "distance": {"value": 9000},
                        "duration": {"value": 660},
                        "duration_in_traffic": {"value": 680},
                        "steps": [{"maneuver": "turn-left"}],
                    }
                ],
            },
        ],
    }
    with TestClient(app) as c:
        resp = c.post("/api/routes/directions", json={"directions": payload, "emergency_level": "high", "now": NOW})
    assert resp.status_code == 200
    data = resp.json()
    assert data["best"]["route"]["summary"] == "Clear"
    assert data["best"]["score"] == 98


def test_directions_endpoint_reports_provider_errors():
    with TestClient(app) as c:
        resp = c.post("/api/routes/directions", json={"directions": {"status": "ZERO_RESULTS", "routes": []}})
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "DIRECTIONS_ERROR"


def test_nearest_endpoint():
    places = [
        {"id": "h1", "name": "City Hospital", "location": {"lat": 13.05, "lng": 77.60}},
        {"id": "h2", "name": "Victoria Hospital", "location": {"lat": 12.9720, "lng": 77.5950}},
    ]
    with TestClient(app) as c:
        resp = c.post("/api/nearest", json={"origin": MG_ROAD, "places": places, "limit": 1})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [r["place"]["id"] for r in results] == ["h2"]
    assert results[0]["formatted_distance"].endswith(" m")


def test_public_settings_hide_api_key():
    with TestClient(app) as c:
        resp = c.get("/api/settings")
    assert resp.status_code == 200
    data = resp.json()
    assert "api_key" not in data["directions"]
    assert data["eta"]["default_speed_kmh"] > 0


class _StubDirections:
    def __init__(self, candidates=None, error=None):
        self.candidates = candidates or []
        self.error = error
        self.calls = []

    def get_candidates(self, origin, destination, *, fallback_to_straight_line=False):
        self.calls.append((origin, destination, fallback_to_straight_line))
        if self.error is not None:
            raise self.error
        return self.candidates


def _keyless_client():
    settings = get_settings()
    directions = settings.directions.model_copy(update={"api_key": None})
    return DirectionsClient(settings.model_copy(update={"directions": directions}))


def test_plan_endpoint_ranks_live_alternatives(monkeypatch):
    stub = _StubDirections(
        [
            RouteCandidate(distance_km=8, nominal_duration_sec=600, traffic_duration_sec=1000, route_id="1"),
            RouteCandidate(distance_km=9, nominal_duration_sec=660, traffic_duration_sec=680, route_id="2"),
        ]
    )
    monkeypatch.setattr(routes, "_clients", lambda: stub)

    with TestClient(app) as c:
        resp = c.post(
            "/api/routes/plan",
            json={"origin": MG_ROAD, "destination": INDIRANAGAR, "emergency_level": "high", "now": NOW},
        )

    assert resp.status_code == 200
    data = resp.json()
    assert data["best"]["route"]["route_id"] == "2"
    assert data["best"]["eta"]["formatted_duration"] == "12 min"
    origin, destination, fallback = stub.calls[0]
    assert (origin.lat, destination.lng) == (MG_ROAD["lat"], INDIRANAGAR["lng"])
    assert fallback is False


def test_plan_endpoint_falls_back_to_straight_line(monkeypatch):
    monkeypatch.setattr(routes, "_clients", _keyless_client)

    with TestClient(app) as c:
        resp = c.post(
            "/api/routes/plan",
            json={"origin": MG_ROAD, "destination": INDIRANAGAR, "now": NOW, "fallback_to_straight_line": True},
        )

    assert resp.status_code == 200
    best = resp.json()["best"]
    assert best["route"]["route_id"] == "straight-line"
    assert best["score"] == 100


def test_plan_endpoint_without_api_key_reports_directions_error(monkeypatch):
    monkeypatch.setattr(routes, "_clients", _keyless_client)

    with TestClient(app) as c:
        resp = c.post("/api/routes/plan", json={"origin": MG_ROAD, "destination": INDIRANAGAR})

    assert resp.status_code == 422
    assert "DIRECTIONS_API_KEY" in resp.json()["detail"]["message"]


def test_plan_endpoint_maps_transport_errors_to_bad_gateway(monkeypatch):
    error = httpx.ConnectError("connection refused", request=httpx.Request("GET", "https://directions.test"))
    monkeypatch.setattr(routes, "_clients", lambda: _StubDirections(error=error))

    with TestClient(app) as c:
        resp = c.post("/api/routes/plan", json={"origin": MG_ROAD, "destination": INDIRANAGAR})

    assert resp.status_code == 502
    assert resp.json()["detail"]["code"] == "UPSTREAM_ERROR"


def test_plan_endpoint_rejects_unknown_level_before_fetching(monkeypatch):
    stub = _StubDirections()
    monkeypatch.setattr(routes, "_clients", lambda: stub)

    with TestClient(app) as c:
        resp = c.post(
            "/api/routes/plan",
            json={"origin": MG_ROAD, "destination": INDIRANAGAR, "emergency_level": "HIGH"},
        )

    assert resp.status_code == 400
    assert stub.calls == []
