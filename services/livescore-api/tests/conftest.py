"""pytest configuration and fixtures."""

import json
from typing import Callable, Optional

import httpx
import pytest

from livescore.config import Settings, UpstreamSettings

BASE_URL = "https://provider.test"


def make_fixture(
    fixture_id: int,
    league_name: str = "Premier League",
    country: Optional[str] = "England",
    league_id: Optional[int] = 39,
    date: str = "2025-06-07T15:00:00+01:00",
    status: str = "NS",
    home: tuple = (33, "Manchester United"),
    away: tuple = (40, "Liverpool"),
) -> dict:
    """A provider /fixtures item with the fields the service reads."""
    return {
        "fixture": {
            "id": fixture_id,
            "date": date,
            "status": {"long": "Not Started", "short": status, "elapsed": None},
            "venue": {"id": 556, "name": "Old Trafford", "city": "Manchester"},
        },
        "league": {
            "id": league_id,
            "name": league_name,
            "country": country,
            "logo": f"https://media.test/leagues/{league_id}.png",
            "flag": None,
            "season": 2025,
        },
        "teams": {
            "home": {"id": home[0], "name": home[1], "logo": None, "winner": None},
            "away": {"id": away[0], "name": away[1], "logo": None, "winner": None},
        },
        "goals": {"home": None, "away": None},
        "score": {
            "halftime": {"home": None, "away": None},
            "fulltime": {"home": None, "away": None},
        },
        "events": [],
    }


def envelope(items: list) -> dict:
    return {"errors": [], "results": len(items), "response": items}


class FakeProvider:
    """
    Stands in for the provider behind an httpx.MockTransport.

    Routes are matched on path plus a subset of query parameters; the most
    specific matching route wins. Every request is recorded in `calls`.
    """

    def __init__(self):
        self.routes: list[tuple[str, dict, Callable[[httpx.Request], httpx.Response]]] = []
        self.calls: list[httpx.Request] = []

    def add(self, path: str, body=None, params: Optional[dict] = None, status_code: int = 200):
        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=body)
        self.routes.append((path, params or {}, respond))

    def add_handler(self, path: str, handler, params: Optional[dict] = None):
        self.routes.append((path, params or {}, handler))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        query = dict(request.url.params)
        candidates = [
            (len(params), handler)
            for path, params, handler in self.routes
            if path == request.url.path
            and all(query.get(k) == str(v) for k, v in params.items())
        ]
        if not candidates:
            return httpx.Response(404, content=json.dumps({"message": "no route"}))
        candidates.sort(key=lambda c: c[0], reverse=True)
        return candidates[0][1](request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path == path]


def make_settings(api_key: Optional[str] = "test-key", **overrides) -> Settings:
    values = dict(
        host="127.0.0.1",
        port=5000,
        upstream=UpstreamSettings(
            base_url=BASE_URL,
            timeout_seconds=10.0,
            timezone="Africa/Lagos",
            api_key=api_key,
        ),
        live_ttl_seconds=30,
        featured_league_ids=(39, 140, 135, 78, 61, 2),
        top_leagues=(
            "Premier League|England",
            "La Liga|Spain",
            "Bundesliga|Germany",
            "Serie A|Italy",
            "Ligue 1|France",
            "UEFA Champions League|Europe",
        ),
        metrics_enabled=False,
        metrics_port=9090,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
