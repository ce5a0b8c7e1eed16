"""
API-Football Client — Authenticated access to the football-data provider.

Every call goes through get(): the API key is attached as the
x-apisports-key header, the body is checked against the provider envelope
schema, and any failure surfaces as UpstreamError. There is no retry; the
caller decides what a failure means.
"""

import time
from typing import Optional

import httpx
import structlog

from ..config import UpstreamSettings
from ..errors import ConfigError, UpstreamError
from ..metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS
from ..models import RawFixture
from ..validation.schema_validator import ENVELOPE, SchemaValidator

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "x-apisports-key"


class ApiFootballClient:
    """Thin async wrapper over the provider's REST endpoints."""

    def __init__(
        self,
        settings: UpstreamSettings,
        validator: Optional[SchemaValidator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.validator = validator or SchemaValidator()
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            headers={"User-Agent": "livescore-api/1.0"},
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def get(self, path: str, params: Optional[dict] = None) -> dict:
        """
        GET a provider endpoint and return its validated envelope.

        Raises ConfigError if no API key is configured (before any I/O) and
        UpstreamError on transport failure, timeout, non-2xx status,
        undecodable body, or a body without a `response` list.
        """
        if not self.settings.api_key:
            raise ConfigError("API_FOOTBALL_KEY is missing from environment variables")

        params = {k: v for k, v in (params or {}).items() if v is not None}
        started = time.perf_counter()
        try:
            response = await self._client.get(
                path,
                params=params,
                headers={API_KEY_HEADER: self.settings.api_key},
            )
        except httpx.TimeoutException as e:
            self._record(path, "timeout", started)
            raise UpstreamError(f"Provider request to {path} timed out") from e
        except httpx.HTTPError as e:
            self._record(path, "transport_error", started)
            raise UpstreamError(f"Provider request to {path} failed: {e.__class__.__name__}") from e

        if not response.is_success:
            self._record(path, "http_error", started)
            raise UpstreamError(
                f"Provider returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
                auth_failed=response.status_code in (401, 403),
            )

        try:
            body = response.json()
        except ValueError as e:
            self._record(path, "malformed", started)
            raise UpstreamError(f"Provider returned a non-JSON body for {path}") from e

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            self._record(path, "provider_error", started)
            auth_failed = isinstance(errors, dict) and "token" in errors
            raise UpstreamError(
                f"Provider reported errors for {path}",
                status_code=response.status_code,
                auth_failed=auth_failed,
            )

        result = self.validator.validate(ENVELOPE, body)
        if not result.is_valid:
            self._record(path, "malformed", started)
            logger.warning(
                "upstream_envelope_invalid",
                path=path,
                first_error=result.errors[0],
            )
            raise UpstreamError(f"Provider returned unexpected data structure for {path}")

        self._record(path, "ok", started)
        logger.debug(
            "upstream_request_completed",
            path=path,
            results=len(body["response"]),
        )
        return body

    def _record(self, path: str, outcome: str, started: float):
        UPSTREAM_REQUESTS.labels(endpoint=path, outcome=outcome).inc()
        UPSTREAM_LATENCY.labels(endpoint=path).observe(time.perf_counter() - started)

    # --- Endpoint helpers ---

    async def get_fixtures(self, **params) -> list[RawFixture]:
        """/fixtures as typed records; incomplete items are dropped."""
        body = await self.get("/fixtures", params)
        return self.validator.parse_fixtures(body["response"], source="/fixtures")

    async def get_lineups(self, fixture_id: int) -> list:
        body = await self.get("/fixtures/lineups", {"fixture": fixture_id})
        return body["response"]

    async def get_statistics(self, fixture_id: int) -> list:
        body = await self.get("/fixtures/statistics", {"fixture": fixture_id})
        return body["response"]

    async def get_odds(self, fixture_id: int) -> list:
        body = await self.get("/odds", {"fixture": fixture_id})
        return body["response"]

    async def get_head_to_head(self, home_id: int, away_id: int, last: int = 5) -> list:
        body = await self.get(
            "/fixtures/headtohead",
            {"h2h": f"{home_id}-{away_id}", "last": last},
        )
        return body["response"]
