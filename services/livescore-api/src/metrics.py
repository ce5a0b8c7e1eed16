"""
Prometheus metrics for the Livescore API.
"""

import structlog
from prometheus_client import Counter, Histogram, start_http_server

logger = structlog.get_logger(__name__)

# --- Counters ---
UPSTREAM_REQUESTS = Counter(
    "livescore_upstream_requests_total",
    "Total requests sent to the football-data provider",
    ["endpoint", "outcome"],
)

LIVE_CACHE_LOOKUPS = Counter(
    "livescore_live_cache_lookups_total",
    "Live-matches cache lookups",
    ["result"],
)

FIXTURES_DROPPED = Counter(
    "livescore_fixtures_dropped_total",
    "Provider fixtures rejected by boundary validation",
)

# --- Histograms ---
UPSTREAM_LATENCY = Histogram(
    "livescore_upstream_request_seconds",
    "Round-trip time of provider requests",
    ["endpoint"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)


class MetricsServer:
    """Prometheus metrics HTTP server."""

    def __init__(self, port: int = 9090, enabled: bool = True):
        self.port = port
        self.enabled = enabled
        self._started = False

    async def start(self):
        if not self.enabled or self._started:
            return
        start_http_server(self.port)
        self._started = True
        logger.info("metrics_server_started", port=self.port)
