"""
Livescore API — Main Entry Point

HTTP façade over the API-Football provider:
1. Accepts REST queries for live, scheduled, finished and detailed match data
2. Forwards them to the provider (fanning out where one query needs several calls)
3. Groups fixtures by league and orders them for display
4. Caches the live listing for a short TTL
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.routes import install_error_handlers, root_router, router
from .cache.result_cache import ResultCache
from .config import Settings, get_settings
from .logging_config import configure_logging
from .metrics import MetricsServer
from .services.match_service import MatchService
from .upstream.client import ApiFootballClient

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application and its collaborators.

    The cache and provider client live on app.state for the lifetime of
    the process; the client is closed on shutdown.
    """
    settings = settings or get_settings()

    client = ApiFootballClient(settings.upstream, transport=transport)
    cache = ResultCache()
    metrics_server = MetricsServer(port=settings.metrics_port, enabled=settings.metrics_enabled)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await metrics_server.start()
        if not settings.upstream.api_key:
            logger.warning(
                "api_key_missing",
                message="API_FOOTBALL_KEY not configured; match queries will fail.",
            )
        logger.info("livescore_api_started", port=settings.port)
        yield
        await client.aclose()
        logger.info("livescore_api_stopped")

    app = FastAPI(
        title="Livescore API",
        description="Live, scheduled and finished football matches grouped by league",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.match_service = MatchService(client, cache, settings)

    app.include_router(root_router)
    app.include_router(router)
    install_error_handlers(app)
    return app


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
