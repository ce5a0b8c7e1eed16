"""
HTTP routes for match listings and details.

Handlers translate query parameters into MatchService calls. Errors are
not caught here: the exception handlers registered by install_error_handlers
map them to a single {"error": message} envelope.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..errors import LivescoreError, NotFoundError, OperationError, ValidationError
from ..models import serialize_groups
from ..services.match_service import MatchService, require_date

logger = structlog.get_logger(__name__)

WELCOME_TEXT = "Welcome to the Livescore API"

router = APIRouter(prefix="/matches", tags=["matches"])
root_router = APIRouter()


def get_match_service(request: Request) -> MatchService:
    return request.app.state.match_service


# === Matches ===

@router.get("/live")
async def live_matches(
    league: Optional[str] = Query(None, description="Substring filter on league name"),
    country: Optional[str] = Query(None, description="Substring filter on country"),
    date: Optional[str] = Query(None, description="Accepted for compatibility; live data is always today"),
    service: MatchService = Depends(get_match_service),
):
    """Live matches grouped by league. Served from a short-lived cache."""
    groups = await service.live_matches(date=date, league=league, country=country)
    return {"data": serialize_groups(groups)}


@router.get("/scheduled-matches")
async def scheduled_matches(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    service: MatchService = Depends(get_match_service),
):
    """Not-started matches for a date, featured leagues first."""
    date = require_date(date)
    groups = await service.scheduled_matches(date)
    return {
        "success": True,
        "date": date,
        "totalLeagues": len(groups),
        "data": serialize_groups(groups),
    }


@router.get("/all-matches")
async def all_matches(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    service: MatchService = Depends(get_match_service),
):
    date = require_date(date)
    groups = await service.all_matches(date)
    return {
        "success": True,
        "date": date,
        "totalLeagues": len(groups),
        "data": serialize_groups(groups),
    }


@router.get("/finished")
async def finished_matches(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    service: MatchService = Depends(get_match_service),
):
    groups = await service.finished_matches(date)
    return {"data": serialize_groups(groups)}


@router.get("/match-details")
async def match_details(
    fixture_id: Optional[str] = Query(None, alias="fixtureId", description="Provider fixture id"),
    service: MatchService = Depends(get_match_service),
):
    """
    Full detail for one fixture: overview, lineups, statistics, odds and
    the last five head-to-head meetings.
    """
    detail = await service.match_details(fixture_id)
    return {"success": True, "data": detail.to_dict()}


# === Root ===

@root_router.get("/", response_class=PlainTextResponse)
async def welcome():
    return WELCOME_TEXT


@root_router.get("/health")
async def health():
    return {"status": "healthy", "service": "livescore-api"}


# === Errors ===

_STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    OperationError: 500,
}


async def livescore_error_handler(request: Request, exc: LivescoreError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    if status_code == 500 and not isinstance(exc, OperationError):
        # Internal errors that escaped the service layer: hide the detail
        logger.error("unhandled_service_error", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    logger.info(
        "request_failed",
        path=request.url.path,
        status_code=status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=status_code, content={"error": exc.message})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LivescoreError, livescore_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
