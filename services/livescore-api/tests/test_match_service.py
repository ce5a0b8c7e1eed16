"""Tests for the match query operations."""

import asyncio

import httpx
import pytest

from livescore.cache.result_cache import ResultCache
from livescore.errors import NotFoundError, OperationError, ValidationError
from livescore.services.match_service import LIVE_CACHE_KEY, MatchService, filter_groups
from livescore.upstream.client import ApiFootballClient

from conftest import envelope, make_fixture, make_settings


def make_service(provider, api_key="test-key", cache=None) -> MatchService:
    settings = make_settings(api_key=api_key)
    client = ApiFootballClient(settings.upstream, transport=provider.transport)
    return MatchService(client, cache or ResultCache(), settings)


# === Live ===

@pytest.mark.asyncio
async def test_live_matches_queries_live_feed_and_caches(provider):
    provider.add("/fixtures", envelope([make_fixture(1, status="1H")]), params={"live": "all"})
    service = make_service(provider)

    first = await service.live_matches()
    second = await service.live_matches()

    assert [g.key for g in first] == ["Premier League|England"]
    assert second == first
    assert len(provider.calls) == 1
    params = dict(provider.calls[0].url.params)
    assert params == {"live": "all", "timezone": "Africa/Lagos"}


@pytest.mark.asyncio
async def test_live_cache_key_ignores_date(provider):
    provider.add("/fixtures", envelope([make_fixture(1)]), params={"live": "all"})
    cache = ResultCache()
    service = make_service(provider, cache=cache)

    await service.live_matches(date="2025-06-07")
    await service.live_matches(date="2025-06-08")

    assert len(provider.calls) == 1
    assert cache.get(LIVE_CACHE_KEY) is not None


@pytest.mark.asyncio
async def test_live_filters_apply_to_cached_result(provider):
    provider.add("/fixtures", envelope([
        make_fixture(1, league_name="Premier League", country="England", league_id=39),
        make_fixture(2, league_name="La Liga", country="Spain", league_id=140),
    ]), params={"live": "all"})
    service = make_service(provider)

    spain = await service.live_matches(country="spa")
    premier = await service.live_matches(league="PREMIER")

    assert [g.league.name for g in spain] == ["La Liga"]
    assert [g.league.name for g in premier] == ["Premier League"]
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_live_does_not_cache_failures(provider):
    provider.add("/fixtures", {"message": "down"}, status_code=503)
    cache = ResultCache()
    service = make_service(provider, cache=cache)

    with pytest.raises(OperationError, match="Failed to fetch live matches"):
        await service.live_matches()

    assert cache.get(LIVE_CACHE_KEY) is None


@pytest.mark.asyncio
async def test_missing_api_key_becomes_operation_error(provider):
    service = make_service(provider, api_key=None)

    with pytest.raises(OperationError) as exc_info:
        await service.live_matches()

    assert "API_FOOTBALL_KEY" not in exc_info.value.message
    assert provider.calls == []


@pytest.mark.asyncio
async def test_auth_failure_message(provider):
    provider.add("/fixtures", {"errors": {"token": "bad key"}, "response": []})
    service = make_service(provider)

    with pytest.raises(OperationError, match="Authentication failed"):
        await service.scheduled_matches("2025-06-07")


# === Dated listings ===

@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["scheduled_matches", "all_matches", "finished_matches"])
@pytest.mark.parametrize("date", [None, "", "07/06/2025", "2025-02-30", "2025-13-01"])
async def test_dated_listings_require_valid_date(provider, operation, date):
    service = make_service(provider)

    with pytest.raises(ValidationError):
        await getattr(service, operation)(date)

    assert provider.calls == []


@pytest.mark.asyncio
async def test_scheduled_matches_requests_not_started(provider):
    provider.add("/fixtures", envelope([
        make_fixture(1, league_name="Eredivisie", country="Netherlands", league_id=88,
                     date="2025-06-07T14:00:00+00:00"),
        make_fixture(2, date="2025-06-07T15:00:00+00:00"),
        make_fixture(3, date="2025-06-07T13:00:00+00:00"),
    ]), params={"status": "NS"})
    service = make_service(provider)

    groups = await service.scheduled_matches("2025-06-07")

    params = dict(provider.calls[0].url.params)
    assert params == {"status": "NS", "date": "2025-06-07", "timezone": "Africa/Lagos"}
    assert [g.league.name for g in groups] == ["Premier League", "Eredivisie"]
    assert [m.id for m in groups[0].matches] == [3, 2]


@pytest.mark.asyncio
async def test_all_matches_uses_top_league_order(provider):
    provider.add("/fixtures", envelope([
        make_fixture(1, league_name="Eredivisie", country="Netherlands", league_id=88),
        make_fixture(2, league_name="La Liga", country="Spain", league_id=140),
        make_fixture(3, league_name="Allsvenskan", country="Sweden", league_id=113),
        make_fixture(4, league_name="Premier League", country="England", league_id=39),
    ]))
    service = make_service(provider)

    groups = await service.all_matches("2025-06-07")

    assert "status" not in dict(provider.calls[0].url.params)
    assert [g.league.name for g in groups] == [
        "Premier League", "La Liga", "Allsvenskan", "Eredivisie",
    ]


@pytest.mark.asyncio
async def test_finished_matches_combines_three_status_calls(provider):
    provider.add("/fixtures", envelope([
        make_fixture(1, status="FT"),
        make_fixture(2, league_name="Eredivisie", country="Netherlands", league_id=88, status="FT"),
    ]), params={"status": "FT"})
    provider.add("/fixtures", envelope([]), params={"status": "AET"})
    provider.add("/fixtures", envelope([
        make_fixture(3, league_name="Eredivisie", country="Netherlands", league_id=88, status="PEN"),
    ]), params={"status": "PEN"})
    service = make_service(provider)

    groups = await service.finished_matches("2025-06-07")

    statuses = sorted(dict(c.url.params)["status"] for c in provider.calls)
    assert statuses == ["AET", "FT", "PEN"]
    assert sum(len(g.matches) for g in groups) == 3
    assert [g.league.name for g in groups] == ["Premier League", "Eredivisie"]


@pytest.mark.asyncio
async def test_finished_matches_fails_if_any_status_call_fails(provider):
    provider.add("/fixtures", envelope([make_fixture(1, status="FT")]), params={"status": "FT"})
    provider.add("/fixtures", {"message": "down"}, params={"status": "AET"}, status_code=500)
    provider.add("/fixtures", envelope([]), params={"status": "PEN"})
    service = make_service(provider)

    with pytest.raises(OperationError, match="Failed to fetch finished matches"):
        await service.finished_matches("2025-06-07")


@pytest.mark.asyncio
async def test_finished_matches_cancels_pending_calls_on_failure(provider):
    cancelled = []

    async def slow(request):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(dict(request.url.params)["status"])
            raise
        return httpx.Response(200, json=envelope([]))

    provider.add("/fixtures", {"message": "down"}, params={"status": "FT"}, status_code=500)
    provider.add_handler("/fixtures", slow, params={"status": "AET"})
    provider.add_handler("/fixtures", slow, params={"status": "PEN"})
    service = make_service(provider)

    with pytest.raises(OperationError):
        await asyncio.wait_for(service.finished_matches("2025-06-07"), timeout=2)

    for _ in range(5):
        await asyncio.sleep(0)
    assert sorted(cancelled) == ["AET", "PEN"]


@pytest.mark.asyncio
async def test_listing_date_is_stripped_before_forwarding(provider):
    provider.add("/fixtures", envelope([]))
    service = make_service(provider)

    await service.all_matches(" 2025-06-07 ")

    assert dict(provider.calls[0].url.params)["date"] == "2025-06-07"


# === Details ===

def add_detail_routes(provider, overview, odds=None, failing=()):
    provider.add("/fixtures", envelope(overview), params={"id": 1035})
    bodies = {
        "/fixtures/lineups": envelope([{"team": {"id": 33}, "formation": "4-2-3-1"}]),
        "/fixtures/statistics": envelope([{"team": {"id": 33}, "statistics": []}]),
        "/odds": envelope(odds or []),
    }
    for path, body in bodies.items():
        if path in failing:
            provider.add(path, {"message": "down"}, status_code=500)
        else:
            provider.add(path, body)
    provider.add("/fixtures/headtohead", envelope([make_fixture(900), make_fixture(901)]))


@pytest.mark.asyncio
async def test_match_details_combines_sub_resources(provider):
    add_detail_routes(provider, [make_fixture(1035)], odds=[{"bookmakers": []}, {"bookmakers": [1]}])
    service = make_service(provider)

    detail = (await service.match_details("1035")).to_dict()

    assert detail["fixture"]["id"] == 1035
    assert detail["fixture"]["league"]["name"] == "Premier League"
    assert detail["lineups"][0]["formation"] == "4-2-3-1"
    assert detail["statistics"][0]["team"]["id"] == 33
    assert detail["odds"] == {"bookmakers": []}
    assert len(detail["h2h"]) == 2

    h2h_call = provider.calls_to("/fixtures/headtohead")[0]
    assert dict(h2h_call.url.params) == {"h2h": "33-40", "last": "5"}
    assert provider.calls[-1] is h2h_call


@pytest.mark.asyncio
async def test_match_details_odds_default_to_none(provider):
    add_detail_routes(provider, [make_fixture(1035)])
    service = make_service(provider)

    detail = await service.match_details(1035)

    assert detail.odds is None


@pytest.mark.asyncio
async def test_match_details_unknown_fixture_is_not_found(provider):
    add_detail_routes(provider, [])
    service = make_service(provider)

    with pytest.raises(NotFoundError):
        await service.match_details(1035)

    assert provider.calls_to("/fixtures/headtohead") == []


@pytest.mark.asyncio
async def test_unknown_fixture_is_not_found_even_if_odds_fail(provider):
    add_detail_routes(provider, [], failing=("/odds",))
    service = make_service(provider)

    with pytest.raises(NotFoundError):
        await service.match_details(1035)


@pytest.mark.asyncio
async def test_match_details_sub_call_failure_is_operation_error(provider):
    add_detail_routes(provider, [make_fixture(1035)], failing=("/fixtures/statistics",))
    service = make_service(provider)

    with pytest.raises(OperationError, match="Failed to fetch match details"):
        await service.match_details(1035)

    assert provider.calls_to("/fixtures/headtohead") == []


@pytest.mark.asyncio
async def test_match_details_skips_h2h_without_team_ids(provider):
    add_detail_routes(provider, [make_fixture(1035, home=(None, "Unregistered XI"))])
    service = make_service(provider)

    detail = await service.match_details(1035)

    assert detail.h2h == []
    assert provider.calls_to("/fixtures/headtohead") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("fixture_id", [None, "", "abc", "-4", 0])
async def test_match_details_requires_fixture_id(provider, fixture_id):
    service = make_service(provider)

    with pytest.raises(ValidationError):
        await service.match_details(fixture_id)


def test_filter_groups_without_filters_returns_everything():
    assert filter_groups([]) == []
