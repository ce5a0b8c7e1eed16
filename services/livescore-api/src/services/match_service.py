"""
Match Service — Orchestrates provider calls for each listing.

One method per public query. Provider and configuration failures are
logged here with full context and re-raised as OperationError carrying a
message that is safe to show a client. ValidationError and NotFoundError
pass through unchanged.
"""

import asyncio
from datetime import datetime
from typing import Optional

import structlog

from ..aggregation.aggregator import FeaturedIdOrdering, TopLeagueOrdering, aggregate
from ..cache.result_cache import ResultCache
from ..config import Settings
from ..errors import ConfigError, NotFoundError, OperationError, UpstreamError, ValidationError
from ..metrics import LIVE_CACHE_LOOKUPS
from ..models import LeagueGroup, MatchDetail, RawFixture
from ..upstream.client import ApiFootballClient

logger = structlog.get_logger(__name__)

LIVE_CACHE_KEY = "live-matches"

# Terminal statuses: full time, after extra time, decided on penalties
FINISHED_STATUSES = ("FT", "AET", "PEN")
NOT_STARTED = "NS"
H2H_LAST = 5


class MatchService:
    """
    Query operations behind the /matches routes.

    The cache is injected so its lifetime is owned by the application,
    not by this module.
    """

    def __init__(self, client: ApiFootballClient, cache: ResultCache, settings: Settings):
        self.client = client
        self.cache = cache
        self.settings = settings
        self.featured_ordering = FeaturedIdOrdering(settings.featured_league_ids)
        self.top_league_ordering = TopLeagueOrdering(settings.top_leagues)

    @property
    def timezone(self) -> str:
        return self.settings.upstream.timezone

    # === Listings ===

    async def live_matches(
        self,
        date: Optional[str] = None,
        league: Optional[str] = None,
        country: Optional[str] = None,
    ) -> list[LeagueGroup]:
        """
        In-progress fixtures grouped by league.

        The cache key does not include `date`: the provider's live feed is
        always "now", so the argument is accepted but not forwarded.
        """
        groups = self.cache.get(LIVE_CACHE_KEY)
        if groups is not None:
            LIVE_CACHE_LOOKUPS.labels(result="hit").inc()
            logger.debug("live_cache_hit", leagues=len(groups))
        else:
            LIVE_CACHE_LOOKUPS.labels(result="miss").inc()
            fixtures = await self._fetch(
                "live matches",
                self.client.get_fixtures(live="all", timezone=self.timezone),
            )
            groups = aggregate(fixtures, self.featured_ordering)
            self.cache.put(LIVE_CACHE_KEY, groups, self.settings.live_ttl_seconds)
            logger.info(
                "live_matches_refreshed",
                date=date,
                fixtures=len(fixtures),
                leagues=len(groups),
            )

        return filter_groups(groups, league=league, country=country)

    async def scheduled_matches(self, date: Optional[str]) -> list[LeagueGroup]:
        """Not-started fixtures on `date`, featured leagues first."""
        date = require_date(date)
        fixtures = await self._fetch(
            "scheduled matches",
            self.client.get_fixtures(status=NOT_STARTED, date=date, timezone=self.timezone),
        )
        return aggregate(fixtures, self.featured_ordering)

    async def all_matches(self, date: Optional[str]) -> list[LeagueGroup]:
        """Every fixture on `date`, top leagues first."""
        date = require_date(date)
        fixtures = await self._fetch(
            "all matches",
            self.client.get_fixtures(date=date, timezone=self.timezone),
        )
        return aggregate(fixtures, self.top_league_ordering)

    async def finished_matches(self, date: Optional[str]) -> list[LeagueGroup]:
        """Fixtures on `date` in any terminal status, top leagues first."""
        date = require_date(date)
        batches = await self._fetch(
            "finished matches",
            gather_or_cancel(*[
                self.client.get_fixtures(date=date, timezone=self.timezone, status=status)
                for status in FINISHED_STATUSES
            ]),
        )
        fixtures: list[RawFixture] = [fx for batch in batches for fx in batch]
        logger.debug(
            "finished_matches_fetched",
            date=date,
            per_status=dict(zip(FINISHED_STATUSES, (len(b) for b in batches))),
        )
        return aggregate(fixtures, self.top_league_ordering)

    # === Details ===

    async def match_details(self, fixture_id) -> MatchDetail:
        """
        Overview, lineups, statistics and odds (concurrently), then the last
        five head-to-head meetings of the two teams.

        The overview decides first: an unknown fixture is NotFoundError even
        if a sibling call failed.
        """
        fixture_id = require_fixture_id(fixture_id)

        overview_task = asyncio.ensure_future(self.client.get_fixtures(id=fixture_id))
        sub_tasks = [
            asyncio.ensure_future(self.client.get_lineups(fixture_id)),
            asyncio.ensure_future(self.client.get_statistics(fixture_id)),
            asyncio.ensure_future(self.client.get_odds(fixture_id)),
        ]
        try:
            overview = await self._fetch("match details", overview_task)
        except BaseException:
            cancel_all(sub_tasks)
            raise

        if not overview:
            cancel_all(sub_tasks)
            logger.info("fixture_not_found", fixture_id=fixture_id)
            raise NotFoundError(f"Fixture {fixture_id} not found")

        lineups, statistics, odds = await self._fetch(
            "match details", gather_or_cancel(*sub_tasks)
        )

        fixture = overview[0]
        h2h = []
        if fixture.home.id is not None and fixture.away.id is not None:
            h2h = await self._fetch(
                "match details",
                self.client.get_head_to_head(fixture.home.id, fixture.away.id, last=H2H_LAST),
            )
        else:
            logger.info("h2h_skipped_missing_team_ids", fixture_id=fixture_id)

        return MatchDetail(
            fixture=fixture,
            lineups=lineups or [],
            statistics=statistics or [],
            odds=odds[0] if odds else None,
            h2h=h2h or [],
        )

    # === Internals ===

    async def _fetch(self, what: str, awaitable):
        """Await provider work, translating internal failures to OperationError."""
        try:
            return await awaitable
        except ConfigError as e:
            logger.error("provider_not_configured", operation=what, error=e.message)
            raise OperationError(f"Failed to fetch {what}. Please try again later.") from e
        except UpstreamError as e:
            logger.error(
                "upstream_request_failed",
                operation=what,
                error=e.message,
                status_code=e.status_code,
                auth_failed=e.auth_failed,
            )
            if e.auth_failed:
                raise OperationError("Authentication failed: Check your API key") from e
            raise OperationError(f"Failed to fetch {what}. Please try again later.") from e


async def gather_or_cancel(*aws):
    """
    Join-all fan-out. On the first failure the remaining calls are
    cancelled so no further provider requests are spent on a lost result.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        cancel_all(tasks)
        raise


def cancel_all(tasks):
    """Cancel unfinished tasks; consume the outcome of finished ones."""
    for task in tasks:
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            task.exception()


def require_date(date: Optional[str]) -> str:
    if not date or not date.strip():
        raise ValidationError("Date query parameter is required (YYYY-MM-DD)")
    date = date.strip()
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Invalid date '{date}', expected YYYY-MM-DD")
    return date


def require_fixture_id(fixture_id) -> int:
    if fixture_id is None or str(fixture_id).strip() == "":
        raise ValidationError("fixtureId query parameter is required")
    try:
        value = int(str(fixture_id).strip())
    except ValueError:
        raise ValidationError(f"Invalid fixtureId '{fixture_id}', expected a positive integer")
    if value <= 0:
        raise ValidationError(f"Invalid fixtureId '{fixture_id}', expected a positive integer")
    return value


def filter_groups(
    groups: list[LeagueGroup],
    league: Optional[str] = None,
    country: Optional[str] = None,
) -> list[LeagueGroup]:
    """Case-insensitive substring filters on league name and country."""
    result = list(groups)
    if league:
        needle = league.casefold()
        result = [g for g in result if needle in g.league.name.casefold()]
    if country:
        needle = country.casefold()
        result = [g for g in result if needle in g.league.country.casefold()]
    return result
