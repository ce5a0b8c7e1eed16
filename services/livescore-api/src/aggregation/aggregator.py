"""
Aggregator — Groups fixtures into league listings.

Fixtures are grouped by league name and country, matches inside a group
are ordered by kickoff, and the groups themselves are ordered by one of
two priority rules:

- FeaturedIdOrdering: listed provider league ids first (in list order),
  then everything else by earliest kickoff.
- TopLeagueOrdering: listed "name|country" keys first (in list order),
  then everything else alphabetically by league name.
"""

from typing import Iterable, Protocol, Sequence

import structlog

from ..models import LeagueGroup, LeagueInfo, Match, RawFixture

logger = structlog.get_logger(__name__)


class GroupOrdering(Protocol):
    def sort(self, groups: list[LeagueGroup]) -> list[LeagueGroup]:
        ...


class FeaturedIdOrdering:
    """Featured league ids first, then by earliest kickoff."""

    def __init__(self, league_ids: Sequence[int] = ()):
        self._rank = {}
        for position, league_id in enumerate(league_ids):
            self._rank.setdefault(league_id, position)

    def sort(self, groups: list[LeagueGroup]) -> list[LeagueGroup]:
        featured = [g for g in groups if g.league.id in self._rank]
        others = [g for g in groups if g.league.id not in self._rank]
        featured.sort(key=lambda g: (self._rank[g.league.id], g.earliest_kickoff))
        others.sort(key=lambda g: g.earliest_kickoff)
        return featured + others


class TopLeagueOrdering:
    """Top "name|country" keys first, then alphabetical by league name."""

    def __init__(self, league_keys: Sequence[str] = ()):
        self._rank = {}
        for position, key in enumerate(league_keys):
            self._rank.setdefault(key, position)

    def sort(self, groups: list[LeagueGroup]) -> list[LeagueGroup]:
        top = [g for g in groups if g.key in self._rank]
        others = [g for g in groups if g.key not in self._rank]
        top.sort(key=lambda g: self._rank[g.key])
        others.sort(key=lambda g: (g.league.name.casefold(), g.league.name))
        return top + others


def group_fixtures(fixtures: Iterable[RawFixture]) -> list[LeagueGroup]:
    """
    Group fixtures by league key, in first-seen order.
    The first fixture of a league seeds its metadata.
    """
    leagues: dict[str, LeagueInfo] = {}
    matches: dict[str, list[Match]] = {}

    for fixture in fixtures:
        key = fixture.league.key
        if key not in leagues:
            leagues[key] = fixture.league
            matches[key] = []
        matches[key].append(Match.from_fixture(fixture))

    # sorted() is stable: equal kickoffs keep encounter order
    return [
        LeagueGroup(
            league=leagues[key],
            matches=tuple(sorted(matches[key], key=lambda m: m.kickoff)),
        )
        for key in leagues
    ]


def aggregate(fixtures: Iterable[RawFixture], ordering: GroupOrdering) -> list[LeagueGroup]:
    """Group fixtures by league and order the groups."""
    fixtures = list(fixtures)
    groups = ordering.sort(group_fixtures(fixtures))
    logger.debug(
        "fixtures_aggregated",
        fixtures=len(fixtures),
        leagues=len(groups),
        ordering=type(ordering).__name__,
    )
    return groups
