"""
Typed records for provider fixtures and the shapes the API returns.

RawFixture mirrors one item of the provider's /fixtures response. It is
built once at the client boundary, after schema validation; everything
downstream works on these records instead of raw dicts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

INTERNATIONAL = "International"
UNKNOWN_VENUE = "Unknown venue"


def parse_kickoff(value: str) -> datetime:
    """Parse a provider ISO-8601 timestamp (offset or trailing Z); naive means UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class LeagueInfo:
    id: Optional[int]
    name: str
    country: str = INTERNATIONAL
    logo: Optional[str] = None
    flag: Optional[str] = None
    season: Optional[int] = None

    @property
    def key(self) -> str:
        """Grouping key: name|country."""
        return f"{self.name}|{self.country}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "logo": self.logo,
            "flag": self.flag,
            "season": self.season,
        }


@dataclass(frozen=True)
class FixtureStatus:
    long: Optional[str]
    short: Optional[str]
    elapsed: Optional[int]

    def to_dict(self) -> dict:
        return {"long": self.long, "short": self.short, "elapsed": self.elapsed}


@dataclass(frozen=True)
class Team:
    id: Optional[int]
    name: Optional[str]
    logo: Optional[str] = None
    winner: Optional[bool] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "winner": self.winner,
        }


@dataclass(frozen=True)
class RawFixture:
    """One provider fixture, exactly as received (minus unknown fields)."""
    fixture_id: int
    date: str
    kickoff: datetime
    status: FixtureStatus
    venue: Optional[dict]
    league: LeagueInfo
    home: Team
    away: Team
    goals: dict
    score: dict
    events: tuple = ()

    @classmethod
    def from_payload(cls, item: dict) -> "RawFixture":
        """
        Build from a schema-valid provider item.
        Raises ValueError/KeyError/TypeError if the item is unusable.
        """
        fixture = item["fixture"]
        league = item["league"]
        teams = item["teams"]
        status = fixture.get("status") or {}

        return cls(
            fixture_id=int(fixture["id"]),
            date=fixture["date"],
            kickoff=parse_kickoff(fixture["date"]),
            status=FixtureStatus(
                long=status.get("long"),
                short=status.get("short"),
                elapsed=status.get("elapsed"),
            ),
            venue=fixture.get("venue"),
            league=LeagueInfo(
                id=league.get("id"),
                name=league["name"],
                country=league.get("country") or INTERNATIONAL,
                logo=league.get("logo"),
                flag=league.get("flag"),
                season=league.get("season"),
            ),
            home=_team(teams["home"]),
            away=_team(teams["away"]),
            goals=item.get("goals") or {"home": None, "away": None},
            score=item.get("score") or {},
            events=tuple(item.get("events") or ()),
        )

    @property
    def venue_name(self) -> str:
        return (self.venue or {}).get("name") or UNKNOWN_VENUE


def _team(data: dict) -> Team:
    return Team(
        id=data.get("id"),
        name=data.get("name"),
        logo=data.get("logo"),
        winner=data.get("winner"),
    )


@dataclass(frozen=True)
class Match:
    """Simplified projection of a RawFixture used in league listings."""
    id: int
    status: Optional[str]
    elapsed: int
    venue: str
    date: str
    kickoff: datetime
    home: Team
    away: Team
    goals: dict
    halftime: Optional[dict]
    fulltime: Optional[dict]
    events: tuple = ()

    @classmethod
    def from_fixture(cls, fixture: RawFixture) -> "Match":
        return cls(
            id=fixture.fixture_id,
            status=fixture.status.short,
            elapsed=fixture.status.elapsed or 0,
            venue=fixture.venue_name,
            date=fixture.date,
            kickoff=fixture.kickoff,
            home=fixture.home,
            away=fixture.away,
            goals=fixture.goals,
            halftime=fixture.score.get("halftime"),
            fulltime=fixture.score.get("fulltime"),
            events=fixture.events,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "elapsed": self.elapsed,
            "venue": self.venue,
            "date": self.date,
            "teams": {
                "home": self.home.to_dict(),
                "away": self.away.to_dict(),
            },
            "score": {
                "current": {
                    "home": self.goals.get("home"),
                    "away": self.goals.get("away"),
                },
                "halftime": self.halftime,
                "fulltime": self.fulltime,
            },
            "events": list(self.events),
        }


@dataclass(frozen=True)
class LeagueGroup:
    league: LeagueInfo
    matches: tuple[Match, ...] = ()

    @property
    def key(self) -> str:
        return self.league.key

    @property
    def earliest_kickoff(self) -> datetime:
        return self.matches[0].kickoff

    def to_dict(self) -> dict:
        return {
            "league": self.league.to_dict(),
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass(frozen=True)
class MatchDetail:
    """Overview, lineups, statistics, odds and head-to-head for one fixture."""
    fixture: RawFixture
    lineups: list = field(default_factory=list)
    statistics: list = field(default_factory=list)
    odds: Optional[dict] = None
    h2h: list = field(default_factory=list)

    def to_dict(self) -> dict:
        fx = self.fixture
        return {
            "fixture": {
                "id": fx.fixture_id,
                "date": fx.date,
                "venue": fx.venue,
                "status": fx.status.to_dict(),
                "teams": {"home": fx.home.to_dict(), "away": fx.away.to_dict()},
                "goals": fx.goals,
                "score": fx.score,
                "league": fx.league.to_dict(),
                "events": list(fx.events),
            },
            "lineups": self.lineups,
            "statistics": self.statistics,
            "odds": self.odds,
            "h2h": self.h2h,
        }


def serialize_groups(groups: list[LeagueGroup]) -> list[dict[str, Any]]:
    return [g.to_dict() for g in groups]
