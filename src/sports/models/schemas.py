"""
Sports data models and schemas.

Defines the core data structures for:
- The static sport registry entry
- Canonical events, markets and outcomes (provider-agnostic)
- Odds-endpoint records
- Cache entries and endpoint candidates used by the fetch layer
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventStatus(str, Enum):
    """Canonical event status."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    UPCOMING = "upcoming"


class FetchMode(str, Enum):
    """Kind of provider query."""
    LIVE = "live"
    UPCOMING = "upcoming"
    BY_ID = "byId"


class RequestFamily(str, Enum):
    """Request shape of an upstream API (nouns and query parameters differ)."""
    FIXTURES = "fixtures"
    GAMES = "games"
    MATCHES = "matches"
    RACES = "races"
    FIGHTS = "fights"
    TOURNAMENTS = "tournaments"


@dataclass(frozen=True)
class Sport:
    """A sport in the static registry. `id` is the join key everywhere."""
    id: int
    slug: str
    display_name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "slug": self.slug, "displayName": self.display_name}


# =============================================================================
# Canonical model
# =============================================================================

class CanonicalModel(BaseModel):
    """Base for canonical output: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Outcome(CanonicalModel):
    """A single betting outcome (e.g., Team A wins)."""
    id: str
    name: str
    odds: float = Field(ge=1.0)
    probability: float = Field(ge=0.0, le=1.0)

    @staticmethod
    def implied_probability(odds: float) -> float:
        """Convert Decimal odds to implied probability, rounded to 2 decimals."""
        if odds <= 0:
            return 0.0
        return min(1.0, round(1 / odds, 2))

    @classmethod
    def from_decimal(
        cls,
        id: str,
        name: str,
        decimal_odds: float,
        probability: Optional[float] = None,
    ) -> "Outcome":
        """Create Outcome from Decimal odds; probability defaults to 1/odds."""
        if probability is None:
            probability = cls.implied_probability(decimal_odds)
        return cls(id=id, name=name, odds=decimal_odds, probability=probability)


class Market(CanonicalModel):
    """A betting market with at least two outcomes."""
    id: str
    name: str
    outcomes: list[Outcome] = Field(min_length=2)

    def has_draw(self) -> bool:
        return any(is_draw_name(o.name) for o in self.outcomes)


class Event(CanonicalModel):
    """
    A single sports event (game/match/race/fight), normalized from any provider.

    `id` is unique within one normalization batch only.
    """
    id: str
    sport_id: int
    league_name: str
    home_team: str
    away_team: str
    start_time_iso: str
    status: EventStatus
    is_live: bool
    score: Optional[str] = None
    markets: list[Market] = Field(default_factory=list)

    def get_display_name(self) -> str:
        """Get human-readable event name."""
        return f"{self.home_team} vs {self.away_team}"


class OddsData(CanonicalModel):
    """One market of bookmaker odds returned by the odds-by-event endpoint."""
    provider_id: str
    event_id: str
    market_id: str
    market_name: str
    outcomes: list[Outcome]


# =============================================================================
# Fetch-layer types
# =============================================================================

@dataclass
class CacheEntry:
    """Last known response for a fetch key."""
    key: str
    data: Any
    timestamp_ms: int
    success: bool = True

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp_ms

    def is_fresh(self, now_ms: int, freshness_window_ms: float) -> bool:
        return self.age_ms(now_ms) < freshness_window_ms


@dataclass(frozen=True)
class EndpointCandidate:
    """A base URL to try, in order. The first candidate is the primary."""
    base_url: str
    is_primary: bool = False


# =============================================================================
# Utility Functions
# =============================================================================

DRAW_NAMES = frozenset({"draw", "tie", "x"})


def is_draw_name(name: str) -> bool:
    """Check if an outcome name denotes a draw/tie."""
    return name.strip().lower() in DRAW_NAMES
