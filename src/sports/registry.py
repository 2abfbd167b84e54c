"""
Static sport registry and provider configuration.

Everything a fetch or a normalization needs to know about a sport lives in
lookup tables keyed by the canonical sport id:

- SPORTS: the immutable registry (id, slug, display name)
- PROFILES: market behaviour (draw allowed, market names, lines)
- ROUTES: upstream request shape (base URL, resource, credential, params)
- FALLBACK_DOMAINS: ordered alternate hosts per primary hostname

Adding a sport is a data change here, not a code change elsewhere.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urlsplit

from src.sports.models.schemas import EndpointCandidate, RequestFamily, Sport


# =============================================================================
# Sport registry
# =============================================================================

SOCCER = 1
BASKETBALL = 2
TENNIS = 3
BASEBALL = 4
HOCKEY = 5
RUGBY = 6
GOLF = 7
BOXING = 8
CRICKET = 9
MMA = 10
FORMULA_1 = 13
CYCLING = 14
AMERICAN_FOOTBALL = 16
RUGBY_LEAGUE = 17
VOLLEYBALL = 19
SNOOKER = 20
HANDBALL = 21
DARTS = 22
ESPORTS = 23
TABLE_TENNIS = 24
BADMINTON = 25
OLYMPICS = 26
FUTSAL = 27
BEACH_VOLLEYBALL = 28
BEACH_SOCCER = 29
MOTORSPORT = 30

_SPORT_ROWS = (
    (SOCCER, "soccer", "Soccer"),
    (BASKETBALL, "basketball", "Basketball"),
    (TENNIS, "tennis", "Tennis"),
    (BASEBALL, "baseball", "Baseball"),
    (HOCKEY, "hockey", "Ice Hockey"),
    (RUGBY, "rugby", "Rugby"),
    (GOLF, "golf", "Golf"),
    (BOXING, "boxing", "Boxing"),
    (CRICKET, "cricket", "Cricket"),
    (MMA, "mma", "MMA / UFC"),
    (FORMULA_1, "formula_1", "Formula 1"),
    (CYCLING, "cycling", "Cycling"),
    (AMERICAN_FOOTBALL, "american_football", "American Football"),
    (RUGBY_LEAGUE, "rugby_league", "Rugby League"),
    (VOLLEYBALL, "volleyball", "Volleyball"),
    (SNOOKER, "snooker", "Snooker"),
    (HANDBALL, "handball", "Handball"),
    (DARTS, "darts", "Darts"),
    (ESPORTS, "esports", "Esports"),
    (TABLE_TENNIS, "table_tennis", "Table Tennis"),
    (BADMINTON, "badminton", "Badminton"),
    (OLYMPICS, "olympics", "Olympics"),
    (FUTSAL, "futsal", "Futsal"),
    (BEACH_VOLLEYBALL, "beach_volleyball", "Beach Volleyball"),
    (BEACH_SOCCER, "beach_soccer", "Beach Soccer"),
    (MOTORSPORT, "motorsport", "Motorsport"),
)

SPORTS: tuple[Sport, ...] = tuple(Sport(id=i, slug=s, display_name=d) for i, s, d in _SPORT_ROWS)

_BY_ID: Mapping[int, Sport] = MappingProxyType({s.id: s for s in SPORTS})

# Slugs used by the UI and upstream feeds that differ from the canonical slug
_ALIASES = {
    "football": SOCCER,
    "mma-ufc": MMA,
    "ufc": MMA,
    "f1": FORMULA_1,
    "formula1": FORMULA_1,
    "ice-hockey": HOCKEY,
    "nhl": HOCKEY,
    "nba": BASKETBALL,
    "nfl": AMERICAN_FOOTBALL,
    "mlb": BASEBALL,
}


def _normalize_slug(slug: str) -> str:
    return slug.strip().lower().replace("-", "_").replace(" ", "_")


_BY_SLUG: Mapping[str, int] = MappingProxyType({
    **{s.slug: s.id for s in SPORTS},
    **{_normalize_slug(alias): sport_id for alias, sport_id in _ALIASES.items()},
})


def get_sports() -> list[Sport]:
    """Get the full sport registry in id order."""
    return list(SPORTS)


def get_sport(sport_id: int) -> Optional[Sport]:
    """Get a sport by canonical id."""
    return _BY_ID.get(sport_id)


def resolve_sport(ref: "int | str | None") -> Optional[Sport]:
    """
    Resolve a sport reference to its registry entry.

    Accepts a canonical id, a numeric string, a canonical slug or any known
    alias (hyphen and underscore spellings are equivalent).
    """
    if ref is None:
        return None
    if isinstance(ref, bool):
        return None
    if isinstance(ref, int):
        return _BY_ID.get(ref)
    text = str(ref).strip()
    if text.isdigit():
        return _BY_ID.get(int(text))
    sport_id = _BY_SLUG.get(_normalize_slug(text))
    return _BY_ID.get(sport_id) if sport_id is not None else None


# =============================================================================
# Market behaviour
# =============================================================================

@dataclass(frozen=True)
class SportProfile:
    """Market-shaping parameters for one sport."""
    draw_allowed: bool
    winner_market: str = "Match Winner"
    handicap_market: str = "Handicap"
    handicap_line: float = 1.5
    totals_unit: str = "Points"
    totals_line: float = 2.5
    # Individual-competitor fields (races, tournaments) list entrants instead of two sides
    field_event: bool = False


DEFAULT_PROFILE = SportProfile(draw_allowed=False)

PROFILES: Mapping[int, SportProfile] = MappingProxyType({
    SOCCER: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_market="Asian Handicap",
        handicap_line=0.5, totals_unit="Goals", totals_line=2.5,
    ),
    BASKETBALL: SportProfile(
        draw_allowed=False, winner_market="Moneyline", handicap_market="Point Spread",
        handicap_line=5.5, totals_unit="Points", totals_line=215.5,
    ),
    TENNIS: SportProfile(
        draw_allowed=False, handicap_market="Game Handicap", handicap_line=3.5,
        totals_unit="Games", totals_line=22.5,
    ),
    BASEBALL: SportProfile(
        draw_allowed=False, winner_market="Moneyline", handicap_market="Run Line",
        handicap_line=1.5, totals_unit="Runs", totals_line=8.5,
    ),
    HOCKEY: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_market="Puck Line",
        handicap_line=1.5, totals_unit="Goals", totals_line=5.5,
    ),
    RUGBY: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_line=7.5,
        totals_unit="Points", totals_line=45.5,
    ),
    RUGBY_LEAGUE: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_line=6.5,
        totals_unit="Points", totals_line=40.5,
    ),
    CRICKET: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_market="Runs Handicap",
        handicap_line=10.5, totals_unit="Runs", totals_line=300.5,
    ),
    HANDBALL: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_line=3.5,
        totals_unit="Goals", totals_line=55.5,
    ),
    FUTSAL: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_line=1.5,
        totals_unit="Goals", totals_line=5.5,
    ),
    BEACH_SOCCER: SportProfile(
        draw_allowed=True, winner_market="Match Result", handicap_line=1.5,
        totals_unit="Goals", totals_line=7.5,
    ),
    AMERICAN_FOOTBALL: SportProfile(
        draw_allowed=False, winner_market="Moneyline", handicap_market="Point Spread",
        handicap_line=3.5, totals_unit="Points", totals_line=45.5,
    ),
    VOLLEYBALL: SportProfile(
        draw_allowed=False, handicap_market="Set Handicap", handicap_line=1.5,
        totals_unit="Sets", totals_line=3.5,
    ),
    BEACH_VOLLEYBALL: SportProfile(
        draw_allowed=False, handicap_market="Set Handicap", handicap_line=1.5,
        totals_unit="Sets", totals_line=2.5,
    ),
    BOXING: SportProfile(
        draw_allowed=False, winner_market="Fight Winner", handicap_market="Method of Victory",
        handicap_line=0.5, totals_unit="Rounds", totals_line=9.5,
    ),
    MMA: SportProfile(
        draw_allowed=False, winner_market="Fight Winner", handicap_market="Method of Victory",
        handicap_line=0.5, totals_unit="Rounds", totals_line=2.5,
    ),
    FORMULA_1: SportProfile(
        draw_allowed=False, winner_market="Race Winner", handicap_market="Head to Head",
        handicap_line=0.5, totals_unit="Classified Finishers", totals_line=16.5, field_event=True,
    ),
    MOTORSPORT: SportProfile(
        draw_allowed=False, winner_market="Race Winner", handicap_market="Head to Head",
        handicap_line=0.5, totals_unit="Classified Finishers", totals_line=16.5, field_event=True,
    ),
    CYCLING: SportProfile(
        draw_allowed=False, winner_market="Stage Winner", handicap_market="Head to Head",
        handicap_line=0.5, totals_unit="Minutes Winning Margin", totals_line=0.5, field_event=True,
    ),
    GOLF: SportProfile(
        draw_allowed=False, winner_market="Tournament Winner", handicap_market="Head to Head",
        handicap_line=0.5, totals_unit="Strokes", totals_line=70.5, field_event=True,
    ),
    SNOOKER: SportProfile(
        draw_allowed=False, handicap_market="Frame Handicap", handicap_line=2.5,
        totals_unit="Frames", totals_line=9.5,
    ),
    DARTS: SportProfile(
        draw_allowed=False, handicap_market="Set Handicap", handicap_line=1.5,
        totals_unit="Legs", totals_line=10.5,
    ),
    TABLE_TENNIS: SportProfile(
        draw_allowed=False, handicap_market="Game Handicap", handicap_line=1.5,
        totals_unit="Games", totals_line=3.5,
    ),
    BADMINTON: SportProfile(
        draw_allowed=False, handicap_market="Game Handicap", handicap_line=1.5,
        totals_unit="Games", totals_line=2.5,
    ),
    ESPORTS: SportProfile(
        draw_allowed=False, handicap_market="Map Handicap", handicap_line=1.5,
        totals_unit="Maps", totals_line=2.5,
    ),
    OLYMPICS: DEFAULT_PROFILE,
})

# Substrings marking best-of-five tennis events
GRAND_SLAM_MARKERS = (
    "grand slam",
    "australian open",
    "french open",
    "roland garros",
    "wimbledon",
    "us open",
)
GRAND_SLAM_TOTALS_LINE = 36.5

CRICKET_FORMAT_LINES = MappingProxyType({"T20": 160.5, "ODI": 300.5, "Test": 350.5})


def profile_for(sport_id: int) -> SportProfile:
    """Get the market profile for a sport, with a no-draw team default."""
    return PROFILES.get(sport_id, DEFAULT_PROFILE)


def draw_allowed(sport_id: int) -> bool:
    return profile_for(sport_id).draw_allowed


def totals_line_for(sport_id: int, league_name: str = "") -> float:
    """Totals threshold for a sport, adjusted by competition where that matters."""
    profile = profile_for(sport_id)
    league = (league_name or "").lower()
    if sport_id == TENNIS and any(marker in league for marker in GRAND_SLAM_MARKERS):
        return GRAND_SLAM_TOTALS_LINE
    if sport_id == CRICKET:
        return CRICKET_FORMAT_LINES[cricket_format(league_name)]
    return profile.totals_line


def cricket_format(league_name: str) -> str:
    """Detect the cricket format (Test, T20, ODI) from a competition name."""
    league = (league_name or "").lower()
    if "test" in league:
        return "Test"
    if "t20" in league or "twenty20" in league or "ipl" in league or "big bash" in league:
        return "T20"
    return "ODI"


# =============================================================================
# Provider routes
# =============================================================================

# Query value placeholders, filled by the client at call time
TODAY = "{today}"
WINDOW_END = "{window_end}"
SEASON = "{season}"
NEXT = "{next}"


@dataclass(frozen=True)
class ProviderRoute:
    """How to query the upstream provider for one sport."""
    base_url: str
    resource: str
    family: RequestFamily
    credential_env: Optional[str] = None
    live_params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({"live": "true"}))
    upcoming_params: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"date": TODAY, "status": "NS", "season": SEASON})
    )
    id_param: str = "id"
    odds_resource: Optional[str] = None
    odds_id_param: Optional[str] = None

    @property
    def host(self) -> str:
        return urlsplit(self.base_url).hostname or ""

    def url(self, resource: Optional[str] = None) -> str:
        return f"{self.base_url}{resource or self.resource}"


def _frozen(params: dict) -> Mapping[str, str]:
    return MappingProxyType(dict(params))


_GAMES_UPCOMING = _frozen({"date": TODAY, "status": "NS", "season": SEASON})
_SCHEDULED_UPCOMING = _frozen({"status": "scheduled", "season": SEASON})
_DATE_WINDOW = _frozen({"from": TODAY, "to": WINDOW_END})

ROUTES: Mapping[int, ProviderRoute] = MappingProxyType({
    SOCCER: ProviderRoute(
        base_url="https://v3.football.api-sports.io",
        resource="/fixtures",
        family=RequestFamily.FIXTURES,
        credential_env="FOOTBALL_API_KEY",
        live_params=_frozen({"live": "all"}),
        upcoming_params=_frozen({"next": NEXT}),
        odds_resource="/odds",
        odds_id_param="fixture",
    ),
    BASKETBALL: ProviderRoute(
        base_url="https://v1.basketball.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        credential_env="BASKETBALL_API_KEY",
        live_params=_frozen({"date": TODAY, "status": "Q1-Q2-Q3-Q4-OT-BT-HT"}),
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    TENNIS: ProviderRoute(
        base_url="https://v1.tennis.api-sports.io",
        resource="/matches",
        family=RequestFamily.MATCHES,
        credential_env="TENNIS_API_KEY",
        upcoming_params=_DATE_WINDOW,
    ),
    BASEBALL: ProviderRoute(
        base_url="https://v1.baseball.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        credential_env="BASEBALL_API_KEY",
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    HOCKEY: ProviderRoute(
        base_url="https://v1.hockey.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        credential_env="HOCKEY_API_KEY",
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    RUGBY: ProviderRoute(
        base_url="https://v1.rugby.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        live_params=_frozen({"status": "LIVE"}),
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    GOLF: ProviderRoute(
        base_url="https://v1.golf.api-sports.io",
        resource="/tournaments",
        family=RequestFamily.TOURNAMENTS,
        upcoming_params=_SCHEDULED_UPCOMING,
    ),
    BOXING: ProviderRoute(
        base_url="https://v1.boxing.api-sports.io",
        resource="/fights",
        family=RequestFamily.FIGHTS,
        credential_env="BOXING_API_KEY",
        live_params=_frozen({"status": "live"}),
        upcoming_params=_SCHEDULED_UPCOMING,
    ),
    CRICKET: ProviderRoute(
        base_url="https://v1.cricket.api-sports.io",
        resource="/fixtures",
        family=RequestFamily.FIXTURES,
        credential_env="CRICKET_API_KEY",
        live_params=_frozen({"live": "true", "status": "live"}),
        upcoming_params=_DATE_WINDOW,
    ),
    MMA: ProviderRoute(
        base_url="https://v1.mma.api-sports.io",
        resource="/fights",
        family=RequestFamily.FIGHTS,
        credential_env="MMA_API_KEY",
        live_params=_frozen({"status": "live"}),
        upcoming_params=_SCHEDULED_UPCOMING,
    ),
    FORMULA_1: ProviderRoute(
        base_url="https://v1.formula-1.api-sports.io",
        resource="/races",
        family=RequestFamily.RACES,
        credential_env="FORMULA1_API_KEY",
        live_params=_frozen({"status": "live"}),
        upcoming_params=_SCHEDULED_UPCOMING,
    ),
    CYCLING: ProviderRoute(
        base_url="https://v1.cycling.api-sports.io",
        resource="/races",
        family=RequestFamily.RACES,
        live_params=_frozen({"status": "inprogress"}),
        upcoming_params=_SCHEDULED_UPCOMING,
    ),
    AMERICAN_FOOTBALL: ProviderRoute(
        base_url="https://v1.american-football.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    VOLLEYBALL: ProviderRoute(
        base_url="https://v1.volleyball.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
    HANDBALL: ProviderRoute(
        base_url="https://v1.handball.api-sports.io",
        resource="/games",
        family=RequestFamily.GAMES,
        upcoming_params=_GAMES_UPCOMING,
        odds_resource="/odds",
        odds_id_param="game",
    ),
})


def route_for(sport_id: int) -> Optional[ProviderRoute]:
    """Get the provider route for a sport, or None if no provider covers it."""
    return ROUTES.get(sport_id)


# =============================================================================
# Fallback domains
# =============================================================================

def _sportsdata_family(name: str, version: str = "v1") -> tuple[str, ...]:
    return (
        f"api-{name}.sportsdata.io/{version}",
        f"{name}-feeds.api-sports.io/{version}",
        f"{name}.api-sports.io",
        f"api-{name}.sportsdataapi.com/{version}",
        f"alt-{name}.apisports.io/{version}",
        f"{name}-live.api-sports.io/{version}",
    )


def _provider_family(name: str) -> tuple[str, ...]:
    return (
        f"api.{name}-api.io/v1",
        f"api-{name}.sports-data.io/v1",
        f"{name}-feeds.api-sports.io/v1",
        f"{name}.api-sports.io",
        f"alt-{name}.api-sports.io/v1",
        f"api-{name}.sportsdata-provider.com/v1",
    )


FALLBACK_DOMAINS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "v1.tennis.api-sports.io": _sportsdata_family("tennis"),
    "v1.cricket.api-sports.io": _sportsdata_family("cricket"),
    "v3.football.api-sports.io": (
        "api-football.sportsdata.io/v3",
        "football-feeds.api-sports.io/v3",
        "football.api-sports.io/v3",
        "api-football.sportsdataapi.com/v3",
        "alt-football.apisports.io/v3",
        "football-live.api-sports.io/v3",
    ),
    "v1.basketball.api-sports.io": _sportsdata_family("basketball"),
    "v1.baseball.api-sports.io": _sportsdata_family("baseball"),
    "v1.hockey.api-sports.io": _sportsdata_family("hockey"),
    "v1.rugby.api-sports.io": _sportsdata_family("rugby"),
    "v1.formula-1.api-sports.io": (
        "api-formula1.sportsdata.io/v1",
        "formula1-feeds.api-sports.io/v1",
        "formula1.api-sports.io",
        "alt-formula1.api-sports.io/v1",
        "api-formula1.sportsdata-provider.com/v1",
    ),
    "v1.mma.api-sports.io": _provider_family("mma"),
    "v1.golf.api-sports.io": _provider_family("golf"),
    "v1.boxing.api-sports.io": _provider_family("boxing"),
    "v1.american-football.api-sports.io": _provider_family("american-football"),
    "v1.cycling.api-sports.io": _provider_family("cycling"),
})


def endpoint_candidates(
    url: str,
    fallback_domains: Optional[Mapping[str, tuple[str, ...]]] = None,
) -> list[EndpointCandidate]:
    """
    Ordered base URLs to try for a request: the primary first, then fallbacks.

    Base URLs are `scheme://host[/version]`; the path and query are rewritten
    onto them by the resilience engine.
    """
    table = FALLBACK_DOMAINS if fallback_domains is None else fallback_domains
    parts = urlsplit(url)
    scheme = parts.scheme or "https"
    host = parts.hostname or ""
    candidates = [EndpointCandidate(base_url=f"{scheme}://{parts.netloc}", is_primary=True)]
    for domain in table.get(host, ()):
        candidates.append(EndpointCandidate(base_url=f"{scheme}://{domain}"))
    return candidates
