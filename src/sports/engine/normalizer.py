"""
Event normalization.

Turns provider-specific raw items into canonical Events:

1. Pick a field extractor for the sport (team, tennis, cricket, race,
   tournament, stage, fight) and pull id/teams/league/date/status/score
   through ordered candidate paths
2. Map the provider status through a fixed table
3. Use real bookmaker odds when the item carries any known odds shape,
   otherwise generate synthetic markets
4. Enforce the draw rule on the match-winner market

Normalization never raises on data shape and is a pure function of its input.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import structlog

from src.sports.engine.extract import (
    as_dict,
    as_float,
    as_list,
    as_str,
    dig,
    first_of,
    first_str,
    parse_start_time,
    slugify,
    unwrap_response,
)
from src.sports.engine.synthetic import SyntheticMarketGenerator
from src.sports.models.schemas import (
    Event,
    EventStatus,
    Market,
    OddsData,
    Outcome,
    Sport,
    is_draw_name,
)
from src.sports.registry import (
    BOXING,
    CRICKET,
    CYCLING,
    FORMULA_1,
    GOLF,
    MMA,
    MOTORSPORT,
    TENNIS,
    profile_for,
    resolve_sport,
)

logger = structlog.get_logger()

PROVIDER_ID = "api-sports"


# =============================================================================
# Status mapping
# =============================================================================

LIVE_STATUSES = frozenset({
    "1H", "2H", "HT", "ET", "BT", "P", "LIVE", "IN PLAY", "INPLAY", "IN_PLAY",
    "BREAK", "IN_PROGRESS", "INPROGRESS",
})
FINISHED_STATUSES = frozenset({
    "FT", "AET", "PEN", "FINISHED", "AFTER PENALTIES", "AFTER EXTRA TIME", "COMPLETED",
})


def map_status(raw: str, is_live: bool = False) -> EventStatus:
    """
    Map a provider status string to a canonical status.

    Unrecognized strings are `scheduled`, or `live` when the item came from a
    live query (in-play period codes like Q3 are not worth enumerating).
    """
    key = (raw or "").strip().upper()
    if key in LIVE_STATUSES:
        return EventStatus.LIVE
    if key in FINISHED_STATUSES:
        return EventStatus.FINISHED
    return EventStatus.LIVE if is_live else EventStatus.SCHEDULED


# =============================================================================
# Field extraction
# =============================================================================

ID_PATHS = ("fixture.id", "id", "game.id", "match.id", "event_id", "race.id", "fight.id")
LEAGUE_PATHS = ("league.name", "tournament.name", "competition.name", "category.name")
DATE_PATHS = ("fixture.date", "date", "game.date", "startTime", "start_time", "fixture.timestamp", "timestamp")
STATUS_PATHS = ("fixture.status.short", "status.short", "status.long", "game.status.short", "status")
HOME_PATHS = ("teams.home.name", "home.name", "homeTeam.name", "home_team", "homeTeam")
AWAY_PATHS = ("teams.away.name", "away.name", "awayTeam.name", "away_team", "awayTeam")

# Winner bets as providers name them
WINNER_BET_NAMES = frozenset({
    "match winner", "winner", "home/away", "3way result", "1x2", "match result",
    "moneyline", "fight winner", "race winner", "tournament winner", "stage winner",
    "outright winner", "to win",
})
HOME_ALIASES = frozenset({"home", "1"})
AWAY_ALIASES = frozenset({"away", "2"})


@dataclass
class RawEventFields:
    """What a sport extractor pulls out of one raw item."""
    id: str
    home: str
    away: str
    league: str
    start_time: str
    status: str
    score: Optional[str] = None
    competitors: list[str] = field(default_factory=list)
    # Provider-priced entrants for field events: (name, odds)
    competitor_odds: list[tuple[str, float]] = field(default_factory=list)


def _league_name(item: dict, default: str = "Unknown League") -> str:
    league = first_str(item, *LEAGUE_PATHS, default=default)
    country = first_str(item, "league.country")
    # Same name in several countries
    if league == "Premier League" and country and country != "England":
        league = f"{league} ({country})"
    return league


def _pair_score(home: Any, away: Any) -> Optional[str]:
    home_text, away_text = as_str(home), as_str(away)
    if not home_text and not away_text:
        return None
    return f"{home_text or '0'} - {away_text or '0'}"


def _team_score(item: dict) -> Optional[str]:
    for home_path, away_path in (
        ("goals.home", "goals.away"),
        ("scores.home.total", "scores.away.total"),
        ("scores.home", "scores.away"),
        ("score.home", "score.away"),
    ):
        score = _pair_score(dig(item, home_path), dig(item, away_path))
        if score:
            return score
    return None


def _person_name(entry: Any) -> str:
    entry = as_dict(entry)
    first, last = as_str(entry.get("firstname")), as_str(entry.get("lastname"))
    if first or last:
        return " ".join(part for part in (first, last) if part)
    return first_str(entry, "name", "driver.name", "player.name", "rider.name")


def _entrants(item: dict, key: str) -> tuple[list[str], list[tuple[str, float]]]:
    """Entrant names, plus (name, odds) pairs where the provider priced them."""
    names: list[str] = []
    priced: list[tuple[str, float]] = []
    for entry in as_list(item.get(key)):
        name = _person_name(entry)
        if not name:
            continue
        names.append(name)
        odds = as_float(first_of(entry, "odds", "odd", "price"))
        if odds is not None and odds >= 1.0:
            priced.append((name, odds))
    return names, priced


class EventNormalizer:
    """
    Provider payloads in, canonical Events out.

    Usage:
        normalizer = EventNormalizer()
        events = normalizer.normalize(raw_items, "football", is_live=False)
    """

    def __init__(self, generator: Optional[SyntheticMarketGenerator] = None):
        self.generator = generator or SyntheticMarketGenerator()
        self.logger = logger.bind(component="normalizer")

        self._extractors: dict[int, Callable[[dict, Sport, int], RawEventFields]] = {
            TENNIS: self._tennis_fields,
            CRICKET: self._cricket_fields,
            FORMULA_1: self._race_fields,
            MOTORSPORT: self._race_fields,
            GOLF: self._tournament_fields,
            CYCLING: self._stage_fields,
            BOXING: self._fight_fields,
            MMA: self._fight_fields,
        }

    # =========================================================================
    # Public API
    # =========================================================================

    def normalize(self, raw: Any, sport_slug: "str | int", is_live: bool) -> list[Event]:
        """
        Normalize a raw payload (item list or response envelope) for a sport.

        Unknown sports yield an empty list. Non-object items are skipped.
        Event ids are made unique within the batch.
        """
        sport = resolve_sport(sport_slug)
        if sport is None:
            self.logger.warning("Unknown sport", sport=sport_slug)
            return []

        events: list[Event] = []
        used_ids: set[str] = set()
        for index, item in enumerate(unwrap_response(raw)):
            if not isinstance(item, dict):
                continue
            event = self.normalize_item(item, sport, is_live, index)

            if event.id in used_ids:
                suffix = 2
                while f"{event.id}-{suffix}" in used_ids:
                    suffix += 1
                event = event.model_copy(update={"id": f"{event.id}-{suffix}"})
            used_ids.add(event.id)
            events.append(event)

        self.logger.debug("Normalized", sport=sport.slug, count=len(events), live=is_live)
        return events

    def normalize_item(self, item: dict, sport: Sport, is_live: bool, index: int = 0) -> Event:
        extractor = self._extractors.get(sport.id, self._team_fields)
        fields = extractor(item, sport, index)

        status = map_status(fields.status, is_live)
        event_is_live = status == EventStatus.LIVE
        score = fields.score if status in (EventStatus.LIVE, EventStatus.FINISHED) else None

        return Event(
            id=fields.id,
            sport_id=sport.id,
            league_name=fields.league,
            home_team=fields.home,
            away_team=fields.away,
            start_time_iso=fields.start_time,
            status=status,
            is_live=event_is_live,
            score=score,
            markets=self._markets(item, sport, fields),
        )

    def transform_odds(self, raw: Any, event_id: str) -> list[OddsData]:
        """
        Odds-endpoint payload to OddsData, one per bet of the first bookmaker.
        """
        items = unwrap_response(raw)
        if not items:
            return []
        bookmaker = as_dict(first_of(items[0], "bookmakers.0"))

        results: list[OddsData] = []
        for bet in as_list(bookmaker.get("bets")):
            name = as_str(dig(bet, "name"))
            if not name:
                continue
            market_id = f"{event_id}-market-{slugify(name)}"
            outcomes = []
            for value in as_list(dig(bet, "values")):
                label = as_str(dig(value, "value"))
                odds = as_float(dig(value, "odd"))
                if not label or odds is None or odds < 1.0:
                    continue
                outcomes.append(Outcome.from_decimal(f"{market_id}-outcome-{slugify(label)}", label, odds))
            if outcomes:
                results.append(OddsData(
                    provider_id=PROVIDER_ID,
                    event_id=event_id,
                    market_id=market_id,
                    market_name=name,
                    outcomes=outcomes,
                ))
        return results

    # =========================================================================
    # Sport extractors
    # =========================================================================

    def _common(self, item: dict, sport: Sport, index: int) -> dict:
        return {
            "id": first_str(item, *ID_PATHS, default=f"{sport.slug}-{index}"),
            "league": _league_name(item),
            "start_time": parse_start_time(first_of(item, *DATE_PATHS)),
            "status": first_str(item, *STATUS_PATHS),
        }

    def _team_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        return RawEventFields(
            **self._common(item, sport, index),
            home=first_str(item, *HOME_PATHS, default="Home Team"),
            away=first_str(item, *AWAY_PATHS, default="Away Team"),
            score=_team_score(item),
        )

    def _tennis_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        common = self._common(item, sport, index)
        common["league"] = _league_name(item, default="Tennis Tournament")
        score = first_str(item, "score.full", "score.sets") or _team_score(item)
        return RawEventFields(
            **common,
            home=first_str(item, "players.home.name", *HOME_PATHS, "player1.name", default="Player 1"),
            away=first_str(item, "players.away.name", *AWAY_PATHS, "player2.name", default="Player 2"),
            score=score,
        )

    def _cricket_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        common = self._common(item, sport, index)
        common["league"] = _league_name(item, default="Cricket Tournament")
        home = first_str(item, *HOME_PATHS, default="Home Team")
        away = first_str(item, *AWAY_PATHS, default="Away Team")

        innings_home = dig(item, "score.home.innings.inning_1")
        innings_away = dig(item, "score.away.innings.inning_1")
        if isinstance(innings_home, dict) or isinstance(innings_away, dict):
            score = (
                f"{home} {first_str(innings_home, 'score', default='0/0')} "
                f"({first_str(innings_home, 'overs', default='0')}), "
                f"{away} {first_str(innings_away, 'score', default='0/0')} "
                f"({first_str(innings_away, 'overs', default='0')})"
            )
        else:
            score = _pair_score(dig(item, "score.home"), dig(item, "score.away"))

        return RawEventFields(**common, home=home, away=away, score=score)

    def _race_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        competition = first_str(item, "competition.name", "league.name", default=sport.display_name)
        circuit = first_str(item, "circuit.name", "venue.name", default="Circuit")
        location = first_str(
            item, "circuit.location", "venue.city", "competition.location.city",
            "competition.location.country", default="Grand Prix",
        )
        names, priced = _entrants(item, "drivers")

        laps_total = as_str(dig(item, "laps.total"))
        laps_current = as_str(dig(item, "laps.current"))
        score = f"Lap: {laps_current or 0}/{laps_total or 0}"

        return RawEventFields(
            id=first_str(item, "id", "race.id", "fixture.id", default=f"{sport.slug}-{index}"),
            home=f"{competition} - {circuit}",
            away=location,
            league=competition,
            start_time=parse_start_time(first_of(item, *DATE_PATHS)),
            status=first_str(item, *STATUS_PATHS),
            score=score,
            competitors=names,
            competitor_odds=priced,
        )

    def _tournament_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        tournament = first_str(item, "tournament.name", "league.name", "name", default="Golf Tournament")
        course = first_str(item, "course.name", "venue.name", default="Golf Course")
        names, priced = _entrants(item, "players")
        return RawEventFields(
            id=first_str(item, "id", "tournament.id", default=f"{sport.slug}-{index}"),
            home=first_str(item, "player1.name", default=names[0] if names else tournament),
            away=first_str(item, "player2.name", default=names[1] if len(names) > 1 else course),
            league=tournament,
            start_time=parse_start_time(first_of(item, *DATE_PATHS, "dates.start")),
            status=first_str(item, *STATUS_PATHS),
            competitors=names,
            competitor_odds=priced,
        )

    def _stage_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        race = first_str(item, "race.name", "league.name", "name", default="Cycling Race")
        number = first_str(item, "stage.number")
        stage_name = first_str(item, "stage.name")
        if number and stage_name:
            stage = f"Stage {number}: {stage_name}"
        else:
            stage = stage_name or f"Stage {index + 1}"
        names, priced = _entrants(item, "riders")
        return RawEventFields(
            id=first_str(item, "id", "race.id", default=f"{sport.slug}-{index}"),
            home=race,
            away=stage,
            league=race,
            start_time=parse_start_time(first_of(item, *DATE_PATHS)),
            status=first_str(item, *STATUS_PATHS),
            competitors=names,
            competitor_odds=priced,
        )

    def _fight_fields(self, item: dict, sport: Sport, index: int) -> RawEventFields:
        common = self._common(item, sport, index)
        common["league"] = first_str(
            item, *LEAGUE_PATHS, "event.name", "slug", default=sport.display_name,
        )
        return RawEventFields(
            **common,
            home=first_str(item, "fighters.first.name", "fighters.home.name", *HOME_PATHS, default="Fighter 1"),
            away=first_str(item, "fighters.second.name", "fighters.away.name", *AWAY_PATHS, default="Fighter 2"),
            score=first_str(item, "result.round", "result.method") or None,
        )

    # =========================================================================
    # Markets
    # =========================================================================

    def _markets(self, item: dict, sport: Sport, fields: RawEventFields) -> list[Market]:
        profile = profile_for(sport.id)

        if profile.field_event and len(fields.competitor_odds) >= 2:
            return [self._field_market(
                profile.winner_market,
                fields,
                [(name, odds, None) for name, odds in fields.competitor_odds],
            )]

        markets = self._provider_markets(item, sport, fields)
        if not markets:
            return self.generator.generate(
                sport.id,
                fields.home,
                fields.away,
                event_id=fields.id,
                league_name=fields.league,
                competitors=fields.competitors,
            )
        return markets

    def _bets(self, item: dict) -> list[dict]:
        """Bets from whichever known odds shape the item carries."""
        odds = as_list(item.get("odds"))
        if odds:
            bets = as_list(dig(odds, "0.bookmakers.0.bets"))
            if bets:
                return [b for b in bets if isinstance(b, dict)]
            return [o for o in odds if isinstance(o, dict) and isinstance(o.get("values"), list)]
        return [b for b in as_list(dig(item, "bookmakers.0.bets")) if isinstance(b, dict)]

    def _provider_markets(self, item: dict, sport: Sport, fields: RawEventFields) -> list[Market]:
        profile = profile_for(sport.id)
        markets: list[Market] = []
        used_ids: set[str] = set()
        has_winner = False

        for index, bet in enumerate(self._bets(item)):
            bet_name = as_str(bet.get("name"))
            is_winner = bet_name.lower() in WINNER_BET_NAMES or (not bet_name and index == 0)
            if is_winner and has_winner:
                continue

            if is_winner and profile.field_event:
                entrants = [
                    priced for priced in map(self._priced, as_list(bet.get("values")))
                    if priced is not None and priced[0] and not is_draw_name(priced[0])
                ]
                if len(entrants) < 2:
                    continue
                has_winner = True
                markets.append(self._field_market(profile.winner_market, fields, entrants))
                continue

            if is_winner:
                market_id = f"{fields.id}-market-match-winner"
                outcomes = self._winner_outcomes(bet, sport, fields)
                name = profile.winner_market
            else:
                market_id = f"{fields.id}-market-{slugify(bet_name) or index}"
                if market_id in used_ids:
                    market_id = f"{market_id}-{index}"
                outcomes = self._bet_outcomes(bet, market_id, fields)
                name = bet_name

            if len(outcomes) < 2:
                continue
            used_ids.add(market_id)
            has_winner = has_winner or is_winner
            markets.append(Market(id=market_id, name=name, outcomes=outcomes))

        if markets and not has_winner:
            generated = self.generator.generate(
                sport.id,
                fields.home,
                fields.away,
                event_id=fields.id,
                competitors=fields.competitors,
            )
            markets.insert(0, generated[0])
        return markets

    def _field_market(
        self,
        name: str,
        fields: RawEventFields,
        entrants: list[tuple[str, float, Optional[float]]],
    ) -> Market:
        """Winner market over a field of entrants, in provider order."""
        prefix = self.generator.market_prefix(fields.id, fields.home, fields.away)
        return Market(
            id=f"{prefix}-market-{slugify(name)}",
            name=name,
            outcomes=[
                Outcome.from_decimal(f"{prefix}-outcome-{place + 1}", entrant, odds, probability)
                for place, (entrant, odds, probability) in enumerate(entrants)
            ],
        )

    def _priced(self, value: Any) -> Optional[tuple[str, float, Optional[float]]]:
        label = as_str(dig(value, "value")) or as_str(dig(value, "name"))
        odds = as_float(first_of(value, "odd", "odds", "price"))
        if odds is None or odds < 1.0:
            return None
        probability = as_float(dig(value, "probability"))
        if probability is not None:
            if 1.0 < probability <= 100.0:
                probability = probability / 100
            probability = round(min(1.0, max(0.0, probability)), 2)
        return label, odds, probability

    def _bet_outcomes(self, bet: dict, market_id: str, fields: RawEventFields) -> list[Outcome]:
        outcomes: list[Outcome] = []
        used: set[str] = set()
        for index, value in enumerate(as_list(bet.get("values"))):
            priced = self._priced(value)
            if priced is None:
                continue
            label, odds, probability = priced
            label = label or (fields.home if index == 0 else fields.away)
            outcome_id = f"{market_id}-outcome-{slugify(label)}"
            if outcome_id in used:
                outcome_id = f"{outcome_id}-{index}"
            used.add(outcome_id)
            outcomes.append(Outcome.from_decimal(outcome_id, label, odds, probability))
        return outcomes

    def _winner_outcomes(self, bet: dict, sport: Sport, fields: RawEventFields) -> list[Outcome]:
        """
        Home/draw/away outcomes from a winner bet, draw rule applied.

        Provider labels are matched against team names, Home/Away and 1/2;
        unlabeled values are taken positionally.
        """
        prefix = fields.id
        slots: dict[str, Outcome] = {}
        unlabeled: list[tuple[float, Optional[float]]] = []

        for value in as_list(bet.get("values")):
            priced = self._priced(value)
            if priced is None:
                continue
            label, odds, probability = priced
            key = label.lower()
            if is_draw_name(label):
                slot, name = "draw", "Draw"
            elif label == fields.home or key in HOME_ALIASES:
                slot, name = "home", fields.home
            elif label == fields.away or key in AWAY_ALIASES:
                slot, name = "away", fields.away
            else:
                unlabeled.append((odds, probability))
                continue
            if slot not in slots:
                slots[slot] = Outcome.from_decimal(f"{prefix}-outcome-{slot}", name, odds, probability)

        for slot, name in (("home", fields.home), ("away", fields.away)):
            if slot not in slots and unlabeled:
                odds, probability = unlabeled.pop(0)
                slots[slot] = Outcome.from_decimal(f"{prefix}-outcome-{slot}", name, odds, probability)

        if not profile_for(sport.id).draw_allowed:
            slots.pop("draw", None)
        elif "draw" not in slots and "home" in slots and "away" in slots:
            slots["draw"] = self.generator.draw_outcome(sport.id, fields.id, fields.home, fields.away)

        return [slots[slot] for slot in ("home", "draw", "away") if slot in slots]
