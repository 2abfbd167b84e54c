"""
Synthetic market generation.

When a provider supplies no bookmaker odds, the canonical event still needs a
complete, display-ready set of markets. This generator produces a fixed
per-sport set (match winner, handicap, totals) with odds drawn uniformly from
narrow plausible ranges.

This is not a pricing model. Odds carry no information about the event.

Draws are seeded from the event identity, so the same event always gets the
same odds and normalization stays a pure function of its input.
"""

import hashlib
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from src.sports.engine.extract import slugify
from src.sports.models.schemas import Market, Outcome
from src.sports.registry import profile_for, totals_line_for


@dataclass(frozen=True)
class OddsRange:
    low: float
    high: float

    def draw(self, rng: random.Random) -> float:
        return round(rng.uniform(self.low, self.high), 2)


HOME_RANGE = OddsRange(1.5, 2.5)
DRAW_RANGE = OddsRange(3.0, 4.5)
AWAY_RANGE = OddsRange(1.8, 4.0)
HANDICAP_RANGE = OddsRange(1.8, 2.5)
TOTALS_RANGE = OddsRange(1.85, 2.1)

# (favourite odds, step per place) for winner markets over a field of entrants
_FIELD_PROGRESSIONS = {
    "Race Winner": (1.5, 0.5),
    "Tournament Winner": (10.0, 5.0),
    "Stage Winner": (4.0, 2.0),
}
FIELD_SIZE = 5


def _fmt_line(line: float) -> str:
    return f"{line:g}"


class SyntheticMarketGenerator:
    """
    Deterministic fallback markets.

    Usage:
        generator = SyntheticMarketGenerator()
        markets = generator.generate(1, "Arsenal", "Chelsea", event_id="7")
    """

    def rng_for(self, sport_id: int, event_id: str, home: str, away: str) -> random.Random:
        digest = hashlib.sha256(f"{sport_id}|{event_id}|{home}|{away}".encode("utf-8")).digest()
        return random.Random(int.from_bytes(digest[:8], "big"))

    @staticmethod
    def market_prefix(event_id: str, home: str, away: str) -> str:
        return event_id or f"{slugify(home)}-vs-{slugify(away)}"

    def generate(
        self,
        sport_id: int,
        home: str,
        away: str,
        event_id: str = "",
        league_name: str = "",
        competitors: Optional[Sequence[str]] = None,
    ) -> list[Market]:
        """
        Generate the standard market set for one event.

        Args:
            sport_id: Canonical sport id (selects draw rule, names and lines)
            home: Home side / first competitor
            away: Away side / second competitor
            event_id: Event id, used for market ids and seeding
            league_name: Competition name (adjusts tennis and cricket lines)
            competitors: Entrants for race/tournament sports; when two or more
                are given the winner market lists them instead of home/away
        """
        rng = self.rng_for(sport_id, event_id, home, away)
        prefix = self.market_prefix(event_id, home, away)
        profile = profile_for(sport_id)

        if profile.field_event and competitors and len(competitors) >= 2:
            winner = self.field_market(prefix, profile.winner_market, competitors)
        else:
            winner = self.winner_market(prefix, profile.winner_market, home, away, profile.draw_allowed, rng)

        line = profile.handicap_line
        handicap = Market(
            id=f"{prefix}-market-handicap",
            name=profile.handicap_market,
            outcomes=[
                Outcome.from_decimal(
                    f"{prefix}-outcome-handicap-home", f"{home} -{_fmt_line(line)}", HANDICAP_RANGE.draw(rng)
                ),
                Outcome.from_decimal(
                    f"{prefix}-outcome-handicap-away", f"{away} +{_fmt_line(line)}", HANDICAP_RANGE.draw(rng)
                ),
            ],
        )

        total = totals_line_for(sport_id, league_name)
        totals = Market(
            id=f"{prefix}-market-total",
            name=f"Total {profile.totals_unit}",
            outcomes=[
                Outcome.from_decimal(f"{prefix}-outcome-over", f"Over {_fmt_line(total)}", TOTALS_RANGE.draw(rng)),
                Outcome.from_decimal(f"{prefix}-outcome-under", f"Under {_fmt_line(total)}", TOTALS_RANGE.draw(rng)),
            ],
        )

        return [winner, handicap, totals]

    def winner_market(
        self,
        prefix: str,
        name: str,
        home: str,
        away: str,
        with_draw: bool,
        rng: random.Random,
    ) -> Market:
        outcomes = [Outcome.from_decimal(f"{prefix}-outcome-home", home, HOME_RANGE.draw(rng))]
        if with_draw:
            outcomes.append(Outcome.from_decimal(f"{prefix}-outcome-draw", "Draw", DRAW_RANGE.draw(rng)))
        outcomes.append(Outcome.from_decimal(f"{prefix}-outcome-away", away, AWAY_RANGE.draw(rng)))
        return Market(id=f"{prefix}-market-match-winner", name=name, outcomes=outcomes)

    def field_market(self, prefix: str, name: str, competitors: Sequence[str]) -> Market:
        """Winner market over a field, favourite first, odds lengthening by place."""
        start, step = _FIELD_PROGRESSIONS.get(name, (2.0, 1.0))
        outcomes = [
            Outcome.from_decimal(f"{prefix}-outcome-{place + 1}", entrant, round(start + place * step, 2))
            for place, entrant in enumerate(competitors[:FIELD_SIZE])
        ]
        return Market(id=f"{prefix}-market-{slugify(name)}", name=name, outcomes=outcomes)

    def draw_outcome(self, sport_id: int, event_id: str, home: str, away: str) -> Outcome:
        """A draw outcome from the draw range, for provider markets that lack one."""
        rng = self.rng_for(sport_id, event_id, home, away)
        prefix = self.market_prefix(event_id, home, away)
        return Outcome.from_decimal(f"{prefix}-outcome-draw", "Draw", DRAW_RANGE.draw(rng))
