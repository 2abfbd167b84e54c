"""
API-Sports provider client.

Builds the request for a (sport, mode) pair and hands it to the resilience
engine. This layer is a pure request builder: no retries, no caching, no
transformation beyond unwrapping the `{"response": [...]}` envelope.

Auth is a single `x-apisports-key` header. Each provider family reads its
own credential and falls back to the shared API_SPORTS_KEY.

API Docs: https://api-sports.io/documentation
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Optional

import structlog

from config.settings import Settings, get_settings
from src.sports.engine.extract import unwrap_response
from src.sports.feeds.resilience import ResilienceEngine
from src.sports.models.schemas import FetchMode, Sport
from src.sports.registry import NEXT, SEASON, TODAY, WINDOW_END, ProviderRoute, route_for

logger = structlog.get_logger()

AUTH_HEADER = "x-apisports-key"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiSportsClient:
    """
    Per-sport fetch functions for the API-Sports family of providers.

    Usage:
        client = ApiSportsClient(engine)
        raw = await client.fetch_live(resolve_sport("football"))
    """

    def __init__(
        self,
        engine: ResilienceEngine,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.engine = engine
        self.settings = settings or get_settings()
        self._clock = clock or _utc_now
        self._api_key_override: Optional[str] = None

        self.logger = logger.bind(component="api_sports")

    # =========================================================================
    # Credentials
    # =========================================================================

    def set_api_key(self, api_key: str) -> None:
        """Use one key for every provider family, replacing configured keys."""
        self._api_key_override = api_key

    def credential_for(self, route: ProviderRoute) -> str:
        if self._api_key_override:
            return self._api_key_override
        return self.settings.credentials.credential_for(route.credential_env)

    # =========================================================================
    # Request building
    # =========================================================================

    def _fill(self, template: Mapping[str, str], limit: Optional[int] = None) -> dict[str, str]:
        """Replace date/season/next placeholders with values for right now."""
        now = self._clock()
        window_end = now + timedelta(days=self.settings.upcoming_window_days)
        values = {
            TODAY: now.strftime("%Y-%m-%d"),
            WINDOW_END: window_end.strftime("%Y-%m-%d"),
            SEASON: str(now.year),
            NEXT: str(limit or self.settings.upcoming_next_fixtures),
        }
        return {name: values.get(value, value) for name, value in template.items()}

    def build_request(
        self,
        sport: Sport,
        mode: FetchMode,
        event_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Optional[tuple[str, dict[str, str]]]:
        """
        Build (url, params) for a sport and mode.

        Returns None when no provider covers the sport.
        """
        route = route_for(sport.id)
        if route is None:
            return None

        if mode == FetchMode.LIVE:
            params = self._fill(route.live_params)
        elif mode == FetchMode.UPCOMING:
            params = self._fill(route.upcoming_params, limit=limit)
        else:
            params = {route.id_param: str(event_id)}

        return route.url(), params

    def _freshness_for(self, mode: FetchMode) -> float:
        cache = self.settings.cache
        if mode == FetchMode.LIVE:
            return cache.live_window_seconds
        if mode == FetchMode.UPCOMING:
            return cache.upcoming_window_seconds
        return cache.default_ttl_seconds

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch(
        self,
        sport: Sport,
        mode: FetchMode,
        event_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list:
        route = route_for(sport.id)
        if route is None:
            self.logger.debug("No provider route", sport=sport.slug, mode=mode.value)
            return []

        api_key = self.credential_for(route)
        if not api_key:
            self.logger.warning(
                "Missing credential",
                sport=sport.slug,
                env=route.credential_env or "API_SPORTS_KEY",
            )
            return []

        url, params = self.build_request(sport, mode, event_id=event_id, limit=limit)
        payload = await self.engine.execute(
            url,
            params=params,
            headers={AUTH_HEADER: api_key},
            freshness_window_seconds=self._freshness_for(mode),
        )
        items = unwrap_response(payload)

        self.logger.debug("Fetched", sport=sport.slug, mode=mode.value, count=len(items))
        return items

    async def fetch_live(self, sport: Sport) -> list:
        """Raw in-play items for a sport."""
        return await self._fetch(sport, FetchMode.LIVE)

    async def fetch_upcoming(self, sport: Sport, limit: Optional[int] = None) -> list:
        """Raw scheduled items for a sport within the upcoming window."""
        return await self._fetch(sport, FetchMode.UPCOMING, limit=limit)

    async def fetch_by_id(self, sport: Sport, event_id: str) -> list:
        """Raw items matching one provider event id."""
        return await self._fetch(sport, FetchMode.BY_ID, event_id=event_id)

    async def fetch_odds(self, sport: Sport, event_id: str) -> list:
        """
        Raw bookmaker odds for one event.

        Only fixture- and game-style providers expose an odds resource;
        other sports return an empty list.
        """
        route = route_for(sport.id)
        if route is None or not route.odds_resource or not route.odds_id_param:
            self.logger.debug("No odds route", sport=sport.slug)
            return []

        api_key = self.credential_for(route)
        if not api_key:
            self.logger.warning(
                "Missing credential",
                sport=sport.slug,
                env=route.credential_env or "API_SPORTS_KEY",
            )
            return []

        payload = await self.engine.execute(
            route.url(route.odds_resource),
            params={route.odds_id_param: str(event_id)},
            headers={AUTH_HEADER: api_key},
            freshness_window_seconds=self.settings.cache.reference_ttl_seconds,
        )
        return unwrap_response(payload)
