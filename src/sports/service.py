"""
Sports data service.

The function-call interface the rest of the application consumes:

- get_sports()
- get_live_events(sport_id=None)
- get_upcoming_events(sport_id=None, limit=None)
- get_event_by_id(event_id, sport=None)
- get_odds(event_id, sport)

Cross-sport queries fan out one fetch per sport and await them together, so
a slow or failing provider for one sport never blocks or breaks the others.
A sport whose fetch is exhausted contributes an empty list.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from config.settings import Settings, get_settings
from src.sports.engine.normalizer import EventNormalizer
from src.sports.feeds.api_sports import ApiSportsClient
from src.sports.feeds.cache import CacheStore
from src.sports.feeds.resilience import AllAttemptsFailedError, ResilienceEngine
from src.sports.models.schemas import Event, EventStatus, OddsData, Sport
from src.sports.registry import get_sports, resolve_sport, route_for

logger = structlog.get_logger()


class SportsDataService:
    """
    Aggregates canonical events across every supported sport.

    Usage:
        service = SportsDataService()
        events = await service.get_live_events()
        soccer = await service.get_upcoming_events("football", limit=10)
        await service.aclose()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[ResilienceEngine] = None,
        client: Optional[ApiSportsClient] = None,
        normalizer: Optional[EventNormalizer] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()

        if engine is None:
            engine = ResilienceEngine(
                cache=CacheStore(version=self.settings.cache.version),
                settings=self.settings.resilience,
                client=http_client,
                default_freshness_seconds=self.settings.cache.default_ttl_seconds,
            )
        self.engine = engine
        self.client = client or ApiSportsClient(engine, settings=self.settings)
        self.normalizer = normalizer or EventNormalizer()

        self.logger = logger.bind(component="sports_service")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        await self.engine.aclose()

    async def __aenter__(self) -> "SportsDataService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def set_api_key(self, api_key: str) -> None:
        """Rotate the provider credential; cached payloads are discarded."""
        self.client.set_api_key(api_key)
        self.engine.clear_cache()
        self.logger.info("API key updated, cache cleared")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_sports(self) -> list[Sport]:
        return get_sports()

    async def get_live_events(self, sport_id: "int | str | None" = None) -> list[Event]:
        """Live events for one sport, or for every sport with a provider."""

        async def fetch(sport: Sport) -> list[Event]:
            raw = await self.client.fetch_live(sport)
            return self.normalizer.normalize(raw, sport.slug, is_live=True)

        return await self._gather(self._targets(sport_id), fetch, mode="live")

    async def get_upcoming_events(
        self,
        sport_id: "int | str | None" = None,
        limit: Optional[int] = None,
    ) -> list[Event]:
        """
        Upcoming events, marked `upcoming` and not live.

        `limit` caps events per sport.
        """

        async def fetch(sport: Sport) -> list[Event]:
            raw = await self.client.fetch_upcoming(sport, limit=limit)
            events = self.normalizer.normalize(raw, sport.slug, is_live=False)
            events = [
                event.model_copy(update={"status": EventStatus.UPCOMING, "is_live": False, "score": None})
                for event in events
            ]
            return events[:limit] if limit else events

        return await self._gather(self._targets(sport_id), fetch, mode="upcoming")

    async def get_event_by_id(
        self,
        event_id: str,
        sport: "int | str | None" = None,
    ) -> Optional[Event]:
        """
        Look up one event by provider id.

        Without a sport, sports are searched in registry order and the first
        match wins. Ids are not unique across providers.
        """
        for target in self._targets(sport):
            try:
                raw = await self.client.fetch_by_id(target, str(event_id))
            except AllAttemptsFailedError as e:
                self.logger.error("Event lookup failed", sport=target.slug, event_id=event_id, error=str(e))
                continue
            events = self.normalizer.normalize(raw, target.slug, is_live=False)
            for event in events:
                if event.id == str(event_id):
                    return event
            if events:
                return events[0]
        return None

    async def get_odds(self, event_id: str, sport: "int | str" = "football") -> list[OddsData]:
        """Bookmaker odds for one event; empty when unavailable."""
        target = resolve_sport(sport)
        if target is None:
            self.logger.warning("Unknown sport", sport=sport)
            return []
        try:
            raw = await self.client.fetch_odds(target, str(event_id))
        except AllAttemptsFailedError as e:
            self.logger.error("Odds fetch failed", sport=target.slug, event_id=event_id, error=str(e))
            return []
        return self.normalizer.transform_odds(raw, str(event_id))

    # =========================================================================
    # Fan-out
    # =========================================================================

    def _targets(self, sport: "int | str | None") -> list[Sport]:
        if sport is None:
            return [s for s in get_sports() if route_for(s.id) is not None]
        resolved = resolve_sport(sport)
        if resolved is None:
            self.logger.warning("Unknown sport", sport=sport)
            return []
        return [resolved]

    async def _gather(
        self,
        sports: list[Sport],
        fetch: Callable[[Sport], Awaitable[list[Event]]],
        mode: str,
    ) -> list[Event]:
        results: list[Any] = await asyncio.gather(
            *(fetch(sport) for sport in sports),
            return_exceptions=True,
        )

        events: list[Event] = []
        for sport, result in zip(sports, results):
            if isinstance(result, AllAttemptsFailedError):
                self.logger.error(
                    "Sport fetch exhausted",
                    sport=sport.slug,
                    mode=mode,
                    attempts=len(result.attempts),
                )
                continue
            if isinstance(result, BaseException):
                self.logger.error(
                    "Sport aggregation failed",
                    sport=sport.slug,
                    mode=mode,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            events.extend(result)

        self.logger.info("Aggregated events", mode=mode, sports=len(sports), count=len(events))
        return events
