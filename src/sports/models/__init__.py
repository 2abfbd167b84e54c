"""Sports data models and schemas."""

from src.sports.models.schemas import (
    Sport,
    Event,
    Market,
    Outcome,
    OddsData,
    EventStatus,
    FetchMode,
    RequestFamily,
    CacheEntry,
    EndpointCandidate,
    is_draw_name,
)

__all__ = [
    "Sport",
    "Event",
    "Market",
    "Outcome",
    "OddsData",
    "EventStatus",
    "FetchMode",
    "RequestFamily",
    "CacheEntry",
    "EndpointCandidate",
    "is_draw_name",
]
