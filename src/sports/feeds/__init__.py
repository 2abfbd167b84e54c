"""
Sports data feeds.

Fetch layer for upstream sports-data providers:
- CacheStore: versioned last-known-response store
- ResilienceEngine: retries, fallback domains, stale-cache degradation
- ApiSportsClient: per-sport request builder for the API-Sports family
"""

from src.sports.feeds.cache import CacheStore
from src.sports.feeds.resilience import (
    AllAttemptsFailedError,
    AttemptFailure,
    ResilienceEngine,
)
from src.sports.feeds.api_sports import ApiSportsClient

__all__ = [
    "CacheStore",
    "ResilienceEngine",
    "AllAttemptsFailedError",
    "AttemptFailure",
    "ApiSportsClient",
]
