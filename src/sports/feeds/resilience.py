"""
Resilient upstream request execution.

Every provider call goes through ResilienceEngine.execute(), which:
1. Serves a fresh successful cache entry without touching the network
2. Tries the primary domain, then each configured fallback domain, in order
3. Retries each domain with exponential backoff and jitter
4. Caches the first successful payload under the caller's key
5. On exhaustion, degrades to the stale cache entry, or raises
   AllAttemptsFailedError enumerating every failed attempt

Fallback domains are tried sequentially, never raced, so a degraded provider
family does not receive multiplied load.
"""

import asyncio
import random
import ssl
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import certifi
import httpx
import orjson
import structlog

from config.settings import ResilienceSettings
from src.sports.feeds.cache import CacheStore
from src.sports.registry import FALLBACK_DOMAINS, endpoint_candidates

logger = structlog.get_logger()


@dataclass(frozen=True)
class AttemptFailure:
    """One failed request attempt."""
    url: str
    attempt: int
    message: str

    def __str__(self) -> str:
        return f"Request to {self.url} failed (attempt {self.attempt}): {self.message}"


class AllAttemptsFailedError(Exception):
    """Every domain and attempt failed and no cached payload exists."""

    def __init__(self, url: str, cache_key: str, attempts: list[AttemptFailure]):
        self.url = url
        self.cache_key = cache_key
        self.attempts = list(attempts)
        detail = "; ".join(str(a) for a in self.attempts) or "no attempts made"
        super().__init__(f"All API attempts failed for {url}. Errors: {detail}")

    @property
    def domains_tried(self) -> list[str]:
        seen: list[str] = []
        for failure in self.attempts:
            host = urlsplit(failure.url).hostname or ""
            if host not in seen:
                seen.append(host)
        return seen


def safe_url(url: "str | httpx.URL") -> str:
    """Strip the query string (may contain keys) for logging."""
    parsed = urlsplit(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


def rewrite_url(url: "str | httpx.URL", base_url: str) -> str:
    """
    Move a request URL onto another base, keeping its path and query.

    When the new base already carries a version segment (`host/v1`), the
    same leading segment is dropped from the original path so it is not
    doubled.
    """
    original = urlsplit(str(url))
    base = urlsplit(base_url)
    base_path = base.path.rstrip("/")
    path = original.path
    if base_path and (path == base_path or path.startswith(base_path + "/")):
        path = path[len(base_path):]
    rewritten = f"{base.scheme}://{base.netloc}{base_path}{path}"
    if original.query:
        rewritten = f"{rewritten}?{original.query}"
    return rewritten


def create_http_client(timeout: float = 15.0) -> httpx.AsyncClient:
    """HTTP client with certifi trust store and a fixed per-request timeout."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    return httpx.AsyncClient(
        verify=ssl_context,
        timeout=timeout,
        headers={"Accept": "application/json"},
    )


class ResilienceEngine:
    """
    Retry, fallback and stale-cache degradation around upstream GETs.

    Usage:
        engine = ResilienceEngine(cache=CacheStore())
        payload = await engine.execute(
            "https://v1.cricket.api-sports.io/fixtures",
            params={"live": "true"},
            headers={"x-apisports-key": key},
            freshness_window_seconds=60,
        )
        await engine.aclose()
    """

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        settings: Optional[ResilienceSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        fallback_domains: Optional[Mapping[str, tuple[str, ...]]] = None,
        default_freshness_seconds: float = 300.0,
    ):
        self.settings = settings or ResilienceSettings()
        self.cache = cache if cache is not None else CacheStore()
        self.default_freshness_seconds = default_freshness_seconds

        self._owns_client = client is None
        self._client = client or create_http_client(self.settings.request_timeout_seconds)

        # Per-instance copy; the module-level table stays read-only
        self._fallback_domains: dict[str, tuple[str, ...]] = dict(
            FALLBACK_DOMAINS if fallback_domains is None else fallback_domains
        )

        self.logger = logger.bind(component="resilience")

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def max_retries(self) -> int:
        return self.settings.max_retries

    def set_endpoint_mappings(self, domain: str, fallbacks: list[str]) -> None:
        """Replace the fallback domains for one primary hostname."""
        self._fallback_domains[domain] = tuple(fallbacks)

    def fallbacks_for(self, domain: str) -> tuple[str, ...]:
        return self._fallback_domains.get(domain, ())

    def clear_cache(self, key: Optional[str] = None) -> None:
        """Clear one cached key, or the whole cache."""
        self.cache.clear(key)

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter: base * 2^attempt * [0.5, 1.0)."""
        base = self.settings.retry_delay_base_seconds
        return base * (2 ** attempt) * (0.5 + random.random() * 0.5)

    async def execute(
        self,
        primary_url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        cache_key: Optional[str] = None,
        freshness_window_seconds: Optional[float] = None,
    ) -> Any:
        """
        Fetch a JSON payload resiliently.

        Args:
            primary_url: URL on the primary domain
            params: Query parameters, carried to every fallback domain
            headers: Request headers (credentials), carried to every domain
            cache_key: Cache key; defaults to the full primary URL with query
            freshness_window_seconds: How old a cached success may be and
                still be served without a network call

        Returns:
            The decoded JSON body of the first successful attempt, or the
            stale cached payload if every attempt failed

        Raises:
            AllAttemptsFailedError: every attempt failed and nothing is cached
        """
        url = str(httpx.URL(primary_url, params=dict(params))) if params else primary_url
        key = cache_key or url
        window = self.default_freshness_seconds if freshness_window_seconds is None else freshness_window_seconds

        cached = self.cache.get(key)
        fresh = self.cache.get_fresh(key, window * 1000)
        if fresh is not None:
            self.logger.debug("Using cached data", key=key)
            return fresh.data

        failures: list[AttemptFailure] = []
        candidates = endpoint_candidates(url, self._fallback_domains)

        for candidate in candidates:
            current_url = url if candidate.is_primary else rewrite_url(url, candidate.base_url)

            for attempt in range(self.max_retries + 1):
                self.logger.debug(
                    "Attempting request",
                    url=safe_url(current_url),
                    attempt=attempt + 1,
                    max_attempts=self.max_retries + 1,
                )
                try:
                    response = await self._client.get(current_url, headers=dict(headers or {}))
                    response.raise_for_status()
                    payload = orjson.loads(response.content)
                except (httpx.HTTPError, ValueError) as e:
                    failure = AttemptFailure(
                        url=safe_url(current_url),
                        attempt=attempt + 1,
                        message=str(e) or type(e).__name__,
                    )
                    failures.append(failure)
                    self.logger.warning(
                        "Request attempt failed",
                        url=failure.url,
                        attempt=failure.attempt,
                        error=failure.message,
                    )

                    if attempt < self.max_retries:
                        delay = self.backoff_delay(attempt)
                        self.logger.debug("Retrying", delay_seconds=round(delay, 3))
                        await asyncio.sleep(delay)
                    continue

                self.cache.set(key, payload, success=True)
                self.logger.info(
                    "Request succeeded",
                    url=safe_url(current_url),
                    fallback=not candidate.is_primary,
                    failed_attempts=len(failures),
                )
                return payload

        self.logger.error(
            "All attempts failed",
            url=safe_url(url),
            attempts=len(failures),
            domains=len(candidates),
        )

        if cached is not None:
            self.logger.warning(
                "Returning stale cached data",
                key=key,
                age_ms=cached.age_ms(self.cache.now_ms()),
            )
            return cached.data

        raise AllAttemptsFailedError(url=safe_url(url), cache_key=key, attempts=failures)

    async def aclose(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._owns_client:
            await self._client.aclose()
