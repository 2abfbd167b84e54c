"""Tests for the resilience engine: retries, fallback domains, stale degradation."""

import httpx
import pytest
from structlog.testing import capture_logs

from src.sports.feeds.resilience import (
    AllAttemptsFailedError,
    ResilienceEngine,
    rewrite_url,
    safe_url,
)
from src.sports.registry import FALLBACK_DOMAINS


CRICKET_LIVE = "https://v1.cricket.api-sports.io/fixtures"


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def _fail(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Name or service not known", request=request)


class TestUrlHelpers:
    """Tests for URL rewriting onto fallback bases."""

    def test_fallback_with_version_keeps_path_and_query(self):
        """Test that the path and query move onto a versioned fallback base."""
        url = rewrite_url(
            "https://v1.cricket.api-sports.io/fixtures?live=true",
            "https://api-cricket.sportsdata.io/v1",
        )
        assert url == "https://api-cricket.sportsdata.io/v1/fixtures?live=true"

    def test_version_segment_is_not_doubled(self):
        """Test that a version already in the path is dropped once."""
        url = rewrite_url("https://api.example.io/v1/games?id=3", "https://mirror.example.io/v1")
        assert url == "https://mirror.example.io/v1/games?id=3"

    def test_unversioned_fallback(self):
        """Test that a bare host keeps the original path unchanged."""
        url = rewrite_url("https://v1.tennis.api-sports.io/matches", "https://tennis.api-sports.io")
        assert url == "https://tennis.api-sports.io/matches"

    def test_safe_url_drops_query(self):
        """Test that logged URLs never carry the query string."""
        assert safe_url("https://x.io/odds?fixture=1&apikey=secret") == "https://x.io/odds"


class TestResilienceEngine:
    """Tests for ResilienceEngine.execute."""

    @pytest.mark.asyncio
    async def test_success_is_cached_under_key(self, make_engine, cache, sleeps):
        """Test that a first-attempt success is returned and cached."""
        engine, handler = make_engine(lambda r: json_response({"response": [1]}))

        payload = await engine.execute(CRICKET_LIVE, params={"live": "true"}, cache_key="live_cricket")

        assert payload == {"response": [1]}
        assert cache.get("live_cricket").data == {"response": [1]}
        assert len(handler.requests) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_network(self, make_engine, cache, sleeps):
        """Test that a fresh successful entry is served without a request."""
        cache.set("live_cricket", {"response": ["cached"]})
        engine, handler = make_engine(lambda r: json_response({"response": ["network"]}))

        payload = await engine.execute(CRICKET_LIVE, cache_key="live_cricket", freshness_window_seconds=60)

        assert payload == {"response": ["cached"]}
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_expired_cache_revalidates(self, make_engine, cache, clock, sleeps):
        """Test that an entry older than the window triggers a request."""
        cache.set("live_cricket", {"response": ["old"]})
        clock.advance(61)
        engine, handler = make_engine(lambda r: json_response({"response": ["new"]}))

        payload = await engine.execute(CRICKET_LIVE, cache_key="live_cricket", freshness_window_seconds=60)

        assert payload == {"response": ["new"]}
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_retries_primary_with_backoff(self, make_engine, sleeps):
        """Test that k failures then success stays on the primary domain."""
        outcomes = iter([503, 503, 200])

        def responder(request):
            status = next(outcomes)
            return json_response({"response": ["ok"]} if status == 200 else {"errors": "down"}, status)

        engine, handler = make_engine(responder)

        payload = await engine.execute(CRICKET_LIVE)

        assert payload == {"response": ["ok"]}
        assert handler.hosts == ["v1.cricket.api-sports.io"] * 3
        assert len(sleeps) == 2
        # base * 2^attempt * [0.5, 1.0)
        assert 0.5 <= sleeps[0] < 1.0
        assert 1.0 <= sleeps[1] < 2.0

    @pytest.mark.asyncio
    async def test_cricket_falls_back_after_four_failures(self, make_engine, cache, sleeps):
        """Test that the first configured fallback serves after the primary is exhausted."""

        def responder(request):
            if request.url.host == "v1.cricket.api-sports.io":
                return _fail(request)
            return json_response({"response": [{"fixture": {"id": 99}}]})

        engine, handler = make_engine(responder)

        payload = await engine.execute(CRICKET_LIVE, params={"live": "true"}, cache_key="live_cricket")

        assert payload == {"response": [{"fixture": {"id": 99}}]}
        assert handler.hosts == ["v1.cricket.api-sports.io"] * 4 + ["api-cricket.sportsdata.io"]
        assert str(handler.requests[-1].url) == "https://api-cricket.sportsdata.io/v1/fixtures?live=true"
        assert cache.get("live_cricket").data == payload
        # No sleep after the last attempt on a domain
        assert len(sleeps) == 3

    @pytest.mark.asyncio
    async def test_headers_are_sent_to_fallbacks(self, make_engine, sleeps):
        """Test that credentials travel with every attempt."""

        def responder(request):
            if request.url.host == "v1.cricket.api-sports.io":
                return _fail(request)
            return json_response({"response": []})

        engine, handler = make_engine(responder)

        await engine.execute(CRICKET_LIVE, headers={"x-apisports-key": "k1"})

        assert {r.headers["x-apisports-key"] for r in handler.requests} == {"k1"}

    @pytest.mark.asyncio
    async def test_invalid_json_counts_as_failure(self, make_engine, sleeps):
        """Test that an undecodable body is retried like a network error."""
        bodies = iter([b"<html>gateway</html>", b'{"response": []}'])
        engine, handler = make_engine(lambda r: httpx.Response(200, content=next(bodies)))

        payload = await engine.execute(CRICKET_LIVE)

        assert payload == {"response": []}
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_stale_cache_returned_when_all_fail(self, make_engine, cache, clock, sleeps):
        """Test that exhaustion degrades to the stale entry and logs it."""
        entry = cache.set("live_cricket", {"response": ["stale"]})
        stamped_at = entry.timestamp_ms
        clock.advance(3600)

        with capture_logs() as logs:
            engine, _ = make_engine(_fail)
            payload = await engine.execute(CRICKET_LIVE, cache_key="live_cricket", freshness_window_seconds=60)

        assert payload == {"response": ["stale"]}
        assert cache.get("live_cricket").timestamp_ms == stamped_at
        assert any(
            log["event"] == "Returning stale cached data" and log["log_level"] == "warning"
            for log in logs
        )

    @pytest.mark.asyncio
    async def test_exhaustion_without_cache_raises_aggregated_error(self, make_engine, cache, sleeps):
        """Test that every attempt on every domain is listed in the error."""
        engine, handler = make_engine(
            _fail,
            fallback_domains={"v1.cricket.api-sports.io": ("api-cricket.sportsdata.io/v1",)},
        )

        with pytest.raises(AllAttemptsFailedError) as exc_info:
            await engine.execute(CRICKET_LIVE, cache_key="live_cricket")

        error = exc_info.value
        assert len(error.attempts) == 8
        assert error.domains_tried == ["v1.cricket.api-sports.io", "api-cricket.sportsdata.io"]
        assert error.cache_key == "live_cricket"
        assert "Request to https://v1.cricket.api-sports.io/fixtures failed (attempt 1)" in str(error)
        assert "Request to https://api-cricket.sportsdata.io/v1/fixtures failed (attempt 4)" in str(error)
        # Pure failure leaves the cache untouched
        assert cache.get("live_cricket") is None

    @pytest.mark.asyncio
    async def test_unknown_domain_has_no_fallbacks(self, make_engine, sleeps):
        """Test that a host without mappings is tried alone."""
        engine, handler = make_engine(_fail, max_retries=1)

        with pytest.raises(AllAttemptsFailedError) as exc_info:
            await engine.execute("https://v1.darts.example.io/games")

        assert handler.hosts == ["v1.darts.example.io"] * 2
        assert len(exc_info.value.attempts) == 2

    @pytest.mark.asyncio
    async def test_non_2xx_statuses_are_not_differentiated(self, make_engine, sleeps):
        """Test that 401, 429 and 500 are all plain failed attempts."""
        statuses = iter([401, 429, 500, 200])
        engine, handler = make_engine(lambda r: json_response({"response": []}, next(statuses)))

        assert await engine.execute(CRICKET_LIVE) == {"response": []}
        assert len(handler.requests) == 4

    @pytest.mark.asyncio
    async def test_set_endpoint_mappings_is_per_instance(self, make_engine, sleeps):
        """Test that runtime mappings replace one entry without touching the static table."""
        original = FALLBACK_DOMAINS["v1.cricket.api-sports.io"]

        def responder(request):
            if request.url.host == "mirror.example.io":
                return json_response({"response": ["mirror"]})
            return _fail(request)

        engine, handler = make_engine(responder, max_retries=0)
        engine.set_endpoint_mappings("v1.cricket.api-sports.io", ["mirror.example.io/v1"])

        assert await engine.execute(CRICKET_LIVE) == {"response": ["mirror"]}
        assert handler.hosts == ["v1.cricket.api-sports.io", "mirror.example.io"]
        assert FALLBACK_DOMAINS["v1.cricket.api-sports.io"] == original

    @pytest.mark.asyncio
    async def test_clear_cache(self, make_engine, cache):
        """Test that clear_cache empties the underlying store."""
        engine, _ = make_engine(lambda r: json_response({}))
        cache.set("a", 1)

        engine.clear_cache()

        assert len(cache) == 0

    def test_backoff_delay_bounds(self):
        """Test that jittered delays stay within [0.5, 1.0) of the exponential step."""
        engine = ResilienceEngine(client=httpx.AsyncClient())
        for attempt in range(4):
            delay = engine.backoff_delay(attempt)
            assert 0.5 * 2 ** attempt <= delay < 2 ** attempt
