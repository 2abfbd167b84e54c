"""Shared fixtures for the sports data tests."""

from typing import Callable, Optional

import httpx
import pytest

from config.settings import CacheSettings, ProviderCredentials, ResilienceSettings, Settings
from src.sports.feeds import resilience as resilience_module
from src.sports.feeds.cache import CacheStore
from src.sports.feeds.resilience import ResilienceEngine


class FakeClock:
    """Millisecond clock the tests advance by hand."""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class RecordingHandler:
    """MockTransport handler that records requests and delegates to a responder."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]


def make_credentials(shared: str = "test-key", **overrides: str) -> ProviderCredentials:
    """Credentials with every field explicit, so the environment cannot leak in."""
    values = {name: "" for name in ProviderCredentials.model_fields}
    values["api_sports_key"] = shared
    values.update(overrides)
    return ProviderCredentials(_env_file=None, **values)


def make_settings(shared: str = "test-key", **credential_overrides: str) -> Settings:
    return Settings(
        _env_file=None,
        credentials=make_credentials(shared, **credential_overrides),
        resilience=ResilienceSettings(max_retries=3, retry_delay_base_seconds=1.0),
        cache=CacheSettings(),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheStore(version="v4", clock=clock)


@pytest.fixture
def sleeps(monkeypatch):
    """Replace backoff sleeps with a recorder."""
    recorded: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        recorded.append(seconds)

    monkeypatch.setattr(resilience_module.asyncio, "sleep", _fake_sleep)
    return recorded


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def settings_factory():
    """Build settings with specific credentials."""
    return make_settings


@pytest.fixture
def make_engine(cache):
    """Build an engine whose HTTP goes through a recording MockTransport."""

    def _make(
        responder: Callable[[httpx.Request], httpx.Response],
        fallback_domains: Optional[dict] = None,
        max_retries: int = 3,
    ) -> tuple[ResilienceEngine, RecordingHandler]:
        handler = RecordingHandler(responder)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        engine = ResilienceEngine(
            cache=cache,
            settings=ResilienceSettings(max_retries=max_retries, retry_delay_base_seconds=1.0),
            client=client,
            fallback_domains=fallback_domains,
        )
        return engine, handler

    return _make
