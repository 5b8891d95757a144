"""Pytest fixtures for the zakat engine tests."""
from datetime import datetime, timezone

import pytest

from zakat_engine import create_app
from zakat_engine.services.cache import MemoryCacheStore
from zakat_engine.services.circuit_breaker import CircuitBreaker
from zakat_engine.services.price_resolver import PriceResolver
from zakat_engine.services.time_provider import TimeProvider
from tests.fakes.fake_providers import FakeFXProvider, FakeMetalProvider


# Fixed "now" for deterministic cache ages and cool-downs
FROZEN_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_time():
    """Freeze the default TimeProvider at FROZEN_NOW.

    Yields the TimeProvider so tests can advance it. Resets the default
    provider after the test completes.
    """
    provider = TimeProvider(frozen_at=FROZEN_NOW)
    TimeProvider.set_default(provider)
    yield provider
    TimeProvider.reset_default()


@pytest.fixture
def metal_provider():
    return FakeMetalProvider('provider1')


@pytest.fixture
def fx_provider():
    return FakeFXProvider('fx1')


@pytest.fixture
def make_resolver(frozen_time):
    """Factory for a PriceResolver on fake providers and a memory cache."""
    def _make(metal_providers=None, fx_providers=None, **kwargs):
        kwargs.setdefault('cache', MemoryCacheStore(frozen_time))
        kwargs.setdefault('breaker', CircuitBreaker(threshold=3, cooldown=300, time_provider=frozen_time))
        return PriceResolver(
            metal_providers if metal_providers is not None else [FakeMetalProvider('provider1')],
            fx_providers if fx_providers is not None else [FakeFXProvider('fx1')],
            time_provider=frozen_time,
            **kwargs,
        )
    return _make


@pytest.fixture
def app(tmp_path, frozen_time, metal_provider, fx_provider):
    """Create application for testing.

    Providers are fakes, so no request ever leaves the process.
    """
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path),
        'DEFAULT_CURRENCY': 'USD',
        'PRICING_ALLOW_NETWORK': True,
        'PRICING_CACHE_BACKEND': 'memory',
        'PRICING_METAL_PROVIDERS': [metal_provider],
        'PRICING_FX_PROVIDERS': [fx_provider],
        'TIME_PROVIDER': frozen_time,
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def runner(app):
    return app.test_cli_runner()
