"""Tests for the price cache backends."""
import json
import os

import pytest

from zakat_engine.models import ExchangeRateSnapshot, PriceQuote
from zakat_engine.services.cache import (
    CACHE_FILE,
    FileCacheStore,
    MemoryCacheStore,
    R2CacheStore,
    create_cache_store,
    write_json_atomic,
)
from zakat_engine.services.r2_client import R2Client
from zakat_engine.services.r2_config import R2Settings
from tests.fakes.fake_r2 import FakeR2


@pytest.fixture
def quote(frozen_time):
    return PriceQuote('gold', 80.0, 'USD', frozen_time.now(), False, 'provider1', True)


@pytest.fixture
def snapshot(frozen_time):
    return ExchangeRateSnapshot('USD', {'EUR': 0.9, 'GBP': 0.8}, frozen_time.now(), 'fx1')


@pytest.fixture
def r2_store(frozen_time):
    client = R2Client(R2Settings(bucket='test-bucket'), s3_client=FakeR2())
    return R2CacheStore(client, frozen_time)


@pytest.fixture(params=['memory', 'file', 'r2'])
def store(request, tmp_path, frozen_time):
    if request.param == 'memory':
        return MemoryCacheStore(frozen_time)
    if request.param == 'file':
        return FileCacheStore(str(tmp_path), frozen_time)
    return request.getfixturevalue('r2_store')


class TestCacheStoreContract:
    """Every backend honours the same TTL semantics."""

    def test_get_fresh_value(self, store, quote):
        store.set('metal:gold:USD', quote, ttl=60)
        assert store.get('metal:gold:USD') == quote

    def test_missing_key(self, store):
        assert store.get('metal:gold:USD') is None
        assert store.get_stale('metal:gold:USD', max_age=3600) is None

    def test_expired_value_hidden_from_get(self, store, quote, frozen_time):
        store.set('metal:gold:USD', quote, ttl=60)
        frozen_time.advance(61)
        assert store.get('metal:gold:USD') is None

    def test_stale_value_within_max_age(self, store, quote, frozen_time):
        store.set('metal:gold:USD', quote, ttl=60)
        frozen_time.advance(600)
        assert store.get_stale('metal:gold:USD', max_age=3600) == quote
        assert store.get_stale('metal:gold:USD', max_age=300) is None

    def test_snapshot_values(self, store, snapshot):
        store.set('fx:USD', snapshot, ttl=60)
        cached = store.get('fx:USD')
        assert cached.rates == {'USD': 1.0, 'EUR': 0.9, 'GBP': 0.8}
        assert cached.source == 'fx1'

    def test_set_replaces_entry(self, store, quote):
        store.set('metal:gold:USD', quote, ttl=60)
        newer = PriceQuote('gold', 81.0, 'USD', quote.timestamp, False, 'provider2', True)
        store.set('metal:gold:USD', newer, ttl=60)
        assert store.get('metal:gold:USD').source == 'provider2'

    def test_keys_delete_and_clear(self, store, quote, snapshot):
        store.set('metal:gold:USD', quote, ttl=60)
        store.set('fx:USD', snapshot, ttl=60)
        assert sorted(store.keys()) == ['fx:USD', 'metal:gold:USD']

        store.delete('fx:USD')
        assert store.keys() == ['metal:gold:USD']

        store.clear()
        assert store.keys() == []


class TestFileCacheStore:

    def test_survives_new_instance(self, tmp_path, frozen_time, quote):
        FileCacheStore(str(tmp_path), frozen_time).set('metal:gold:USD', quote, ttl=60)
        assert FileCacheStore(str(tmp_path), frozen_time).get('metal:gold:USD') == quote

    def test_corrupt_file_ignored(self, tmp_path, frozen_time):
        (tmp_path / CACHE_FILE).write_text('{not json')
        store = FileCacheStore(str(tmp_path), frozen_time)
        assert store.get('metal:gold:USD') is None
        assert store.keys() == []

    def test_malformed_entry_ignored(self, tmp_path, frozen_time):
        (tmp_path / CACHE_FILE).write_text(json.dumps({'metal:gold:USD': {'value': {'kind': 'bogus'}}}))
        assert FileCacheStore(str(tmp_path), frozen_time).get_entry('metal:gold:USD') is None

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        path = os.path.join(str(tmp_path), 'out.json')
        write_json_atomic(path, {'a': 1})
        assert json.loads(open(path).read()) == {'a': 1}
        assert os.listdir(str(tmp_path)) == ['out.json']


class TestCreateCacheStore:

    def test_memory_default(self, frozen_time):
        assert isinstance(create_cache_store('memory', time_provider=frozen_time), MemoryCacheStore)

    def test_file(self, tmp_path, frozen_time):
        assert isinstance(create_cache_store('file', str(tmp_path), frozen_time), FileCacheStore)

    def test_r2_without_credentials_falls_back_to_memory(self, monkeypatch, frozen_time):
        monkeypatch.delenv('R2_ENABLED', raising=False)
        assert isinstance(create_cache_store('r2', time_provider=frozen_time), MemoryCacheStore)

    def test_unknown_backend_uses_memory(self, frozen_time):
        assert isinstance(create_cache_store('redis', time_provider=frozen_time), MemoryCacheStore)


class TestBackendFailures:
    """Backend errors read as misses and skipped writes."""

    @pytest.fixture
    def failing_r2_store(self, frozen_time):
        client = R2Client(R2Settings(bucket='test-bucket'), s3_client=FakeR2(fail_with='InternalError'))
        return R2CacheStore(client, frozen_time)

    def test_r2_read_error_is_a_miss(self, failing_r2_store):
        assert failing_r2_store.get('metal:gold:USD') is None
        assert failing_r2_store.get_stale('metal:gold:USD', max_age=3600) is None

    def test_r2_write_error_skipped(self, failing_r2_store, quote):
        failing_r2_store.set('metal:gold:USD', quote, ttl=60)
        failing_r2_store.delete('metal:gold:USD')
        assert failing_r2_store.keys() == []

    def test_r2_recovers_when_bucket_returns(self, frozen_time, quote):
        fake = FakeR2(fail_with='SlowDown')
        store = R2CacheStore(R2Client(R2Settings(bucket='test-bucket'), s3_client=fake), frozen_time)
        store.set('metal:gold:USD', quote, ttl=60)

        fake.fail_with = None
        store.set('metal:gold:USD', quote, ttl=60)
        assert store.get('metal:gold:USD') == quote

    def test_file_write_error_skipped(self, tmp_path, frozen_time, quote, monkeypatch):
        def read_only(path, data):
            raise PermissionError(13, 'Read-only file system')

        monkeypatch.setattr('zakat_engine.services.cache.write_json_atomic', read_only)
        store = FileCacheStore(str(tmp_path), frozen_time)

        store.set('metal:gold:USD', quote, ttl=60)
        assert store.get('metal:gold:USD') is None
