"""Keyed price caches with TTL.

PriceResolver and CurrencyConverter take a CacheStore instead of touching a
module-level cache, so tests run against an isolated MemoryCacheStore.
Entries are immutable: set() replaces the whole entry and readers never see
a half-written value.
"""
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from zakat_engine.models import ExchangeRateSnapshot, PriceQuote
from .time_provider import TimeProvider

logger = logging.getLogger(__name__)

CACHE_FILE = 'pricing_cache.json'


def write_json_atomic(path: str, data) -> None:
    """Write JSON to path via a temp file and rename so readers never see a partial file."""
    directory = os.path.dirname(path) or '.'
    os.makedirs(directory, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def age(self, now: float) -> float:
        return now - self.stored_at


class CacheStore(ABC):
    """Abstract keyed store with per-entry TTL."""

    def __init__(self, time_provider: Optional[TimeProvider] = None):
        self._time = time_provider or TimeProvider.get_default()

    def _now(self) -> float:
        return self._time.timestamp()

    @abstractmethod
    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry regardless of expiry, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value under key, replacing any previous entry."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        pass

    def get(self, key: str) -> Any:
        """Return the value if present and not expired, else None."""
        entry = self.get_entry(key)
        if entry is None or not entry.is_fresh(self._now()):
            return None
        return entry.value

    def get_stale(self, key: str, max_age: float) -> Any:
        """Return the value regardless of TTL if younger than max_age."""
        entry = self.get_entry(key)
        if entry is None or entry.age(self._now()) > max_age:
            return None
        return entry.value

    def clear(self) -> None:
        for key in self.keys():
            self.delete(key)

    def _make_entry(self, value: Any, ttl: float) -> CacheEntry:
        now = self._now()
        return CacheEntry(value=value, stored_at=now, expires_at=now + ttl)


class MemoryCacheStore(CacheStore):
    """Process-local cache; the default backend."""

    def __init__(self, time_provider: Optional[TimeProvider] = None):
        super().__init__(time_provider)
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, ttl: float) -> None:
        entry = self._make_entry(value, ttl)
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)


class FileCacheStore(CacheStore):
    """JSON file cache with atomic writes (temp file then rename).

    Survives process restarts on a persistent disk; values are PriceQuote or
    ExchangeRateSnapshot records.
    """

    def __init__(self, data_dir: str, time_provider: Optional[TimeProvider] = None):
        super().__init__(time_provider)
        self._path = os.path.join(data_dir, CACHE_FILE)
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def _read_all(self) -> dict:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, 'r') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable cache file {self._path}: {e}")
            return {}

    def _write_all(self, data: dict) -> None:
        # Read-only or full disk: skip the write
        try:
            write_json_atomic(self._path, data)
        except OSError as e:
            logger.warning(f"Cache write to {self._path} skipped: {e}")

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            raw = self._read_all().get(key)
        if raw is None:
            return None
        try:
            return CacheEntry(
                value=decode_value(raw['value']),
                stored_at=float(raw['stored_at']),
                expires_at=float(raw['expires_at']),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed cache entry {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        entry = self._make_entry(value, ttl)
        with self._lock:
            data = self._read_all()
            data[key] = {
                'value': encode_value(value),
                'stored_at': entry.stored_at,
                'expires_at': entry.expires_at,
            }
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read_all())

    def clear(self) -> None:
        with self._lock:
            if os.path.exists(self._path):
                try:
                    os.unlink(self._path)
                except OSError as e:
                    logger.warning(f"Could not remove cache file {self._path}: {e}")


def encode_value(value: Any) -> dict:
    """Serialize a cached record to a JSON-safe dict."""
    if isinstance(value, PriceQuote):
        return {'kind': 'quote', 'data': value.to_dict()}
    if isinstance(value, ExchangeRateSnapshot):
        return {'kind': 'rates', 'data': value.to_dict()}
    raise TypeError(f"Unsupported cache value: {type(value).__name__}")


def decode_value(payload: dict) -> Any:
    kind = payload.get('kind')
    if kind == 'quote':
        return PriceQuote.from_dict(payload['data'])
    if kind == 'rates':
        return ExchangeRateSnapshot.from_dict(payload['data'])
    raise ValueError(f"Unknown cache value kind: {kind!r}")


class R2CacheStore(CacheStore):
    """Cache shared across instances through an R2 bucket.

    Reads go to the bucket every time; the resolver keeps request volume low
    through in-flight de-duplication and TTLs. A bucket error reads as a miss
    and a failed write is skipped, so an R2 outage only costs cache hits.
    """

    def __init__(self, r2_client, time_provider: Optional[TimeProvider] = None):
        super().__init__(time_provider)
        self._r2 = r2_client

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self._r2.get_entry(key)
        except Exception as e:
            # botocore ClientError / BotoCoreError
            logger.warning(f"R2 cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return CacheEntry(
                value=decode_value(raw['value']),
                stored_at=float(raw['stored_at']),
                expires_at=float(raw['expires_at']),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed R2 cache entry {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        entry = self._make_entry(value, ttl)
        payload = {
            'value': encode_value(value),
            'stored_at': entry.stored_at,
            'expires_at': entry.expires_at,
        }
        try:
            self._r2.put_entry(key, payload)
        except Exception as e:
            logger.warning(f"R2 cache write skipped for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._r2.delete_entry(key)
        except Exception as e:
            logger.warning(f"R2 cache delete failed for {key}: {e}")

    def keys(self) -> list[str]:
        try:
            return self._r2.list_entries()
        except Exception as e:
            logger.warning(f"R2 cache listing failed: {e}")
            return []


def create_cache_store(
    backend: str,
    data_dir: str = './data',
    time_provider: Optional[TimeProvider] = None,
) -> CacheStore:
    """Build the configured backend ('memory', 'file' or 'r2').

    'r2' falls back to memory when R2 is not fully configured.
    """
    backend = (backend or 'memory').lower()
    if backend == 'file':
        return FileCacheStore(data_dir, time_provider)
    if backend == 'r2':
        from .r2_client import get_r2_client
        client = get_r2_client()
        if client is not None:
            return R2CacheStore(client, time_provider)
        logger.warning("PRICING_CACHE_BACKEND=r2 but R2 is not configured; using memory cache")
    elif backend != 'memory':
        logger.warning(f"Unknown cache backend {backend!r}; using memory cache")
    return MemoryCacheStore(time_provider)
