"""Monthly request counter for paid metals APIs.

The counter lives in a small JSON file keyed by (month, year) and resets
when the calendar month rolls over.
"""
import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .cache import write_json_atomic
from .time_provider import TimeProvider

logger = logging.getLogger(__name__)

COUNTER_FILE = 'metal_api_counter.json'


@dataclass(frozen=True)
class CounterState:
    count: int
    month: int
    year: int

    def resets_at(self) -> datetime:
        """First instant of the next calendar month (UTC)."""
        if self.month == 12:
            return datetime(self.year + 1, 1, 1, tzinfo=timezone.utc)
        return datetime(self.year, self.month + 1, 1, tzinfo=timezone.utc)


class RequestCounter:
    """File-backed monthly call budget.

    Usage:
        counter = RequestCounter(data_dir, limit=80)
        if counter.has_budget():
            ...call the paid API...
            counter.increment()
    """

    def __init__(
        self,
        data_dir: str,
        limit: int,
        time_provider: Optional[TimeProvider] = None,
    ):
        self._path = os.path.join(data_dir, COUNTER_FILE)
        self._limit = limit
        self._time = time_provider or TimeProvider.get_default()
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def _fresh_state(self) -> CounterState:
        now = self._time.now()
        return CounterState(count=0, month=now.month, year=now.year)

    def _load(self) -> CounterState:
        current = self._fresh_state()
        if not os.path.exists(self._path):
            return current
        try:
            with open(self._path, 'r') as f:
                data = json.load(f)
            state = CounterState(
                count=int(data['count']),
                month=int(data['month']),
                year=int(data['year']),
            )
        except (json.JSONDecodeError, IOError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Resetting unreadable request counter {self._path}: {e}")
            return current

        if (state.month, state.year) != (current.month, current.year):
            logger.info(f"Request counter rolled over to {current.year}-{current.month:02d}")
            return current
        return state

    def _save(self, state: CounterState) -> None:
        write_json_atomic(self._path, {
            'count': state.count,
            'month': state.month,
            'year': state.year,
        })

    def get(self) -> CounterState:
        with self._lock:
            return self._load()

    def increment(self) -> int:
        """Record one paid call and return the new count for this month."""
        with self._lock:
            state = self._load()
            state = CounterState(count=state.count + 1, month=state.month, year=state.year)
            self._save(state)
        if state.count >= self._limit:
            logger.warning(f"Monthly metals API budget exhausted ({state.count}/{self._limit})")
        return state.count

    def has_budget(self) -> bool:
        return self.get().count < self._limit

    def status(self) -> dict:
        state = self.get()
        return {
            'requests': {
                'used': state.count,
                'remaining': max(0, self._limit - state.count),
                'limit': self._limit,
            },
            'period': {
                'month': state.month,
                'year': state.year,
            },
            'resetsAt': state.resets_at().isoformat(),
        }
