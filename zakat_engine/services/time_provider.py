"""Time provider abstraction for testable cache ages and cool-downs.

All times are timezone-aware UTC datetimes. Cache expiry, emergency max age,
circuit-breaker cool-downs and the monthly request counter all read the
clock through a TimeProvider so tests can freeze and advance it.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional


class TimeProvider:
    """Provides the current time, allowing tests to freeze it.

    Usage:
        # Production: uses the real UTC clock
        provider = TimeProvider()
        now = provider.now()

        # Testing: freeze, then move forward explicitly
        provider = TimeProvider(frozen_at=datetime(2026, 1, 15, tzinfo=timezone.utc))
        provider.advance(seconds=3600)
    """

    _instance: Optional['TimeProvider'] = None

    def __init__(self, frozen_at: Optional[datetime] = None):
        self._frozen_at = frozen_at

    def now(self) -> datetime:
        if self._frozen_at is not None:
            return self._frozen_at
        return datetime.now(timezone.utc)

    def timestamp(self) -> float:
        """Current time as POSIX seconds."""
        return self.now().timestamp()

    def today(self) -> date:
        return self.now().date()

    def advance(self, seconds: float) -> None:
        """Move a frozen clock forward. No-op on the real clock."""
        if self._frozen_at is not None:
            self._frozen_at = self._frozen_at + timedelta(seconds=seconds)

    @property
    def is_frozen(self) -> bool:
        return self._frozen_at is not None

    @classmethod
    def get_default(cls) -> 'TimeProvider':
        """Get the default TimeProvider instance (singleton for production)."""
        if cls._instance is None:
            cls._instance = TimeProvider()
        return cls._instance

    @classmethod
    def set_default(cls, provider: 'TimeProvider') -> None:
        """Set the default TimeProvider (for testing)."""
        cls._instance = provider

    @classmethod
    def reset_default(cls) -> None:
        """Reset to production TimeProvider."""
        cls._instance = None

