"""Pluggable market data provider interface and error taxonomy."""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from zakat_engine.models import ExchangeRateSnapshot


@dataclass(frozen=True)
class MetalSpot:
    """Gold and silver spot prices per gram as one provider quoted them."""
    gold_per_gram: float
    silver_per_gram: float
    currency: str
    source: str


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class ProviderUnavailable(ProviderError):
    """Provider could not be reached or answered with a non-2xx status."""
    pass


class NetworkError(ProviderUnavailable):
    """Network connectivity issue or timeout."""
    pass


class RateLimitError(ProviderUnavailable):
    """API rate limit exceeded."""
    pass


class AuthenticationError(ProviderUnavailable):
    """API key invalid or missing."""
    pass


class MalformedResponse(ProviderError):
    """Response body was not the JSON shape the provider promises."""
    pass


class OutOfRangeValue(ProviderError):
    """Parsed value failed the plausibility check."""
    pass


class ConversionUnavailable(ProviderError):
    """No tier could produce an exchange rate for a currency pair."""
    pass


class InvalidInput(ValueError):
    """Caller supplied a NaN, infinite, negative or unknown value."""
    pass


class BudgetExhausted(ProviderError):
    """Monthly request budget for a paid provider is used up."""
    pass


class MetalProvider(ABC):
    """Abstract base for gold/silver spot price providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier, used as the `source` of its quotes."""
        pass

    @property
    @abstractmethod
    def requires_api_key(self) -> bool:
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if provider is properly configured (API key set if required)."""
        pass

    @abstractmethod
    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        """Fetch current gold and silver prices per gram.

        The returned spot may be quoted in a different currency than the one
        requested when the provider only quotes USD.

        Raises:
            ProviderError: If fetch fails
        """
        pass


class FXProvider(ABC):
    """Abstract base for exchange rate providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def requires_api_key(self) -> bool:
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    def get_rates(self, base: str, timeout: float) -> ExchangeRateSnapshot:
        """Fetch latest rates per one unit of `base`.

        Raises:
            ProviderError: If fetch fails
        """
        pass
