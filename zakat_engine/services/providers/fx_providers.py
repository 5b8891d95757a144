"""Exchange rate provider implementations."""
import logging
from datetime import datetime, timezone

from zakat_engine.models import ExchangeRateSnapshot, is_positive_finite
from . import FXProvider, MalformedResponse, ProviderUnavailable, RateLimitError
from .http import fetch_json

logger = logging.getLogger(__name__)


def _parse_rates(raw, source: str) -> dict[str, float]:
    """Keep numeric, positive rates with upper-case codes."""
    if not isinstance(raw, dict):
        raise MalformedResponse(f"{source}: missing rates object")

    rates = {}
    for currency, rate in raw.items():
        try:
            value = float(rate)
        except (TypeError, ValueError):
            continue
        if is_positive_finite(value):
            rates[str(currency).upper()] = value

    if not rates:
        raise MalformedResponse(f"{source}: no usable rates")
    return rates


def _snapshot(base: str, rates: dict, source: str) -> ExchangeRateSnapshot:
    return ExchangeRateSnapshot(
        base_currency=base,
        rates=rates,
        timestamp=datetime.now(timezone.utc),
        source=source,
    )


class FrankfurterFXProvider(FXProvider):
    """Frankfurter (ECB reference rates), no key required."""

    BASE_URL = "https://api.frankfurter.dev/v1"

    @property
    def name(self) -> str:
        return "frankfurter"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def get_rates(self, base: str, timeout: float) -> ExchangeRateSnapshot:
        data = fetch_json(f"{self.BASE_URL}/latest?base={base}", timeout)
        if not isinstance(data, dict):
            raise MalformedResponse("Expected an object")
        return _snapshot(base, _parse_rates(data.get('rates'), self.name), self.name)


class OpenERAPIProvider(FXProvider):
    """open.er-api.com free tier, no key required."""

    BASE_URL = "https://open.er-api.com/v6"

    @property
    def name(self) -> str:
        return "open-er-api"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def get_rates(self, base: str, timeout: float) -> ExchangeRateSnapshot:
        data = fetch_json(f"{self.BASE_URL}/latest/{base}", timeout)
        if not isinstance(data, dict) or data.get('result') != 'success':
            error = data.get('error-type', 'unknown') if isinstance(data, dict) else 'unknown'
            raise MalformedResponse(f"API error: {error}")
        return _snapshot(base, _parse_rates(data.get('rates'), self.name), self.name)


class ExchangeRateHostProvider(FXProvider):
    """exchangerate.host, no key required."""

    BASE_URL = "https://api.exchangerate.host"

    @property
    def name(self) -> str:
        return "exchangerate-host"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def get_rates(self, base: str, timeout: float) -> ExchangeRateSnapshot:
        data = fetch_json(f"{self.BASE_URL}/latest?base={base}", timeout)
        if not isinstance(data, dict):
            raise MalformedResponse("Expected an object")
        if data.get('success') is False:
            raise MalformedResponse(f"API error: {data.get('error', 'unknown')}")
        return _snapshot(base, _parse_rates(data.get('rates'), self.name), self.name)


class FawazExchangeAPIProvider(FXProvider):
    """fawazahmed0/exchange-api via jsDelivr with Cloudflare Pages mirrors.

    Mirrors are tried in order; a 429 stops the walk immediately.
    """

    BASE_URL = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1"
    FALLBACK_URL = "https://latest.currency-api.pages.dev/v1"

    @property
    def name(self) -> str:
        return "fawaz-exchange-api"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def get_rates(self, base: str, timeout: float) -> ExchangeRateSnapshot:
        code = base.lower()
        endpoints = [
            f"{self.BASE_URL}/currencies/{code}.min.json",
            f"{self.FALLBACK_URL}/currencies/{code}.min.json",
            f"{self.BASE_URL}/currencies/{code}.json",
            f"{self.FALLBACK_URL}/currencies/{code}.json",
        ]

        last_error = None
        for url in endpoints:
            try:
                data = fetch_json(url, timeout)
            except RateLimitError:
                raise
            except (ProviderUnavailable, MalformedResponse) as e:
                logger.debug(f"{self.name}: {url} failed: {e}")
                last_error = e
                continue

            rates_blob = data.get(code) if isinstance(data, dict) else None
            return _snapshot(base, _parse_rates(rates_blob, self.name), self.name)

        raise ProviderUnavailable(f"Failed to fetch rates: {last_error}")
