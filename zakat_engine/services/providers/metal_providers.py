"""Gold/silver spot price provider implementations.

Every provider quotes per troy ounce; prices are converted to per gram here.
"""
from typing import Optional

from zakat_engine.data.metals import per_ounce_to_per_gram
from zakat_engine.services.config import get_goldapi_key, get_metalsdev_key
from . import BudgetExhausted, MalformedResponse, MetalProvider, MetalSpot
from .http import fetch_json


def _positive(value, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedResponse(f"Missing or non-numeric {field}")
    if not number > 0:
        raise MalformedResponse(f"Non-positive {field}: {number}")
    return number


class FrankfurterMetalProvider(MetalProvider):
    """Frankfurter rates with XAU as base; silver derived through the XAG rate."""

    BASE_URL = "https://api.frankfurter.app"

    @property
    def name(self) -> str:
        return "frankfurter"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        url = f"{self.BASE_URL}/latest?from=XAU&to={currency},XAG"
        data = fetch_json(url, timeout)
        rates = data.get('rates') if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            raise MalformedResponse("Missing rates")

        gold_per_oz = _positive(rates.get(currency), f"rates.{currency}")
        xag_per_xau = _positive(rates.get('XAG'), 'rates.XAG')
        return MetalSpot(
            gold_per_gram=per_ounce_to_per_gram(gold_per_oz),
            silver_per_gram=per_ounce_to_per_gram(gold_per_oz / xag_per_xau),
            currency=currency,
            source=self.name,
        )


class GoldPriceOrgProvider(MetalProvider):
    """goldprice.org public feed; quotes any major currency directly."""

    BASE_URL = "https://data-asg.goldprice.org/dbXRates"

    @property
    def name(self) -> str:
        return "goldprice"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        data = fetch_json(f"{self.BASE_URL}/{currency}", timeout)
        items = data.get('items') if isinstance(data, dict) else None
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            raise MalformedResponse("Missing items")

        item = items[0]
        quoted = str(item.get('curr') or currency).upper()
        return MetalSpot(
            gold_per_gram=per_ounce_to_per_gram(_positive(item.get('xauPrice'), 'xauPrice')),
            silver_per_gram=per_ounce_to_per_gram(_positive(item.get('xagPrice'), 'xagPrice')),
            currency=quoted,
            source=self.name,
        )


class MetalsLiveProvider(MetalProvider):
    """metals.live spot feed; USD only."""

    URL = "https://api.metals.live/v1/spot/gold,silver"

    @property
    def name(self) -> str:
        return "metals-live"

    @property
    def requires_api_key(self) -> bool:
        return False

    def is_configured(self) -> bool:
        return True

    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        data = fetch_json(self.URL, timeout)
        if not isinstance(data, list):
            raise MalformedResponse("Expected a list of spot prices")

        prices = {}
        for entry in data:
            if isinstance(entry, dict) and 'metal' in entry:
                prices[str(entry['metal']).lower()] = entry.get('price')

        return MetalSpot(
            gold_per_gram=per_ounce_to_per_gram(_positive(prices.get('gold'), 'gold price')),
            silver_per_gram=per_ounce_to_per_gram(_positive(prices.get('silver'), 'silver price')),
            currency='USD',
            source=self.name,
        )


class GoldAPIProvider(MetalProvider):
    """GoldAPI.io provider - requires API key and draws on the monthly budget.

    One spot fetch is two calls (XAU and XAG); each is counted.
    """

    BASE_URL = "https://www.goldapi.io/api"

    def __init__(self, api_key: Optional[str] = None, counter=None):
        self._api_key = api_key or get_goldapi_key()
        self._counter = counter

    @property
    def name(self) -> str:
        return "goldapi"

    @property
    def requires_api_key(self) -> bool:
        return True

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _fetch_symbol(self, symbol: str, currency: str, timeout: float) -> float:
        if self._counter is not None and not self._counter.has_budget():
            raise BudgetExhausted(f"{self.name} monthly budget exhausted")
        try:
            data = fetch_json(
                f"{self.BASE_URL}/{symbol}/{currency}",
                timeout,
                headers={'x-access-token': self._api_key},
            )
        finally:
            if self._counter is not None:
                self._counter.increment()

        if not isinstance(data, dict):
            raise MalformedResponse("Expected an object")
        return _positive(data.get('price'), f"{symbol} price")

    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        gold_per_oz = self._fetch_symbol('XAU', currency, timeout)
        silver_per_oz = self._fetch_symbol('XAG', currency, timeout)
        return MetalSpot(
            gold_per_gram=per_ounce_to_per_gram(gold_per_oz),
            silver_per_gram=per_ounce_to_per_gram(silver_per_oz),
            currency=currency,
            source=self.name,
        )


class MetalsDevAPIProvider(MetalProvider):
    """Metals.dev API provider - free tier with API key."""

    BASE_URL = "https://api.metals.dev/v1"

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or get_metalsdev_key()

    @property
    def name(self) -> str:
        return "metals-dev"

    @property
    def requires_api_key(self) -> bool:
        return True

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def fetch_spot(self, currency: str, timeout: float) -> MetalSpot:
        url = f"{self.BASE_URL}/latest?api_key={self._api_key}&currency={currency}&unit=toz"
        data = fetch_json(url, timeout)
        if not isinstance(data, dict) or data.get('status') != 'success':
            error = data.get('error', 'unknown') if isinstance(data, dict) else 'unknown'
            raise MalformedResponse(f"API error: {error}")

        metals = data.get('metals') or {}
        quoted = str(data.get('currency') or currency).upper()
        return MetalSpot(
            gold_per_gram=per_ounce_to_per_gram(_positive(metals.get('gold'), 'metals.gold')),
            silver_per_gram=per_ounce_to_per_gram(_positive(metals.get('silver'), 'metals.silver')),
            currency=quoted,
            source=self.name,
        )
