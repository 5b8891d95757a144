"""Domain records shared by the resolver, calculators and aggregation engine.

Every record here is a frozen dataclass: caches and callers hold snapshots
that are replaced wholesale on refresh, never edited in place.
"""
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from zakat_engine.constants import ZAKAT_RATE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PriceQuote:
    """A resolved price for a commodity (per gram) or an FX pair (per unit).

    commodity_or_pair is 'gold' / 'silver' for metals and 'EUR/USD' for
    exchange rates, where price_per_unit is units of `currency` per unit of
    the pair's base.
    """
    commodity_or_pair: str
    price_per_unit: float
    currency: str
    timestamp: datetime = field(default_factory=_utcnow)
    is_cache: bool = False
    source: str = ''
    is_direct: bool = True

    def __post_init__(self):
        if not is_positive_finite(self.price_per_unit):
            raise ValueError(f"price_per_unit must be positive and finite, got {self.price_per_unit!r}")

    def as_cached(self) -> 'PriceQuote':
        """Copy of this quote tagged as served from cache."""
        return replace(self, is_cache=True)

    def to_dict(self) -> dict:
        return {
            'commodity_or_pair': self.commodity_or_pair,
            'price_per_unit': self.price_per_unit,
            'currency': self.currency,
            'timestamp': self.timestamp.isoformat(),
            'is_cache': self.is_cache,
            'source': self.source,
            'is_direct': self.is_direct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PriceQuote':
        return cls(
            commodity_or_pair=data['commodity_or_pair'],
            price_per_unit=float(data['price_per_unit']),
            currency=data['currency'],
            timestamp=datetime.fromisoformat(data['timestamp']),
            is_cache=bool(data.get('is_cache', False)),
            source=data.get('source', ''),
            is_direct=bool(data.get('is_direct', True)),
        )


@dataclass(frozen=True)
class ExchangeRateSnapshot:
    """Rates per one unit of base_currency, e.g. base USD, rates['EUR'] = 0.92."""
    base_currency: str
    rates: dict
    timestamp: datetime = field(default_factory=_utcnow)
    source: str = ''
    is_cache: bool = False

    def __post_init__(self):
        if self.rates.get(self.base_currency) != 1.0:
            rates = dict(self.rates)
            rates[self.base_currency] = 1.0
            object.__setattr__(self, 'rates', rates)

    def rate_for(self, currency: str) -> Optional[float]:
        rate = self.rates.get(currency)
        if rate is None or not is_positive_finite(rate):
            return None
        return float(rate)

    def as_cached(self) -> 'ExchangeRateSnapshot':
        return replace(self, is_cache=True)

    def to_dict(self) -> dict:
        return {
            'base_currency': self.base_currency,
            'rates': dict(self.rates),
            'timestamp': self.timestamp.isoformat(),
            'source': self.source,
            'is_cache': self.is_cache,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ExchangeRateSnapshot':
        return cls(
            base_currency=data['base_currency'],
            rates={k: float(v) for k, v in data['rates'].items()},
            timestamp=datetime.fromisoformat(data['timestamp']),
            source=data.get('source', ''),
            is_cache=bool(data.get('is_cache', False)),
        )


@dataclass(frozen=True)
class MetalPrices:
    """Gold and silver price per gram in one currency, with provenance."""
    gold: float
    silver: float
    currency: str
    last_updated: datetime = field(default_factory=_utcnow)
    is_cache: bool = False
    source: str = ''
    is_direct_gold: bool = True
    is_direct_silver: bool = True

    @classmethod
    def from_quotes(cls, gold: PriceQuote, silver: PriceQuote) -> 'MetalPrices':
        sources = gold.source if gold.source == silver.source else f"{gold.source},{silver.source}"
        return cls(
            gold=gold.price_per_unit,
            silver=silver.price_per_unit,
            currency=gold.currency,
            last_updated=min(gold.timestamp, silver.timestamp),
            is_cache=gold.is_cache or silver.is_cache,
            source=sources,
            is_direct_gold=gold.is_direct,
            is_direct_silver=silver.is_direct,
        )

    def to_response(self) -> dict:
        """Shape served by GET /prices/metals."""
        return {
            'gold': round(self.gold, 4),
            'silver': round(self.silver, 4),
            'currency': self.currency,
            'lastUpdated': self.last_updated.isoformat(),
            'isCache': self.is_cache,
            'source': self.source,
        }


@dataclass(frozen=True)
class ConversionResult:
    """A converted amount with the provenance of the rate used."""
    amount: float
    rate: float
    from_currency: str
    to_currency: str
    source: str
    is_cache: bool = False
    is_degraded: bool = False

    def to_dict(self) -> dict:
        return {
            'amount': self.amount,
            'rate': self.rate,
            'from': self.from_currency,
            'to': self.to_currency,
            'source': self.source,
            'isCache': self.is_cache,
            'isDegraded': self.is_degraded,
        }


@dataclass(frozen=True)
class AssetBreakdownItem:
    value: float
    is_zakatable: bool
    zakatable: float
    zakat_due: float
    label: str
    is_exempt: bool = False
    is_liability: bool = False

    def to_dict(self) -> dict:
        data = {
            'value': self.value,
            'isZakatable': self.is_zakatable,
            'zakatable': self.zakatable,
            'zakatDue': self.zakat_due,
            'label': self.label,
        }
        if self.is_exempt:
            data['isExempt'] = True
        if self.is_liability:
            data['isLiability'] = True
        return data


@dataclass(frozen=True)
class AssetBreakdown:
    total: float
    zakatable: float
    zakat_due: float
    items: dict = field(default_factory=dict)

    @classmethod
    def from_items(cls, items: dict, zakat_due: Optional[float] = None) -> 'AssetBreakdown':
        """Build a breakdown whose totals are the exact sums of its items.

        zakat_due defaults to max(0, zakatable) * ZAKAT_RATE; categories with
        their own rule (debt) pass it explicitly.
        """
        total = 0.0
        zakatable = 0.0
        for item in items.values():
            total += item.value
            zakatable += item.zakatable
        if zakat_due is None:
            zakat_due = zakat_due_for(zakatable)
        return cls(total=total, zakatable=zakatable, zakat_due=zakat_due, items=dict(items))

    @classmethod
    def empty(cls) -> 'AssetBreakdown':
        return cls(total=0.0, zakatable=0.0, zakat_due=0.0, items={})

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'zakatable': self.zakatable,
            'zakatDue': self.zakat_due,
            'items': {key: item.to_dict() for key, item in self.items.items()},
        }


@dataclass(frozen=True)
class NisabThresholds:
    gold_threshold: float
    silver_threshold: float
    is_direct_gold_price: bool
    is_direct_silver_price: bool
    currency: str = ''
    policy: str = 'lower_of_two'

    def to_dict(self) -> dict:
        return {
            'goldThreshold': round(self.gold_threshold, 2),
            'silverThreshold': round(self.silver_threshold, 2),
            'isDirectGoldPrice': self.is_direct_gold_price,
            'isDirectSilverPrice': self.is_direct_silver_price,
            'currency': self.currency,
            'policy': self.policy,
        }


@dataclass(frozen=True)
class CombinedBreakdown:
    total_value: float
    zakatable_value: float
    zakat_due: float
    meets_nisab: bool
    per_category: dict = field(default_factory=dict)
    currency: str = ''
    nisab_basis: str = 'total_value'
    nisab: Optional[NisabThresholds] = None

    @property
    def zakat_payable(self) -> float:
        """Zakat owed once the nisab check is applied."""
        return self.zakat_due if self.meets_nisab else 0.0

    def to_dict(self) -> dict:
        return {
            'currency': self.currency,
            'totalValue': self.total_value,
            'zakatableValue': self.zakatable_value,
            'zakatDue': self.zakat_due,
            'zakatPayable': self.zakat_payable,
            'meetsNisab': self.meets_nisab,
            'nisabBasis': self.nisab_basis,
            'nisab': self.nisab.to_dict() if self.nisab else None,
            'perCategory': {key: b.to_dict() for key, b in self.per_category.items()},
        }


def is_positive_finite(value) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def zakat_due_for(zakatable: float) -> float:
    """2.5% of a zakatable amount; negative amounts owe nothing."""
    return max(0.0, zakatable) * ZAKAT_RATE
