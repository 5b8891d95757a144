"""End-to-end zakat calculation for a submitted portfolio.

Request body shape:

    {
        "currency": "USD",
        "nisab_policy": "lower_of_two",
        "nisab_basis": "total_value",
        "assets": {
            "cash": {"cash_on_hand": 1000, "hawl_met": true,
                     "foreign_currency_entries": [{"amount": 50, "currency": "EUR"}]},
            "precious_metals": {"gold_investment": 20, "weight_unit": "gram"},
            "debt": {"receivables": 500, "short_term_liabilities": 200}
        }
    }

Each category carries its own hawl_met flag (default true). Unknown
categories are rejected.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from zakat_engine.constants import ASSET_CATEGORIES, CATEGORY_CASH
from zakat_engine.data.currencies import is_valid_currency, normalize_currency
from zakat_engine.models import AssetBreakdown, CombinedBreakdown, ConversionResult, MetalPrices
from .aggregation import AggregationEngine, NisabBasis
from .assets import safe_flag
from .assets.cash import CashValues
from .assets.registry import get_calculator
from .fx import CurrencyConverter
from .nisab import NisabResolver, get_nisab_policy, thresholds_from_prices
from .providers import InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryInput:
    values: Any
    hawl_met: bool = True


@dataclass(frozen=True)
class Portfolio:
    """Validated holdings for one calculation."""
    currency: str
    categories: dict = field(default_factory=dict)
    nisab_policy: Optional[str] = None
    nisab_basis: NisabBasis = NisabBasis.TOTAL_VALUE

    @classmethod
    def from_dict(cls, data: dict, default_currency: str = 'USD') -> 'Portfolio':
        """Parse and validate a request body.

        Raises:
            InvalidInput: bad currency, unknown category, policy or basis, or
                any invalid amount
        """
        if not isinstance(data, dict):
            raise InvalidInput('Request body must be a JSON object')

        currency = normalize_currency(data.get('currency') or default_currency)
        if not is_valid_currency(currency):
            raise InvalidInput(f"Invalid currency: {currency}")

        assets = data.get('assets') or {}
        if not isinstance(assets, dict):
            raise InvalidInput('assets must be an object keyed by category')

        categories = {}
        for category, raw in assets.items():
            calculator = get_calculator(category)
            if calculator is None:
                raise InvalidInput(f"Unknown asset category: {category}")
            raw = raw or {}
            if not isinstance(raw, dict):
                raise InvalidInput(f"{category} must be an object")
            hawl_met = safe_flag(raw, 'hawl_met') if 'hawl_met' in raw else True
            categories[category] = CategoryInput(calculator.parse_values(raw), hawl_met)

        policy = data.get('nisab_policy')
        get_nisab_policy(policy)

        return cls(
            currency=currency,
            categories=categories,
            nisab_policy=policy,
            nisab_basis=NisabBasis.parse(data.get('nisab_basis')),
        )


@dataclass(frozen=True)
class CalculationOutcome:
    combined: CombinedBreakdown
    prices: MetalPrices
    conversions: list = field(default_factory=list)
    nisab_progress: dict = field(default_factory=dict)

    @property
    def is_degraded(self) -> bool:
        if self.prices.currency != self.combined.currency:
            return True
        return any(c.is_degraded for c in self.conversions)

    def to_dict(self) -> dict:
        data = self.combined.to_dict()
        data['prices'] = self.prices.to_response()
        data['nisabProgress'] = self.nisab_progress
        data['conversions'] = [c.to_dict() for c in self.conversions]
        data['isDegraded'] = self.is_degraded
        return data


class ZakatCalculator:
    """Runs prices, conversion, category rules, nisab and aggregation."""

    def __init__(self, resolver, converter: Optional[CurrencyConverter] = None):
        self._resolver = resolver
        self._converter = converter or CurrencyConverter(resolver)

    def _fold_foreign_cash(self, values: CashValues, currency: str) -> tuple[CashValues, list[ConversionResult]]:
        if not values.foreign_currency_entries:
            return values, []
        results = self._converter.convert_many(
            [(entry.amount, entry.currency) for entry in values.foreign_currency_entries],
            currency,
        )
        converted = sum(r.amount for r in results)
        degraded = [r for r in results if r.is_degraded]
        if degraded:
            logger.warning(f"{len(degraded)} foreign cash entries could not be converted to {currency}")
        folded = replace(
            values,
            foreign_currency=values.foreign_currency + converted,
            foreign_currency_entries=(),
        )
        return folded, results

    def run(self, portfolio: Portfolio, currency: Optional[str] = None) -> CalculationOutcome:
        currency = normalize_currency(currency or portfolio.currency)
        if not is_valid_currency(currency):
            raise InvalidInput(f"Invalid currency: {currency}")

        policy = get_nisab_policy(portfolio.nisab_policy)
        nisab = NisabResolver(self._resolver, policy)
        prices = self._resolver.resolve_metal_prices(currency)
        if prices.currency != currency:
            logger.warning(f"Metal prices only available in {prices.currency}; {currency} metal values are unconverted")
        conversions = []

        breakdowns: dict[str, AssetBreakdown] = {}
        for category in ASSET_CATEGORIES:
            entry = portfolio.categories.get(category)
            if entry is None:
                continue
            values = entry.values
            if category == CATEGORY_CASH:
                values, conversions = self._fold_foreign_cash(values, currency)
            calculator = get_calculator(category)
            breakdowns[category] = calculator.get_breakdown(
                values,
                prices if calculator.needs_prices else None,
                hawl_met=entry.hawl_met,
                currency=currency,
            )

        thresholds = thresholds_from_prices(prices, policy)
        combined = AggregationEngine(nisab, portfolio.nisab_basis).combine(breakdowns, thresholds, currency)
        compared = combined.total_value if portfolio.nisab_basis == NisabBasis.TOTAL_VALUE else combined.zakatable_value

        logger.info(
            f"Calculated zakat in {currency}: total={combined.total_value:.2f} "
            f"due={combined.zakat_due:.2f} meets_nisab={combined.meets_nisab}"
        )
        return CalculationOutcome(
            combined=combined,
            prices=prices,
            conversions=conversions,
            nisab_progress=nisab.progress(compared, thresholds),
        )

    def calculate(self, portfolio: Portfolio, currency: Optional[str] = None) -> CombinedBreakdown:
        return self.run(portfolio, currency).combined
