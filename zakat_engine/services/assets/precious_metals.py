"""Gold and silver holdings by usage class.

Regular (daily-worn) jewelry is exempt. Occasional and investment holdings
are zakatable at weight x price per gram once hawl is met. Gold weights are
reduced to pure gold by karat before pricing; silver is taken as pure.
"""
from dataclasses import dataclass

from zakat_engine.constants import CATEGORY_PRECIOUS_METALS
from zakat_engine.data.metals import (
    GOLD,
    PURE_KARAT,
    SILVER,
    USAGE_CLASSES,
    USAGE_REGULAR,
    is_valid_weight_unit,
    parse_karat,
    pure_grams,
    to_grams,
)
from zakat_engine.models import AssetBreakdown
from ..providers import InvalidInput
from . import AssetCalculator, exempt_item, safe_amount, zakatable_item


@dataclass(frozen=True)
class MetalsValues:
    """Weights in grams; gold purities in karats."""
    gold_regular: float = 0.0
    gold_occasional: float = 0.0
    gold_investment: float = 0.0
    silver_regular: float = 0.0
    silver_occasional: float = 0.0
    silver_investment: float = 0.0
    gold_regular_purity: int = PURE_KARAT
    gold_occasional_purity: int = PURE_KARAT
    gold_investment_purity: int = PURE_KARAT

    @classmethod
    def from_dict(cls, data: dict) -> 'MetalsValues':
        """Weights may be given in grams, tola or troy ounces via `weight_unit`.

        `gold_<usage>_purity` takes a karat (24, 22, 21, 18, 14, 10 or 9,
        optionally as '22K') and defaults to 24.
        """
        data = data or {}
        unit = (data.get('weight_unit') or 'gram').lower()
        if not is_valid_weight_unit(unit):
            raise InvalidInput(f"Unknown weight unit: {unit!r}")
        fields = {}
        for metal in (GOLD, SILVER):
            for usage in USAGE_CLASSES:
                key = f"{metal}_{usage}"
                fields[key] = to_grams(safe_amount(data, key), unit)
        for usage in USAGE_CLASSES:
            key = f"{GOLD}_{usage}_purity"
            raw = data.get(key)
            if raw in (None, ''):
                continue
            karat = parse_karat(raw)
            if karat is None:
                raise InvalidInput(f"Unknown gold purity for {key}: {raw!r}")
            fields[key] = karat
        return cls(**fields)

    def pure_weight(self, metal: str, usage: str) -> float:
        grams = getattr(self, f"{metal}_{usage}")
        if metal == GOLD:
            return pure_grams(grams, getattr(self, f"{GOLD}_{usage}_purity"))
        return grams


def _price_of(prices, metal: str) -> float:
    if isinstance(prices, dict):
        price = prices.get(metal)
    else:
        price = getattr(prices, metal, None)
    if price is None:
        raise InvalidInput(f"Missing {metal} price")
    return float(price)


class PreciousMetalsCalculator(AssetCalculator):

    category = CATEGORY_PRECIOUS_METALS
    name = 'Precious Metals'
    needs_prices = True

    def parse_values(self, data: dict) -> MetalsValues:
        return MetalsValues.from_dict(data)

    def get_breakdown(self, values: MetalsValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        """`prices` is a MetalPrices (or a {'gold', 'silver'} dict) in `currency` per gram of pure metal."""
        self._require_prices(prices)
        items = {}
        for metal in (GOLD, SILVER):
            price = _price_of(prices, metal)
            for usage in USAGE_CLASSES:
                key = f"{metal}_{usage}"
                value = values.pure_weight(metal, usage) * price
                label = f"{metal.capitalize()} {usage.capitalize()}"
                if usage == USAGE_REGULAR:
                    items[key] = exempt_item(value, label)
                else:
                    items[key] = zakatable_item(value, value if hawl_met else 0.0, label, hawl_met)
        return AssetBreakdown.from_items(items)
