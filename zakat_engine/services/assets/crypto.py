"""Cryptocurrency holdings, valued at the market value supplied with each lot."""
from dataclasses import dataclass, field

from zakat_engine.constants import CATEGORY_CRYPTO
from zakat_engine.models import AssetBreakdown
from ..providers import InvalidInput
from . import AssetCalculator, safe_amount, zakatable_item


@dataclass(frozen=True)
class CoinLot:
    symbol: str
    quantity: float
    market_value: float

    @classmethod
    def from_dict(cls, data: dict) -> 'CoinLot':
        symbol = str((data or {}).get('symbol') or '').strip().upper()
        if not symbol:
            raise InvalidInput("Each coin needs a symbol")
        quantity = safe_amount(data, 'quantity')
        price = safe_amount(data, 'current_price')
        return cls(
            symbol=symbol,
            quantity=quantity,
            market_value=safe_amount(data, 'market_value', default=quantity * price),
        )


@dataclass(frozen=True)
class CryptoValues:
    coins: tuple = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> 'CryptoValues':
        return cls(coins=tuple(CoinLot.from_dict(c) for c in (data or {}).get('coins') or []))


def _format_quantity(quantity: float) -> str:
    return f"{quantity:g}"


class CryptoCalculator(AssetCalculator):

    category = CATEGORY_CRYPTO
    name = 'Cryptocurrency'

    def parse_values(self, data: dict) -> CryptoValues:
        return CryptoValues.from_dict(data)

    def get_breakdown(self, values: CryptoValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        # Lots of the same coin collapse into one line
        totals: dict[str, list[float]] = {}
        for coin in values.coins:
            quantity_value = totals.setdefault(coin.symbol, [0.0, 0.0])
            quantity_value[0] += coin.quantity
            quantity_value[1] += coin.market_value

        items = {}
        for symbol, (quantity, market_value) in totals.items():
            items[symbol.lower()] = zakatable_item(
                market_value,
                market_value if hawl_met else 0.0,
                f"{symbol} ({_format_quantity(quantity)} coins)",
                hawl_met,
            )
        return AssetBreakdown.from_items(items)
