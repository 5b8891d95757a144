"""Cash & bank balances."""
from dataclasses import dataclass, field

from zakat_engine.constants import CATEGORY_CASH
from zakat_engine.data.currencies import is_valid_currency, normalize_currency
from zakat_engine.models import AssetBreakdown
from ..providers import InvalidInput
from . import AssetCalculator, safe_amount, zakatable_item

CASH_FIELDS = [
    'cash_on_hand',
    'checking_account',
    'savings_account',
    'digital_wallets',
    'foreign_currency',
]


@dataclass(frozen=True)
class ForeignCurrencyEntry:
    amount: float
    currency: str


@dataclass(frozen=True)
class CashValues:
    cash_on_hand: float = 0.0
    checking_account: float = 0.0
    savings_account: float = 0.0
    digital_wallets: float = 0.0
    # Already in the calculation currency
    foreign_currency: float = 0.0
    # Converted and folded into foreign_currency before calculation
    foreign_currency_entries: tuple = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> 'CashValues':
        entries = []
        for raw in (data or {}).get('foreign_currency_entries') or []:
            currency = normalize_currency(raw.get('currency') if isinstance(raw, dict) else None)
            if not is_valid_currency(currency):
                raise InvalidInput(f"Invalid currency in foreign_currency_entries: {currency!r}")
            entries.append(ForeignCurrencyEntry(amount=safe_amount(raw, 'amount'), currency=currency))

        return cls(
            **{name: safe_amount(data or {}, name) for name in CASH_FIELDS},
            foreign_currency_entries=tuple(entries),
        )


def _label(key: str) -> str:
    return ' '.join(word.capitalize() for word in key.split('_'))


class CashCalculator(AssetCalculator):
    """Every balance is fully zakatable once hawl is met."""

    category = CATEGORY_CASH
    name = 'Cash & Bank'

    def parse_values(self, data: dict) -> CashValues:
        return CashValues.from_dict(data)

    def get_breakdown(self, values: CashValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        items = {}
        for key in CASH_FIELDS:
            value = getattr(values, key)
            items[key] = zakatable_item(value, value if hawl_met else 0.0, _label(key), hawl_met)
        return AssetBreakdown.from_items(items)
