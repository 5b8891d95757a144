"""Retirement accounts.

Traditional (pre-tax) balances count at their net value after the income
tax and early-withdrawal penalty a withdrawal would cost today. Roth
accounts and pensions are treated as inaccessible and exempt. Amounts
already withdrawn count at face value.
"""
from dataclasses import dataclass

from zakat_engine.constants import (
    CATEGORY_RETIREMENT,
    DEFAULT_RETIREMENT_PENALTY_RATE,
    DEFAULT_RETIREMENT_TAX_RATE,
)
from zakat_engine.models import AssetBreakdown
from ..providers import InvalidInput
from . import AssetCalculator, exempt_item, safe_amount, zakatable_item


def _rate(data: dict, field: str, default: float) -> float:
    rate = safe_amount(data, field, default=default)
    if rate > 1:
        raise InvalidInput(f"{field} must be between 0 and 1")
    return rate


@dataclass(frozen=True)
class RetirementValues:
    traditional_401k: float = 0.0
    traditional_ira: float = 0.0
    roth_401k: float = 0.0
    roth_ira: float = 0.0
    pension: float = 0.0
    other_retirement: float = 0.0
    tax_rate: float = DEFAULT_RETIREMENT_TAX_RATE
    penalty_rate: float = DEFAULT_RETIREMENT_PENALTY_RATE

    @classmethod
    def from_dict(cls, data: dict) -> 'RetirementValues':
        data = data or {}
        return cls(
            traditional_401k=safe_amount(data, 'traditional_401k'),
            traditional_ira=safe_amount(data, 'traditional_ira'),
            roth_401k=safe_amount(data, 'roth_401k'),
            roth_ira=safe_amount(data, 'roth_ira'),
            pension=safe_amount(data, 'pension'),
            other_retirement=safe_amount(data, 'other_retirement'),
            tax_rate=_rate(data, 'tax_rate', DEFAULT_RETIREMENT_TAX_RATE),
            penalty_rate=_rate(data, 'penalty_rate', DEFAULT_RETIREMENT_PENALTY_RATE),
        )

    @property
    def traditional_total(self) -> float:
        return self.traditional_401k + self.traditional_ira

    @property
    def roth_total(self) -> float:
        return self.roth_401k + self.roth_ira


def net_withdrawal_value(gross: float, tax_rate: float, penalty_rate: float) -> float:
    """Gross balance less tax and penalty, both charged on the gross amount."""
    return max(0.0, gross - gross * tax_rate - gross * penalty_rate)


class RetirementCalculator(AssetCalculator):

    category = CATEGORY_RETIREMENT
    name = 'Retirement Accounts'

    def parse_values(self, data: dict) -> RetirementValues:
        return RetirementValues.from_dict(data)

    def get_breakdown(self, values: RetirementValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        net = net_withdrawal_value(values.traditional_total, values.tax_rate, values.penalty_rate)
        items = {
            'traditional_accounts': zakatable_item(
                values.traditional_total, net if hawl_met else 0.0, 'Accessible Funds', hawl_met
            ),
            'roth_accounts': exempt_item(values.roth_total, 'Roth Accounts'),
            'pension': exempt_item(values.pension, 'Locked Funds'),
            'other_retirement': zakatable_item(
                values.other_retirement,
                values.other_retirement if hawl_met else 0.0,
                'Withdrawn Funds',
                hawl_met,
            ),
        }
        return AssetBreakdown.from_items(items)
