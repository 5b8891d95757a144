"""Receivables and liabilities.

Receivables add to wealth. Short-term liabilities (due within twelve months)
are deducted in full; long-term liabilities only by this period's
installment. The net can be negative and then reduces the rest of the
portfolio.
"""
from dataclasses import dataclass

from zakat_engine.constants import CATEGORY_DEBT
from zakat_engine.models import AssetBreakdown, AssetBreakdownItem, zakat_due_for
from . import AssetCalculator, safe_amount, zakatable_item


@dataclass(frozen=True)
class DebtValues:
    receivables: float = 0.0
    short_term_liabilities: float = 0.0
    long_term_liabilities_annual: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> 'DebtValues':
        data = data or {}
        return cls(
            receivables=safe_amount(data, 'receivables'),
            short_term_liabilities=safe_amount(data, 'short_term_liabilities'),
            long_term_liabilities_annual=safe_amount(data, 'long_term_liabilities_annual'),
        )

    @property
    def net_impact(self) -> float:
        return self.receivables - (self.short_term_liabilities + self.long_term_liabilities_annual)


def liability_item(amount: float, label: str, hawl_met: bool) -> AssetBreakdownItem:
    """A deduction: negative value, never zakatable itself, no zakat due."""
    return AssetBreakdownItem(
        value=-amount,
        is_zakatable=False,
        zakatable=-amount if hawl_met else 0.0,
        zakat_due=0.0,
        label=label,
        is_liability=True,
    )


class DebtCalculator(AssetCalculator):

    category = CATEGORY_DEBT
    name = 'Debt & Liabilities'

    def parse_values(self, data: dict) -> DebtValues:
        return DebtValues.from_dict(data)

    def get_breakdown(self, values: DebtValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        items = {
            'receivables': zakatable_item(
                values.receivables,
                values.receivables if hawl_met else 0.0,
                'Money Owed to You',
                hawl_met,
            ),
        }
        if values.short_term_liabilities > 0:
            items['short_term_liabilities'] = liability_item(
                values.short_term_liabilities, 'Short-Term Debt', hawl_met
            )
        if values.long_term_liabilities_annual > 0:
            items['long_term_liabilities_annual'] = liability_item(
                values.long_term_liabilities_annual, 'Long-Term Debt (Annual)', hawl_met
            )

        net = values.net_impact if hawl_met else 0.0
        return AssetBreakdown.from_items(items, zakat_due=zakat_due_for(net))
