"""Stocks, passive investments, dividends and funds."""
from dataclasses import dataclass, field
from typing import Optional

from zakat_engine.constants import (
    CATEGORY_STOCKS,
    DEFAULT_PASSIVE_METHOD,
    PASSIVE_INVESTMENT_RATE,
    PASSIVE_METHODS,
)
from zakat_engine.models import AssetBreakdown
from ..providers import InvalidInput
from . import AssetCalculator, safe_amount, safe_flag, zakatable_item


@dataclass(frozen=True)
class StockHolding:
    symbol: str
    shares: float
    current_price: float
    market_value: float

    @classmethod
    def from_dict(cls, data: dict) -> 'StockHolding':
        shares = safe_amount(data, 'shares')
        price = safe_amount(data, 'current_price')
        market_value = safe_amount(data, 'market_value', default=shares * price)
        return cls(
            symbol=str(data.get('symbol') or '').upper(),
            shares=shares,
            current_price=price,
            market_value=market_value,
        )


@dataclass(frozen=True)
class CompanyFinancials:
    """Balance-sheet figures for the CRI (cash, receivables, inventory) method."""
    cash: float
    receivables: float
    inventory: float
    total_shares: float
    your_shares: float

    @classmethod
    def from_dict(cls, data: dict) -> 'CompanyFinancials':
        return cls(
            cash=safe_amount(data, 'cash'),
            receivables=safe_amount(data, 'receivables'),
            inventory=safe_amount(data, 'inventory'),
            total_shares=safe_amount(data, 'total_shares'),
            your_shares=safe_amount(data, 'your_shares'),
        )

    def zakatable_value(self) -> float:
        if self.total_shares <= 0:
            return 0.0
        liquid = self.cash + self.receivables + self.inventory
        return liquid / self.total_shares * self.your_shares


@dataclass(frozen=True)
class StockValues:
    active_stocks: tuple = field(default_factory=tuple)
    passive_method: str = DEFAULT_PASSIVE_METHOD
    passive_investments: tuple = field(default_factory=tuple)
    company_financials: Optional[CompanyFinancials] = None
    total_dividend_earnings: float = 0.0
    fund_value: float = 0.0
    is_passive_fund: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'StockValues':
        data = data or {}
        method = (data.get('passive_method') or DEFAULT_PASSIVE_METHOD).lower()
        if method not in PASSIVE_METHODS:
            raise InvalidInput(f"Unknown passive method: {method!r}")
        financials = data.get('company_financials')
        return cls(
            active_stocks=tuple(StockHolding.from_dict(s) for s in data.get('active_stocks') or []),
            passive_method=method,
            passive_investments=tuple(StockHolding.from_dict(s) for s in data.get('passive_investments') or []),
            company_financials=CompanyFinancials.from_dict(financials) if financials else None,
            total_dividend_earnings=safe_amount(data, 'total_dividend_earnings'),
            fund_value=safe_amount(data, 'fund_value'),
            is_passive_fund=safe_flag(data, 'is_passive_fund'),
        )

    @property
    def active_value(self) -> float:
        return sum(s.market_value for s in self.active_stocks)

    @property
    def passive_value(self) -> float:
        return sum(s.market_value for s in self.passive_investments)


def passive_zakatable(values: StockValues) -> float:
    """Zakatable share of passive holdings under the chosen method."""
    if values.passive_method == 'detailed':
        if values.company_financials is None:
            return 0.0
        return values.company_financials.zakatable_value()
    return values.passive_value * PASSIVE_INVESTMENT_RATE


class StocksCalculator(AssetCalculator):

    category = CATEGORY_STOCKS
    name = 'Stocks & Investments'

    def parse_values(self, data: dict) -> StockValues:
        return StockValues.from_dict(data)

    def get_breakdown(self, values: StockValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        def gated(amount: float) -> float:
            return amount if hawl_met else 0.0

        fund_zakatable = values.fund_value * PASSIVE_INVESTMENT_RATE if values.is_passive_fund else values.fund_value
        fund_label = 'Passive Investment Funds (30% Rule)' if values.is_passive_fund else 'Active Investment Funds'

        items = {
            'active_trading': zakatable_item(
                values.active_value, gated(values.active_value), 'Actively Traded Stocks', hawl_met
            ),
            'passive_investments': zakatable_item(
                values.passive_value,
                gated(passive_zakatable(values)),
                f"Passive Investments ({PASSIVE_METHODS[values.passive_method]})",
                hawl_met,
            ),
            'dividends': zakatable_item(
                values.total_dividend_earnings,
                gated(values.total_dividend_earnings),
                'Total Dividend Earnings',
                hawl_met,
            ),
            'investment_funds': zakatable_item(values.fund_value, gated(fund_zakatable), fund_label, hawl_met),
        }
        return AssetBreakdown.from_items(items)
