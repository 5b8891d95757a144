"""Tests for the per-category asset calculators."""
import math

import pytest

from zakat_engine.constants import TOLA_GRAMS
from zakat_engine.models import MetalPrices
from zakat_engine.services.assets import safe_amount, safe_flag
from zakat_engine.services.assets.cash import CashCalculator, CashValues
from zakat_engine.services.assets.crypto import CryptoCalculator, CryptoValues
from zakat_engine.services.assets.debt import DebtCalculator, DebtValues
from zakat_engine.services.assets.precious_metals import MetalsValues, PreciousMetalsCalculator
from zakat_engine.services.assets.real_estate import RealEstateCalculator, RealEstateValues
from zakat_engine.services.assets.registry import get_all_calculators, get_calculator, get_category_names
from zakat_engine.services.assets.retirement import RetirementCalculator, RetirementValues, net_withdrawal_value
from zakat_engine.services.assets.stocks import StocksCalculator, StockValues
from zakat_engine.services.providers import InvalidInput

PRICES = MetalPrices(gold=80.0, silver=1.0, currency='USD')


def assert_sums_match(breakdown):
    """Totals are the exact sums of their items."""
    assert breakdown.total == sum(item.value for item in breakdown.items.values())
    assert breakdown.zakatable == sum(item.zakatable for item in breakdown.items.values())


class TestSafeAmount:

    def test_missing_and_null_read_as_default(self):
        assert safe_amount({}, 'cash_on_hand') == 0.0
        assert safe_amount({'cash_on_hand': None}, 'cash_on_hand') == 0.0
        assert safe_amount({'cash_on_hand': ''}, 'cash_on_hand', default=5.0) == 5.0

    def test_numeric_strings_accepted(self):
        assert safe_amount({'x': '12.5'}, 'x') == 12.5

    @pytest.mark.parametrize('raw', [float('nan'), float('inf'), -1, 'abc', True, [1]])
    def test_rejects_bad_values(self, raw):
        with pytest.raises(InvalidInput):
            safe_amount({'x': raw}, 'x')

    def test_flags(self):
        assert safe_flag({'f': 'true'}, 'f') is True
        assert safe_flag({'f': 0}, 'f') is False
        assert safe_flag({}, 'f') is False


class TestCash:

    def test_hawl_met_everything_zakatable(self):
        values = CashValues.from_dict({'cash_on_hand': 1000, 'checking_account': 2000, 'savings_account': 3000})
        breakdown = CashCalculator().get_breakdown(values, hawl_met=True)

        assert breakdown.total == 6000
        assert breakdown.zakatable == 6000
        assert breakdown.zakat_due == pytest.approx(150)
        assert breakdown.items['checking_account'].label == 'Checking Account'
        assert_sums_match(breakdown)

    def test_hawl_not_met_owes_nothing(self):
        values = CashValues.from_dict({'cash_on_hand': 10000})
        breakdown = CashCalculator().get_breakdown(values, hawl_met=False)

        assert breakdown.total == 10000
        assert breakdown.zakatable == 0
        assert breakdown.zakat_due == 0

    def test_every_field_is_an_item(self):
        breakdown = CashCalculator().get_breakdown(CashValues())
        assert set(breakdown.items) == {
            'cash_on_hand', 'checking_account', 'savings_account', 'digital_wallets', 'foreign_currency',
        }

    def test_foreign_entries_parsed(self):
        values = CashValues.from_dict({'foreign_currency_entries': [{'amount': 50, 'currency': 'eur'}]})
        assert values.foreign_currency_entries[0].currency == 'EUR'

    def test_foreign_entry_bad_currency(self):
        with pytest.raises(InvalidInput):
            CashValues.from_dict({'foreign_currency_entries': [{'amount': 50, 'currency': 'EURO'}]})

    def test_nan_rejected(self):
        with pytest.raises(InvalidInput):
            CashValues.from_dict({'cash_on_hand': float('nan')})

    def test_derived_views_agree(self):
        values = CashValues(cash_on_hand=400.0)
        calc = CashCalculator()
        assert calc.calculate_total(values) == 400.0
        assert calc.calculate_zakatable(values, hawl_met=False) == 0.0


class TestPreciousMetals:

    def test_regular_jewelry_never_zakatable(self):
        values = MetalsValues(gold_regular=100, silver_regular=500)
        breakdown = PreciousMetalsCalculator().get_breakdown(values, PRICES, hawl_met=True)

        assert breakdown.total == 8500
        assert breakdown.zakatable == 0
        assert breakdown.items['gold_regular'].is_exempt is True
        assert breakdown.items['gold_regular'].zakatable == 0

    def test_occasional_and_investment_zakatable(self):
        values = MetalsValues(gold_occasional=10, gold_investment=20, silver_investment=100)
        breakdown = PreciousMetalsCalculator().get_breakdown(values, PRICES, hawl_met=True)

        assert breakdown.zakatable == 10 * 80 + 20 * 80 + 100 * 1
        assert breakdown.items['gold_investment'].label == 'Gold Investment'
        assert_sums_match(breakdown)

    def test_hawl_not_met(self):
        values = MetalsValues(gold_investment=20)
        assert PreciousMetalsCalculator().get_breakdown(values, PRICES, hawl_met=False).zakatable == 0

    def test_accepts_price_dict(self):
        values = MetalsValues(gold_investment=1)
        breakdown = PreciousMetalsCalculator().get_breakdown(values, {'gold': 70.0, 'silver': 0.9})
        assert breakdown.total == 70.0

    def test_requires_prices(self):
        with pytest.raises(InvalidInput):
            PreciousMetalsCalculator().get_breakdown(MetalsValues())

    def test_tola_converted_to_grams(self):
        values = MetalsValues.from_dict({'gold_investment': 2, 'weight_unit': 'tola'})
        assert values.gold_investment == pytest.approx(2 * TOLA_GRAMS)

    def test_unknown_weight_unit(self):
        with pytest.raises(InvalidInput):
            MetalsValues.from_dict({'gold_investment': 2, 'weight_unit': 'pound'})

    def test_karat_reduces_gold_to_pure_grams(self):
        """100 g of 18K gold is 75 g of pure gold."""
        values = MetalsValues.from_dict({'gold_investment': 100, 'gold_investment_purity': '18K'})
        breakdown = PreciousMetalsCalculator().get_breakdown(values, PRICES)

        assert values.gold_investment_purity == 18
        assert values.pure_weight('gold', 'investment') == pytest.approx(75)
        assert breakdown.items['gold_investment'].zakatable == pytest.approx(75 * 80)

    def test_purity_per_usage_class(self):
        values = MetalsValues.from_dict({
            'gold_regular': 10, 'gold_regular_purity': 22,
            'gold_occasional': 24, 'gold_occasional_purity': '21',
        })
        breakdown = PreciousMetalsCalculator().get_breakdown(values, PRICES)

        assert values.gold_investment_purity == 24
        assert breakdown.items['gold_regular'].value == pytest.approx(10 * 22 / 24 * 80)
        assert breakdown.items['gold_occasional'].zakatable == pytest.approx(21 * 80)

    @pytest.mark.parametrize('purity', ['19K', 'pure', 0, True])
    def test_unknown_purity_rejected(self, purity):
        with pytest.raises(InvalidInput):
            MetalsValues.from_dict({'gold_investment': 5, 'gold_investment_purity': purity})


class TestStocks:

    def test_active_trading_full_value(self):
        values = StockValues.from_dict({'active_stocks': [{'symbol': 'aapl', 'shares': 10, 'current_price': 150}]})
        breakdown = StocksCalculator().get_breakdown(values)

        assert values.active_stocks[0].symbol == 'AAPL'
        assert breakdown.items['active_trading'].zakatable == 1500

    def test_passive_quick_rule(self):
        values = StockValues.from_dict({'passive_investments': [{'market_value': 10000}]})
        breakdown = StocksCalculator().get_breakdown(values)

        assert breakdown.items['passive_investments'].value == 10000
        assert breakdown.items['passive_investments'].zakatable == pytest.approx(3000)
        assert breakdown.items['passive_investments'].label == 'Passive Investments (30% Rule)'

    def test_passive_cri_method(self):
        values = StockValues.from_dict({
            'passive_method': 'detailed',
            'passive_investments': [{'market_value': 5000}],
            'company_financials': {
                'cash': 1000000, 'receivables': 500000, 'inventory': 500000,
                'total_shares': 100000, 'your_shares': 100,
            },
        })
        breakdown = StocksCalculator().get_breakdown(values)

        assert breakdown.items['passive_investments'].zakatable == pytest.approx(2000)
        assert breakdown.items['passive_investments'].label == 'Passive Investments (CRI Method)'

    def test_cri_with_zero_shares_issued(self):
        values = StockValues.from_dict({
            'passive_method': 'detailed',
            'company_financials': {'cash': 1000, 'total_shares': 0, 'your_shares': 10},
        })
        assert StocksCalculator().get_breakdown(values).items['passive_investments'].zakatable == 0

    def test_dividends_and_funds(self):
        active_fund = StockValues.from_dict({'total_dividend_earnings': 400, 'fund_value': 1000})
        passive_fund = StockValues.from_dict({'fund_value': 1000, 'is_passive_fund': True})

        active = StocksCalculator().get_breakdown(active_fund)
        passive = StocksCalculator().get_breakdown(passive_fund)

        assert active.items['dividends'].zakatable == 400
        assert active.items['investment_funds'].zakatable == 1000
        assert passive.items['investment_funds'].zakatable == pytest.approx(300)

    def test_unknown_passive_method(self):
        with pytest.raises(InvalidInput):
            StockValues.from_dict({'passive_method': 'guess'})

    def test_hawl_not_met(self):
        values = StockValues.from_dict({'total_dividend_earnings': 400})
        assert StocksCalculator().get_breakdown(values, hawl_met=False).zakatable == 0


class TestRealEstate:

    def test_primary_residence_always_exempt(self):
        values = RealEstateValues(primary_residence_value=500000)
        for hawl_met in (True, False):
            breakdown = RealEstateCalculator().get_breakdown(values, hawl_met=hawl_met)
            item = breakdown.items['primary_residence']
            assert item.is_exempt is True
            assert item.zakatable == 0
            assert breakdown.total == 500000

    def test_rental_net_income_only(self):
        values = RealEstateValues(rental_income=24000, rental_expenses=6000)
        breakdown = RealEstateCalculator().get_breakdown(values)
        assert breakdown.items['rental_property'].zakatable == 18000

    def test_rental_expenses_above_income_floor_at_zero(self):
        values = RealEstateValues(rental_income=1000, rental_expenses=5000)
        assert RealEstateCalculator().get_breakdown(values).items['rental_property'].zakatable == 0

    def test_property_for_sale_only_while_listed(self):
        listed = RealEstateValues(property_for_sale_value=200000, property_for_sale_active=True)
        unlisted = RealEstateValues(property_for_sale_value=200000)

        assert RealEstateCalculator().get_breakdown(listed).zakatable == 200000
        assert RealEstateCalculator().get_breakdown(unlisted).zakatable == 0

    def test_vacant_land_at_sale_price_when_sold(self):
        sold = RealEstateValues(vacant_land_value=90000, vacant_land_sold=True, sale_price=100000)
        held = RealEstateValues(vacant_land_value=90000, sale_price=100000)

        assert RealEstateCalculator().get_breakdown(sold).items['vacant_land'].zakatable == 100000
        assert RealEstateCalculator().get_breakdown(held).items['vacant_land'].zakatable == 0


class TestRetirement:

    def test_traditional_net_of_tax_and_penalty(self):
        values = RetirementValues.from_dict({'traditional_401k': 100000, 'tax_rate': 0.20, 'penalty_rate': 0.10})
        breakdown = RetirementCalculator().get_breakdown(values, hawl_met=True)

        assert breakdown.zakatable == 70000
        assert breakdown.zakat_due == pytest.approx(1750)

    def test_defaults_match_documented_rates(self):
        values = RetirementValues.from_dict({'traditional_ira': 100000})
        assert RetirementCalculator().get_breakdown(values).zakatable == 70000

    def test_net_value_floored_at_zero(self):
        assert net_withdrawal_value(1000, 0.8, 0.5) == 0.0

    def test_roth_and_pension_exempt(self):
        values = RetirementValues.from_dict({'roth_ira': 50000, 'pension': 80000})
        breakdown = RetirementCalculator().get_breakdown(values)

        assert breakdown.total == 130000
        assert breakdown.zakatable == 0
        assert breakdown.items['pension'].is_exempt is True

    def test_withdrawn_funds_at_face_value(self):
        values = RetirementValues.from_dict({'other_retirement': 5000})
        assert RetirementCalculator().get_breakdown(values).zakatable == 5000

    def test_rate_above_one_rejected(self):
        with pytest.raises(InvalidInput):
            RetirementValues.from_dict({'tax_rate': 1.5})


class TestCrypto:

    def test_lots_aggregate_by_symbol(self):
        values = CryptoValues.from_dict({'coins': [
            {'symbol': 'btc', 'quantity': 0.5, 'market_value': 30000},
            {'symbol': 'BTC', 'quantity': 0.25, 'market_value': 15000},
            {'symbol': 'eth', 'quantity': 2, 'current_price': 3000},
        ]})
        breakdown = CryptoCalculator().get_breakdown(values)

        assert set(breakdown.items) == {'btc', 'eth'}
        assert breakdown.items['btc'].value == 45000
        assert breakdown.items['btc'].label == 'BTC (0.75 coins)'
        assert breakdown.items['eth'].value == 6000
        assert breakdown.zakatable == 51000

    def test_symbol_required(self):
        with pytest.raises(InvalidInput):
            CryptoValues.from_dict({'coins': [{'quantity': 1}]})

    def test_hawl_not_met(self):
        values = CryptoValues.from_dict({'coins': [{'symbol': 'BTC', 'quantity': 1, 'market_value': 60000}]})
        assert CryptoCalculator().get_breakdown(values, hawl_met=False).zakat_due == 0


class TestDebt:

    def test_net_receivable(self):
        values = DebtValues(receivables=1000, short_term_liabilities=200, long_term_liabilities_annual=300)
        breakdown = DebtCalculator().get_breakdown(values, hawl_met=True)

        assert breakdown.total == 500
        assert breakdown.zakatable == 500
        assert breakdown.zakat_due == pytest.approx(12.5)
        assert_sums_match(breakdown)

    def test_net_liability_never_owes_negative(self):
        values = DebtValues(receivables=500, short_term_liabilities=800, long_term_liabilities_annual=200)
        breakdown = DebtCalculator().get_breakdown(values, hawl_met=True)

        assert breakdown.total == -500
        assert breakdown.zakatable == -500
        assert breakdown.zakat_due == 0

    def test_liability_items(self):
        values = DebtValues(short_term_liabilities=800)
        item = DebtCalculator().get_breakdown(values).items['short_term_liabilities']

        assert item.value == -800
        assert item.is_liability is True
        assert item.is_zakatable is False
        assert item.zakat_due == 0

    def test_zero_liabilities_omitted(self):
        breakdown = DebtCalculator().get_breakdown(DebtValues(receivables=100))
        assert list(breakdown.items) == ['receivables']

    def test_hawl_not_met(self):
        values = DebtValues(receivables=1000, short_term_liabilities=200)
        breakdown = DebtCalculator().get_breakdown(values, hawl_met=False)

        assert breakdown.total == 800
        assert breakdown.zakatable == 0
        assert breakdown.zakat_due == 0


class TestRegistry:

    def test_seven_categories_in_order(self):
        assert [c.category for c in get_all_calculators()] == [
            'cash', 'precious_metals', 'stocks', 'real_estate', 'retirement', 'crypto', 'debt',
        ]

    def test_lookup(self):
        assert isinstance(get_calculator('debt'), DebtCalculator)
        assert get_calculator('art') is None
        assert get_category_names()['cash'] == 'Cash & Bank'

    def test_only_metals_need_prices(self):
        assert [c.category for c in get_all_calculators() if c.needs_prices] == ['precious_metals']


def test_zakat_due_is_finite_for_large_values():
    values = CashValues(savings_account=1e15)
    assert math.isfinite(CashCalculator().get_breakdown(values).zakat_due)
