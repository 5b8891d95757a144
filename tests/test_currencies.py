"""Tests for currency validation, ordering and the static rate table."""
import pytest

from zakat_engine.data.currencies import (
    FALLBACK_RATES,
    HIGH_VOLUME_CURRENCIES,
    get_fallback_rate,
    get_fallback_rates,
    get_ordered_currencies,
    is_valid_currency,
    normalize_currency,
)


class TestValidation:

    @pytest.mark.parametrize('code', ['USD', 'eur', ' pkr ', 'XYZ'])
    def test_valid(self, code):
        assert is_valid_currency(code) is True

    @pytest.mark.parametrize('code', [None, '', 'US', 'EURO', '12A'])
    def test_invalid(self, code):
        assert is_valid_currency(code) is False

    def test_normalize(self):
        assert normalize_currency(' gbp ') == 'GBP'
        assert normalize_currency(None) == ''


class TestOrdering:

    def test_high_volume_first_in_order(self):
        codes = [c['code'] for c in get_ordered_currencies()]
        assert codes[:len(HIGH_VOLUME_CURRENCIES)] == HIGH_VOLUME_CURRENCIES

    def test_rest_alphabetical(self):
        rest = [c['code'] for c in get_ordered_currencies() if c['priority'] == 2]
        assert rest == sorted(rest)

    def test_no_duplicates(self):
        codes = [c['code'] for c in get_ordered_currencies()]
        assert len(codes) == len(set(codes))

    def test_fallback_flag(self):
        by_code = {c['code']: c for c in get_ordered_currencies()}
        assert by_code['PKR']['has_fallback_rate'] is True


class TestFallbackTable:

    def test_documented_rates(self):
        assert FALLBACK_RATES['USD'] == 1.0
        assert FALLBACK_RATES['EUR'] == 0.92
        assert FALLBACK_RATES['GBP'] == 0.78
        assert FALLBACK_RATES['JPY'] == 150.5
        assert FALLBACK_RATES['CAD'] == 1.35
        assert FALLBACK_RATES['PKR'] == 278.5

    def test_cross_rate(self):
        assert get_fallback_rate('EUR', 'GBP') == pytest.approx(0.78 / 0.92)
        assert get_fallback_rate('usd', 'USD') == 1.0

    def test_missing_side(self):
        assert get_fallback_rate('USD', 'XYZ') is None

    def test_rebased_table(self):
        rates = get_fallback_rates('EUR')
        assert rates['EUR'] == 1.0
        assert rates['USD'] == pytest.approx(1 / 0.92)
        assert get_fallback_rates('XYZ') is None
