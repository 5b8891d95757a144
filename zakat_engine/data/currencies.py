"""Supported currencies and the static fallback-rate table.

All rates in FALLBACK_RATES are "units of that currency per 1 USD":
'PKR': 278.5 means 1 USD = 278.5 PKR. Converting A -> B through the table
uses FALLBACK_RATES[B] / FALLBACK_RATES[A].

The table is consulted only when every dynamic resolution path has failed.
"""
from typing import Optional

DEFAULT_CURRENCY = 'USD'

# Currencies shown first in selectors (by trading volume and user base)
HIGH_VOLUME_CURRENCIES = [
    'USD', 'EUR', 'GBP', 'CAD', 'AUD', 'JPY', 'CHF', 'CNY',
    'INR', 'PKR', 'BDT', 'AED', 'SAR', 'MYR', 'IDR', 'TRY',
]

FALLBACK_RATES: dict[str, float] = {
    'USD': 1.0,
    'EUR': 0.92,
    'GBP': 0.78,
    'JPY': 150.5,
    'CAD': 1.35,
    'AUD': 1.52,
    'CHF': 0.88,
    'INR': 83.15,
    'PKR': 278.5,
    'AED': 3.67,
    'SAR': 3.75,
    'MYR': 4.65,
    'SGD': 1.35,
    'BDT': 110.5,
    'EGP': 30.9,
    'IDR': 15600.0,
    'KWD': 0.31,
    'NGN': 1550.0,
    'QAR': 3.64,
    'ZAR': 18.5,
    'RUB': 91.5,
    'CNY': 7.24,
    'TRY': 31.5,
    'BRL': 5.0,
    'MXN': 17.5,
    'KRW': 1320.0,
    'THB': 35.5,
    'PHP': 56.5,
    'VND': 24500.0,
    'IQD': 1310.0,
    'MAD': 10.1,
    'JOD': 0.71,
    'LBP': 89500.0,
    'OMR': 0.385,
    'BHD': 0.376,
}

# ISO 4217 code -> (name, minor unit)
CURRENCY_NAMES: dict[str, tuple[str, int]] = {
    'AED': ('UAE Dirham', 2),
    'AUD': ('Australian Dollar', 2),
    'BDT': ('Bangladeshi Taka', 2),
    'BHD': ('Bahraini Dinar', 3),
    'BRL': ('Brazilian Real', 2),
    'CAD': ('Canadian Dollar', 2),
    'CHF': ('Swiss Franc', 2),
    'CNY': ('Chinese Yuan', 2),
    'CZK': ('Czech Koruna', 2),
    'DKK': ('Danish Krone', 2),
    'EGP': ('Egyptian Pound', 2),
    'EUR': ('Euro', 2),
    'GBP': ('British Pound', 2),
    'HKD': ('Hong Kong Dollar', 2),
    'HUF': ('Hungarian Forint', 2),
    'IDR': ('Indonesian Rupiah', 2),
    'ILS': ('Israeli New Shekel', 2),
    'INR': ('Indian Rupee', 2),
    'IQD': ('Iraqi Dinar', 3),
    'JOD': ('Jordanian Dinar', 3),
    'JPY': ('Japanese Yen', 0),
    'KES': ('Kenyan Shilling', 2),
    'KRW': ('South Korean Won', 0),
    'KWD': ('Kuwaiti Dinar', 3),
    'LBP': ('Lebanese Pound', 2),
    'MAD': ('Moroccan Dirham', 2),
    'MXN': ('Mexican Peso', 2),
    'MYR': ('Malaysian Ringgit', 2),
    'NGN': ('Nigerian Naira', 2),
    'NOK': ('Norwegian Krone', 2),
    'NZD': ('New Zealand Dollar', 2),
    'OMR': ('Omani Rial', 3),
    'PHP': ('Philippine Peso', 2),
    'PKR': ('Pakistani Rupee', 2),
    'PLN': ('Polish Zloty', 2),
    'QAR': ('Qatari Riyal', 2),
    'RUB': ('Russian Ruble', 2),
    'SAR': ('Saudi Riyal', 2),
    'SEK': ('Swedish Krona', 2),
    'SGD': ('Singapore Dollar', 2),
    'THB': ('Thai Baht', 2),
    'TRY': ('Turkish Lira', 2),
    'USD': ('US Dollar', 2),
    'VND': ('Vietnamese Dong', 0),
    'ZAR': ('South African Rand', 2),
}


def normalize_currency(code: str | None) -> str:
    """Upper-case and strip a currency code; empty input becomes ''."""
    return (code or '').strip().upper()


def is_valid_currency(code: str | None) -> bool:
    """Check a code looks like an ISO 4217 currency (three letters).

    Codes outside CURRENCY_NAMES are accepted so that providers can quote
    currencies this table does not name.
    """
    code = normalize_currency(code)
    return len(code) == 3 and code.isalpha()


def get_fallback_rate(from_currency: str, to_currency: str) -> Optional[float]:
    """Static-table rate for from -> to, or None if either side is missing."""
    from_code = normalize_currency(from_currency)
    to_code = normalize_currency(to_currency)
    if from_code == to_code:
        return 1.0
    from_rate = FALLBACK_RATES.get(from_code)
    to_rate = FALLBACK_RATES.get(to_code)
    if not from_rate or not to_rate:
        return None
    return to_rate / from_rate


def get_ordered_currencies() -> list[dict]:
    """Return currencies ordered for selectors: high-volume first, then A-Z."""
    result = []
    seen = set()

    for code in HIGH_VOLUME_CURRENCIES:
        if code in CURRENCY_NAMES and code not in seen:
            name, minor_unit = CURRENCY_NAMES[code]
            result.append({
                'code': code,
                'name': name,
                'minor_unit': minor_unit,
                'has_fallback_rate': code in FALLBACK_RATES,
                'priority': 1,
            })
            seen.add(code)

    for code in sorted(CURRENCY_NAMES):
        if code not in seen:
            name, minor_unit = CURRENCY_NAMES[code]
            result.append({
                'code': code,
                'name': name,
                'minor_unit': minor_unit,
                'has_fallback_rate': code in FALLBACK_RATES,
                'priority': 2,
            })

    return result


def get_fallback_rates(base: str) -> Optional[dict[str, float]]:
    """Whole static table re-based on `base`, or None if base is not in it."""
    base = normalize_currency(base)
    base_rate = FALLBACK_RATES.get(base)
    if not base_rate:
        return None
    rates = {code: rate / base_rate for code, rate in FALLBACK_RATES.items()}
    rates[base] = 1.0
    return rates
