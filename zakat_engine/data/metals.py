"""Precious metal reference data: fallback prices, sanity ranges, karats, weight units."""
from zakat_engine.constants import NISAB_GOLD_GRAMS, NISAB_SILVER_GRAMS, TOLA_GRAMS, TROY_OUNCE_GRAMS

GOLD = 'gold'
SILVER = 'silver'

SUPPORTED_METALS = {
    GOLD: {
        'name': 'Gold',
        'symbol': 'XAU',
        'nisab_grams': NISAB_GOLD_GRAMS,
    },
    SILVER: {
        'name': 'Silver',
        'symbol': 'XAG',
        'nisab_grams': NISAB_SILVER_GRAMS,
    },
}

# Documented defaults used when no provider and no cache can answer (USD/gram)
FALLBACK_PRICES_USD = {
    GOLD: 85.0,
    SILVER: 1.05,
}

# Tolerant plausibility window for spot prices (USD/gram)
EXPECTED_PRICE_RANGES_USD = {
    GOLD: (10.0, 1000.0),
    SILVER: (0.1, 25.0),
}

# Gold karat -> purity fraction
GOLD_KARATS = {
    24: 1.0,
    22: 22 / 24,
    21: 21 / 24,
    18: 18 / 24,
    14: 14 / 24,
    10: 10 / 24,
    9: 9 / 24,
}
PURE_KARAT = 24

# Usage classes for held metal; 'regular' is daily-worn jewelry and is exempt
USAGE_REGULAR = 'regular'
USAGE_OCCASIONAL = 'occasional'
USAGE_INVESTMENT = 'investment'
USAGE_CLASSES = [USAGE_REGULAR, USAGE_OCCASIONAL, USAGE_INVESTMENT]

# Weight unit -> grams per unit
WEIGHT_UNITS = {
    'gram': 1.0,
    'tola': TOLA_GRAMS,
    'ounce': TROY_OUNCE_GRAMS,
}


def is_valid_weight_unit(unit: str) -> bool:
    return (unit or '').lower() in WEIGHT_UNITS


def to_grams(weight: float, unit: str = 'gram') -> float:
    """Convert a weight in the given unit to grams."""
    return weight * WEIGHT_UNITS[unit.lower()]


def per_ounce_to_per_gram(price_per_ounce: float) -> float:
    """Spot prices are quoted per troy ounce; the engine works per gram."""
    return price_per_ounce / TROY_OUNCE_GRAMS


def parse_karat(value) -> int | None:
    """Read a karat given as 18, '18' or '18K'; None if it is not a known karat."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip().upper().removesuffix('K')
    try:
        karat = int(text)
    except ValueError:
        return None
    return karat if karat in GOLD_KARATS else None


def pure_grams(weight: float, karat: int = PURE_KARAT) -> float:
    """Grams of pure gold in `weight` grams of `karat` gold."""
    return weight * GOLD_KARATS[karat]
