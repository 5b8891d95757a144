"""Shared constants for zakat calculation and price resolution."""

# Nisab thresholds (minimum wealth for zakat obligation)
NISAB_GOLD_GRAMS = 85
NISAB_SILVER_GRAMS = 595

# Zakat rate (2.5%)
ZAKAT_RATE = 0.025

# Weight units
TROY_OUNCE_GRAMS = 31.1034768
TOLA_GRAMS = 11.664

# ============================================================
# Asset category rules
# ============================================================

# Quick rule for passive equity holdings and passive funds
PASSIVE_INVESTMENT_RATE = 0.30

PASSIVE_METHODS = {
    'quick': '30% Rule',
    'detailed': 'CRI Method',
}
DEFAULT_PASSIVE_METHOD = 'quick'

# Traditional (pre-tax) retirement accounts
DEFAULT_RETIREMENT_TAX_RATE = 0.20
DEFAULT_RETIREMENT_PENALTY_RATE = 0.10

# Category identifiers, in display order
CATEGORY_CASH = 'cash'
CATEGORY_PRECIOUS_METALS = 'precious_metals'
CATEGORY_STOCKS = 'stocks'
CATEGORY_REAL_ESTATE = 'real_estate'
CATEGORY_RETIREMENT = 'retirement'
CATEGORY_CRYPTO = 'crypto'
CATEGORY_DEBT = 'debt'

ASSET_CATEGORIES = [
    CATEGORY_CASH,
    CATEGORY_PRECIOUS_METALS,
    CATEGORY_STOCKS,
    CATEGORY_REAL_ESTATE,
    CATEGORY_RETIREMENT,
    CATEGORY_CRYPTO,
    CATEGORY_DEBT,
]

# ============================================================
# Price resolution
# ============================================================

DEFAULT_CURRENCY = 'USD'
COMMON_BASE_CURRENCY = 'USD'

METAL_CACHE_TTL_SECONDS = 60 * 60
FX_CACHE_TTL_SECONDS = 5 * 60
EMERGENCY_MAX_AGE_SECONDS = 24 * 60 * 60

PROVIDER_TIMEOUT_SECONDS = 10
CHAIN_DEADLINE_SECONDS = 25

BREAKER_FAILURE_THRESHOLD = 3
BREAKER_COOLDOWN_SECONDS = 5 * 60

# Paid metals API calls allowed per calendar month
MONTHLY_REQUEST_LIMIT = 80

# Provenance tags
SOURCE_FALLBACK = 'fallback'
SOURCE_IDENTITY = 'identity'
SOURCE_UNCONVERTED = 'unconverted'
