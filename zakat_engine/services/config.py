"""Configuration service for price resolution and app settings."""
import os

from zakat_engine.constants import (
    BREAKER_COOLDOWN_SECONDS,
    BREAKER_FAILURE_THRESHOLD,
    CHAIN_DEADLINE_SECONDS,
    DEFAULT_CURRENCY,
    EMERGENCY_MAX_AGE_SECONDS,
    FX_CACHE_TTL_SECONDS,
    METAL_CACHE_TTL_SECONDS,
    MONTHLY_REQUEST_LIMIT,
    PROVIDER_TIMEOUT_SECONDS,
)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


def is_network_enabled() -> bool:
    """Check if outbound provider calls are allowed.

    Controlled by PRICING_ALLOW_NETWORK env var (default: 1/true). When off,
    the resolver answers from cache and the static fallbacks only.
    """
    return _env_flag('PRICING_ALLOW_NETWORK', '1')


def get_user_agent() -> str:
    """Get the User-Agent string for provider HTTP requests."""
    default_ua = 'ZakatEngine/1.0 (+https://github.com/zakat-engine)'
    return os.environ.get('PRICING_SYNC_USER_AGENT', default_ua)


def get_default_currency() -> str:
    return os.environ.get('DEFAULT_CURRENCY', DEFAULT_CURRENCY).upper()


def get_provider_timeout() -> float:
    """Per-provider HTTP timeout in seconds (PRICING_PROVIDER_TIMEOUT_SECONDS, default 10)."""
    return float(os.environ.get('PRICING_PROVIDER_TIMEOUT_SECONDS', PROVIDER_TIMEOUT_SECONDS))


def get_chain_deadline() -> float:
    """Overall deadline for one provider chain (PRICING_CHAIN_DEADLINE_SECONDS, default 25)."""
    return float(os.environ.get('PRICING_CHAIN_DEADLINE_SECONDS', CHAIN_DEADLINE_SECONDS))


def get_metal_cache_ttl() -> int:
    return int(os.environ.get('PRICING_CACHE_TTL_SECONDS', METAL_CACHE_TTL_SECONDS))


def get_fx_cache_ttl() -> int:
    return int(os.environ.get('PRICING_FX_CACHE_TTL_SECONDS', FX_CACHE_TTL_SECONDS))


def get_emergency_max_age() -> int:
    """Oldest cache entry (seconds) still served when every provider fails."""
    return int(os.environ.get('PRICING_EMERGENCY_MAX_AGE_SECONDS', EMERGENCY_MAX_AGE_SECONDS))


def get_breaker_threshold() -> int:
    return int(os.environ.get('PRICING_BREAKER_THRESHOLD', BREAKER_FAILURE_THRESHOLD))


def get_breaker_cooldown() -> float:
    return float(os.environ.get('PRICING_BREAKER_COOLDOWN_SECONDS', BREAKER_COOLDOWN_SECONDS))


def get_monthly_request_limit() -> int:
    """Monthly cap on paid metals API calls (PRICING_MONTHLY_LIMIT, default 80)."""
    return int(os.environ.get('PRICING_MONTHLY_LIMIT', MONTHLY_REQUEST_LIMIT))


def get_cache_backend() -> str:
    """Price cache backend: 'memory' (default), 'file' or 'r2'."""
    return os.environ.get('PRICING_CACHE_BACKEND', 'memory').lower()


def get_data_dir() -> str:
    return os.environ.get('DATA_DIR', './data')


# Provider API key getters
def get_goldapi_key() -> str | None:
    """Get GoldAPI key if configured."""
    return os.environ.get('GOLDAPI_KEY')


def get_metalsdev_key() -> str | None:
    """Get Metals.dev API key if configured."""
    return os.environ.get('METALSDEV_API_KEY')


def get_provider_keys_status() -> dict:
    """Get status of configured provider API keys."""
    return {
        'goldapi': bool(get_goldapi_key()),
        'metalsdev': bool(get_metalsdev_key()),
    }
