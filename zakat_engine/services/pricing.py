"""Pricing service wiring for the Flask app.

One set of collaborators (cache, counter, breaker, resolver, converter) is
built per app and kept in app.extensions so the cache and breaker state
survive across requests.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import Flask, current_app

from .cache import create_cache_store
from .calculation import ZakatCalculator
from .circuit_breaker import CircuitBreaker
from .fx import CurrencyConverter
from .price_resolver import PriceResolver
from .providers.registry import get_fx_providers, get_metal_providers
from .request_counter import RequestCounter
from .time_provider import TimeProvider

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'zakat_pricing'


@dataclass
class PricingServices:
    resolver: PriceResolver
    converter: CurrencyConverter
    calculator: ZakatCalculator
    counter: RequestCounter


def build_pricing_services(config, time_provider: Optional[TimeProvider] = None) -> PricingServices:
    """Build the pricing stack from a Flask config mapping."""
    time_provider = time_provider or TimeProvider.get_default()
    data_dir = config['DATA_DIR']

    counter = RequestCounter(data_dir, config['PRICING_MONTHLY_LIMIT'], time_provider)
    cache = create_cache_store(config['PRICING_CACHE_BACKEND'], data_dir, time_provider)
    breaker = CircuitBreaker(
        threshold=config['PRICING_BREAKER_THRESHOLD'],
        cooldown=config['PRICING_BREAKER_COOLDOWN_SECONDS'],
        time_provider=time_provider,
    )

    metal_providers = config.get('PRICING_METAL_PROVIDERS')
    if metal_providers is None:
        metal_providers = get_metal_providers(counter)
    fx_providers = config.get('PRICING_FX_PROVIDERS')
    if fx_providers is None:
        fx_providers = get_fx_providers()

    resolver = PriceResolver(
        metal_providers,
        fx_providers,
        cache=cache,
        breaker=breaker,
        time_provider=time_provider,
        provider_timeout=config['PRICING_PROVIDER_TIMEOUT_SECONDS'],
        chain_deadline=config['PRICING_CHAIN_DEADLINE_SECONDS'],
        metal_ttl=config['PRICING_CACHE_TTL_SECONDS'],
        fx_ttl=config['PRICING_FX_CACHE_TTL_SECONDS'],
        emergency_max_age=config['PRICING_EMERGENCY_MAX_AGE_SECONDS'],
        allow_network=config['PRICING_ALLOW_NETWORK'],
    )
    converter = CurrencyConverter(resolver)
    logger.info(
        f"Pricing services ready: cache={type(cache).__name__} "
        f"metals={[p.name for p in metal_providers]} fx={[p.name for p in fx_providers]} "
        f"network={config['PRICING_ALLOW_NETWORK']}"
    )
    return PricingServices(
        resolver=resolver,
        converter=converter,
        calculator=ZakatCalculator(resolver, converter),
        counter=counter,
    )


def init_app(app: Flask) -> None:
    app.extensions[EXTENSION_KEY] = build_pricing_services(
        app.config,
        app.config.get('TIME_PROVIDER'),
    )


def get_pricing_services() -> PricingServices:
    """Services for the current app."""
    return current_app.extensions[EXTENSION_KEY]
