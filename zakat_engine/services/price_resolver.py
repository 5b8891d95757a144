"""Price resolution with caching, provider fallback and graceful degradation.

Every public resolve_* method returns a usable value. Resolution walks these
tiers and stops at the first one that answers:

1. fresh cache entry for the exact key, returned as stored
2. providers in priority order, each under its own timeout and the whole
   chain under an overall deadline; a success is cached unless it was
   converted with a stale or static-table rate
3. the latest cache entry regardless of TTL, up to the emergency max age
4. documented constants (metals) or the static rate table (FX)

Provider failures (network, HTTP status, malformed body, implausible value)
are logged and recovered here; callers only see the provenance tags
is_cache / source on the returned record.
"""
import logging
import time
from typing import Callable, Optional

from zakat_engine.constants import (
    COMMON_BASE_CURRENCY,
    EMERGENCY_MAX_AGE_SECONDS,
    FX_CACHE_TTL_SECONDS,
    METAL_CACHE_TTL_SECONDS,
    PROVIDER_TIMEOUT_SECONDS,
    CHAIN_DEADLINE_SECONDS,
    SOURCE_FALLBACK,
    SOURCE_IDENTITY,
    SOURCE_UNCONVERTED,
)
from zakat_engine.data.currencies import (
    FALLBACK_RATES,
    get_fallback_rate,
    get_fallback_rates,
    is_valid_currency,
    normalize_currency,
)
from zakat_engine.data.metals import (
    EXPECTED_PRICE_RANGES_USD,
    FALLBACK_PRICES_USD,
    GOLD,
    SILVER,
    SUPPORTED_METALS,
)
from zakat_engine.models import ExchangeRateSnapshot, MetalPrices, PriceQuote, is_positive_finite
from .cache import CacheStore, MemoryCacheStore
from .circuit_breaker import CircuitBreaker
from .inflight import InflightRegistry
from .providers import (
    BudgetExhausted,
    ConversionUnavailable,
    FXProvider,
    InvalidInput,
    MetalProvider,
    MetalSpot,
    OutOfRangeValue,
    ProviderError,
)
from .time_provider import TimeProvider

logger = logging.getLogger(__name__)

# Allowed deviation from the static table before a value is rejected
SANITY_TOLERANCE = 10.0


def metal_cache_key(commodity: str, currency: str) -> str:
    return f"metal:{commodity}:{currency}"


def fx_cache_key(base: str) -> str:
    return f"fx:{base}"


def price_range_for(commodity: str, currency: str) -> Optional[tuple[float, float]]:
    """Plausible per-gram price window in `currency`, or None if unknown.

    USD uses the expected range as-is; other currencies scale it by the static
    table rate and widen it by SANITY_TOLERANCE in both directions.
    """
    low, high = EXPECTED_PRICE_RANGES_USD[commodity]
    if currency == COMMON_BASE_CURRENCY:
        return low, high
    rate = FALLBACK_RATES.get(currency)
    if rate is None:
        return None
    return low * rate / SANITY_TOLERANCE, high * rate * SANITY_TOLERANCE


def check_metal_price(commodity: str, price: float, currency: str) -> None:
    """Raise OutOfRangeValue if a per-gram price is implausible."""
    if not is_positive_finite(price):
        raise OutOfRangeValue(f"{commodity} price {price!r} is not positive and finite")
    bounds = price_range_for(commodity, currency)
    if bounds and not bounds[0] <= price <= bounds[1]:
        raise OutOfRangeValue(
            f"{commodity} price {price:.4f} {currency}/g outside {bounds[0]:.4f}-{bounds[1]:.4f}"
        )


def check_fx_rate(from_currency: str, to_currency: str, rate: float) -> None:
    """Raise OutOfRangeValue if a rate is implausible against the static table."""
    if not is_positive_finite(rate):
        raise OutOfRangeValue(f"{from_currency}/{to_currency} rate {rate!r} is not positive and finite")
    expected = get_fallback_rate(from_currency, to_currency)
    if expected is None:
        return
    if not expected / SANITY_TOLERANCE <= rate <= expected * SANITY_TOLERANCE:
        raise OutOfRangeValue(
            f"{from_currency}/{to_currency} rate {rate} too far from reference {expected:.6f}"
        )


class PriceResolver:
    """Resolves metal prices and exchange rates through the fallback tiers.

    All collaborators are injected so tests can pass fake providers, a
    MemoryCacheStore and a frozen TimeProvider.
    """

    def __init__(
        self,
        metal_providers: list[MetalProvider],
        fx_providers: list[FXProvider],
        cache: Optional[CacheStore] = None,
        breaker: Optional[CircuitBreaker] = None,
        inflight: Optional[InflightRegistry] = None,
        time_provider: Optional[TimeProvider] = None,
        provider_timeout: float = PROVIDER_TIMEOUT_SECONDS,
        chain_deadline: float = CHAIN_DEADLINE_SECONDS,
        metal_ttl: float = METAL_CACHE_TTL_SECONDS,
        fx_ttl: float = FX_CACHE_TTL_SECONDS,
        emergency_max_age: float = EMERGENCY_MAX_AGE_SECONDS,
        allow_network: bool = True,
    ):
        self._time = time_provider or TimeProvider.get_default()
        self._metal_providers = list(metal_providers)
        self._fx_providers = list(fx_providers)
        self._cache = cache if cache is not None else MemoryCacheStore(self._time)
        self._breaker = breaker or CircuitBreaker(time_provider=self._time)
        self._inflight = inflight or InflightRegistry()
        self._provider_timeout = provider_timeout
        self._chain_deadline = chain_deadline
        self._metal_ttl = metal_ttl
        self._fx_ttl = fx_ttl
        self._emergency_max_age = emergency_max_age
        self._allow_network = allow_network

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    # ------------------------------------------------------------------
    # Provider chain
    # ------------------------------------------------------------------

    def _run_chain(self, kind: str, providers: list, attempt: Callable):
        """Try providers in order; return the first successful result or None.

        `attempt(provider, timeout)` performs one call and validates it,
        raising ProviderError on any failure.
        """
        if not self._allow_network:
            logger.debug(f"Network disabled; skipping {kind} providers")
            return None

        started = time.monotonic()
        for provider in providers:
            remaining = self._chain_deadline - (time.monotonic() - started)
            if remaining <= 0:
                logger.warning(f"{kind} provider chain hit its {self._chain_deadline}s deadline")
                return None
            breaker_name = f"{kind}:{provider.name}"
            if not self._breaker.allow(breaker_name):
                logger.debug(f"Skipping {provider.name}: circuit open")
                continue

            try:
                result = attempt(provider, min(self._provider_timeout, remaining))
            except (ConversionUnavailable, BudgetExhausted) as e:
                # Not a provider fault; release the breaker without counting a failure
                logger.warning(f"{kind} from {provider.name} skipped: {e}")
                self._breaker.record_success(breaker_name)
                continue
            except ProviderError as e:
                logger.warning(f"{kind} provider {provider.name} failed: {type(e).__name__}: {e}")
                self._breaker.record_failure(breaker_name)
                continue
            except Exception:
                logger.exception(f"Unexpected error from {kind} provider {provider.name}")
                self._breaker.record_failure(breaker_name)
                continue

            self._breaker.record_success(breaker_name)
            return result

        return None

    # ------------------------------------------------------------------
    # Metals
    # ------------------------------------------------------------------

    def _validate_metal_args(self, commodity: str, currency: str) -> tuple[str, str]:
        commodity = (commodity or '').lower()
        currency = normalize_currency(currency)
        if commodity not in SUPPORTED_METALS:
            raise InvalidInput(f"Unsupported commodity: {commodity!r}")
        if not is_valid_currency(currency):
            raise InvalidInput(f"Invalid currency code: {currency!r}")
        return commodity, currency

    def _spot_to_quotes(self, spot: MetalSpot, currency: str) -> dict[str, PriceQuote]:
        check_metal_price(GOLD, spot.gold_per_gram, spot.currency)
        check_metal_price(SILVER, spot.silver_per_gram, spot.currency)

        is_direct = spot.currency == currency
        factor = 1.0
        is_cache = False
        if not is_direct:
            rate = self.resolve_exchange_rate(spot.currency, currency)
            if rate.source == SOURCE_UNCONVERTED:
                raise ConversionUnavailable(f"No rate for {spot.currency}->{currency}")
            factor = rate.price_per_unit
            # A stale or static-table rate degrades the converted price with it
            is_cache = rate.is_cache

        now = self._time.now()
        return {
            metal: PriceQuote(
                commodity_or_pair=metal,
                price_per_unit=price * factor,
                currency=currency,
                timestamp=now,
                is_cache=is_cache,
                source=spot.source,
                is_direct=is_direct,
            )
            for metal, price in ((GOLD, spot.gold_per_gram), (SILVER, spot.silver_per_gram))
        }

    def _fetch_metals(self, currency: str) -> Optional[dict[str, PriceQuote]]:
        def attempt(provider: MetalProvider, timeout: float) -> dict[str, PriceQuote]:
            return self._spot_to_quotes(provider.fetch_spot(currency, timeout), currency)

        quotes = self._run_chain('metals', self._metal_providers, attempt)
        if quotes is None:
            return None

        if quotes[GOLD].is_cache:
            logger.warning(
                f"Metal prices from {quotes[GOLD].source} converted to {currency} with a cached rate; not caching"
            )
            return quotes
        for metal, quote in quotes.items():
            self._cache.set(metal_cache_key(metal, currency), quote, self._metal_ttl)
        logger.info(
            f"Metal prices refreshed from {quotes[GOLD].source} in {currency}: "
            f"gold={quotes[GOLD].price_per_unit:.4f}/g silver={quotes[SILVER].price_per_unit:.4f}/g"
        )
        return quotes

    def _metal_fallbacks(self, metals: list[str], currency: str) -> dict[str, PriceQuote]:
        """Constant prices for `metals`, converted with a single rate lookup.

        When no tier has a USD rate for `currency` the constants stay
        labelled USD.
        """
        quoted_in = currency
        factor = 1.0
        if currency != COMMON_BASE_CURRENCY:
            rate = self.resolve_exchange_rate(COMMON_BASE_CURRENCY, currency)
            if rate.source == SOURCE_UNCONVERTED:
                logger.warning(f"No USD/{currency} rate; fallback metal prices stay in USD")
                quoted_in = COMMON_BASE_CURRENCY
            else:
                factor = rate.price_per_unit

        now = self._time.now()
        quotes = {}
        for metal in metals:
            price = FALLBACK_PRICES_USD[metal] * factor
            logger.warning(f"Using fallback {metal} price {price:.4f} {quoted_in}/g")
            quotes[metal] = PriceQuote(
                commodity_or_pair=metal,
                price_per_unit=price,
                currency=quoted_in,
                timestamp=now,
                is_cache=True,
                source=SOURCE_FALLBACK,
                is_direct=currency == COMMON_BASE_CURRENCY,
            )
        return quotes

    def _resolve_pair(self, currency: str) -> dict[str, PriceQuote]:
        """Gold and silver from one walk down the tiers.

        One provider outcome serves both metals.
        """
        resolved = {metal: self._cache.get(metal_cache_key(metal, currency)) for metal in (GOLD, SILVER)}
        if all(quote is not None for quote in resolved.values()):
            return resolved

        quotes = self._inflight.run(f"metals:{currency}", lambda: self._fetch_metals(currency))
        if quotes is not None:
            return quotes

        missing = []
        for metal, quote in resolved.items():
            if quote is not None:
                continue
            stale = self._cache.get_stale(metal_cache_key(metal, currency), self._emergency_max_age)
            if stale is not None:
                logger.warning(f"All metal providers failed; serving cached {metal} {currency}")
                resolved[metal] = stale.as_cached()
            else:
                missing.append(metal)
        if missing:
            resolved.update(self._metal_fallbacks(missing, currency))
        return resolved

    def resolve_commodity_price(self, commodity: str, currency: str) -> PriceQuote:
        """Price per gram of `commodity` ('gold' or 'silver') in `currency`."""
        commodity, currency = self._validate_metal_args(commodity, currency)
        cached = self._cache.get(metal_cache_key(commodity, currency))
        if cached is not None:
            return cached
        return self._resolve_pair(currency)[commodity]

    def resolve_metal_prices(self, currency: str) -> MetalPrices:
        """Gold and silver per gram in `currency`, with combined provenance."""
        _, currency = self._validate_metal_args(GOLD, currency)
        quotes = self._resolve_pair(currency)
        return MetalPrices.from_quotes(quotes[GOLD], quotes[SILVER])

    # ------------------------------------------------------------------
    # Exchange rates
    # ------------------------------------------------------------------

    def _fetch_snapshot(self, base: str, required: Optional[str] = None) -> Optional[ExchangeRateSnapshot]:
        """Fetch and cache a rate snapshot for `base`.

        A provider whose snapshot lacks `required`, or quotes it implausibly,
        counts as failed so the next provider is tried. Other implausible
        rates are dropped from the snapshot.
        """
        def attempt(provider: FXProvider, timeout: float) -> ExchangeRateSnapshot:
            snapshot = provider.get_rates(base, timeout)
            if required is not None:
                rate = snapshot.rate_for(required)
                if rate is None:
                    raise ConversionUnavailable(f"{provider.name} has no {base}/{required} rate")
                check_fx_rate(base, required, rate)

            plausible = {}
            for code, rate in snapshot.rates.items():
                try:
                    check_fx_rate(base, code, rate)
                except OutOfRangeValue as e:
                    logger.warning(f"Dropping rate from {provider.name}: {e}")
                    continue
                plausible[code] = rate
            return ExchangeRateSnapshot(
                base_currency=base,
                rates=plausible,
                timestamp=self._time.now(),
                source=provider.name,
            )

        signature = f"fx:{base}:{required or '*'}"
        snapshot = self._inflight.run(
            signature, lambda: self._run_chain('fx', self._fx_providers, attempt)
        )
        if snapshot is not None:
            self._cache.set(fx_cache_key(base), snapshot, self._fx_ttl)
            logger.info(f"Exchange rates for {base} refreshed from {snapshot.source} ({len(snapshot.rates)} rates)")
        return snapshot

    def _rate_quote(self, from_currency: str, to_currency: str, rate: float, source: str,
                    is_cache: bool, timestamp=None) -> PriceQuote:
        return PriceQuote(
            commodity_or_pair=f"{from_currency}/{to_currency}",
            price_per_unit=rate,
            currency=to_currency,
            timestamp=timestamp or self._time.now(),
            is_cache=is_cache,
            source=source,
            is_direct=True,
        )

    def _rate_from_snapshots(self, from_currency: str, to_currency: str,
                             lookup: Callable[[str], Optional[ExchangeRateSnapshot]],
                             as_cache: bool) -> Optional[PriceQuote]:
        """Direct, inverse or USD-cross rate from whichever snapshots `lookup` yields."""
        direct = lookup(from_currency)
        if direct is not None:
            rate = direct.rate_for(to_currency)
            if rate is not None:
                return self._rate_quote(from_currency, to_currency, rate, direct.source,
                                        as_cache or direct.is_cache, direct.timestamp)

        inverse = lookup(to_currency)
        if inverse is not None:
            rate = inverse.rate_for(from_currency)
            if rate is not None:
                return self._rate_quote(from_currency, to_currency, 1.0 / rate, inverse.source,
                                        as_cache or inverse.is_cache, inverse.timestamp)

        if COMMON_BASE_CURRENCY not in (from_currency, to_currency):
            common = lookup(COMMON_BASE_CURRENCY)
            if common is not None:
                from_rate = common.rate_for(from_currency)
                to_rate = common.rate_for(to_currency)
                if from_rate is not None and to_rate is not None:
                    return self._rate_quote(from_currency, to_currency, to_rate / from_rate, common.source,
                                            as_cache or common.is_cache, common.timestamp)
        return None

    def resolve_exchange_rate(self, from_currency: str, to_currency: str) -> PriceQuote:
        """Units of `to_currency` per one unit of `from_currency`.

        A rate of 1.0 with source 'unconverted' means no tier could answer.
        """
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        if not is_valid_currency(from_currency) or not is_valid_currency(to_currency):
            raise InvalidInput(f"Invalid currency pair: {from_currency!r}/{to_currency!r}")

        if from_currency == to_currency:
            return self._rate_quote(from_currency, to_currency, 1.0, SOURCE_IDENTITY, False)

        def fresh(base: str) -> Optional[ExchangeRateSnapshot]:
            return self._cache.get(fx_cache_key(base))

        quote = self._rate_from_snapshots(from_currency, to_currency, fresh, as_cache=False)
        if quote is not None:
            return quote

        snapshot = self._fetch_snapshot(from_currency, required=to_currency)
        if snapshot is not None:
            return self._rate_quote(from_currency, to_currency, snapshot.rates[to_currency],
                                    snapshot.source, False, snapshot.timestamp)

        if from_currency != COMMON_BASE_CURRENCY:
            # Cross through the common base; inverse when to_currency is the base
            common = self._fetch_snapshot(COMMON_BASE_CURRENCY)
            if common is not None:
                from_rate = common.rate_for(from_currency)
                to_rate = common.rate_for(to_currency)
                if from_rate is not None and to_rate is not None:
                    return self._rate_quote(from_currency, to_currency, to_rate / from_rate,
                                            common.source, False, common.timestamp)

        def stale(base: str) -> Optional[ExchangeRateSnapshot]:
            return self._cache.get_stale(fx_cache_key(base), self._emergency_max_age)

        quote = self._rate_from_snapshots(from_currency, to_currency, stale, as_cache=True)
        if quote is not None:
            logger.warning(f"FX providers failed; serving cached {from_currency}/{to_currency}")
            return quote

        rate = get_fallback_rate(from_currency, to_currency)
        if rate is not None:
            logger.warning(f"Using static table rate for {from_currency}/{to_currency}: {rate}")
            return self._rate_quote(from_currency, to_currency, rate, SOURCE_FALLBACK, True)

        logger.warning(f"{ConversionUnavailable.__name__}: no rate for {from_currency}/{to_currency}")
        return self._rate_quote(from_currency, to_currency, 1.0, SOURCE_UNCONVERTED, True)

    def resolve_rates(self, base: str) -> ExchangeRateSnapshot:
        """All known rates per one unit of `base`, through the same tiers."""
        base = normalize_currency(base)
        if not is_valid_currency(base):
            raise InvalidInput(f"Invalid currency code: {base!r}")
        key = fx_cache_key(base)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        snapshot = self._fetch_snapshot(base)
        if snapshot is not None:
            return snapshot

        stale = self._cache.get_stale(key, self._emergency_max_age)
        if stale is not None:
            logger.warning(f"FX providers failed; serving cached rates for {base}")
            return stale.as_cached()

        table = get_fallback_rates(base)
        if table is not None:
            logger.warning(f"Using static rate table for base {base}")
            return ExchangeRateSnapshot(base, table, self._time.now(), SOURCE_FALLBACK, is_cache=True)

        logger.warning(f"No rates available for base {base}")
        return ExchangeRateSnapshot(base, {base: 1.0}, self._time.now(), SOURCE_UNCONVERTED, is_cache=True)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def status(self) -> dict:
        return {
            'network_enabled': self._allow_network,
            'metal_providers': [p.name for p in self._metal_providers],
            'fx_providers': [p.name for p in self._fx_providers],
            'breakers': self._breaker.snapshot(),
            'cache_keys': sorted(self._cache.keys()),
            'in_flight': self._inflight.pending(),
        }

    def clear_cache(self) -> int:
        """Drop every cached price and rate; returns how many keys were removed."""
        count = len(self._cache.keys())
        self._cache.clear()
        logger.info(f"Cleared {count} cached price entries")
        return count
