"""Currency conversion service."""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from zakat_engine.constants import SOURCE_IDENTITY, SOURCE_UNCONVERTED
from zakat_engine.data.currencies import normalize_currency
from zakat_engine.models import ConversionResult
from .providers import ConversionUnavailable, InvalidInput

logger = logging.getLogger(__name__)

MAX_CONVERSION_WORKERS = 4


def check_amount(amount) -> float:
    """Return amount as float, raising InvalidInput for NaN, infinity or non-numbers."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidInput(f"Amount must be a number, got {amount!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"Amount must be finite, got {amount!r}")
    return value


class CurrencyConverter:
    """Converts amounts using rates from a PriceResolver.

    Never raises for provider or rate problems: when no tier yields a rate
    the amount comes back unchanged with is_degraded=True. The sign of the
    amount is preserved, so liabilities stay negative.
    """

    def __init__(self, resolver):
        self._resolver = resolver

    def convert_with_details(self, amount, from_currency: str, to_currency: str) -> ConversionResult:
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)

        try:
            value = check_amount(amount)
        except InvalidInput as e:
            logger.warning(f"Rejected conversion input: {e}")
            return ConversionResult(
                amount=0.0,
                rate=0.0,
                from_currency=from_currency,
                to_currency=to_currency,
                source=SOURCE_UNCONVERTED,
                is_degraded=True,
            )

        if from_currency == to_currency:
            return ConversionResult(
                amount=value,
                rate=1.0,
                from_currency=from_currency,
                to_currency=to_currency,
                source=SOURCE_IDENTITY,
            )

        try:
            quote = self._resolver.resolve_exchange_rate(from_currency, to_currency)
        except InvalidInput as e:
            logger.warning(f"{ConversionUnavailable.__name__}: {e}")
            quote = None

        if quote is None or quote.source == SOURCE_UNCONVERTED:
            logger.warning(
                f"Returning {from_currency} amount unconverted; no {from_currency}/{to_currency} rate"
            )
            return ConversionResult(
                amount=value,
                rate=1.0,
                from_currency=from_currency,
                to_currency=to_currency,
                source=SOURCE_UNCONVERTED,
                is_cache=True,
                is_degraded=True,
            )

        return ConversionResult(
            amount=value * quote.price_per_unit,
            rate=quote.price_per_unit,
            from_currency=from_currency,
            to_currency=to_currency,
            source=quote.source,
            is_cache=quote.is_cache,
        )

    def convert(self, amount, from_currency: str, to_currency: str) -> float:
        """Convert `amount` from one currency to another."""
        return self.convert_with_details(amount, from_currency, to_currency).amount

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        """Units of to_currency per one from_currency (1.0 when unresolvable)."""
        return self.convert_with_details(1.0, from_currency, to_currency).rate

    def convert_many(
        self,
        entries: Iterable[tuple[float, str]],
        to_currency: str,
        max_workers: int = MAX_CONVERSION_WORKERS,
    ) -> list[ConversionResult]:
        """Convert (amount, currency) pairs concurrently, preserving input order."""
        entries = list(entries)
        if not entries:
            return []
        if len(entries) == 1:
            amount, currency = entries[0]
            return [self.convert_with_details(amount, currency, to_currency)]

        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = [
                ex.submit(self.convert_with_details, amount, currency, to_currency)
                for amount, currency in entries
            ]
            return [f.result() for f in futures]
