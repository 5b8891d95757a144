"""Nisab thresholds and the policy deciding which one applies.

Which threshold wealth is compared against is a jurisprudential choice, so
it is a named strategy rather than a hardcoded minimum.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from zakat_engine.constants import NISAB_GOLD_GRAMS, NISAB_SILVER_GRAMS
from zakat_engine.data.metals import GOLD, SILVER
from zakat_engine.models import MetalPrices, NisabThresholds
from .providers import InvalidInput

logger = logging.getLogger(__name__)

# Ratio of wealth to threshold below which status reads 'below' instead of 'near'
NEAR_NISAB_RATIO = 0.90


class NisabPolicy(ABC):
    """Chooses the threshold wealth must reach."""

    name: str = ''
    description: str = ''

    @abstractmethod
    def threshold(self, thresholds: NisabThresholds) -> float:
        pass

    def meets(self, wealth: float, thresholds: NisabThresholds) -> bool:
        return wealth >= self.threshold(thresholds)


class LowerThresholdPolicy(NisabPolicy):
    """Lower of the gold and silver thresholds (the more inclusive rule)."""

    name = 'lower_of_two'
    description = 'Lower of gold (85g) and silver (595g) thresholds'

    def threshold(self, thresholds: NisabThresholds) -> float:
        return min(thresholds.gold_threshold, thresholds.silver_threshold)


class GoldThresholdPolicy(NisabPolicy):
    name = GOLD
    description = 'Gold Nisab (85g)'

    def threshold(self, thresholds: NisabThresholds) -> float:
        return thresholds.gold_threshold


class SilverThresholdPolicy(NisabPolicy):
    name = SILVER
    description = 'Silver Nisab (595g)'

    def threshold(self, thresholds: NisabThresholds) -> float:
        return thresholds.silver_threshold


NISAB_POLICIES: dict[str, NisabPolicy] = {
    policy.name: policy
    for policy in (LowerThresholdPolicy(), GoldThresholdPolicy(), SilverThresholdPolicy())
}
DEFAULT_NISAB_POLICY = LowerThresholdPolicy.name


def get_nisab_policy(name: Optional[str] = None) -> NisabPolicy:
    """Look up a policy by name; None gives the default.

    Raises:
        InvalidInput: unknown policy name
    """
    key = (name or DEFAULT_NISAB_POLICY).lower()
    policy = NISAB_POLICIES.get(key)
    if policy is None:
        raise InvalidInput(f"Unknown nisab policy: {name!r} (expected one of {sorted(NISAB_POLICIES)})")
    return policy


def thresholds_from_prices(prices: MetalPrices, policy: NisabPolicy) -> NisabThresholds:
    """Nisab in prices.currency: 85g of gold and 595g of silver."""
    return NisabThresholds(
        gold_threshold=NISAB_GOLD_GRAMS * prices.gold,
        silver_threshold=NISAB_SILVER_GRAMS * prices.silver,
        is_direct_gold_price=prices.is_direct_gold,
        is_direct_silver_price=prices.is_direct_silver,
        currency=prices.currency,
        policy=policy.name,
    )


class NisabResolver:
    """Computes thresholds from resolved metal prices and applies a policy."""

    def __init__(self, price_resolver=None, policy: Optional[NisabPolicy] = None):
        self._resolver = price_resolver
        self._policy = policy or get_nisab_policy()

    @property
    def policy(self) -> NisabPolicy:
        return self._policy

    def compute_thresholds(self, currency: str) -> NisabThresholds:
        prices = self._resolver.resolve_metal_prices(currency)
        thresholds = thresholds_from_prices(prices, self._policy)
        if prices.is_cache:
            logger.info(f"Nisab for {currency} computed from cached or fallback prices ({prices.source})")
        return thresholds

    def meets_nisab(self, wealth: float, thresholds: NisabThresholds) -> bool:
        return self._policy.meets(wealth, thresholds)

    def progress(self, wealth: float, thresholds: NisabThresholds) -> dict:
        """How far `wealth` is from the threshold in use, for display."""
        threshold = self._policy.threshold(thresholds)
        if threshold > 0:
            raw_ratio = wealth / threshold
            display_ratio = min(max(raw_ratio, 0.0), 1.0)
        else:
            raw_ratio = 0.0
            display_ratio = 0.0

        if raw_ratio < NEAR_NISAB_RATIO:
            status = 'below'
        elif raw_ratio < 1.0:
            status = 'near'
        else:
            status = 'above'

        return {
            'policy': self._policy.name,
            'thresholdUsed': round(threshold, 2),
            'ratio': round(display_ratio, 4),
            'status': status,
            'difference': round(abs(wealth - threshold), 2),
        }
