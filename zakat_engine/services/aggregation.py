"""Combines per-category breakdowns into one portfolio result."""
from enum import Enum
from typing import Optional

from zakat_engine.models import AssetBreakdown, CombinedBreakdown, NisabThresholds
from .nisab import NisabResolver
from .providers import InvalidInput


class NisabBasis(str, Enum):
    """Which portfolio figure is compared against the nisab threshold."""
    TOTAL_VALUE = 'total_value'
    ZAKATABLE_VALUE = 'zakatable_value'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'NisabBasis':
        if value is None or value == '':
            return cls.TOTAL_VALUE
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInput(f"Unknown nisab basis: {value!r}")


class AggregationEngine:
    """Sums category breakdowns; no clamping beyond what categories apply.

    A negative debt contribution legitimately reduces the portfolio totals.
    """

    def __init__(self, nisab_resolver: NisabResolver, basis: NisabBasis = NisabBasis.TOTAL_VALUE):
        self._nisab = nisab_resolver
        self._basis = basis

    @property
    def basis(self) -> NisabBasis:
        return self._basis

    def combine(
        self,
        category_breakdowns: dict[str, AssetBreakdown],
        nisab_thresholds: NisabThresholds,
        currency: str = '',
    ) -> CombinedBreakdown:
        total_value = 0.0
        zakatable_value = 0.0
        zakat_due = 0.0
        for breakdown in category_breakdowns.values():
            total_value += breakdown.total
            zakatable_value += breakdown.zakatable
            zakat_due += breakdown.zakat_due

        compared = total_value if self._basis == NisabBasis.TOTAL_VALUE else zakatable_value
        return CombinedBreakdown(
            total_value=total_value,
            zakatable_value=zakatable_value,
            zakat_due=zakat_due,
            meets_nisab=self._nisab.meets_nisab(compared, nisab_thresholds),
            per_category=dict(category_breakdowns),
            currency=currency or nisab_thresholds.currency,
            nisab_basis=self._basis.value,
            nisab=nisab_thresholds,
        )
