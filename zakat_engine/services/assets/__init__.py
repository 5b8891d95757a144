"""Asset category calculators.

Each category turns validated holding values (plus metal prices where
needed) into an AssetBreakdown. Calculators are pure: no I/O, no clock, no
mutation of their inputs.
"""
import math
from abc import ABC, abstractmethod
from typing import Any

from zakat_engine.models import AssetBreakdown, AssetBreakdownItem, zakat_due_for
from ..providers import InvalidInput


def safe_amount(data: dict, field: str, default: float = 0.0) -> float:
    """Read a non-negative finite number from request data.

    Missing or null fields read as `default`.

    Raises:
        InvalidInput: NaN, infinity, negative or non-numeric values
    """
    raw = data.get(field) if isinstance(data, dict) else None
    if raw is None or raw == '':
        return default
    if isinstance(raw, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number, got {raw!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"{field} must be finite")
    if value < 0:
        raise InvalidInput(f"{field} must not be negative")
    return value


def safe_flag(data: dict, field: str) -> bool:
    """Read a boolean flag; 1/0 and 'true'/'false' are accepted too."""
    raw = data.get(field) if isinstance(data, dict) else None
    if isinstance(raw, str):
        return raw.strip().lower() in ('1', 'true', 'yes')
    return bool(raw)


def zakatable_item(value: float, zakatable: float, label: str, is_zakatable: bool) -> AssetBreakdownItem:
    return AssetBreakdownItem(
        value=value,
        is_zakatable=is_zakatable,
        zakatable=zakatable,
        zakat_due=zakat_due_for(zakatable),
        label=label,
    )


def exempt_item(value: float, label: str) -> AssetBreakdownItem:
    return AssetBreakdownItem(
        value=value,
        is_zakatable=False,
        zakatable=0.0,
        zakat_due=0.0,
        label=label,
        is_exempt=True,
    )


class AssetCalculator(ABC):
    """Common contract for the seven asset categories.

    Subclasses implement get_breakdown; totals and zakatable amounts are read
    off the breakdown so the three views can never disagree.
    """

    category: str = ''
    name: str = ''
    needs_prices: bool = False

    @abstractmethod
    def parse_values(self, data: dict) -> Any:
        """Build this category's holding record from request data.

        Raises:
            InvalidInput: if any amount is invalid
        """
        pass

    @abstractmethod
    def get_breakdown(self, values, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        pass

    def calculate_total(self, values, prices=None) -> float:
        return self.get_breakdown(values, prices, hawl_met=True).total

    def calculate_zakatable(self, values, prices=None, hawl_met: bool = True) -> float:
        return self.get_breakdown(values, prices, hawl_met=hawl_met).zakatable

    def _require_prices(self, prices) -> None:
        if prices is None:
            raise InvalidInput(f"{self.name} requires metal prices")

