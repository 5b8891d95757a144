"""Category id -> calculator lookup."""
from zakat_engine.constants import ASSET_CATEGORIES
from . import AssetCalculator
from .cash import CashCalculator
from .crypto import CryptoCalculator
from .debt import DebtCalculator
from .precious_metals import PreciousMetalsCalculator
from .real_estate import RealEstateCalculator
from .retirement import RetirementCalculator
from .stocks import StocksCalculator

_CALCULATORS: dict[str, AssetCalculator] = {
    calc.category: calc
    for calc in (
        CashCalculator(),
        PreciousMetalsCalculator(),
        StocksCalculator(),
        RealEstateCalculator(),
        RetirementCalculator(),
        CryptoCalculator(),
        DebtCalculator(),
    )
}


def get_calculator(category: str) -> AssetCalculator | None:
    return _CALCULATORS.get(category)


def get_all_calculators() -> list[AssetCalculator]:
    """Calculators in display order."""
    return [_CALCULATORS[category] for category in ASSET_CATEGORIES]


def get_category_names() -> dict[str, str]:
    return {calc.category: calc.name for calc in get_all_calculators()}
