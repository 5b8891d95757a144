"""Provider registry: ordered fallback chains."""
from . import FXProvider, MetalProvider
from .fx_providers import (
    ExchangeRateHostProvider,
    FawazExchangeAPIProvider,
    FrankfurterFXProvider,
    OpenERAPIProvider,
)
from .metal_providers import (
    FrankfurterMetalProvider,
    GoldAPIProvider,
    GoldPriceOrgProvider,
    MetalsDevAPIProvider,
    MetalsLiveProvider,
)


def get_metal_providers(counter=None) -> list[MetalProvider]:
    """Metal providers in priority order.

    Free feeds come first; GoldAPI draws on the monthly budget tracked by
    `counter`. Providers needing a key are dropped when none is configured.
    """
    providers = [
        FrankfurterMetalProvider(),
        GoldPriceOrgProvider(),
        MetalsLiveProvider(),
        GoldAPIProvider(counter=counter),
        MetalsDevAPIProvider(),
    ]
    return [p for p in providers if p.is_configured()]


def get_fx_providers() -> list[FXProvider]:
    """FX providers in priority order."""
    providers = [
        FrankfurterFXProvider(),
        OpenERAPIProvider(),
        ExchangeRateHostProvider(),
        FawazExchangeAPIProvider(),
    ]
    return [p for p in providers if p.is_configured()]
