from .config import Settings, load_settings
from .errors import (
    ConfigurationMissing,
    InsufficientData,
    MalformedUpstreamData,
    NetworkFailure,
    NoProvidersAvailable,
    ProviderError,
    UpstreamRejected,
)
from .models import (
    AmountBreakdown,
    Coin,
    Currency,
    FeeHistorySample,
    GasOracleSource,
    GasPriceTiers,
    GasQuote,
    ProviderSource,
    Quote,
)

__all__ = [
    "Settings",
    "load_settings",
    "ProviderError",
    "ConfigurationMissing",
    "NetworkFailure",
    "MalformedUpstreamData",
    "UpstreamRejected",
    "InsufficientData",
    "NoProvidersAvailable",
    "AmountBreakdown",
    "Coin",
    "Currency",
    "FeeHistorySample",
    "GasOracleSource",
    "GasPriceTiers",
    "GasQuote",
    "ProviderSource",
    "Quote",
]
