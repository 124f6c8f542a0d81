from typing import Callable, Dict, List, Type

from .config import Settings
from .models import GasOracleSource, ProviderSource
from .onchain.web3_client import FeeHistoryClient
from .pipelines.gas_service import EtherscanGasOracle, GasOracle, OnChainGasOracle
from .sources.base import PriceSource
from .sources.coingecko import CoinGecko
from .sources.coinmarketcap import CoinMarketCap
from .sources.etherscan import EtherscanGasSource

# Fallback priority: earlier entries are listed first in aggregated results.
PRICE_SOURCES: Dict[ProviderSource, Type[PriceSource]] = {
    ProviderSource.COINMARKETCAP: CoinMarketCap,
    ProviderSource.COINGECKO: CoinGecko,
}


def _etherscan_oracle(settings: Settings) -> GasOracle:
    return EtherscanGasOracle(
        EtherscanGasSource(api_key=settings.etherscan_api_key, timeout=settings.http_timeout_seconds)
    )


def _onchain_oracle(settings: Settings) -> GasOracle:
    return OnChainGasOracle(
        FeeHistoryClient(rpc_url=settings.ethereum_rpc_url, timeout=settings.http_timeout_seconds),
        block_count=settings.fee_history_blocks,
    )


GAS_ORACLES: Dict[GasOracleSource, Callable[[Settings], GasOracle]] = {
    GasOracleSource.ETHERSCAN: _etherscan_oracle,
    GasOracleSource.ONCHAIN: _onchain_oracle,
}


class DataRegistry:
    """Adapters built once from explicit settings."""

    def __init__(self, settings: Settings):
        self.settings = settings
        keys = {
            ProviderSource.COINMARKETCAP: settings.coinmarketcap_api_key,
            ProviderSource.COINGECKO: settings.coingecko_api_key,
        }
        self.price_sources: List[PriceSource] = [
            factory(api_key=keys[kind], timeout=settings.http_timeout_seconds)
            for kind, factory in PRICE_SOURCES.items()
        ]
        self.gas_oracles: Dict[GasOracleSource, GasOracle] = {
            source: build(settings) for source, build in GAS_ORACLES.items()
        }

    def price_source(self, kind: ProviderSource) -> PriceSource:
        return next(s for s in self.price_sources if s.provider == kind)

    def gas_oracle(self, source: GasOracleSource) -> GasOracle:
        return self.gas_oracles[source]
