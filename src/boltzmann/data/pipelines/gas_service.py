import math
from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from loguru import logger

from .fee_history import DEFAULT_REWARD_PERCENTILES, estimate_gas_tiers
from ..errors import ConfigurationMissing, MalformedUpstreamData, ProviderError
from ..models import GasOracleSource, GasPriceTiers, GasQuote, utc_now
from ..onchain.web3_client import FeeHistoryClient
from ..sources.etherscan import EtherscanGasSource


class GasOracle(ABC):
    """Anything that can produce gas price tiers right now."""

    source: GasOracleSource

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def get_gas_prices(self) -> GasPriceTiers:
        ...


def parse_gas_tiers(safe: str, propose: str, fast: str, provider: str = "etherscan") -> GasPriceTiers:
    """Convert an API oracle's decimal-string tiers to floats, keeping their order as reported."""
    values = []
    for label, raw in (("safe", safe), ("propose", propose), ("fast", fast)):
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise MalformedUpstreamData(f"Invalid {label} gas price '{raw}'", provider) from None
        if not math.isfinite(value):
            raise MalformedUpstreamData(f"Invalid {label} gas price '{raw}'", provider)
        values.append(value)
    low, average, high = values
    return GasPriceTiers(low=low, average=average, high=high, observed_at=utc_now())


class EtherscanGasOracle(GasOracle):
    source = GasOracleSource.ETHERSCAN

    def __init__(self, client: EtherscanGasSource):
        self.client = client

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    async def get_gas_prices(self) -> GasPriceTiers:
        safe, propose, fast = await self.client.fetch()
        return parse_gas_tiers(safe, propose, fast, self.client.name)


class OnChainGasOracle(GasOracle):
    """Gas tiers computed locally from the node's recent fee history."""

    source = GasOracleSource.ONCHAIN

    def __init__(
        self,
        client: FeeHistoryClient,
        block_count: int = 20,
        percentiles: Sequence[float] = DEFAULT_REWARD_PERCENTILES,
    ):
        self.client = client
        self.block_count = block_count
        self.percentiles = tuple(percentiles)

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    async def get_gas_prices(self) -> GasPriceTiers:
        samples = await self.client.fetch_fee_history(self.block_count, self.percentiles)
        return estimate_gas_tiers(samples)


class GasOracleSelector:
    """
    Dispatches to the oracle the caller asked for.

    There is no failover between oracles: the selected oracle's error is
    logged and re-raised unchanged.
    """

    def __init__(self, oracles: Mapping[GasOracleSource, GasOracle]):
        self.oracles = dict(oracles)

    async def get_gas_prices(self, source: GasOracleSource) -> GasQuote:
        oracle = self.oracles.get(source)
        if oracle is None or not oracle.is_configured:
            raise ConfigurationMissing(f"{source.value} gas oracle is not configured", source.value)
        logger.info(f"Fetching gas prices from {source.value}")
        try:
            tiers = await oracle.get_gas_prices()
        except ProviderError as e:
            logger.warning(f"{source.value} gas oracle failed: {e}")
            raise
        return GasQuote(tiers=tiers, provider=source)


async def gas_prices(source: GasOracleSource, registry) -> GasQuote:
    return await GasOracleSelector(registry.gas_oracles).get_gas_prices(source)
