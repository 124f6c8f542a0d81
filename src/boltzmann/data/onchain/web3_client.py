import asyncio
from functools import lru_cache
from typing import Any, List, Optional, Sequence

import aiohttp
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator
from web3 import AsyncWeb3, AsyncHTTPProvider
from web3.exceptions import Web3Exception

from ..errors import ConfigurationMissing, MalformedUpstreamData, NetworkFailure
from ..http_client import DEFAULT_TIMEOUT_SECONDS
from ..models import FeeHistorySample


@lru_cache(maxsize=16)
def get_w3(rpc_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> AsyncWeb3:
    if not rpc_url:
        raise ConfigurationMissing("No Ethereum RPC endpoint configured", "onchain")
    return AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)}))


def _quantity(value: Any) -> Any:
    # raw JSON-RPC quantities are hex strings; web3 usually decodes them already
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return value


class _FeeHistory(BaseModel):
    base_fee_per_gas: List[int] = Field(alias="baseFeePerGas")
    reward: Optional[List[List[int]]] = None

    @field_validator("base_fee_per_gas", mode="before")
    @classmethod
    def _base_fees(cls, value):
        return [_quantity(v) for v in value] if isinstance(value, list) else value

    @field_validator("reward", mode="before")
    @classmethod
    def _rewards(cls, value):
        if isinstance(value, list):
            return [[_quantity(v) for v in block] if isinstance(block, list) else block for block in value]
        return value


class FeeHistoryClient:
    """Reads ``eth_feeHistory`` from a JSON-RPC endpoint."""

    name = "onchain"

    def __init__(self, rpc_url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.rpc_url = rpc_url
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.rpc_url)

    async def fetch_fee_history(self, block_count: int, percentiles: Sequence[float]) -> List[FeeHistorySample]:
        if not self.rpc_url:
            raise ConfigurationMissing("ETHEREUM_RPC_URL not set", self.name)
        w3 = get_w3(self.rpc_url, self.timeout)
        logger.debug(f"Fetching fee history for the last {block_count} blocks at percentiles {list(percentiles)}")
        try:
            raw = await w3.eth.fee_history(block_count, "latest", list(percentiles))
        except (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            raise NetworkFailure(f"eth_feeHistory failed: {e}", self.name) from e
        return self.parse_fee_history(raw)

    def parse_fee_history(self, raw: Any) -> List[FeeHistorySample]:
        """
        Turn an ``eth_feeHistory`` result into per-block samples, oldest first.

        The node returns one more base fee than reward rows: the trailing base
        fee is for the next block, so its sample has no priority fees.
        """
        try:
            history = _FeeHistory.model_validate(dict(raw) if raw is not None else None)
            rewards = history.reward or []
            samples = [
                FeeHistorySample(base_fee_wei=base_fee, priority_fee_samples_wei=rewards[i] if i < len(rewards) else [])
                for i, base_fee in enumerate(history.base_fee_per_gas)
            ]
        except (ValidationError, TypeError, ValueError) as e:
            raise MalformedUpstreamData(f"unexpected eth_feeHistory payload: {e}", self.name) from e
        logger.debug(f"Fee history: {len(samples)} base fees, {len(rewards)} reward rows")
        return samples
