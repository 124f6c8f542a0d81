from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field

from .base import DataSource
from ..errors import ConfigurationMissing, UpstreamRejected
from ..http_client import DEFAULT_TIMEOUT_SECONDS, get_json


class _Envelope(BaseModel):
    status: str
    message: str = ""
    result: Any = None


class _GasOracleResult(BaseModel):
    safe_gas_price: str = Field(alias="SafeGasPrice")
    propose_gas_price: str = Field(alias="ProposeGasPrice")
    fast_gas_price: str = Field(alias="FastGasPrice")
    last_block: Optional[str] = Field(default=None, alias="LastBlock")
    suggest_base_fee: Optional[str] = Field(default=None, alias="suggestBaseFee")


class EtherscanGasSource(DataSource):
    """Etherscan gas tracker. Returns the oracle's tiers as the decimal strings it reports."""

    name = "etherscan"
    BASE = "https://api.etherscan.io/v2/api"
    CHAIN_ID = 1

    def __init__(self, api_key: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self) -> Tuple[str, str, str]:
        if not self.api_key:
            raise ConfigurationMissing("ETHERSCAN_API_KEY not set", self.name)
        data = await get_json(
            self.BASE,
            params={"chainid": self.CHAIN_ID, "module": "gastracker", "action": "gasoracle", "apikey": self.api_key},
            timeout=self.timeout,
            provider=self.name,
        )
        return self.parse_oracle(data)

    def parse_oracle(self, data: Any) -> Tuple[str, str, str]:
        envelope = self.parse_payload(_Envelope, data)
        if envelope.status != "1":
            detail = envelope.result if isinstance(envelope.result, str) else ""
            raise UpstreamRejected(
                f"Etherscan API error: {envelope.message or 'status ' + envelope.status} {detail}".strip(), self.name
            )
        result = self.parse_payload(_GasOracleResult, envelope.result)
        return result.safe_gas_price, result.propose_gas_price, result.fast_gas_price
