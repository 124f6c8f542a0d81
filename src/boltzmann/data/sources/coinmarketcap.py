from typing import Dict, Any, List, Optional, Sequence

from pydantic import BaseModel, Field

from .base import PriceSource
from ..errors import ConfigurationMissing, MalformedUpstreamData, UpstreamRejected
from ..http_client import DEFAULT_TIMEOUT_SECONDS, get_json
from ..models import Coin, Currency, ProviderSource, Quote, utc_now


class _Status(BaseModel):
    error_code: int = 0
    error_message: Optional[str] = None


class _Price(BaseModel):
    price: Optional[float] = None


class _Asset(BaseModel):
    quote: Dict[str, _Price] = Field(default_factory=dict)


class _QuotesLatest(BaseModel):
    status: _Status = Field(default_factory=_Status)
    data: Dict[str, _Asset] = Field(default_factory=dict)


class CoinMarketCap(PriceSource):
    """CoinMarketCap pro API adapter; needs ``COINMARKETCAP_API_KEY``."""

    name = "coinmarketcap"
    provider = ProviderSource.COINMARKETCAP
    BASE = "https://pro-api.coinmarketcap.com"

    def __init__(self, api_key: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationMissing("COINMARKETCAP_API_KEY not set", self.name)
        return {"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"}

    async def fetch(self, coin: Coin, currencies: Sequence[Currency]) -> List[Quote]:
        headers = self._headers()
        if not currencies:
            return []
        data = await get_json(
            f"{self.BASE}/v2/cryptocurrency/quotes/latest",
            params={"id": coin.coinmarketcap_id, "convert": ",".join(c.value for c in currencies)},
            headers=headers,
            timeout=self.timeout,
            provider=self.name,
        )
        return self.parse_quotes(data, coin, currencies)

    def parse_quotes(self, data: Any, coin: Coin, currencies: Sequence[Currency]) -> List[Quote]:
        response = self.parse_payload(_QuotesLatest, data)
        if response.status.error_code != 0:
            raise UpstreamRejected(
                response.status.error_message or f"error code {response.status.error_code}", self.name
            )
        asset = response.data.get(str(coin.coinmarketcap_id))
        if asset is None:
            raise MalformedUpstreamData(f"No data found for coin {coin.value}", self.name)
        observed_at = utc_now()
        quotes: List[Quote] = []
        for currency in currencies:
            entry = asset.quote.get(currency.value)
            if entry is None or entry.price is None:
                raise MalformedUpstreamData(f"Price not found for {coin.value} in {currency.value}", self.name)
            quotes.append(Quote(coin=coin, currency=currency, unit_price=entry.price, provider=self.provider, observed_at=observed_at))
        return quotes
