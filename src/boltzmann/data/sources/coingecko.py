from typing import Dict, Any, List, Optional, Sequence

from pydantic import RootModel

from .base import PriceSource
from ..errors import MalformedUpstreamData, UpstreamRejected
from ..http_client import DEFAULT_TIMEOUT_SECONDS, get_json
from ..models import Coin, Currency, ProviderSource, Quote, utc_now


class _SimplePrice(RootModel[Dict[str, Dict[str, Optional[float]]]]):
    pass


class CoinGecko(PriceSource):
    """CoinGecko simple-price adapter. The API key is optional (public tier without one)."""

    name = "coingecko"
    provider = ProviderSource.COINGECKO
    BASE = "https://api.coingecko.com/api/v3"

    def __init__(self, api_key: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self.api_key = api_key

    @property
    def headers(self) -> Dict[str, str]:
        return {"x-cg-demo-api-key": self.api_key} if self.api_key else {}

    async def fetch(self, coin: Coin, currencies: Sequence[Currency]) -> List[Quote]:
        if not currencies:
            return []
        data = await get_json(
            f"{self.BASE}/simple/price",
            params={
                "ids": coin.coingecko_id,
                "vs_currencies": ",".join(c.value.lower() for c in currencies),
                "include_last_updated_at": "true",
            },
            headers=self.headers,
            timeout=self.timeout,
            provider=self.name,
        )
        return self.parse_quotes(data, coin, currencies)

    def parse_quotes(self, data: Any, coin: Coin, currencies: Sequence[Currency]) -> List[Quote]:
        if isinstance(data, dict) and isinstance(data.get("status"), dict):
            status = data["status"]
            raise UpstreamRejected(str(status.get("error_message") or status), self.name)
        prices = self.parse_payload(_SimplePrice, data).root.get(coin.coingecko_id)
        if prices is None:
            raise MalformedUpstreamData(f"No data found for coin {coin.value}", self.name)
        observed_at = utc_now()
        quotes: List[Quote] = []
        for currency in currencies:
            price = prices.get(currency.value.lower())
            if price is None:
                raise MalformedUpstreamData(f"Price not found for {coin.value} in {currency.value}", self.name)
            quotes.append(Quote(coin=coin, currency=currency, unit_price=price, provider=self.provider, observed_at=observed_at))
        return quotes
