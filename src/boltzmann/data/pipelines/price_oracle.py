import asyncio
import math
from typing import Iterable, List, Sequence

from loguru import logger

from ..errors import NoProvidersAvailable, ProviderError
from ..models import Coin, Currency, Quote
from ..sources.base import PriceSource


def unique_currencies(currencies: Iterable[Currency]) -> List[Currency]:
    """Drop repeated currencies, keeping the order they were first requested in."""
    return list(dict.fromkeys(currencies))


def all_totals_finite(quotes: Iterable[Quote]) -> bool:
    """False when an amount overflowed a total price to infinity."""
    return all(math.isfinite(q.amount_breakdown.total_price) for q in quotes)


class PriceAggregator:
    """
    Collects quotes from every configured price source.

    Sources are tried in the order given. A source without credentials is
    skipped; a failing source contributes nothing. Only when no quote at all
    was collected does the aggregation fail.
    """

    def __init__(self, sources: Sequence[PriceSource]):
        self.sources = list(sources)

    async def _collect(self, source: PriceSource, coin: Coin, currencies: List[Currency]) -> List[Quote]:
        try:
            quotes = await source.fetch(coin, currencies)
        except ProviderError as e:
            logger.warning(f"{source.name} failed: {e}")
            return []
        except Exception as e:
            logger.exception(f"{source.name} failed unexpectedly: {e}")
            return []
        for quote in quotes:
            logger.info(f"{source.name}: 1 {quote.coin.value} = {quote.currency.symbol}{quote.unit_price:.2f}")
        return quotes

    async def aggregate(self, coin: Coin, currencies: Iterable[Currency], amount: float = 1.0) -> List[Quote]:
        requested = unique_currencies(currencies)
        if not requested:
            raise ValueError("At least one currency must be requested")

        configured: List[PriceSource] = []
        for source in self.sources:
            if source.is_configured:
                configured.append(source)
            else:
                logger.info(f"{source.name} not configured, skipping")

        # gather keeps the priority order regardless of which source answers first
        batches = await asyncio.gather(*(self._collect(s, coin, requested) for s in configured))
        quotes = [quote.with_amount(amount) for batch in batches for quote in batch]
        if not quotes:
            raise NoProvidersAvailable(f"No quotes available for {coin.value} from any provider")
        return quotes


async def aggregate_price_quotes(coin: Coin, currencies: Iterable[Currency], amount: float, registry) -> List[Quote]:
    return await PriceAggregator(registry.price_sources).aggregate(coin, currencies, amount)
