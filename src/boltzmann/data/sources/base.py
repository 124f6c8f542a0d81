from abc import ABC, abstractmethod
from typing import Any, List, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import MalformedUpstreamData
from ..http_client import DEFAULT_TIMEOUT_SECONDS
from ..models import Coin, Currency, ProviderSource, Quote

M = TypeVar("M", bound=BaseModel)


class DataSource(ABC):
    name: str

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return True

    def parse_payload(self, model: Type[M], payload: Any) -> M:
        """Validate a decoded upstream payload against ``model``."""
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
            raise MalformedUpstreamData(f"unexpected response shape ({fields})", self.name) from e


class PriceSource(DataSource):
    provider: ProviderSource

    @abstractmethod
    async def fetch(self, coin: Coin, currencies: Sequence[Currency]) -> List[Quote]:
        """
        Fetch unit-price quotes for ``coin`` in every currency with one upstream call.

        Quotes come back in the order of ``currencies``, one per currency.
        """
        ...
