from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, List
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    CHF = "CHF"
    CNY = "CNY"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"

    @property
    def symbol(self) -> str:
        return _CURRENCY_SYMBOLS[self]

    @classmethod
    def parse(cls, code: str) -> "Currency":
        try:
            return cls(code.strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported currency '{code}'. Supported: {', '.join(c.value for c in cls)}") from None


_CURRENCY_SYMBOLS = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.CHF: "CHF",
    Currency.CNY: "¥",
    Currency.GBP: "£",
    Currency.JPY: "¥",
    Currency.CAD: "C$",
    Currency.AUD: "A$",
}


class Coin(str, Enum):
    ETH = "ETH"

    @property
    def coinmarketcap_id(self) -> int:
        return {Coin.ETH: 1027}[self]

    @property
    def coingecko_id(self) -> str:
        return {Coin.ETH: "ethereum"}[self]


class ProviderSource(str, Enum):
    """Price providers, declared in fallback priority order."""
    COINMARKETCAP = "coinmarketcap"
    COINGECKO = "coingecko"


class GasOracleSource(str, Enum):
    ETHERSCAN = "etherscan"
    ONCHAIN = "onchain"

    @classmethod
    def parse(cls, value: str) -> "GasOracleSource":
        normalized = value.strip().lower()
        if normalized == "alloy":
            return cls.ONCHAIN
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unsupported gas provider '{value}'. Supported: {', '.join(s.value for s in cls)}") from None


class AmountBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float
    total_price: float


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    coin: Coin
    currency: Currency
    unit_price: float
    provider: ProviderSource
    observed_at: datetime = Field(default_factory=utc_now)
    amount_breakdown: AmountBreakdown

    @model_validator(mode="before")
    @classmethod
    def _unit_breakdown(cls, data: Any) -> Any:
        # fresh quotes are priced for a single unit
        if isinstance(data, dict) and data.get("amount_breakdown") is None and "unit_price" in data:
            data = {**data, "amount_breakdown": {"amount": 1.0, "total_price": data["unit_price"]}}
        return data

    def with_amount(self, amount: float) -> "Quote":
        """Copy of this quote valued for ``amount`` units of the coin.

        The amount is not validated; callers reject negative amounts.
        """
        return self.model_copy(
            update={"amount_breakdown": AmountBreakdown(amount=amount, total_price=self.unit_price * amount)}
        )


class GasPriceTiers(BaseModel):
    """Gas prices in gwei. Tier ordering follows the source and is not enforced."""
    model_config = ConfigDict(frozen=True)

    low: float
    average: float
    high: float
    observed_at: datetime = Field(default_factory=utc_now)


class GasQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    tiers: GasPriceTiers
    provider: GasOracleSource


class FeeHistorySample(BaseModel):
    """One block of ``eth_feeHistory`` output, amounts in wei."""
    model_config = ConfigDict(frozen=True)

    base_fee_wei: int = Field(ge=0)
    priority_fee_samples_wei: List[int] = Field(default_factory=list)
