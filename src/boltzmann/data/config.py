from typing import Dict, Literal, Optional

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationMissing


class Settings(BaseSettings):
    """
    Process configuration, read once from the environment and ``.env``.

    Instances are frozen and handed to the registry explicitly; core code
    never reads the environment itself.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    coinmarketcap_api_key: Optional[str] = None
    coingecko_api_key: Optional[str] = None
    etherscan_api_key: Optional[str] = None
    ethereum_rpc_url: Optional[str] = None

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    fee_history_blocks: int = Field(default=20, ge=1, le=1024)

    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"
    debug: bool = False
    log_dir: Optional[str] = None

    @field_validator(
        "coinmarketcap_api_key", "coingecko_api_key", "etherscan_api_key", "ethereum_rpc_url", "log_dir",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value):
        return (value.strip().lower() or "text") if isinstance(value, str) else value

    def configured_providers(self) -> Dict[str, bool]:
        # CoinGecko falls back to the public tier without a key
        return {
            "coinmarketcap": self.coinmarketcap_api_key is not None,
            "coingecko": True,
            "etherscan": self.etherscan_api_key is not None,
            "onchain": self.ethereum_rpc_url is not None,
        }

    def validate_startup(self) -> None:
        """Log which upstreams are usable; fail if no gas oracle can run at all."""
        configured = self.configured_providers()
        for name, ok in configured.items():
            if ok:
                logger.info(f"{name}: configured")
            else:
                logger.warning(f"{name}: not configured, requests to it will be skipped or rejected")
        if self.coingecko_api_key is None:
            logger.info("coingecko: no API key, using the public tier")
        if not (configured["etherscan"] or configured["onchain"]):
            raise ConfigurationMissing(
                "No gas oracle configured. Set ETHERSCAN_API_KEY or ETHEREUM_RPC_URL "
                "(any Ethereum JSON-RPC endpoint, e.g. Infura or Alchemy)."
            )


def load_settings(**overrides) -> Settings:
    settings = Settings(**overrides)
    logger.debug(f"Loaded settings for {settings.host}:{settings.port}")
    return settings
