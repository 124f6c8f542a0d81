import pytest

from boltzmann.data.config import Settings

PROVIDER_ENV_VARS = ["COINMARKETCAP_API_KEY", "COINGECKO_API_KEY", "ETHERSCAN_API_KEY", "ETHEREUM_RPC_URL"]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider credentials that may be set on the host."""
    for var in PROVIDER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env):
    return Settings(_env_file=None, etherscan_api_key="etherscan-key", ethereum_rpc_url="http://localhost:8545")
