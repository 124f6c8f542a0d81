from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from boltzmann.data.errors import ConfigurationMissing, MalformedUpstreamData, NetworkFailure
from boltzmann.data.onchain.web3_client import FeeHistoryClient

GWEI = 1_000_000_000


@pytest.fixture
def client():
    return FeeHistoryClient(rpc_url="http://localhost:8545")


@pytest.fixture
def raw_history():
    return {
        "oldestBlock": 19_000_000,
        "baseFeePerGas": [28 * GWEI, 29 * GWEI, 30 * GWEI],
        "gasUsedRatio": [0.4, 0.6],
        "reward": [[1 * GWEI, 2 * GWEI, 3 * GWEI], [2 * GWEI, 3 * GWEI, 4 * GWEI]],
    }


class TestParseFeeHistory:
    def test_one_sample_per_base_fee(self, client, raw_history):
        samples = client.parse_fee_history(raw_history)

        assert [s.base_fee_wei for s in samples] == [28 * GWEI, 29 * GWEI, 30 * GWEI]
        assert samples[0].priority_fee_samples_wei == [1 * GWEI, 2 * GWEI, 3 * GWEI]
        # trailing base fee belongs to the next block and has no rewards
        assert samples[-1].priority_fee_samples_wei == []

    def test_hex_quantities(self, client):
        raw = {"oldestBlock": "0x10", "baseFeePerGas": ["0x3b9aca00", "0x77359400"], "reward": [["0x3b9aca00"]]}

        samples = client.parse_fee_history(raw)

        assert [s.base_fee_wei for s in samples] == [GWEI, 2 * GWEI]
        assert samples[0].priority_fee_samples_wei == [GWEI]

    def test_missing_rewards(self, client):
        samples = client.parse_fee_history({"baseFeePerGas": [GWEI, GWEI]})
        assert all(s.priority_fee_samples_wei == [] for s in samples)

    def test_missing_base_fees_is_malformed(self, client):
        with pytest.raises(MalformedUpstreamData):
            client.parse_fee_history({"reward": [[GWEI]]})

    def test_negative_base_fee_is_malformed(self, client):
        with pytest.raises(MalformedUpstreamData):
            client.parse_fee_history({"baseFeePerGas": [-5]})


class TestFetchFeeHistory:
    def test_configured_only_with_rpc_url(self):
        assert FeeHistoryClient(rpc_url="http://localhost:8545").is_configured
        assert not FeeHistoryClient().is_configured

    @pytest.mark.asyncio
    async def test_without_rpc_url(self):
        with pytest.raises(ConfigurationMissing):
            await FeeHistoryClient().fetch_fee_history(20, (25.0, 50.0, 75.0))

    @pytest.mark.asyncio
    async def test_requests_latest_window(self, client, raw_history):
        w3 = MagicMock()
        w3.eth.fee_history = AsyncMock(return_value=raw_history)
        with patch("boltzmann.data.onchain.web3_client.get_w3", return_value=w3):
            samples = await client.fetch_fee_history(20, (25.0, 50.0, 75.0))

        assert len(samples) == 3
        w3.eth.fee_history.assert_awaited_once_with(20, "latest", [25.0, 50.0, 75.0])

    @pytest.mark.asyncio
    async def test_rpc_failure_is_network_failure(self, client):
        w3 = MagicMock()
        w3.eth.fee_history = AsyncMock(side_effect=aiohttp.ClientConnectionError("node unreachable"))
        with patch("boltzmann.data.onchain.web3_client.get_w3", return_value=w3):
            with pytest.raises(NetworkFailure, match="node unreachable"):
                await client.fetch_fee_history(20, (25.0, 50.0, 75.0))
