from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from boltzmann.cli.main import cli
from boltzmann.data.errors import ConfigurationMissing
from boltzmann.data.models import Coin, Currency, GasOracleSource, GasPriceTiers, GasQuote, ProviderSource, Quote


@pytest.fixture
def runner(clean_env, tmp_path):
    # keep loguru off the runner's temporary stderr
    clean_env.setattr("boltzmann.cli.main.setup_logging", lambda *args, **kwargs: None)
    clean_env.chdir(tmp_path)
    return CliRunner()


class TestCli:
    def test_status(self, runner):
        result = runner.invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "coingecko" in result.output
        assert "CONFIGURED" in result.output

    def test_prices(self, runner):
        quotes = [
            Quote(coin=Coin.ETH, currency=Currency.EUR, unit_price=2800.0, provider=ProviderSource.COINGECKO).with_amount(2)
        ]
        with patch("boltzmann.cli.main.aggregate_price_quotes", new=AsyncMock(return_value=quotes)) as aggregate:
            result = runner.invoke(cli, ["prices", "--currency", "eur", "--amount", "2"])

        assert result.exit_code == 0
        assert "ETH Price Quotes" in result.output
        coin, currencies, amount, _ = aggregate.await_args.args
        assert (coin, currencies, amount) == (Coin.ETH, [Currency.EUR], 2.0)

    def test_prices_rejects_unknown_currency(self, runner):
        result = runner.invoke(cli, ["prices", "--currency", "XYZ"])
        assert result.exit_code == 2

    def test_prices_rejects_negative_amount(self, runner):
        result = runner.invoke(cli, ["prices", "--amount", "-1"])
        assert result.exit_code == 2

    def test_prices_rejects_infinite_amount(self, runner):
        with patch("boltzmann.cli.main.aggregate_price_quotes", new=AsyncMock()) as aggregate:
            result = runner.invoke(cli, ["prices", "--amount", "inf"])

        assert result.exit_code == 2
        aggregate.assert_not_awaited()

    def test_gas(self, runner):
        quote = GasQuote(tiers=GasPriceTiers(low=10.5, average=15.2, high=20.9), provider=GasOracleSource.ETHERSCAN)
        with patch("boltzmann.cli.main.gas_prices", new=AsyncMock(return_value=quote)):
            result = runner.invoke(cli, ["gas"])

        assert result.exit_code == 0
        assert "10.500000" in result.output
        assert "20.900000" in result.output

    def test_gas_error_exits_nonzero(self, runner):
        failing = AsyncMock(side_effect=ConfigurationMissing("onchain gas oracle is not configured", "onchain"))
        with patch("boltzmann.cli.main.gas_prices", new=failing):
            result = runner.invoke(cli, ["gas", "--provider", "onchain"])

        assert result.exit_code == 1
        assert "not configured" in result.output

    def test_serve_refuses_without_gas_oracle(self, runner):
        with patch("boltzmann.interfaces.run_web_server") as run:
            result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        run.assert_not_called()
