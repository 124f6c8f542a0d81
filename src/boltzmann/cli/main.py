"""
Boltzmann CLI - serve the API or query prices and gas estimates from the terminal
"""
import asyncio
import math
import sys
from typing import List

import click
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..data.config import load_settings
from ..data.errors import ProviderError
from ..data.models import Coin, Currency, GasOracleSource, GasQuote, Quote
from ..data.pipelines.gas_service import gas_prices
from ..data.pipelines.price_oracle import aggregate_price_quotes, all_totals_finite
from ..data.registry import DataRegistry
from ..logging_setup import setup_logging

console = Console()


def render_quotes(quotes: List[Quote]) -> Table:
    table = Table(title=f"{quotes[0].coin.value} Price Quotes" if quotes else "Price Quotes")
    table.add_column("Provider", style="cyan")
    table.add_column("Currency", style="white")
    table.add_column("Unit Price", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Total", justify="right", style="green")
    table.add_column("Observed", style="dim")
    for q in quotes:
        table.add_row(
            q.provider.value,
            q.currency.value,
            f"{q.currency.symbol}{q.unit_price:,.2f}",
            f"{q.amount_breakdown.amount:g}",
            f"{q.currency.symbol}{q.amount_breakdown.total_price:,.2f}",
            q.observed_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
        )
    return table


def render_gas(quote: GasQuote) -> Table:
    table = Table(title=f"Gas Prices ({quote.provider.value})")
    table.add_column("Tier", style="cyan")
    table.add_column("Gwei", justify="right", style="green")
    table.add_row("Low", f"{quote.tiers.low:.6f}")
    table.add_row("Average", f"{quote.tiers.average:.6f}")
    table.add_row("High", f"{quote.tiers.high:.6f}")
    return table


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """Boltzmann - crypto prices and Ethereum gas estimates from multiple providers"""
    load_dotenv()
    settings = load_settings(debug=True) if debug else load_settings()
    setup_logging(settings.log_level, settings.debug, settings.log_dir, settings.log_format)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = settings


@cli.command()
@click.option('--host', default=None, help='Bind address (defaults to HOST)')
@click.option('--port', type=int, default=None, help='Bind port (defaults to PORT)')
@click.pass_context
def serve(ctx, host, port):
    """Start the HTTP API"""
    from ..interfaces import run_web_server

    settings = ctx.obj['settings']
    overrides = {k: v for k, v in (("host", host), ("port", port)) if v is not None}
    if overrides:
        settings = settings.model_copy(update=overrides)
    try:
        settings.validate_startup()
    except ProviderError as e:
        console.print(f"[red]{e.message}[/red]")
        sys.exit(1)
    run_web_server(settings)


@cli.command()
@click.option('--currency', '-c', multiple=True, default=['USD'], help='Fiat currency (can specify multiple)')
@click.option('--amount', '-a', type=click.FloatRange(min=0), default=1.0, help='Amount of the coin to value')
@click.option('--coin', type=click.Choice([c.value for c in Coin], case_sensitive=False), default='ETH')
@click.pass_context
def prices(ctx, currency, amount, coin):
    """Fetch price quotes from every configured provider"""
    if not math.isfinite(amount):
        raise click.BadParameter("amount must be a finite number", param_hint="--amount")
    try:
        currencies = [Currency.parse(code) for code in currency]
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--currency')
    registry = DataRegistry(ctx.obj['settings'])
    try:
        quotes = asyncio.run(aggregate_price_quotes(Coin(coin.upper()), currencies, amount, registry))
    except ProviderError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    if not all_totals_finite(quotes):
        raise click.BadParameter(f"{amount} is too large to value", param_hint="--amount")
    console.print(render_quotes(quotes))


@cli.command()
@click.option('--provider', '-p', default='etherscan', help='Gas oracle: etherscan or onchain')
@click.pass_context
def gas(ctx, provider):
    """Fetch gas price tiers from one oracle"""
    try:
        source = GasOracleSource.parse(provider)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--provider')
    registry = DataRegistry(ctx.obj['settings'])
    try:
        quote = asyncio.run(gas_prices(source, registry))
    except ProviderError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(render_gas(quote))


@cli.command()
@click.pass_context
def status(ctx):
    """Show which upstream providers are configured"""
    settings = ctx.obj['settings']
    table = Table(title="Provider Configuration")
    table.add_column("Provider", style="cyan")
    table.add_column("Status", style="white")
    for name, ok in settings.configured_providers().items():
        table.add_row(name, "[green]CONFIGURED[/green]" if ok else "[red]NOT CONFIGURED[/red]")
    console.print(table)
    console.print(f"[dim]Boltzmann {__version__}[/dim]")


def main():
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
