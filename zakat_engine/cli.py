"""Flask CLI commands for price inspection and cache maintenance."""
import json

import click
from flask.cli import with_appcontext

from zakat_engine.data.currencies import is_valid_currency, normalize_currency
from zakat_engine.services.pricing import get_pricing_services


def _check_currency(code: str) -> str:
    code = normalize_currency(code)
    if not is_valid_currency(code):
        raise click.BadParameter(f'Invalid currency: {code}')
    return code


@click.command('fetch-metals')
@click.option('--currency', default='USD', help='ISO 4217 currency code')
@with_appcontext
def fetch_metals_command(currency):
    """Resolve gold and silver prices and print them with provenance."""
    currency = _check_currency(currency)
    prices = get_pricing_services().resolver.resolve_metal_prices(currency)
    origin = 'cache' if prices.is_cache else 'live'
    click.echo(f'Gold:   {prices.gold:.4f} {currency}/g')
    click.echo(f'Silver: {prices.silver:.4f} {currency}/g')
    click.echo(f'Source: {prices.source} ({origin})')


@click.command('convert')
@click.argument('amount', type=float)
@click.argument('from_currency')
@click.argument('to_currency')
@with_appcontext
def convert_command(amount, from_currency, to_currency):
    """Convert AMOUNT from FROM_CURRENCY to TO_CURRENCY.

    Example: flask convert 100 EUR USD
    """
    from_currency = _check_currency(from_currency)
    to_currency = _check_currency(to_currency)
    result = get_pricing_services().converter.convert_with_details(amount, from_currency, to_currency)
    click.echo(f'{amount:.2f} {from_currency} = {result.amount:.2f} {to_currency} (rate {result.rate:.6f}, {result.source})')
    if result.is_degraded:
        click.echo('Warning: no exchange rate available; amount left unconverted')


@click.command('counter-status')
@with_appcontext
def counter_status_command():
    """Show this month's paid metals API usage."""
    click.echo(json.dumps(get_pricing_services().counter.status(), indent=2))


@click.command('clear-price-cache')
@with_appcontext
def clear_price_cache_command():
    """Drop every cached metal price and exchange rate."""
    count = get_pricing_services().resolver.clear_cache()
    click.echo(f'Cleared {count} cached entries')


def register_cli(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(fetch_metals_command)
    app.cli.add_command(convert_command)
    app.cli.add_command(counter_status_command)
    app.cli.add_command(clear_price_cache_command)
