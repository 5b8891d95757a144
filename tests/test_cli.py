"""Tests for the flask CLI commands."""
import json


def test_fetch_metals(runner, metal_provider):
    result = runner.invoke(args=['fetch-metals'])

    assert result.exit_code == 0
    assert 'Gold:   80.0000 USD/g' in result.output
    assert 'Silver: 1.0000 USD/g' in result.output
    assert 'Source: provider1 (live)' in result.output
    assert metal_provider.calls == ['USD']


def test_fetch_metals_fallback(runner, metal_provider):
    metal_provider.error = RuntimeError('down')
    result = runner.invoke(args=['fetch-metals', '--currency', 'usd'])

    assert result.exit_code == 0
    assert 'Source: fallback (cache)' in result.output


def test_fetch_metals_invalid_currency(runner):
    result = runner.invoke(args=['fetch-metals', '--currency', 'GOLD'])
    assert result.exit_code != 0
    assert 'Invalid currency' in result.output


def test_convert(runner):
    result = runner.invoke(args=['convert', '100', 'USD', 'EUR'])

    assert result.exit_code == 0
    assert '100.00 USD = 90.00 EUR (rate 0.900000, fx1)' in result.output
    assert 'Warning' not in result.output


def test_convert_unknown_currency_warns(runner):
    result = runner.invoke(args=['convert', '10', 'XYZ', 'USD'])

    assert result.exit_code == 0
    assert '10.00 XYZ = 10.00 USD' in result.output
    assert 'Warning: no exchange rate available' in result.output


def test_counter_status(runner):
    result = runner.invoke(args=['counter-status'])

    assert result.exit_code == 0
    status = json.loads(result.output)
    assert status['requests']['used'] == 0
    assert status['period'] == {'month': 1, 'year': 2026}


def test_clear_price_cache(runner):
    runner.invoke(args=['fetch-metals'])
    result = runner.invoke(args=['clear-price-cache'])

    assert result.exit_code == 0
    assert 'Cleared 2 cached entries' in result.output

    again = runner.invoke(args=['clear-price-cache'])
    assert 'Cleared 0 cached entries' in again.output
