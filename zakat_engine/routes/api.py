"""API routes for prices, conversion, nisab and calculation."""
from flask import Blueprint, current_app, jsonify, request

from zakat_engine.constants import NISAB_GOLD_GRAMS, NISAB_SILVER_GRAMS, ZAKAT_RATE
from zakat_engine.data.currencies import get_ordered_currencies, is_valid_currency, normalize_currency
from zakat_engine.services.assets.registry import get_category_names
from zakat_engine.services.calculation import Portfolio
from zakat_engine.services.config import get_provider_keys_status
from zakat_engine.services.fx import check_amount
from zakat_engine.services.nisab import NISAB_POLICIES, NisabResolver, get_nisab_policy
from zakat_engine.services.pricing import get_pricing_services
from zakat_engine.services.providers import InvalidInput

api_bp = Blueprint('api', __name__)


def _currency_arg(name: str) -> str:
    """Read a currency query parameter, defaulting to the app currency."""
    return normalize_currency(request.args.get(name) or current_app.config['DEFAULT_CURRENCY'])


@api_bp.errorhandler(InvalidInput)
def _invalid_input(error):
    return jsonify({'error': str(error)}), 400


@api_bp.route('/currencies')
def currencies():
    """Supported currencies, high-volume first, then alphabetical."""
    currency_list = get_ordered_currencies()
    return jsonify({
        'currencies': currency_list,
        'default': current_app.config['DEFAULT_CURRENCY'],
        'count': len(currency_list),
    })


@api_bp.route('/prices/metals')
def metal_prices():
    """Gold and silver price per gram.

    Query Parameters:
        currency: ISO 4217 code (default: DEFAULT_CURRENCY)

    Returns:
        JSON {gold, silver, currency, lastUpdated, isCache, source}. Always
        200 for a valid currency; provider outages show up as isCache and
        source='fallback'.
    """
    currency = _currency_arg('currency')
    if not is_valid_currency(currency):
        return jsonify({'error': f'Invalid currency: {currency}'}), 400

    prices = get_pricing_services().resolver.resolve_metal_prices(currency)
    return jsonify(prices.to_response())


@api_bp.route('/prices/metals/status')
def metal_prices_status():
    """Paid API budget plus provider and circuit-breaker state."""
    services = get_pricing_services()
    data = services.counter.status()
    data['pricing'] = services.resolver.status()
    data['providerKeys'] = get_provider_keys_status()
    return jsonify(data)


@api_bp.route('/exchange-rates')
def exchange_rates():
    base = _currency_arg('base')
    if not is_valid_currency(base):
        return jsonify({'error': f'Invalid currency: {base}'}), 400

    snapshot = get_pricing_services().resolver.resolve_rates(base)
    return jsonify(snapshot.to_dict())


@api_bp.route('/convert')
def convert():
    """Convert an amount between currencies.

    Query Parameters:
        amount: number (required)
        from: source currency
        to: target currency (default: DEFAULT_CURRENCY)
    """
    raw_amount = request.args.get('amount')
    if raw_amount is None:
        return jsonify({'error': 'amount is required'}), 400
    amount = check_amount(raw_amount)

    from_currency = normalize_currency(request.args.get('from'))
    to_currency = _currency_arg('to')
    for code in (from_currency, to_currency):
        if not is_valid_currency(code):
            return jsonify({'error': f'Invalid currency: {code}'}), 400

    result = get_pricing_services().converter.convert_with_details(amount, from_currency, to_currency)
    return jsonify(result.to_dict())


@api_bp.route('/nisab')
def nisab():
    """Nisab thresholds in a currency under the selected policy."""
    currency = _currency_arg('currency')
    if not is_valid_currency(currency):
        return jsonify({'error': f'Invalid currency: {currency}'}), 400
    policy = get_nisab_policy(request.args.get('policy'))

    resolver = NisabResolver(get_pricing_services().resolver, policy)
    thresholds = resolver.compute_thresholds(currency)
    data = thresholds.to_dict()
    data.update({
        'goldGrams': NISAB_GOLD_GRAMS,
        'silverGrams': NISAB_SILVER_GRAMS,
        'thresholdUsed': round(policy.threshold(thresholds), 2),
        'zakatRate': ZAKAT_RATE,
        'availablePolicies': {name: p.description for name, p in NISAB_POLICIES.items()},
    })
    return jsonify(data)


@api_bp.route('/zakat/categories')
def categories():
    return jsonify({'categories': get_category_names()})


@api_bp.route('/zakat/calculate', methods=['POST'])
def calculate():
    """Calculate zakat for a portfolio.

    Body:
    {
        "currency": "USD",
        "nisab_policy": "lower_of_two",
        "nisab_basis": "total_value",
        "assets": {
            "cash": {"cash_on_hand": 5000, "hawl_met": true},
            "precious_metals": {"gold_investment": 50},
            "retirement": {"traditional_401k": 100000}
        }
    }

    Returns:
        Combined breakdown with per-category items, nisab thresholds, the
        metal prices used and any currency conversions. 400 on invalid input.
    """
    body = request.get_json(silent=True)
    if body is None:
        return jsonify({'error': 'Request body must be JSON'}), 400

    portfolio = Portfolio.from_dict(body, current_app.config['DEFAULT_CURRENCY'])
    outcome = get_pricing_services().calculator.run(portfolio)
    return jsonify(outcome.to_dict())
