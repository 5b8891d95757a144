"""Liveness probe."""
from flask import Blueprint, current_app, jsonify

health_bp = Blueprint('health', __name__)


@health_bp.route('/healthz')
def healthz():
    """Report liveness without touching any provider."""
    return jsonify({
        'status': 'ok',
        'network_enabled': current_app.config['PRICING_ALLOW_NETWORK'],
        'cache_backend': current_app.config['PRICING_CACHE_BACKEND'],
    })
