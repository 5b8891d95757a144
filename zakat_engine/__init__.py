"""Flask application factory for the zakat pricing & calculation engine."""
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from zakat_engine.services import config as settings


def create_app(config: dict | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary to override defaults.
            PRICING_METAL_PROVIDERS / PRICING_FX_PROVIDERS replace the
            provider chains and TIME_PROVIDER the clock (used by tests).

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Trust X-Forwarded-For from reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    app.config.update(
        JSON_SORT_KEYS=False,
        DATA_DIR=settings.get_data_dir(),
        DEFAULT_CURRENCY=settings.get_default_currency(),
        PRICING_ALLOW_NETWORK=settings.is_network_enabled(),
        PRICING_PROVIDER_TIMEOUT_SECONDS=settings.get_provider_timeout(),
        PRICING_CHAIN_DEADLINE_SECONDS=settings.get_chain_deadline(),
        PRICING_CACHE_TTL_SECONDS=settings.get_metal_cache_ttl(),
        PRICING_FX_CACHE_TTL_SECONDS=settings.get_fx_cache_ttl(),
        PRICING_EMERGENCY_MAX_AGE_SECONDS=settings.get_emergency_max_age(),
        PRICING_BREAKER_THRESHOLD=settings.get_breaker_threshold(),
        PRICING_BREAKER_COOLDOWN_SECONDS=settings.get_breaker_cooldown(),
        PRICING_MONTHLY_LIMIT=settings.get_monthly_request_limit(),
        PRICING_CACHE_BACKEND=settings.get_cache_backend(),
    )

    # Override with provided config
    if config:
        app.config.update(config)

    from zakat_engine.services import pricing
    pricing.init_app(app)

    # Register CLI commands
    from zakat_engine import cli
    cli.register_cli(app)

    # Register blueprints
    from zakat_engine.routes.health import health_bp
    from zakat_engine.routes.api import api_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    return app
