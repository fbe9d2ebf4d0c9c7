"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    DEFAULT_CANONICAL_CURRENCY,
    DEFAULT_DISPUTE_WINDOW_MINUTES,
    DEFAULT_VALIDATION_REWARD_AMOUNT,
    EXCHANGE_RATE_API_URL,
    EXCHANGE_RATE_BASE,
    MAX_PROOF_BYTES,
)


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        CANONICAL_CURRENCY=os.environ.get("CANONICAL_CURRENCY")
        or DEFAULT_CANONICAL_CURRENCY,
        EXCHANGE_RATE_API_URL=os.environ.get("EXCHANGE_RATE_API_URL")
        or EXCHANGE_RATE_API_URL,
        EXCHANGE_RATE_BASE=EXCHANGE_RATE_BASE,
        EXCHANGE_RATE_TTL_SECONDS=int(
            os.environ.get("EXCHANGE_RATE_TTL_SECONDS") or 3600
        ),
        EXCHANGE_RATE_TIMEOUT=float(os.environ.get("EXCHANGE_RATE_TIMEOUT") or 10),
        DISPUTE_WINDOW_MINUTES=int(
            os.environ.get("DISPUTE_WINDOW_MINUTES") or DEFAULT_DISPUTE_WINDOW_MINUTES
        ),
        VALIDATION_REWARD_AMOUNT=float(
            os.environ.get("VALIDATION_REWARD_AMOUNT")
            or DEFAULT_VALIDATION_REWARD_AMOUNT
        ),
        FIREBASE_PROJECT_ID=os.environ.get("FIREBASE_PROJECT_ID"),
        FIREBASE_STORAGE_BUCKET=os.environ.get("FIREBASE_STORAGE_BUCKET"),
        MAX_PROOF_BYTES=MAX_PROOF_BYTES,
        # Headroom over the proof limit; the attachment policy reports oversize.
        MAX_CONTENT_LENGTH=MAX_PROOF_BYTES + 1024 * 1024,
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Exchange rates are cached per app so tests can swap the cache out.
    from .currency.rates import ExchangeRateCache

    app.extensions["exchange_rates"] = ExchangeRateCache(
        url_template=app.config["EXCHANGE_RATE_API_URL"],
        ttl_seconds=app.config["EXCHANGE_RATE_TTL_SECONDS"],
        timeout=app.config["EXCHANGE_RATE_TIMEOUT"],
    )

    # Register blueprints
    from . import dispute as dispute_bp

    app.register_blueprint(dispute_bp.bp)
    app.register_blueprint(dispute_bp.validator_bp)

    from . import match as match_bp

    app.register_blueprint(match_bp.bp)

    from . import reward as reward_bp

    app.register_blueprint(reward_bp.bp)

    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import currency as currency_bp

    app.register_blueprint(currency_bp.bp)

    from . import user as user_bp

    app.register_blueprint(user_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    from .auth.tokens import load_user_from_token

    app.before_request(load_user_from_token)

    @app.route("/health")
    def health_check():
        """Perform a simple health check."""
        return {"status": "ok"}

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def _init_firebase(app):
    """Initialize firebase_admin from env JSON or application default creds.

    Proof uploads need ``FIREBASE_STORAGE_BUCKET``; without it the app still
    starts, but every upload fails.
    """
    cred = None
    project_id = app.config["FIREBASE_PROJECT_ID"]

    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except ValueError as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    if not cred:
        cred = credentials.ApplicationDefault()

    if firebase_admin._apps:
        app.logger.info("Firebase app already initialized.")
        return

    firebase_options = {}
    if project_id:
        firebase_options["projectId"] = project_id
    if app.config["FIREBASE_STORAGE_BUCKET"]:
        firebase_options["storageBucket"] = app.config["FIREBASE_STORAGE_BUCKET"]
    else:
        app.logger.warning("FIREBASE_STORAGE_BUCKET is not set; proof uploads will fail.")
    firebase_admin.initialize_app(cred, firebase_options)
