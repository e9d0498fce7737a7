import logging
from flask import Flask, jsonify
from .extensions import db, cors, migrate
from .config import Config
from .utils.api import api_ok, api_error
from .pricing.errors import PricingError

def register_error_handlers(app):
    @app.errorhandler(PricingError)
    def handle_pricing_error(e):
        r = jsonify(api_error(e.message, {"code": e.code}))
        r.status_code = 422
        return r

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        r = jsonify(api_error(str(e)))
        r.status_code = 422
        return r

def create_app(test_config=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
    Config.init_app(app)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # Init extensions
    db.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    migrate.init_app(app, db)

    # Register blueprints
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .campaign import bp as campaign_bp; app.register_blueprint(campaign_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(api_ok("API running"))

    with app.app_context():
        from . import model  # noqa: F401  (register tables)
        db.create_all()

    return app
