import os
import json

def _env_bool(name, default=False):
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

def _env_json(name, default):
    v = os.getenv(name)
    if not v:
        return default
    return json.loads(v)

class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # ---- pricing ----
    # "per_line" | "per_unit" for FIXED_AMOUNT campaigns, chosen per surface
    PRICING_FIXED_AMOUNT_MODE_CART = os.getenv("PRICING_FIXED_AMOUNT_MODE_CART", "per_line")
    PRICING_FIXED_AMOUNT_MODE_PRODUCT = os.getenv("PRICING_FIXED_AMOUNT_MODE_PRODUCT", "per_unit")
    # ask the shopper whenever more than one campaign applies (default: only on exact ties)
    PRICING_PROMPT_ON_MULTIPLE = _env_bool("PRICING_PROMPT_ON_MULTIPLE", False)
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "€")

    # ---- shipping (StoreSettings row overrides these) ----
    DEFAULT_DELIVERY_FEE = os.getenv("DEFAULT_DELIVERY_FEE", "5.00")
    SHIPPING_RULES = _env_json("SHIPPING_RULES", [
        {"min": 0, "max": 49.99, "fee": 4.99, "type": "flat"},
        {"min": 50.0, "max": None, "fee": 0, "type": "flat"},
    ])
    FREE_SHIPPING_THRESHOLD = os.getenv("FREE_SHIPPING_THRESHOLD") or None
    MIN_ORDER_AMOUNT = os.getenv("MIN_ORDER_AMOUNT") or None

    @staticmethod
    def init_app(app):
        if app.config.get("SQLALCHEMY_DATABASE_URI"):
            return
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")
