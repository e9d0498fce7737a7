# storefront/model/settings.py
from ..extensions import db
from sqlalchemy.sql import func

class StoreSettings(db.Model):
    """Merchant-wide checkout settings (single row)."""
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True)
    min_order_amount = db.Column(db.Numeric(12, 2), nullable=True)
    free_shipping_threshold = db.Column(db.Numeric(12, 2), nullable=True)
    # [{"min": 0, "max": 49.99, "fee": 4.99, "type": "flat"}, ...]
    shipping_rules = db.Column(db.JSON, nullable=True)
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @classmethod
    def current(cls):
        return cls.query.order_by(cls.id.asc()).first()
