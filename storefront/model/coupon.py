# --- storefront/model/coupon.py ---

from ..extensions import db
from sqlalchemy.sql import func
from ._ids import api_ids

class Coupon(db.Model):
    __tablename__ = "coupon"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)   # stored upper-case
    name = db.Column(db.String(255), nullable=True)

    # "PERCENTAGE" or "FIXED_AMOUNT"
    type = db.Column(db.String(16), nullable=False, default="PERCENTAGE")
    discount_percent = db.Column(db.Numeric(5, 2), nullable=True)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=True)

    active = db.Column(db.Boolean, default=True, index=True)

    # Optional constraints
    min_purchase = db.Column(db.Numeric(12, 2), nullable=True)     # require cart subtotal >= this
    max_discount = db.Column(db.Numeric(12, 2), nullable=True)     # cap for percentage coupons
    usage_limit = db.Column(db.Integer, nullable=True)             # global usage cap
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    user_usage_limit = db.Column(db.Integer, nullable=True, default=1)
    starts_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)

    # Scope / audience ("1,2,3")
    apply_to_all = db.Column(db.Boolean, default=True)
    category_ids = db.Column(db.Text, nullable=True)
    product_ids = db.Column(db.Text, nullable=True)
    user_ids = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    usages = db.relationship("CouponUsage", back_populates="coupon", lazy="selectin",
                             cascade="all, delete-orphan")

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "discount_percent": str(self.discount_percent) if self.discount_percent is not None else None,
            "discount_amount": str(self.discount_amount) if self.discount_amount is not None else None,
            "active": self.active,
            "min_purchase": str(self.min_purchase) if self.min_purchase is not None else None,
            "max_discount": str(self.max_discount) if self.max_discount is not None else None,
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "apply_to_all": self.apply_to_all,
            "category_ids": api_ids(self.category_ids),
            "product_ids": api_ids(self.product_ids),
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
        }

class CouponUsage(db.Model):
    __tablename__ = "coupon_usage"
    id = db.Column(db.Integer, primary_key=True)
    coupon_id = db.Column(db.Integer, db.ForeignKey("coupon.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, server_default=func.now())
    coupon = db.relationship("Coupon", back_populates="usages")
