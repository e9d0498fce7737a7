# storefront/model/campaign.py

from ..extensions import db
from sqlalchemy.sql import func
from ..pricing.types import Campaign as CampaignRule, CampaignType
from ..pricing.discounts import campaign_badge
from ._ids import csv_to_idlist, api_ids

class Campaign(db.Model):
    __tablename__ = "campaign"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    # PERCENTAGE | FIXED_AMOUNT | BUY_X_GET_Y | FREE_SHIPPING
    type = db.Column(db.String(32), nullable=False, default="PERCENTAGE")
    discount_percent = db.Column(db.Numeric(5, 2), nullable=True)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=True)
    buy_quantity = db.Column(db.Integer, nullable=True)
    get_quantity = db.Column(db.Integer, nullable=True)     # pay for get_quantity out of buy_quantity

    # Optional constraints
    max_discount = db.Column(db.Numeric(12, 2), nullable=True)   # cap on the campaign's total discount
    min_purchase = db.Column(db.Numeric(12, 2), nullable=True)   # cart subtotal floor
    usage_limit = db.Column(db.Integer, nullable=True)
    usage_count = db.Column(db.Integer, nullable=False, default=0)

    # Scope: apply_to_all wins over the id lists
    apply_to_all = db.Column(db.Boolean, default=True)
    category_ids = db.Column(db.Text, nullable=True)   # "1,2,3"
    product_ids = db.Column(db.Text, nullable=True)

    priority = db.Column(db.Integer, nullable=False, default=0, index=True)
    is_active = db.Column(db.Boolean, default=True, index=True)
    starts_at = db.Column(db.DateTime, nullable=False)
    ends_at = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def to_rule(self) -> CampaignRule:
        """Read-only snapshot handed to the pricing engine."""
        return CampaignRule.from_dict({
            "id": self.id,
            "type": self.type or CampaignType.PERCENTAGE.value,
            "name": self.name,
            "discount_percent": self.discount_percent,
            "discount_amount": self.discount_amount,
            "buy_quantity": self.buy_quantity,
            "get_quantity": self.get_quantity,
            "max_discount": self.max_discount,
            "min_purchase": self.min_purchase,
            "apply_to_all": self.apply_to_all,
            "category_ids": csv_to_idlist(self.category_ids),
            "product_ids": csv_to_idlist(self.product_ids),
            "priority": self.priority or 0,
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count or 0,
            "is_active": self.is_active,
        })

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "type": self.type,
            "discount_percent": str(self.discount_percent) if self.discount_percent is not None else None,
            "discount_amount": str(self.discount_amount) if self.discount_amount is not None else None,
            "buy_quantity": self.buy_quantity,
            "get_quantity": self.get_quantity,
            "max_discount": str(self.max_discount) if self.max_discount is not None else None,
            "min_purchase": str(self.min_purchase) if self.min_purchase is not None else None,
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "apply_to_all": self.apply_to_all,
            "category_ids": api_ids(self.category_ids),
            "product_ids": api_ids(self.product_ids),
            "priority": self.priority,
            "is_active": self.is_active,
            "badge": campaign_badge(self.to_rule()),
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
        }
