from .types import Campaign, CampaignType, CartLine, CouponResult, CampaignApplication, FixedAmountMode, Fulfillment
from .eligibility import filter_eligible, is_eligible
from .scope import applies_to_line, covers_cart, normalize_id
from .discounts import (
    line_discount, cap_discount, calculate_discount, apply_campaign, apply_campaigns,
    best_product_price, campaign_badge, ProductPrice,
)
from .selection import (
    CampaignSelector, SelectionOutcome, SelectionStore, InMemorySelectionStore,
    SessionSelectionStore, rank,
)
from .coupons import CouponAdapter, CouponProvider, cart_fingerprint, normalize_code
from .shipping import ShippingConfig, ShippingRule, ShippingQuote, resolve_shipping, find_free_shipping_campaign
from .aggregator import CartPricingAggregator, PricedCart, PricingOptions, PricingState, price_cart
from .errors import PricingError, InvalidCouponError, CouponRejected

__all__ = [
    "Campaign",
    "CampaignType",
    "CartLine",
    "CouponResult",
    "CampaignApplication",
    "FixedAmountMode",
    "Fulfillment",
    "filter_eligible",
    "is_eligible",
    "applies_to_line",
    "covers_cart",
    "normalize_id",
    "line_discount",
    "cap_discount",
    "calculate_discount",
    "apply_campaign",
    "apply_campaigns",
    "best_product_price",
    "campaign_badge",
    "ProductPrice",
    "CampaignSelector",
    "SelectionOutcome",
    "SelectionStore",
    "InMemorySelectionStore",
    "SessionSelectionStore",
    "rank",
    "CouponAdapter",
    "CouponProvider",
    "cart_fingerprint",
    "normalize_code",
    "ShippingConfig",
    "ShippingRule",
    "ShippingQuote",
    "resolve_shipping",
    "find_free_shipping_campaign",
    "CartPricingAggregator",
    "PricedCart",
    "PricingOptions",
    "PricingState",
    "price_cart",
    "PricingError",
    "InvalidCouponError",
    "CouponRejected",
]
