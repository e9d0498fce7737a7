# storefront/services/pricing_service.py
"""Glue between the catalog tables and the pricing engine.

Prices always come from the catalog; client-sent prices are ignored so the
same computation can be trusted again when an order is placed.
"""
from flask import current_app
from ..extensions import db
from ..utils.money import D_opt, ZERO
from ..model import Product, StoreSettings
from ..pricing import (
    CouponAdapter, FixedAmountMode, InvalidCouponError, PricingOptions, ShippingConfig,
    best_product_price, filter_eligible, price_cart,
)
from .campaign_service import get_active_campaigns
from .coupon_service import DbCouponProvider

def fixed_mode(surface: str = "cart") -> FixedAmountMode:
    key = "PRICING_FIXED_AMOUNT_MODE_PRODUCT" if surface == "product" else "PRICING_FIXED_AMOUNT_MODE_CART"
    return FixedAmountMode(str(current_app.config.get(key) or "per_line").lower())

def shipping_config() -> ShippingConfig:
    cfg = current_app.config
    rules = cfg.get("SHIPPING_RULES")
    threshold = cfg.get("FREE_SHIPPING_THRESHOLD")
    s = StoreSettings.current()
    if s is not None:
        if s.shipping_rules is not None:
            rules = s.shipping_rules
        if s.free_shipping_threshold is not None:
            threshold = s.free_shipping_threshold
    return ShippingConfig.from_mapping(
        rules=rules or (),
        free_shipping_threshold=threshold,
        default_fee=cfg.get("DEFAULT_DELIVERY_FEE", "5.00"),
        currency_symbol=cfg.get("CURRENCY_SYMBOL", "€"),
    )

def pricing_options() -> PricingOptions:
    cfg = current_app.config
    minimum = cfg.get("MIN_ORDER_AMOUNT")
    s = StoreSettings.current()
    if s is not None and s.min_order_amount is not None:
        minimum = s.min_order_amount
    return PricingOptions(
        fixed_mode=fixed_mode("cart"),
        prompt_on_multiple=bool(cfg.get("PRICING_PROMPT_ON_MULTIPLE")),
        minimum_order_amount=D_opt(minimum),
    )

def lines_from_payload(items):
    """CartLines for [{product_id, variant_id?, quantity}], priced from the catalog.

    Raises LookupError for unknown products/variants and ValueError for bad
    quantities.
    """
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError("lines must be a list")
    lines = []
    for raw in items:
        raw = raw or {}
        pid = raw.get("product_id")
        if pid is None:
            raise ValueError("product_id is required")
        try:
            qty = int(raw.get("quantity") or raw.get("qty") or 1)
        except (TypeError, ValueError):
            raise ValueError(f"quantity for product {pid} must be an integer")
        if qty < 1:
            raise ValueError("quantity must be >= 1")

        product = db.session.get(Product, pid)
        if not product or product.status is False:
            raise LookupError(f"product {pid} not found or inactive")
        variant = product.find_variant(raw.get("variant_id"))
        if raw.get("variant_id") is not None and variant is None:
            raise LookupError(f"variant {raw.get('variant_id')} not found for product {pid}")
        if qty > product.available(variant):
            raise ValueError(f"requested qty for {product.name} not available")
        lines.append(product.to_line(qty, variant))
    return lines

def validate_coupon(code, lines, user_id=None):
    subtotal = sum((l.total for l in lines), ZERO)
    return CouponAdapter(DbCouponProvider()).validate(code, lines, subtotal, user_id=user_id)

def price_request(data: dict, store, user_id=None):
    """Price a cart payload. Returns (PricedCart, coupon_error or None).

    A rejected coupon never blocks pricing; the cart is priced without it.
    """
    lines = lines_from_payload(data.get("lines", data.get("items")))
    campaigns = get_active_campaigns()

    coupon, coupon_error = None, None
    code = (data.get("coupon_code") or "").strip()
    if code and lines:
        try:
            coupon = validate_coupon(code, lines, user_id=user_id)
        except InvalidCouponError as e:
            current_app.logger.info("coupon %s rejected: %s", code, e.message)
            coupon_error = e.as_api()

    priced = price_cart(
        lines, campaigns,
        coupon=coupon,
        store=store,
        shipping=shipping_config(),
        fulfillment=(data.get("fulfillment") or "delivery").lower(),
        options=pricing_options(),
    )
    return priced, coupon_error

def product_price(product: Product, quantity=1, variant=None):
    line = product.to_line(max(int(quantity or 1), 1), variant)
    # a single product is its own cart for minimum-purchase purposes
    campaigns = filter_eligible(get_active_campaigns(), line.total)
    return best_product_price(line, campaigns, fixed_mode("product"))
