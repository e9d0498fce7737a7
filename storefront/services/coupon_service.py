# storefront/services/coupon_service.py
from flask import current_app
from sqlalchemy import func
from ..extensions import db
from ..utils.api import api_ok, api_error
from ..utils.money import D, D_opt, ZERO, HUNDRED
from ..model import Coupon, CouponUsage
from ..model._ids import csv_to_idlist, idlist_to_csv
from ..pricing.errors import CouponRejected
from ..pricing.scope import normalize_id
from ..utils.parse import utcnow, parse_iso8601, parse_bool, parse_opt_int

COUPON_TYPES = ("PERCENTAGE", "FIXED_AMOUNT")

def find_coupon(code: str):
    code = (code or "").strip().upper()
    if not code:
        return None
    return Coupon.query.filter(func.upper(Coupon.code) == code).first()

def _in_scope(coupon: Coupon, lines: list) -> bool:
    if coupon.apply_to_all:
        return True
    pids = {normalize_id(x) for x in csv_to_idlist(coupon.product_ids)}
    cids = {normalize_id(x) for x in csv_to_idlist(coupon.category_ids)}
    for l in lines:
        if pids and normalize_id(l.get("product_id")) in pids:
            return True
        if cids and normalize_id(l.get("category_id")) in cids:
            return True
    return False

def coupon_discount(coupon: Coupon, subtotal):
    subtotal = D(subtotal)
    if subtotal <= 0:
        return ZERO
    if (coupon.type or "").upper() == "PERCENTAGE":
        discount = subtotal * D(coupon.discount_percent) / HUNDRED
        cap = D_opt(coupon.max_discount)
        if cap is not None and discount > cap:
            discount = cap
        return discount
    return min(D(coupon.discount_amount), subtotal)

class DbCouponProvider:
    """Coupon provider backed by the coupon tables."""

    def validate(self, code, lines, subtotal, user_id=None):
        c = find_coupon(code)
        if not c:
            raise CouponRejected("coupon code not found")
        if not c.active:
            raise CouponRejected("coupon is not active")

        now = utcnow()
        if (c.starts_at and now < c.starts_at) or (c.ends_at and now > c.ends_at):
            raise CouponRejected("coupon is not valid at this time")

        if c.usage_limit is not None and int(c.usage_count or 0) >= c.usage_limit:
            raise CouponRejected("coupon usage limit reached")

        if c.user_usage_limit is not None and user_id is not None:
            used = CouponUsage.query.filter_by(coupon_id=c.id, user_id=user_id).count()
            if used >= c.user_usage_limit:
                raise CouponRejected("you cannot use this coupon any more")

        allowed_users = {normalize_id(x) for x in csv_to_idlist(c.user_ids)}
        if allowed_users and normalize_id(user_id) not in allowed_users:
            raise CouponRejected("coupon is not available for this account")

        if c.min_purchase is not None and D(subtotal) < D(c.min_purchase):
            raise CouponRejected(f"minimum purchase is {D(c.min_purchase):.2f}")

        if not _in_scope(c, lines):
            raise CouponRejected("coupon does not apply to the products in your cart")

        return {"coupon": c, "discount": coupon_discount(c, subtotal)}

def record_usage(coupon: Coupon, discount, user_id=None):
    """Called by order placement once an order that used this coupon is confirmed."""
    db.session.add(CouponUsage(coupon_id=coupon.id, user_id=user_id, discount=D(discount)))
    coupon.usage_count = int(coupon.usage_count or 0) + 1
    db.session.flush()

def create_coupon_from_payload(data: dict):
    code = (data.get("code") or "").strip().upper()
    ctype = (data.get("type") or "PERCENTAGE").upper().strip()

    if not code:
        return api_error("code is required"), 400
    if ctype not in COUPON_TYPES:
        return api_error("type must be 'PERCENTAGE' or 'FIXED_AMOUNT'"), 400
    try:
        pct = D_opt(data.get("discount_percent"))
        amount = D_opt(data.get("discount_amount"))
        min_purchase = D_opt(data.get("min_purchase"))
        max_discount = D_opt(data.get("max_discount"))
        usage_limit = parse_opt_int(data.get("usage_limit"))
        user_usage_limit = parse_opt_int(data.get("user_usage_limit", 1))
    except ValueError:
        return api_error("numeric fields must be numeric"), 400

    if ctype == "PERCENTAGE" and (pct is None or pct <= 0 or pct > 100):
        return api_error("discount_percent must be > 0 and <= 100"), 400
    if ctype == "FIXED_AMOUNT" and (amount is None or amount <= 0):
        return api_error("discount_amount must be > 0"), 400

    if find_coupon(code):
        return api_error("Coupon code already exists"), 400

    starts_at = parse_iso8601(data.get("starts_at"))
    ends_at = parse_iso8601(data.get("ends_at"))
    if data.get("starts_at") and not starts_at:
        return api_error("Invalid datetime format for starts_at"), 400
    if data.get("ends_at") and not ends_at:
        return api_error("Invalid datetime format for ends_at"), 400
    if starts_at and ends_at and starts_at >= ends_at:
        return api_error("ends_at must be after starts_at"), 400

    c = Coupon(
        code=code, name=data.get("name"), type=ctype,
        discount_percent=pct if ctype == "PERCENTAGE" else None,
        discount_amount=amount if ctype == "FIXED_AMOUNT" else None,
        active=parse_bool(data.get("active"), True),
        min_purchase=min_purchase, max_discount=max_discount,
        usage_limit=usage_limit, user_usage_limit=user_usage_limit,
        apply_to_all=parse_bool(data.get("apply_to_all"), True),
        category_ids=idlist_to_csv(data.get("category_ids")),
        product_ids=idlist_to_csv(data.get("product_ids")),
        user_ids=idlist_to_csv(data.get("user_ids")),
        starts_at=starts_at, ends_at=ends_at,
    )
    db.session.add(c)
    db.session.commit()
    current_app.logger.info("coupon created id=%s code=%s", c.id, c.code)

    return api_ok("Coupon created", {"coupon": c.as_api()}), 201
