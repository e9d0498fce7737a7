# storefront/coupon/routes.py
from __future__ import annotations
from flask import request, jsonify
from ..utils.api import api_ok, api_error, current_user_id
from ..utils.money import round_money
from ..model import Coupon
from ..pricing import InvalidCouponError
from ..services.coupon_service import create_coupon_from_payload
from ..services.pricing_service import lines_from_payload, validate_coupon
from . import bp

@bp.post("")
def create_coupon():
    data = request.get_json(silent=True) or {}
    body, status = create_coupon_from_payload(data)
    return jsonify(body), status

@bp.get("")
def list_coupons():
    q = Coupon.query
    active = request.args.get("active")
    if active is not None:
        q = q.filter(Coupon.active == (active.lower() == "true"))

    items = q.order_by(Coupon.id.desc()).all()
    return jsonify(api_ok("ok", {"coupons": [c.as_api() for c in items]})), 200

@bp.post("/validate")
def validate():
    """
    Body: {"code": str, "lines": [{"product_id", "variant_id"?, "quantity"}]}
    """
    data = request.get_json(silent=True) or {}
    try:
        lines = lines_from_payload(data.get("lines"))
    except LookupError as e:
        return jsonify(api_error(str(e))), 404
    if not lines:
        return jsonify(api_error("cart is empty")), 422
    try:
        result = validate_coupon(data.get("code"), lines, user_id=current_user_id())
    except InvalidCouponError as e:
        return jsonify(api_error(e.message, {"code": e.code})), 422
    return jsonify(api_ok("coupon valid", {
        "coupon": result.code,
        "discount": str(round_money(result.discount)),
        "cart_fingerprint": result.cart_fingerprint,
    })), 200
