# storefront/product/routes.py
from flask import request, jsonify
from ..extensions import db
from ..model import Product
from ..utils.api import api_ok, api_error
from ..services.pricing_service import product_price
from . import bp

def _parse_int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

@bp.get("/<int:product_id>/price")
def get_product_price(product_id: int):
    """Best campaign price for one product, e.g. ?quantity=3&variant_id=7"""
    p = db.session.get(Product, product_id)
    if not p or p.status is False:
        return jsonify(api_error("product not found")), 404

    variant = None
    if request.args.get("variant_id"):
        variant = p.find_variant(request.args.get("variant_id"))
        if variant is None:
            return jsonify(api_error("variant not found")), 404

    quantity = max(_parse_int(request.args.get("quantity"), 1), 1)
    price = product_price(p, quantity, variant)
    return jsonify(api_ok("ok", {"product": p.as_api(), "price": price.as_api()})), 200
