# storefront/cart/routes.py
from __future__ import annotations
from flask import request, current_app

from ..utils.api import ok, err, current_user_id
from ..pricing import CampaignSelector, SessionSelectionStore
from ..services.pricing_service import price_request
from . import bp

def _payload():
    return request.get_json(silent=True) or {}

def _priced_response(msg, priced, coupon_error=None, status=200):
    data = {
        "cart": priced.as_api(),
        "order_lines": priced.order_lines(),
        "coupon_error": coupon_error,
    }
    return ok(msg, data, status=status)

# ---- endpoints -------------------------------------------------------------

@bp.post("/price")
def price():
    """
    Body: {
      "lines": [{"product_id": int, "variant_id"?: int, "quantity": int}],
      "coupon_code"?: str,
      "fulfillment"?: "delivery" | "pickup"
    }
    """
    try:
        priced, coupon_error = price_request(_payload(), SessionSelectionStore(), user_id=current_user_id())
    except LookupError as e:
        return err(str(e), 404)
    return _priced_response("cart priced", priced, coupon_error)

@bp.post("/campaign")
def choose_campaign():
    """Body: same as /price plus {"campaign_id": ...}."""
    data = _payload()
    campaign_id = data.get("campaign_id")
    if campaign_id is None:
        return err("campaign_id is required", 422)

    store = SessionSelectionStore()
    try:
        priced, _ = price_request(data, store, user_id=current_user_id())
        CampaignSelector(store).choose(priced.selection, campaign_id)
        priced, coupon_error = price_request(data, store, user_id=current_user_id())
    except LookupError as e:
        return err(str(e), 404)
    current_app.logger.info("campaign %s selected", campaign_id)
    return _priced_response("campaign selected", priced, coupon_error)

@bp.post("/campaign/dismiss")
def dismiss_campaign_chooser():
    """Closing the chooser applies the best-ranked campaign."""
    data = _payload()
    store = SessionSelectionStore()
    try:
        priced, _ = price_request(data, store, user_id=current_user_id())
        CampaignSelector(store).dismiss(priced.selection)
        priced, coupon_error = price_request(data, store, user_id=current_user_id())
    except LookupError as e:
        return err(str(e), 404)
    return _priced_response("campaign applied", priced, coupon_error)

@bp.delete("/campaign")
def clear_campaign():
    SessionSelectionStore().clear()
    return ok("campaign selection cleared")
