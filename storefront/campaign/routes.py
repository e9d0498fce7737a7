# storefront/campaign/routes.py
from __future__ import annotations
from flask import request, jsonify
from ..extensions import db
from ..utils.api import api_ok, api_error
from ..model import Campaign
from ..services.campaign_service import create_campaign_from_payload, active_campaign_rows
from . import bp

@bp.post("")
def create_campaign():
    data = request.get_json(silent=True) or {}
    body, status = create_campaign_from_payload(data)
    return jsonify(body), status

@bp.get("/active")
def list_active_campaigns():
    items = active_campaign_rows()
    # usage limit is part of the feed contract; min purchase depends on the cart
    items = [c for c in items if c.usage_limit is None or int(c.usage_count or 0) < c.usage_limit]
    return jsonify(api_ok("ok", {"campaigns": [c.as_api() for c in items]})), 200

@bp.get("/<int:campaign_id>")
def get_campaign(campaign_id: int):
    c = db.session.get(Campaign, campaign_id)
    if not c:
        return jsonify(api_error("campaign not found")), 404
    return jsonify(api_ok("ok", {"campaign": c.as_api()})), 200
