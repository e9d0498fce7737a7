# storefront/services/campaign_service.py
from flask import current_app
from ..extensions import db
from ..utils.api import api_ok, api_error
from ..utils.money import D_opt
from ..utils.parse import utcnow, parse_iso8601, parse_bool, parse_opt_int
from ..model import Campaign
from ..model._ids import idlist_to_csv
from ..pricing.types import CampaignType

CAMPAIGN_TYPES = {t.value for t in CampaignType}

# ---- feed ------------------------------------------------------------------

def active_campaign_rows(now=None):
    now = now or utcnow()
    return (
        Campaign.query
        .filter(Campaign.is_active.is_(True))
        .filter(Campaign.starts_at <= now)
        .filter(Campaign.ends_at >= now)
        .order_by(Campaign.priority.desc(), Campaign.created_at.desc(), Campaign.id.desc())
        .all()
    )

def get_active_campaigns(now=None):
    """Campaign rules currently inside their date window, best priority first.

    Minimum purchase and usage limit are left to the pricing engine.
    """
    return [c.to_rule() for c in active_campaign_rows(now)]

def increment_usage_count(campaign_id):
    """Called by order placement once an order that used this campaign is confirmed."""
    c = db.session.get(Campaign, campaign_id)
    if not c:
        raise LookupError(f"campaign {campaign_id} not found")
    c.usage_count = int(c.usage_count or 0) + 1
    db.session.flush()
    return c.usage_count

# ---- authoring ---------------------------------------------------------------

def validate_campaign_data(data: dict):
    """Raise ValueError when a campaign payload cannot be priced sensibly."""
    ctype = str(data.get("type") or "").upper().strip()
    if ctype not in CAMPAIGN_TYPES:
        raise ValueError(f"type must be one of {', '.join(sorted(CAMPAIGN_TYPES))}")

    starts_at, ends_at = data.get("starts_at"), data.get("ends_at")
    if not starts_at or not ends_at:
        raise ValueError("starts_at and ends_at are required")
    if starts_at >= ends_at:
        raise ValueError("starts_at must be before ends_at")

    if ctype == "PERCENTAGE":
        pct = D_opt(data.get("discount_percent"))
        if pct is None or pct <= 0 or pct > 100:
            raise ValueError("discount_percent must be > 0 and <= 100")
    if ctype == "FIXED_AMOUNT":
        amt = D_opt(data.get("discount_amount"))
        if amt is None or amt <= 0:
            raise ValueError("discount_amount must be > 0")
    if ctype == "BUY_X_GET_Y":
        buy, get = parse_opt_int(data.get("buy_quantity")), parse_opt_int(data.get("get_quantity"))
        if not buy or not get or buy <= 0 or get <= 0:
            raise ValueError("buy_quantity and get_quantity must be > 0")
        if get >= buy:
            raise ValueError("get_quantity must be less than buy_quantity")

    for key in ("max_discount", "min_purchase"):
        v = D_opt(data.get(key))
        if v is not None and v < 0:
            raise ValueError(f"{key} must be >= 0")
    limit = parse_opt_int(data.get("usage_limit"))
    if limit is not None and limit < 0:
        raise ValueError("usage_limit must be >= 0")

    if not data.get("apply_to_all", True) and not (data.get("category_ids") or data.get("product_ids")):
        raise ValueError("category_ids or product_ids required when apply_to_all is false")
    return True

def normalize_campaign_payload(data: dict) -> dict:
    starts_at = parse_iso8601(data.get("starts_at"))
    ends_at = parse_iso8601(data.get("ends_at"))
    if data.get("starts_at") and not starts_at:
        raise ValueError("Invalid datetime format for starts_at")
    if data.get("ends_at") and not ends_at:
        raise ValueError("Invalid datetime format for ends_at")
    apply_to_all = parse_bool(data.get("apply_to_all"), True)
    return {
        "name": (data.get("name") or "").strip(),
        "slug": (data.get("slug") or "").strip().lower(),
        "description": data.get("description"),
        "type": str(data.get("type") or "").upper().strip(),
        "discount_percent": D_opt(data.get("discount_percent")),
        "discount_amount": D_opt(data.get("discount_amount")),
        "buy_quantity": parse_opt_int(data.get("buy_quantity")),
        "get_quantity": parse_opt_int(data.get("get_quantity")),
        "max_discount": D_opt(data.get("max_discount")),
        "min_purchase": D_opt(data.get("min_purchase")),
        "usage_limit": parse_opt_int(data.get("usage_limit")),
        "apply_to_all": apply_to_all,
        "category_ids": idlist_to_csv(data.get("category_ids")),
        "product_ids": idlist_to_csv(data.get("product_ids")),
        "priority": int(data.get("priority") or 0),
        "is_active": parse_bool(data.get("is_active"), True),
        "starts_at": starts_at,
        "ends_at": ends_at,
    }

def build_campaign(data: dict) -> Campaign:
    """Validated, not yet committed Campaign row."""
    fields = normalize_campaign_payload(data)
    if not fields["name"]:
        raise ValueError("name is required")
    if not fields["slug"]:
        raise ValueError("slug is required")
    validate_campaign_data(fields)
    if Campaign.query.filter_by(slug=fields["slug"]).first():
        raise ValueError("slug already in use")
    return Campaign(**fields)

def create_campaign_from_payload(data: dict):
    try:
        c = build_campaign(data)
    except ValueError as e:
        return api_error(str(e)), 400
    db.session.add(c)
    db.session.commit()
    current_app.logger.info("campaign created id=%s type=%s", c.id, c.type)
    return api_ok("Campaign created", {"campaign": c.as_api()}), 201
