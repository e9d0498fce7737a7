"""Which cart lines a campaign may discount."""
from __future__ import annotations

from typing import Iterable

from .types import Campaign, CampaignType, CartLine


def normalize_id(value):
    """Canonical form for id comparison: trimmed and case-folded text.

    Returns None for missing or blank ids so they never match anything.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return s.casefold()


def applies_to_line(campaign: Campaign, line: CartLine) -> bool:
    # free shipping is resolved on the whole cart by the shipping resolver
    if campaign.type == CampaignType.FREE_SHIPPING:
        return False
    return _matches(campaign, line)


def _matches(campaign: Campaign, line: CartLine) -> bool:
    if campaign.apply_to_all:
        return True
    cat = normalize_id(line.category_id)
    if cat is not None and cat in campaign.category_ids:
        return True
    pid = normalize_id(line.product_id)
    if pid is not None and pid in campaign.product_ids:
        return True
    return False


def covers_cart(campaign: Campaign, lines: Iterable[CartLine]) -> bool:
    """Cart-wide match used for free-shipping campaigns: store-wide or any line in scope."""
    if campaign.apply_to_all:
        return True
    return any(_matches(campaign, line) for line in lines)


def scope_tag(campaign: Campaign) -> str:
    return "global" if campaign.apply_to_all else "product"
