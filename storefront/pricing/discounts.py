"""Discount amounts per campaign type.

`line_discount` works on a single cart line and never looks at the campaign's
`max_discount`; the cap belongs to the campaign as a whole and is applied once
by `apply_campaign` after all covered lines have been summed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..utils.money import D, ZERO, HUNDRED, round_money
from .scope import applies_to_line, scope_tag
from .types import Campaign, CampaignApplication, CampaignType, CartLine, FixedAmountMode

log = logging.getLogger(__name__)


def line_discount(unit_price, quantity: int, campaign: Campaign,
                  fixed_mode: FixedAmountMode = FixedAmountMode.PER_LINE) -> Decimal:
    """Uncapped discount for `quantity` units at `unit_price` under `campaign`.

    Always within [0, unit_price * quantity]. Raises ArithmeticError on
    malformed campaigns (callers turn that into a zero contribution).
    """
    price = D(unit_price)
    qty = int(quantity)
    total = price * qty
    if total <= 0 or qty <= 0:
        return ZERO

    ctype = campaign.type
    discount = ZERO
    if ctype == CampaignType.PERCENTAGE:
        discount = total * D(campaign.discount_percent) / HUNDRED
    elif ctype == CampaignType.FIXED_AMOUNT:
        amount = D(campaign.discount_amount)
        if fixed_mode == FixedAmountMode.PER_UNIT:
            amount = amount * qty
        discount = min(amount, total)
    elif ctype == CampaignType.BUY_X_GET_Y:
        buy = int(campaign.buy_quantity or 0)
        get = int(campaign.get_quantity or 0)
        if buy <= 0:
            raise ZeroDivisionError(f"campaign {campaign.id}: buy_quantity must be > 0")
        if qty >= buy:
            sets = qty // buy
            free_per_set = buy - get
            discount = sets * free_per_set * price

    return max(ZERO, min(discount, total))


def cap_discount(amount: Decimal, campaign: Campaign) -> Decimal:
    if campaign.max_discount is not None and amount > campaign.max_discount:
        return max(ZERO, campaign.max_discount)
    return amount


def calculate_discount(unit_price, quantity: int, campaign: Campaign,
                       fixed_mode: FixedAmountMode = FixedAmountMode.PER_LINE) -> Decimal:
    """Capped discount for a single line treated as the campaign's whole reach.

    Malformed campaigns contribute zero.
    """
    try:
        return cap_discount(line_discount(unit_price, quantity, campaign, fixed_mode), campaign)
    except ArithmeticError:
        log.warning("campaign %s: arithmetic fault, contributing zero", campaign.id, exc_info=True)
        return ZERO


def _allocate(raw: Sequence[tuple[int, Decimal]], raw_total: Decimal, capped: Decimal):
    """Spread a capped total back over lines pro rata; last line takes the remainder."""
    if capped == raw_total:
        return tuple(raw)
    out = []
    remaining = capped
    for pos, (idx, amount) in enumerate(raw):
        if pos == len(raw) - 1:
            share = remaining
        else:
            share = amount * capped / raw_total
            remaining -= share
        out.append((idx, share))
    return tuple(out)


def apply_campaign(campaign: Campaign, lines: Sequence[CartLine],
                   fixed_mode: FixedAmountMode = FixedAmountMode.PER_LINE) -> Optional[CampaignApplication]:
    """Aggregate one campaign over every line it covers.

    Returns None when the campaign covers no line or yields no discount. A
    campaign touching N lines produces a single application.
    """
    raw: list[tuple[int, Decimal]] = []
    names = []
    try:
        for idx, line in enumerate(lines):
            if not applies_to_line(campaign, line):
                continue
            amount = line_discount(line.unit_price, line.quantity, campaign, fixed_mode)
            if amount > 0:
                raw.append((idx, amount))
                if line.name:
                    names.append(line.name)
        raw_total = sum((a for _, a in raw), ZERO)
        capped = cap_discount(raw_total, campaign)
    except ArithmeticError:
        log.warning("campaign %s: arithmetic fault, contributing zero", campaign.id, exc_info=True)
        return None

    if capped <= 0:
        return None

    scope = scope_tag(campaign)
    label = campaign.name or str(campaign.id)
    if scope == "product" and len(names) == 1:
        label = f"{label} ({names[0]})"
    return CampaignApplication(
        campaign=campaign,
        scope=scope,
        calculated_discount=capped,
        label=label,
        product_names=tuple(names),
        line_discounts=_allocate(raw, raw_total, capped),
    )


def apply_campaigns(campaigns: Iterable[Campaign], lines: Sequence[CartLine],
                    fixed_mode: FixedAmountMode = FixedAmountMode.PER_LINE) -> list[CampaignApplication]:
    results = []
    for c in campaigns:
        if c.type == CampaignType.FREE_SHIPPING:
            continue
        app = apply_campaign(c, lines, fixed_mode)
        if app is not None:
            results.append(app)
    return results


# ---- single product view ---------------------------------------------------

@dataclass(frozen=True)
class ProductPrice:
    original_price: Decimal
    discounted_price: Decimal  # average unit price after discount
    discount: Decimal          # total for the requested quantity
    quantity: int
    campaign: Optional[Campaign] = None

    def as_api(self):
        return {
            "original_price": str(round_money(self.original_price)),
            "discounted_price": str(round_money(self.discounted_price)),
            "discount": str(round_money(self.discount)),
            "quantity": self.quantity,
            "campaign": {
                "id": self.campaign.id,
                "name": self.campaign.name,
                "badge": campaign_badge(self.campaign),
            } if self.campaign else None,
        }


def best_product_price(line: CartLine, campaigns: Iterable[Campaign],
                       fixed_mode: FixedAmountMode = FixedAmountMode.PER_UNIT) -> ProductPrice:
    """Best single campaign for one product at a given quantity.

    Campaigns are mutually exclusive here too; ties keep the earlier campaign
    in feed order (the feed is sorted by priority).
    """
    price = D(line.unit_price)
    qty = max(int(line.quantity or 1), 1)
    best, best_campaign = ZERO, None
    for c in campaigns:
        if not applies_to_line(c, line):
            continue
        d = calculate_discount(price, qty, c, fixed_mode)
        if d > best:
            best, best_campaign = d, c
    return ProductPrice(
        original_price=price,
        discounted_price=max(ZERO, (price * qty - best) / qty),
        discount=best,
        quantity=qty,
        campaign=best_campaign,
    )


BADGES = {
    CampaignType.FIXED_AMOUNT: "Discount",
    CampaignType.FREE_SHIPPING: "Free shipping",
}


def campaign_badge(campaign: Optional[Campaign]) -> Optional[str]:
    """Short label for product tiles, e.g. "-20%" or "3 for 2"."""
    if campaign is None:
        return None
    if campaign.type == CampaignType.PERCENTAGE:
        return f"-{round(D(campaign.discount_percent))}%"
    if campaign.type == CampaignType.BUY_X_GET_Y:
        return f"{campaign.buy_quantity} for {campaign.get_quantity}"
    return BADGES.get(campaign.type, "Campaign")
