"""Delivery fee from the merchant's tier table.

Pure function of the current cart figures; nothing is stored between calls.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..utils.money import D, D_opt, ZERO, HUNDRED, format_money, round_money
from .eligibility import is_eligible
from .scope import covers_cart
from .types import Campaign, CampaignType, CartLine, Fulfillment

DEFAULT_DELIVERY_FEE = Decimal("5.00")


@dataclass(frozen=True)
class ShippingRule:
    min: Decimal
    max: Optional[Decimal] = None
    fee: Decimal = ZERO
    fee_percent: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ShippingRule":
        fee_percent = data.get("fee_percent", data.get("feePercent"))
        # stored settings use {"type": "percent", "fee": 3} for percentage tiers
        if fee_percent is None and str(data.get("type") or "").lower() == "percent":
            fee_percent = data.get("fee")
            fee = ZERO
        else:
            fee = D(data.get("fee"))
        return cls(
            min=D(data.get("min")),
            max=D_opt(data.get("max")),
            fee=fee,
            fee_percent=D_opt(fee_percent),
        )

    def contains(self, amount: Decimal) -> bool:
        return self.min <= amount and (self.max is None or amount <= self.max)

    def fee_for(self, amount: Decimal) -> Decimal:
        if self.fee_percent is not None:
            return max(ZERO, amount * self.fee_percent / HUNDRED)
        return max(ZERO, self.fee)

    def as_api(self):
        return {
            "min": str(self.min),
            "max": str(self.max) if self.max is not None else None,
            "fee": str(self.fee),
            "fee_percent": str(self.fee_percent) if self.fee_percent is not None else None,
        }


@dataclass(frozen=True)
class ShippingConfig:
    rules: tuple = ()
    free_shipping_threshold: Optional[Decimal] = None
    default_fee: Decimal = DEFAULT_DELIVERY_FEE
    currency_symbol: str = "€"

    @classmethod
    def from_mapping(cls, rules: Iterable[dict] = (), free_shipping_threshold=None,
                     default_fee=DEFAULT_DELIVERY_FEE, currency_symbol="€") -> "ShippingConfig":
        parsed = sorted((ShippingRule.from_dict(r) for r in (rules or ())), key=lambda r: r.min)
        return cls(
            rules=tuple(parsed),
            free_shipping_threshold=D_opt(free_shipping_threshold),
            default_fee=D(default_fee),
            currency_symbol=currency_symbol,
        )


@dataclass(frozen=True)
class ShippingAdvisory:
    message: str
    amount_needed: Decimal
    progress_percent: Decimal
    target_amount: Decimal
    target_fee: Decimal

    def as_api(self):
        return {
            "message": self.message,
            "amount_needed": str(round_money(self.amount_needed)),
            "progress_percent": float(self.progress_percent.quantize(Decimal("0.1"))),
            "target_amount": str(round_money(self.target_amount)),
            "target_fee": str(round_money(self.target_fee)),
        }


@dataclass(frozen=True)
class ShippingQuote:
    fee: Decimal
    reason: str  # pickup | free_campaign | threshold | tier | default
    advisory: Optional[ShippingAdvisory] = None
    rule: Optional[ShippingRule] = None
    free_shipping_campaign: Optional[Campaign] = None


def find_free_shipping_campaign(campaigns: Iterable[Campaign], lines: Sequence[CartLine],
                                subtotal) -> Optional[Campaign]:
    """First eligible FREE_SHIPPING campaign whose scope touches the cart."""
    for c in campaigns:
        if c.type != CampaignType.FREE_SHIPPING:
            continue
        if is_eligible(c, subtotal) and covers_cart(c, lines):
            return c
    return None


def _rule_for(amount: Decimal, rules: Sequence[ShippingRule]) -> Optional[ShippingRule]:
    for r in rules:
        if r.contains(amount):
            return r
    # amount fell into a gap between tiers: closest tier below it
    below = [r for r in rules if r.min <= amount]
    return below[-1] if below else None


def _advisory(amount: Decimal, current_fee: Decimal, config: ShippingConfig) -> Optional[ShippingAdvisory]:
    if current_fee <= 0:
        return None
    better = [
        (r.fee_for(r.min), r.min)
        for r in config.rules
        if r.min > amount and r.fee_for(r.min) < current_fee
    ]
    if better:
        target_fee, target = min(better)
    elif config.free_shipping_threshold is not None and config.free_shipping_threshold > amount:
        target_fee, target = ZERO, config.free_shipping_threshold
    else:
        return None

    needed = target - amount
    progress = ZERO if target <= 0 else max(ZERO, min(HUNDRED, amount / target * HUNDRED))
    sym = config.currency_symbol
    if target_fee == 0:
        message = f"{format_money(needed, sym)} more for free shipping"
    else:
        message = f"{format_money(needed, sym)} more for {format_money(target_fee, sym)} shipping"
    return ShippingAdvisory(
        message=message,
        amount_needed=needed,
        progress_percent=progress,
        target_amount=target,
        target_fee=target_fee,
    )


def resolve_shipping(fulfillment, final_subtotal, config: ShippingConfig,
                     free_shipping_campaign: Optional[Campaign] = None) -> ShippingQuote:
    if Fulfillment(fulfillment) == Fulfillment.PICKUP:
        return ShippingQuote(fee=ZERO, reason="pickup")

    amount = max(ZERO, D(final_subtotal))
    if free_shipping_campaign is not None:
        return ShippingQuote(fee=ZERO, reason="free_campaign", free_shipping_campaign=free_shipping_campaign)
    if config.free_shipping_threshold is not None and amount >= config.free_shipping_threshold:
        return ShippingQuote(fee=ZERO, reason="threshold")

    rule = _rule_for(amount, config.rules)
    if rule is None:
        fee, reason = max(ZERO, config.default_fee), "default"
    else:
        fee, reason = rule.fee_for(amount), "tier"
    return ShippingQuote(fee=fee, reason=reason, advisory=_advisory(amount, fee, config), rule=rule)
