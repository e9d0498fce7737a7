"""Cart pricing: the one entry point callers use on every cart mutation.

    lines + campaigns + coupon + selection + shipping config -> PricedCart

Order of work:
  1) subtotal and campaign eligibility (pre-discount subtotal)
  2) per-campaign aggregation over the lines each one covers
  3) campaign selection (at most one campaign applies)
  4) coupon, stacked on top of the campaign
  5) shipping on the discounted subtotal
  6) total, clamped at zero

Nothing is rounded until `PricedCart.as_api()`.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from ..utils.money import D, D_opt, ZERO, round_money
from .coupons import current_coupon
from .discounts import apply_campaigns
from .eligibility import filter_eligible
from .selection import CampaignSelector, InMemorySelectionStore, SelectionOutcome, SelectionStore
from .shipping import ShippingConfig, ShippingQuote, find_free_shipping_campaign, resolve_shipping
from .types import Campaign, CartLine, CouponResult, FixedAmountMode, Fulfillment

log = logging.getLogger(__name__)


class PricingState(str, enum.Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    SETTLED = "settled"


@dataclass(frozen=True)
class PricingOptions:
    fixed_mode: FixedAmountMode = FixedAmountMode.PER_LINE
    prompt_on_multiple: bool = False
    minimum_order_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class DiscountEntry:
    source_label: str
    amount: Decimal
    kind: str  # campaign | coupon
    source_id: object = None

    def as_api(self):
        return {
            "source_label": self.source_label,
            "amount": str(round_money(self.amount)),
            "kind": self.kind,
            "source_id": self.source_id,
        }


@dataclass(frozen=True)
class PricedLine:
    index: int
    line: CartLine
    discount: Decimal = ZERO
    campaign: Optional[Campaign] = None

    @property
    def line_total(self) -> Decimal:
        return self.line.total - self.discount

    @property
    def discounted_unit_price(self) -> Decimal:
        # averaged over the line, so buy-x-get-y spreads its free units
        return self.line_total / self.line.quantity

    def as_api(self):
        return {
            "product_id": self.line.product_id,
            "variant_id": self.line.variant_id,
            "name": self.line.name,
            "quantity": self.line.quantity,
            "unit_price": str(round_money(self.line.unit_price)),
            "discount": str(round_money(self.discount)),
            "discounted_unit_price": str(round_money(self.discounted_unit_price)),
            "line_total": str(round_money(self.line_total)),
            "campaign_id": self.campaign.id if self.campaign else None,
        }

    def as_order_line(self):
        return {
            "product_id": self.line.product_id,
            "variant_id": self.line.variant_id,
            "quantity": self.line.quantity,
            "unit_price": str(round_money(self.line.unit_price)),
            "discounted_unit_price": str(round_money(self.discounted_unit_price)),
            "campaign_id": self.campaign.id if self.campaign else None,
            "campaign_name": self.campaign.name if self.campaign else None,
        }


@dataclass(frozen=True)
class PricedCart:
    lines: tuple
    subtotal: Decimal
    campaign_discount: Decimal
    coupon_discount: Decimal
    discounts: tuple
    shipping: ShippingQuote
    total: Decimal
    selection: SelectionOutcome
    fulfillment: Fulfillment = Fulfillment.DELIVERY
    coupon: Optional[CouponResult] = None
    eligible_campaigns: tuple = field(default=(), compare=False)
    minimum_order_amount: Optional[Decimal] = None

    @property
    def total_discount(self) -> Decimal:
        return self.campaign_discount + self.coupon_discount

    @property
    def final_subtotal(self) -> Decimal:
        return self.subtotal - self.total_discount

    @property
    def shipping_fee(self) -> Decimal:
        return self.shipping.fee

    @property
    def shipping_advisory(self):
        return self.shipping.advisory

    @property
    def minimum_order_shortfall(self) -> Decimal:
        if self.minimum_order_amount is None:
            return ZERO
        return max(ZERO, self.minimum_order_amount - self.subtotal)

    @property
    def meets_minimum_order(self) -> bool:
        return self.minimum_order_shortfall == 0

    def order_lines(self) -> list[dict]:
        """Per-line payload attached to an order so the backend can re-verify."""
        return [pl.as_order_line() for pl in self.lines]

    def as_api(self):
        return {
            "subtotal": str(round_money(self.subtotal)),
            "discounts": [d.as_api() for d in self.discounts],
            "campaign_discount": str(round_money(self.campaign_discount)),
            "coupon_discount": str(round_money(self.coupon_discount)),
            "final_subtotal": str(round_money(max(ZERO, self.final_subtotal))),
            "fulfillment": self.fulfillment.value,
            "shipping_fee": str(round_money(self.shipping_fee)),
            "shipping_reason": self.shipping.reason,
            "shipping_tier": self.shipping.rule.as_api() if self.shipping.rule else None,
            "shipping_advisory": self.shipping_advisory.as_api() if self.shipping_advisory else None,
            "total": str(round_money(self.total)),
            "selection": self.selection.as_api(),
            "coupon": {"code": self.coupon.code} if self.coupon else None,
            "minimum_order": {
                "amount": str(round_money(self.minimum_order_amount)),
                "met": self.meets_minimum_order,
                "shortfall": str(round_money(self.minimum_order_shortfall)),
            } if self.minimum_order_amount is not None else None,
            "lines": [pl.as_api() for pl in self.lines],
        }


def _check_lines(lines: Sequence[CartLine]):
    for l in lines:
        if int(l.quantity) < 1:
            raise ValueError(f"quantity for product {l.product_id} must be >= 1")
        if D(l.unit_price) < 0:
            raise ValueError(f"price for product {l.product_id} must be >= 0")


def price_cart(lines: Sequence[CartLine], campaigns: Sequence[Campaign], *,
               coupon: Optional[CouponResult] = None,
               store: Optional[SelectionStore] = None,
               shipping: Optional[ShippingConfig] = None,
               fulfillment=Fulfillment.DELIVERY,
               options: Optional[PricingOptions] = None) -> PricedCart:
    lines = tuple(lines)
    _check_lines(lines)
    store = store if store is not None else InMemorySelectionStore()
    shipping = shipping or ShippingConfig()
    options = options or PricingOptions()
    fulfillment = Fulfillment(fulfillment)
    selector = CampaignSelector(store, prompt_on_multiple=options.prompt_on_multiple)

    # 1) subtotal + eligibility
    subtotal = sum((l.total for l in lines), ZERO)
    eligible = filter_eligible(campaigns, subtotal) if lines else []

    # 2) + 3) aggregate per campaign, pick one
    results = apply_campaigns(eligible, lines, options.fixed_mode)
    selection = selector.select(results)
    return _settle(lines, subtotal, eligible, selection, coupon, shipping, fulfillment, options)


def _settle(lines, subtotal, eligible, selection: SelectionOutcome, coupon, shipping,
            fulfillment, options) -> PricedCart:
    applied = selection.selected
    campaign_discount = selection.discount

    # 4) coupon stacks on top of the campaign
    coupon = current_coupon(coupon, lines) if lines else None
    coupon_discount = coupon.discount if coupon else ZERO

    discounts = []
    if applied is not None:
        discounts.append(DiscountEntry(applied.label, campaign_discount, "campaign", applied.campaign.id))
    if coupon is not None:
        discounts.append(DiscountEntry(coupon.label or coupon.code, coupon_discount, "coupon", coupon.code))

    # 5) shipping on the discounted subtotal
    final_subtotal = subtotal - campaign_discount - coupon_discount
    free_campaign = find_free_shipping_campaign(eligible, lines, subtotal) if lines else None
    quote = resolve_shipping(fulfillment, final_subtotal, shipping, free_campaign)

    # 6) total
    total = max(ZERO, final_subtotal + quote.fee)

    priced_lines = tuple(
        PricedLine(
            index=i,
            line=l,
            discount=applied.discount_for_line(i) if applied else ZERO,
            campaign=applied.campaign if applied and applied.discount_for_line(i) > 0 else None,
        )
        for i, l in enumerate(lines)
    )
    return PricedCart(
        lines=priced_lines,
        subtotal=subtotal,
        campaign_discount=campaign_discount,
        coupon_discount=coupon_discount,
        discounts=tuple(discounts),
        shipping=quote,
        total=total,
        selection=selection,
        fulfillment=fulfillment,
        coupon=coupon,
        eligible_campaigns=tuple(eligible),
        minimum_order_amount=D_opt(options.minimum_order_amount),
    )


class CartPricingAggregator:
    """Stateful wrapper around `price_cart` for callers that keep a cart open.

    Every mutation goes through `price`; `choose` / `dismiss` resolve a pending
    campaign choice against the last settled inputs.
    """

    def __init__(self, store: Optional[SelectionStore] = None,
                 shipping: Optional[ShippingConfig] = None,
                 options: Optional[PricingOptions] = None):
        self.store = store if store is not None else InMemorySelectionStore()
        self.shipping = shipping or ShippingConfig()
        self.options = options or PricingOptions()
        self.state = PricingState.IDLE
        self.result: Optional[PricedCart] = None
        self._inputs = None

    def price(self, lines, campaigns, coupon=None, fulfillment=Fulfillment.DELIVERY) -> PricedCart:
        self.state = PricingState.COMPUTING
        try:
            self.result = price_cart(
                lines, campaigns, coupon=coupon, store=self.store, shipping=self.shipping,
                fulfillment=fulfillment, options=self.options,
            )
        except Exception:
            self.state = PricingState.IDLE if self.result is None else PricingState.SETTLED
            raise
        self._inputs = (tuple(lines), tuple(campaigns), coupon, fulfillment)
        self.state = PricingState.SETTLED
        return self.result

    def _require_settled(self):
        if self.result is None or self._inputs is None:
            raise RuntimeError("cart has not been priced yet")

    def choose(self, campaign_id) -> PricedCart:
        self._require_settled()
        CampaignSelector(self.store).choose(self.result.selection, campaign_id)
        return self.price(*self._inputs)

    def dismiss(self) -> PricedCart:
        self._require_settled()
        CampaignSelector(self.store).dismiss(self.result.selection)
        return self.price(*self._inputs)
