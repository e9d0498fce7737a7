"""Value types shared by the pricing engine.

Everything here is immutable; the engine recomputes a fresh result on every
cart mutation instead of patching previous ones.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from ..utils.money import D, D_opt, ZERO, round_money
from ..utils.parse import parse_bool


class CampaignType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    BUY_X_GET_Y = "BUY_X_GET_Y"
    FREE_SHIPPING = "FREE_SHIPPING"


class FixedAmountMode(str, enum.Enum):
    # min(amount, line_total): the amount is granted once per cart line
    PER_LINE = "per_line"
    # min(amount * quantity, line_total): the amount is granted per unit
    PER_UNIT = "per_unit"


class Fulfillment(str, enum.Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


def _id_set(values) -> frozenset:
    # local import keeps scope.py free of a cycle on types.py
    from .scope import normalize_id
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = values.split(",")
    return frozenset(n for n in (normalize_id(v) for v in values) if n is not None)


@dataclass(frozen=True)
class Campaign:
    id: Any
    type: CampaignType
    name: str = ""
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None
    max_discount: Optional[Decimal] = None
    min_purchase: Optional[Decimal] = None
    apply_to_all: bool = False
    category_ids: frozenset = field(default_factory=frozenset)
    product_ids: frozenset = field(default_factory=frozenset)
    priority: int = 0
    usage_limit: Optional[int] = None
    usage_count: int = 0
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "Campaign":
        """Build a campaign from a feed payload (snake_case or camelCase keys)."""
        def pick(*keys, default=None):
            for k in keys:
                if k in data and data[k] is not None:
                    return data[k]
            return default

        buy = pick("buy_quantity", "buyQuantity")
        get = pick("get_quantity", "getQuantity")
        limit = pick("usage_limit", "usageLimit")
        return cls(
            id=data["id"],
            type=CampaignType(str(data["type"]).upper()),
            name=pick("name", default="") or "",
            discount_percent=D_opt(pick("discount_percent", "discountPercent")),
            discount_amount=D_opt(pick("discount_amount", "discountAmount")),
            buy_quantity=int(buy) if buy is not None else None,
            get_quantity=int(get) if get is not None else None,
            max_discount=D_opt(pick("max_discount", "maxDiscount")),
            min_purchase=D_opt(pick("min_purchase", "minPurchase")),
            apply_to_all=parse_bool(pick("apply_to_all", "applyToAll"), False),
            category_ids=_id_set(pick("category_ids", "categoryIds")),
            product_ids=_id_set(pick("product_ids", "productIds")),
            priority=int(pick("priority", default=0)),
            usage_limit=int(limit) if limit is not None else None,
            usage_count=int(pick("usage_count", "usageCount", default=0)),
            is_active=parse_bool(pick("is_active", "isActive"), True),
        )


@dataclass(frozen=True)
class CartLine:
    product_id: Any
    unit_price: Decimal
    quantity: int
    category_id: Any = None
    variant_id: Any = None
    name: str = ""

    @property
    def total(self) -> Decimal:
        return D(self.unit_price) * self.quantity


@dataclass(frozen=True)
class CouponResult:
    code: str
    discount: Decimal
    cart_fingerprint: Optional[str] = None
    label: str = ""


@dataclass(frozen=True)
class CampaignApplication:
    campaign: Campaign
    scope: str  # "global" | "product"
    calculated_discount: Decimal
    label: str = ""
    product_names: tuple = ()
    # line index -> share of calculated_discount
    line_discounts: tuple = ()

    def discount_for_line(self, index: int) -> Decimal:
        for i, amount in self.line_discounts:
            if i == index:
                return amount
        return ZERO

    def as_api(self):
        return {
            "campaign_id": self.campaign.id,
            "name": self.campaign.name,
            "type": self.campaign.type.value,
            "priority": self.campaign.priority,
            "scope": self.scope,
            "label": self.label,
            "product_names": list(self.product_names),
            "calculated_discount": str(round_money(self.calculated_discount)),
        }
