"""Coupon codes are validated by an external provider; this adapter turns
its answer into a `CouponResult` the aggregator can stack on a campaign."""
from __future__ import annotations

import hashlib
import json
import logging
from typing import Optional, Protocol, Sequence

from ..utils.money import D, ZERO
from .errors import CouponRejected, InvalidCouponError
from .scope import normalize_id
from .types import CartLine, CouponResult

log = logging.getLogger(__name__)


class CouponProvider(Protocol):
    def validate(self, code: str, lines: list[dict], subtotal, user_id=None) -> dict:
        """Return {"coupon": ..., "discount": ...} or raise CouponRejected."""
        ...


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def cart_fingerprint(lines: Sequence[CartLine]) -> str:
    """Stable digest of what a coupon answer was computed against."""
    rows = sorted(
        (normalize_id(l.product_id) or "", normalize_id(l.variant_id) or "", int(l.quantity))
        for l in lines
    )
    return hashlib.sha1(json.dumps(rows).encode("utf-8")).hexdigest()


def provider_lines(lines: Sequence[CartLine]) -> list[dict]:
    return [
        {
            "product_id": l.product_id,
            "variant_id": l.variant_id,
            "category_id": l.category_id,
            "quantity": int(l.quantity),
        }
        for l in lines
    ]


class CouponAdapter:
    def __init__(self, provider: CouponProvider):
        self.provider = provider

    def validate(self, code, lines: Sequence[CartLine], subtotal, user_id=None) -> CouponResult:
        normalized = normalize_code(code)
        if not normalized:
            raise InvalidCouponError("coupon code is required")
        try:
            resp = self.provider.validate(normalized, provider_lines(lines), D(subtotal), user_id=user_id)
        except CouponRejected as e:
            raise InvalidCouponError(str(e) or "invalid coupon") from e
        except Exception as e:
            # network or provider failure: no automatic retry, the shopper re-submits
            log.warning("coupon provider failed for %s: %r", normalized, e)
            raise InvalidCouponError("coupon could not be validated, please try again") from e

        coupon = resp.get("coupon")
        label = getattr(coupon, "code", None) or (coupon.get("code") if isinstance(coupon, dict) else None)
        discount = max(ZERO, D(resp.get("discount")))
        return CouponResult(
            code=normalized,
            discount=discount,
            cart_fingerprint=cart_fingerprint(lines),
            label=f"Coupon {label or normalized}",
        )


def current_coupon(result: Optional[CouponResult], lines: Sequence[CartLine]) -> Optional[CouponResult]:
    """Drop a coupon answer that was computed for a different cart."""
    if result is None:
        return None
    if result.cart_fingerprint is not None and result.cart_fingerprint != cart_fingerprint(lines):
        log.info("discarding coupon %s validated against a previous cart", result.code)
        return None
    return result
