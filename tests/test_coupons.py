"""
Coupon adapter against fake providers
"""

from decimal import Decimal

import pytest

from storefront.pricing import (
    CartLine, CouponAdapter, CouponRejected, InvalidCouponError, cart_fingerprint, normalize_code,
)


class FixedProvider:
    def __init__(self, discount):
        self.discount = discount
        self.calls = []

    def validate(self, code, lines, subtotal, user_id=None):
        self.calls.append((code, lines, subtotal, user_id))
        return {"coupon": {"code": code}, "discount": self.discount}


class RejectingProvider:
    def validate(self, code, lines, subtotal, user_id=None):
        raise CouponRejected("coupon usage limit reached")


class BrokenProvider:
    def validate(self, code, lines, subtotal, user_id=None):
        raise ConnectionError("provider down")


LINES = [
    CartLine(product_id=1, unit_price=Decimal("4"), quantity=2, category_id=3),
    CartLine(product_id=2, unit_price=Decimal("1.5"), quantity=1, variant_id=8),
]


def test_valid_code_is_normalized_and_fingerprinted():
    provider = FixedProvider("2.50")
    result = CouponAdapter(provider).validate("  save5 ", LINES, "9.50", user_id=7)

    assert result.code == "SAVE5"
    assert result.discount == Decimal("2.50")
    assert result.label == "Coupon SAVE5"
    assert result.cart_fingerprint == cart_fingerprint(LINES)

    code, lines, subtotal, user_id = provider.calls[0]
    assert code == "SAVE5"
    assert lines[0] == {"product_id": 1, "variant_id": None, "category_id": 3, "quantity": 2}
    assert subtotal == Decimal("9.50")
    assert user_id == 7


def test_negative_provider_discount_is_floored():
    assert CouponAdapter(FixedProvider("-3")).validate("X", LINES, 9).discount == 0


def test_rejection_surfaces_as_invalid_coupon():
    with pytest.raises(InvalidCouponError) as exc:
        CouponAdapter(RejectingProvider()).validate("X", LINES, 9)
    assert exc.value.code == "INVALID_COUPON"
    assert exc.value.message == "coupon usage limit reached"


def test_provider_failure_is_not_retried():
    with pytest.raises(InvalidCouponError) as exc:
        CouponAdapter(BrokenProvider()).validate("X", LINES, 9)
    assert "try again" in exc.value.message


def test_blank_code_is_rejected():
    provider = FixedProvider("1")
    with pytest.raises(InvalidCouponError):
        CouponAdapter(provider).validate("   ", LINES, 9)
    assert provider.calls == []


def test_fingerprint_ignores_line_order_and_id_case():
    reordered = list(reversed(LINES))
    assert cart_fingerprint(reordered) == cart_fingerprint(LINES)

    more = LINES + [CartLine(product_id="1", unit_price=Decimal("4"), quantity=1)]
    assert cart_fingerprint(more) != cart_fingerprint(LINES)


def test_normalize_code():
    assert normalize_code(" abc ") == "ABC"
    assert normalize_code(None) == ""
