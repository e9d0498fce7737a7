"""Pricing error taxonomy.

Only INVALID_COUPON is ever raised to a caller. Ineligible campaigns and stale
selections are corrected silently and only logged; an ambiguous selection is a
pending state on the selection outcome, not an exception.
"""

INELIGIBLE_CAMPAIGN = "INELIGIBLE_CAMPAIGN"
INVALID_COUPON = "INVALID_COUPON"
AMBIGUOUS_CAMPAIGN_SELECTION = "AMBIGUOUS_CAMPAIGN_SELECTION"
STALE_SELECTION = "STALE_SELECTION"


class PricingError(Exception):
    code = "PRICING_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def as_api(self):
        return {"code": self.code, "message": self.message}


class InvalidCouponError(PricingError, ValueError):
    code = INVALID_COUPON


class CouponRejected(ValueError):
    """Raised by a coupon provider when a code does not validate for a cart."""
