"""Drop campaigns that cannot apply to the current cart total."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from ..utils.money import D
from .errors import INELIGIBLE_CAMPAIGN
from .types import Campaign

log = logging.getLogger(__name__)


def ineligibility_reason(campaign: Campaign, subtotal: Decimal):
    if not campaign.is_active:
        return "inactive"
    if campaign.min_purchase is not None and D(subtotal) < campaign.min_purchase:
        return "min_purchase"
    if campaign.usage_limit is not None and campaign.usage_count >= campaign.usage_limit:
        return "usage_limit"
    return None


def is_eligible(campaign: Campaign, subtotal: Decimal) -> bool:
    return ineligibility_reason(campaign, subtotal) is None


def filter_eligible(campaigns: Iterable[Campaign], subtotal: Decimal) -> list[Campaign]:
    """Campaigns whose minimum purchase is met and usage limit not exhausted.

    `subtotal` is the pre-discount cart total. Feed order is preserved.
    """
    kept = []
    for c in campaigns:
        reason = ineligibility_reason(c, subtotal)
        if reason:
            log.debug("%s campaign=%s reason=%s", INELIGIBLE_CAMPAIGN, c.id, reason)
            continue
        kept.append(c)
    return kept
