"""Pick the one campaign that is applied to a cart.

Campaigns never stack with each other. The selector ranks the candidates,
auto-selects when the choice is clear and otherwise reports a pending
disambiguation the shopper resolves with `choose` or `dismiss`.

The shopper's choice lives in an injected `SelectionStore` so the same code
runs against a browser-like session or a single request on the server.
Automatic outcomes are remembered next to it, keyed by the candidate set they
were decided for: while the same campaigns keep applying (e.g. only a
quantity changed) the outcome does not move.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..utils.money import ZERO
from .errors import AMBIGUOUS_CAMPAIGN_SELECTION, STALE_SELECTION
from .scope import normalize_id
from .types import CampaignApplication

log = logging.getLogger(__name__)

SELECTION_KEY = "selected_campaign_id"
AUTO_SELECTION_KEY = "auto_campaign_selection"


class SelectionStore(Protocol):
    # explicit shopper choice
    def get(self) -> Optional[str]: ...
    def set(self, campaign_id) -> None: ...
    # last automatic outcome: {"campaign_id": str | None, "candidates": str}
    def get_auto(self) -> Optional[dict]: ...
    def set_auto(self, campaign_id, candidates: str) -> None: ...
    # forgets both
    def clear(self) -> None: ...


def _auto_entry(campaign_id, candidates):
    return {
        "campaign_id": None if campaign_id is None else str(campaign_id),
        "candidates": candidates,
    }


class InMemorySelectionStore:
    def __init__(self, campaign_id=None):
        self._value = None if campaign_id is None else str(campaign_id)
        self._auto = None

    def get(self):
        return self._value

    def set(self, campaign_id):
        self._value = str(campaign_id)

    def get_auto(self):
        return self._auto

    def set_auto(self, campaign_id, candidates):
        self._auto = _auto_entry(campaign_id, candidates)

    def clear(self):
        self._value = None
        self._auto = None


class SessionSelectionStore:
    """Selection kept in the Flask session of the current shopper."""

    def __init__(self, key: str = SELECTION_KEY, auto_key: str = AUTO_SELECTION_KEY):
        self.key = key
        self.auto_key = auto_key

    def get(self):
        from flask import session
        return session.get(self.key)

    def set(self, campaign_id):
        from flask import session
        session[self.key] = str(campaign_id)

    def get_auto(self):
        from flask import session
        return session.get(self.auto_key)

    def set_auto(self, campaign_id, candidates):
        from flask import session
        session[self.auto_key] = _auto_entry(campaign_id, candidates)

    def clear(self):
        from flask import session
        session.pop(self.key, None)
        session.pop(self.auto_key, None)


def candidate_key(results: Sequence[CampaignApplication]) -> str:
    """Order-independent identity of a candidate set."""
    return ",".join(sorted(normalize_id(r.campaign.id) or "" for r in results))


def rank(results: Sequence[CampaignApplication]) -> list[CampaignApplication]:
    """Priority desc, then discount desc; equal entries keep feed order."""
    return sorted(results, key=lambda r: (-r.campaign.priority, -r.calculated_discount))


def _same_rank(a: CampaignApplication, b: CampaignApplication) -> bool:
    return (a.campaign.priority == b.campaign.priority
            and a.calculated_discount == b.calculated_discount)


@dataclass(frozen=True)
class SelectionOutcome:
    candidates: tuple = ()
    selected: Optional[CampaignApplication] = None
    pending: bool = False
    reason: str = "none"  # none | single | stored | kept | best | ambiguous | chosen | dismissed

    @property
    def selected_campaign_id(self):
        return self.selected.campaign.id if self.selected else None

    @property
    def discount(self) -> Decimal:
        return self.selected.calculated_discount if self.selected else ZERO

    @property
    def top(self) -> Optional[CampaignApplication]:
        return self.candidates[0] if self.candidates else None

    def find(self, campaign_id) -> Optional[CampaignApplication]:
        key = normalize_id(campaign_id)
        if key is None:
            return None
        return next((c for c in self.candidates if normalize_id(c.campaign.id) == key), None)

    def as_api(self):
        return {
            "selected_campaign_id": self.selected_campaign_id,
            "pending": self.pending,
            "reason": self.reason,
            "code": AMBIGUOUS_CAMPAIGN_SELECTION if self.pending else None,
            "candidates": [c.as_api() for c in self.candidates],
        }


class CampaignSelector:
    def __init__(self, store: SelectionStore, prompt_on_multiple: bool = False):
        self.store = store
        self.prompt_on_multiple = prompt_on_multiple

    def select(self, results: Sequence[CampaignApplication]) -> SelectionOutcome:
        ranked = tuple(rank(results))

        if not ranked:
            if self.store.get() is not None or self.store.get_auto() is not None:
                self.store.clear()
            return SelectionOutcome()

        probe = SelectionOutcome(candidates=ranked)
        stored = self.store.get()
        if stored is not None:
            kept = probe.find(stored)
            if kept is not None:
                return SelectionOutcome(candidates=ranked, selected=kept, reason="stored")
            log.info("%s campaign=%s no longer applicable, discarding", STALE_SELECTION, stored)
            self.store.clear()

        key = candidate_key(ranked)
        auto = self.store.get_auto()
        if auto and auto.get("candidates") == key:
            if auto.get("campaign_id") is None:
                return SelectionOutcome(candidates=ranked, pending=True, reason="ambiguous")
            kept = probe.find(auto["campaign_id"])
            if kept is not None:
                return SelectionOutcome(candidates=ranked, selected=kept, reason="kept")

        if len(ranked) == 1:
            outcome = SelectionOutcome(candidates=ranked, selected=ranked[0], reason="single")
        elif self.prompt_on_multiple or _same_rank(ranked[0], ranked[1]):
            log.debug("%s candidates=%s", AMBIGUOUS_CAMPAIGN_SELECTION,
                      [c.campaign.id for c in ranked])
            outcome = SelectionOutcome(candidates=ranked, pending=True, reason="ambiguous")
        else:
            outcome = SelectionOutcome(candidates=ranked, selected=ranked[0], reason="best")
        self.store.set_auto(outcome.selected_campaign_id, key)
        return outcome

    def choose(self, outcome: SelectionOutcome, campaign_id) -> SelectionOutcome:
        """Apply the shopper's explicit pick; it must be one of the candidates."""
        picked = outcome.find(campaign_id)
        if picked is None:
            raise ValueError(f"campaign {campaign_id} is not applicable to this cart")
        self.store.set(picked.campaign.id)
        return SelectionOutcome(candidates=outcome.candidates, selected=picked, reason="chosen")

    def dismiss(self, outcome: SelectionOutcome) -> SelectionOutcome:
        """Closing the chooser applies the top-ranked candidate."""
        if outcome.top is None:
            self.store.clear()
            return SelectionOutcome()
        self.store.set(outcome.top.campaign.id)
        return SelectionOutcome(candidates=outcome.candidates, selected=outcome.top, reason="dismissed")

    def clear(self) -> None:
        self.store.clear()
