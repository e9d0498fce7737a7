"""
Campaign ranking, auto-selection and disambiguation
"""

from decimal import Decimal

import pytest

from storefront.pricing import (
    Campaign, CampaignApplication, CampaignSelector, InMemorySelectionStore, rank,
)


def _result(cid, discount, priority=0):
    c = Campaign.from_dict({"id": cid, "type": "PERCENTAGE", "discount_percent": 10,
                            "apply_to_all": True, "priority": priority, "name": f"C{cid}"})
    return CampaignApplication(campaign=c, scope="global", calculated_discount=Decimal(discount),
                               label=c.name)


def test_equal_priority_auto_picks_larger_discount():
    store = InMemorySelectionStore()
    outcome = CampaignSelector(store).select([_result(1, "5"), _result(2, "7")])

    assert outcome.selected_campaign_id == 2
    assert outcome.discount == Decimal("7")
    assert outcome.pending is False
    # auto picks are not persisted; only explicit choices are
    assert store.get() is None


def test_priority_beats_magnitude():
    results = [_result(1, "50", priority=0), _result(2, "1", priority=5)]
    assert [r.campaign.id for r in rank(results)] == [2, 1]
    assert CampaignSelector(InMemorySelectionStore()).select(results).selected_campaign_id == 2


def test_single_candidate_is_auto_selected():
    outcome = CampaignSelector(InMemorySelectionStore()).select([_result(3, "2")])
    assert outcome.selected_campaign_id == 3
    assert outcome.reason == "single"


def test_no_candidates_clears_stored_selection():
    store = InMemorySelectionStore(4)
    outcome = CampaignSelector(store).select([])
    assert outcome.selected is None
    assert outcome.discount == 0
    assert store.get() is None


def test_exact_tie_requires_a_decision():
    store = InMemorySelectionStore()
    selector = CampaignSelector(store)
    outcome = selector.select([_result(1, "5"), _result(2, "5")])

    assert outcome.pending is True
    assert outcome.discount == 0
    assert outcome.as_api()["code"] == "AMBIGUOUS_CAMPAIGN_SELECTION"


def test_dismiss_applies_top_ranked_candidate():
    store = InMemorySelectionStore()
    selector = CampaignSelector(store)
    outcome = selector.select([_result(1, "5"), _result(2, "5")])

    resolved = selector.dismiss(outcome)
    assert resolved.selected_campaign_id == 1
    assert store.get() == "1"
    # next recompute keeps it
    assert selector.select([_result(1, "5"), _result(2, "5")]).reason == "stored"


def test_prompt_on_multiple_asks_even_without_tie():
    selector = CampaignSelector(InMemorySelectionStore(), prompt_on_multiple=True)
    assert selector.select([_result(1, "5"), _result(2, "7")]).pending is True


def test_stored_selection_is_kept_while_still_a_candidate():
    store = InMemorySelectionStore(" 1 ")
    selector = CampaignSelector(store)
    results = [_result(1, "5"), _result(2, "7")]

    first = selector.select(results)
    second = selector.select(results)
    assert first.selected_campaign_id == 1
    assert second.selected_campaign_id == first.selected_campaign_id


def test_stale_selection_is_discarded():
    store = InMemorySelectionStore(9)
    outcome = CampaignSelector(store).select([_result(1, "5"), _result(2, "7")])
    assert outcome.selected_campaign_id == 2
    assert store.get() is None


def test_choose_persists_and_rejects_unknown_ids():
    store = InMemorySelectionStore()
    selector = CampaignSelector(store)
    outcome = selector.select([_result(1, "5"), _result(2, "7")])

    chosen = selector.choose(outcome, "1")
    assert chosen.selected_campaign_id == 1
    assert store.get() == "1"

    with pytest.raises(ValueError):
        selector.choose(outcome, 42)


def test_auto_pick_holds_while_candidate_set_is_unchanged():
    store = InMemorySelectionStore()
    selector = CampaignSelector(store)

    first = selector.select([_result(1, "2"), _result(2, "4")])
    # quantity change: same campaigns, tied and then reversed amounts
    tied = selector.select([_result(1, "4"), _result(2, "4")])
    reversed_ = selector.select([_result(1, "10"), _result(2, "4")])

    assert first.selected_campaign_id == 2
    assert tied.selected_campaign_id == 2
    assert tied.pending is False
    assert reversed_.selected_campaign_id == 2
    assert reversed_.reason == "kept"
    # explicit slot untouched
    assert store.get() is None


def test_new_candidate_triggers_a_fresh_auto_pick():
    selector = CampaignSelector(InMemorySelectionStore())
    selector.select([_result(1, "2"), _result(2, "4")])

    outcome = selector.select([_result(1, "2"), _result(2, "4"), _result(3, "9")])
    assert outcome.selected_campaign_id == 3
    assert outcome.reason == "best"


def test_pending_choice_stays_pending_for_same_candidates():
    selector = CampaignSelector(InMemorySelectionStore())
    assert selector.select([_result(1, "5"), _result(2, "5")]).pending is True

    again = selector.select([_result(1, "5"), _result(2, "8")])
    assert again.pending is True
    assert again.discount == 0
