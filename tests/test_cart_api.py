"""
/cart endpoints: pricing, coupon stacking and the campaign chooser
"""

from decimal import Decimal

from storefront.model import StoreSettings


def _items(catalog, apple=4, milk=5):
    return [
        {"product_id": catalog["apple"].id, "quantity": apple},
        {"product_id": catalog["milk"].id, "quantity": milk},
    ]


def test_price_cart_with_campaign_and_shipping(client, catalog, make_campaign):
    make_campaign(name="Autumn sale")

    res = client.post("/cart/price", json={"lines": _items(catalog)})
    assert res.status_code == 200
    cart = res.get_json()["data"]["cart"]

    assert cart["subtotal"] == "16.00"
    assert cart["campaign_discount"] == "1.60"
    assert cart["shipping_fee"] == "4.99"
    assert cart["shipping_tier"]["fee"] == "4.99"
    assert cart["total"] == "19.39"
    assert cart["shipping_advisory"]["message"] == "€15.60 more for free shipping"
    assert cart["discounts"][0]["source_label"] == "Autumn sale"


def test_coupon_stacks_on_campaign(client, catalog, make_campaign, make_coupon):
    make_campaign()
    make_coupon(code="SAVE5")

    res = client.post("/cart/price", json={"lines": _items(catalog), "coupon_code": "save5"})
    data = res.get_json()["data"]

    assert data["coupon_error"] is None
    assert data["cart"]["coupon_discount"] == "5.00"
    assert data["cart"]["total"] == "14.39"


def test_invalid_coupon_does_not_block_pricing(client, catalog):
    res = client.post("/cart/price", json={"lines": _items(catalog), "coupon_code": "NOPE"})
    assert res.status_code == 200
    data = res.get_json()["data"]

    assert data["coupon_error"]["code"] == "INVALID_COUPON"
    assert data["cart"]["coupon"] is None
    assert data["cart"]["total"] == "20.99"


def test_tie_is_resolved_by_explicit_choice(client, catalog, make_campaign):
    first = make_campaign(name="A")
    make_campaign(name="B")
    payload = {"lines": _items(catalog)}

    pending = client.post("/cart/price", json=payload).get_json()["data"]["cart"]
    assert pending["selection"]["pending"] is True
    assert pending["selection"]["code"] == "AMBIGUOUS_CAMPAIGN_SELECTION"
    assert pending["campaign_discount"] == "0.00"

    res = client.post("/cart/campaign", json={**payload, "campaign_id": first.id})
    assert res.status_code == 200
    assert res.get_json()["data"]["cart"]["selection"]["selected_campaign_id"] == first.id

    # the choice survives later recomputes in the same session
    again = client.post("/cart/price", json=payload).get_json()["data"]["cart"]
    assert again["selection"]["reason"] == "stored"
    assert again["selection"]["selected_campaign_id"] == first.id

    client.delete("/cart/campaign")
    cleared = client.post("/cart/price", json=payload).get_json()["data"]["cart"]
    assert cleared["selection"]["pending"] is True


def test_dismiss_applies_top_ranked_campaign(client, catalog, make_campaign):
    make_campaign(name="A")
    second = make_campaign(name="B")

    res = client.post("/cart/campaign/dismiss", json={"lines": _items(catalog)})
    cart = res.get_json()["data"]["cart"]
    assert cart["selection"]["selected_campaign_id"] == second.id
    assert cart["campaign_discount"] == "1.60"


def test_choosing_a_campaign_that_does_not_apply(client, catalog, make_campaign):
    make_campaign()
    res = client.post("/cart/campaign", json={"lines": _items(catalog), "campaign_id": 999})
    assert res.status_code == 422

    missing = client.post("/cart/campaign", json={"lines": _items(catalog)})
    assert missing.status_code == 422


def test_unknown_product_is_404(client, catalog):
    res = client.post("/cart/price", json={"lines": [{"product_id": 999, "quantity": 1}]})
    assert res.status_code == 404


def test_pickup_has_no_shipping_fee(client, catalog):
    res = client.post("/cart/price", json={"lines": _items(catalog), "fulfillment": "pickup"})
    cart = res.get_json()["data"]["cart"]
    assert cart["shipping_fee"] == "0.00"
    assert cart["shipping_reason"] == "pickup"


def test_order_lines_use_catalog_prices(client, catalog, make_campaign):
    make_campaign(discount_percent=Decimal("20"))
    res = client.post("/cart/price", json={"lines": [
        {"product_id": catalog["apple"].id, "quantity": 2, "unit_price": "0.01"},
    ]})
    (line,) = res.get_json()["data"]["order_lines"]
    assert line["unit_price"] == "2.50"
    assert line["discounted_unit_price"] == "2.00"


def test_store_settings_override_threshold(client, db, catalog):
    db.session.add(StoreSettings(free_shipping_threshold=Decimal("10")))
    db.session.commit()

    res = client.post("/cart/price", json={"lines": [{"product_id": catalog["apple"].id, "quantity": 4}]})
    cart = res.get_json()["data"]["cart"]
    assert cart["shipping_fee"] == "0.00"
    assert cart["shipping_reason"] == "threshold"
