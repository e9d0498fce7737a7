"""
Campaign authoring, the active feed and the single-product price view
"""

from datetime import timedelta
from decimal import Decimal

from storefront.services.campaign_service import get_active_campaigns, increment_usage_count
from storefront.utils.parse import utcnow


def _payload(**kw):
    now = utcnow()
    data = {
        "name": "Three for two",
        "slug": "three-for-two",
        "type": "BUY_X_GET_Y",
        "buy_quantity": 3,
        "get_quantity": 2,
        "starts_at": (now - timedelta(days=1)).isoformat(),
        "ends_at": (now + timedelta(days=7)).isoformat() + "Z",
    }
    data.update(kw)
    return data


def test_create_campaign(client):
    res = client.post("/campaigns", json=_payload())
    assert res.status_code == 201
    body = res.get_json()["data"]["campaign"]
    assert body["type"] == "BUY_X_GET_Y"
    assert body["badge"] == "3 for 2"

    got = client.get(f"/campaigns/{body['id']}")
    assert got.status_code == 200
    assert got.get_json()["data"]["campaign"]["slug"] == "three-for-two"


def test_create_campaign_validation(client):
    assert client.post("/campaigns", json=_payload(get_quantity=3)).status_code == 400
    assert client.post("/campaigns", json=_payload(type="PERCENTAGE", discount_percent=0)).status_code == 400
    assert client.post("/campaigns", json=_payload(type="BOGUS")).status_code == 400
    assert client.post("/campaigns", json=_payload(apply_to_all=False)).status_code == 400

    later = utcnow() + timedelta(days=3)
    bad_window = _payload(starts_at=later.isoformat(), ends_at=utcnow().isoformat())
    res = client.post("/campaigns", json=bad_window)
    assert res.status_code == 400
    assert res.get_json()["message"] == "starts_at must be before ends_at"


def test_duplicate_slug_rejected(client):
    assert client.post("/campaigns", json=_payload()).status_code == 201
    assert client.post("/campaigns", json=_payload(name="Again")).status_code == 400


def test_missing_campaign_is_404(client):
    assert client.get("/campaigns/12345").status_code == 404


def test_active_feed_excludes_expired_and_exhausted(client, make_campaign):
    now = utcnow()
    live = make_campaign(name="Live", priority=1)
    make_campaign(name="Expired", starts_at=now - timedelta(days=5), ends_at=now - timedelta(days=1))
    make_campaign(name="Used up", usage_limit=1, usage_count=1)
    make_campaign(name="Off", is_active=False)

    res = client.get("/campaigns/active")
    names = [c["name"] for c in res.get_json()["data"]["campaigns"]]
    assert names == ["Live"]
    assert live.id in [c.id for c in get_active_campaigns()]


def test_feed_sorted_by_priority(app, make_campaign):
    make_campaign(name="Low", priority=0)
    make_campaign(name="High", priority=10)
    assert [c.name for c in get_active_campaigns()] == ["High", "Low"]


def test_increment_usage_count(db, make_campaign):
    c = make_campaign(usage_limit=2)
    assert increment_usage_count(c.id) == 1
    assert increment_usage_count(c.id) == 2
    # exhausted campaigns stay in the feed; the engine filters them
    rule = next(r for r in get_active_campaigns() if r.id == c.id)
    assert rule.usage_count == 2


def test_product_price_buy_x_get_y(client, catalog, make_campaign):
    cheese = catalog["cheese"]
    make_campaign(type="BUY_X_GET_Y", discount_percent=None, buy_quantity=3, get_quantity=2,
                  apply_to_all=False, product_ids=str(cheese.id))

    res = client.get(f"/products/{cheese.id}/price?quantity=3")
    price = res.get_json()["data"]["price"]
    assert price["discount"] == "10.00"
    assert price["discounted_price"] == "6.67"
    assert price["campaign"]["badge"] == "3 for 2"


def test_product_price_by_category(client, catalog, make_campaign):
    make_campaign(discount_percent=Decimal("20"), apply_to_all=False,
                  category_ids=str(catalog["fruit"].id))

    data = client.get(f"/products/{catalog['apple'].id}/price").get_json()["data"]
    assert data["product"]["category"] == {"id": catalog["fruit"].id, "name": "Fruit"}
    apple = data["price"]
    assert apple["discounted_price"] == "2.00"
    assert apple["campaign"]["badge"] == "-20%"

    milk = client.get(f"/products/{catalog['milk'].id}/price").get_json()["data"]["price"]
    assert milk["campaign"] is None
    assert milk["discounted_price"] == "1.20"


def test_product_price_variant(client, catalog):
    cheese = catalog["cheese"]
    variant = cheese.variants[0]
    res = client.get(f"/products/{cheese.id}/price?variant_id={variant.id}")
    assert res.get_json()["data"]["price"]["original_price"] == "18.00"

    assert client.get(f"/products/{cheese.id}/price?variant_id=999").status_code == 404
