import pytest
from datetime import timedelta
from decimal import Decimal

from storefront import create_app
from storefront.extensions import db as _db
from storefront.model import Category, Product, ProductVariant, Campaign, Coupon
from storefront.utils.parse import utcnow


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SHIPPING_RULES": [
            {"min": 0, "max": 29.99, "fee": 4.99},
            {"min": 30, "max": None, "fee": 0},
        ],
        "FREE_SHIPPING_THRESHOLD": None,
        "MIN_ORDER_AMOUNT": None,
    })
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def catalog(db):
    """Two categories, three products (one with a variant)."""
    fruit = Category(name="Fruit")
    dairy = Category(name="Dairy")
    db.session.add_all([fruit, dairy])
    db.session.flush()

    apple = Product(name="Apple", price=Decimal("2.50"), quantity=100, category_id=fruit.id)
    milk = Product(name="Milk", price=Decimal("1.20"), quantity=50, category_id=dairy.id)
    cheese = Product(name="Cheese", price=Decimal("10.00"), quantity=10, category_id=dairy.id)
    db.session.add_all([apple, milk, cheese])
    db.session.flush()
    db.session.add(ProductVariant(product_id=cheese.id, name="500g", price=Decimal("18.00"), quantity=5))
    db.session.commit()
    return {"fruit": fruit, "dairy": dairy, "apple": apple, "milk": milk, "cheese": cheese}


@pytest.fixture
def make_campaign(db):
    counter = {"n": 0}

    def _make(**kw):
        counter["n"] += 1
        now = utcnow()
        fields = {
            "name": f"Campaign {counter['n']}",
            "slug": f"campaign-{counter['n']}",
            "type": "PERCENTAGE",
            "discount_percent": Decimal("10"),
            "apply_to_all": True,
            "priority": 0,
            "is_active": True,
            "starts_at": now - timedelta(days=1),
            "ends_at": now + timedelta(days=1),
        }
        fields.update(kw)
        c = Campaign(**fields)
        db.session.add(c)
        db.session.commit()
        return c

    return _make


@pytest.fixture
def make_coupon(db):
    def _make(**kw):
        fields = {
            "code": "SAVE5",
            "type": "FIXED_AMOUNT",
            "discount_amount": Decimal("5"),
            "active": True,
            "apply_to_all": True,
        }
        fields.update(kw)
        c = Coupon(**fields)
        db.session.add(c)
        db.session.commit()
        return c

    return _make
