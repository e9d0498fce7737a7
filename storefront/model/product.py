# storefront/model/product.py
from ..extensions import db
from sqlalchemy.sql import func
from ..utils.money import D
from ..pricing.types import CartLine

class Product(db.Model):
    __tablename__ = "product"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    slug = db.Column(db.String(255), index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, default=0)            # stock
    unit = db.Column(db.String(32))                        # e.g. "kg", "pcs"
    status = db.Column(db.Boolean, default=True)

    category_id = db.Column(db.Integer, db.ForeignKey("category.id"), nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    variants = db.relationship(
        "ProductVariant",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductVariant.id.asc()",
    )

    def find_variant(self, variant_id):
        if variant_id is None:
            return None
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def to_line(self, quantity: int, variant=None) -> CartLine:
        """Cart line priced from the catalog (variant price wins when set)."""
        price = variant.price if variant is not None and variant.price is not None else self.price
        name = f"{self.name} ({variant.name})" if variant is not None and variant.name else self.name
        return CartLine(
            product_id=self.id,
            category_id=self.category_id,
            variant_id=variant.id if variant is not None else None,
            unit_price=D(price),
            quantity=int(quantity),
            name=name,
        )

    def available(self, variant=None) -> int:
        if variant is not None and variant.quantity is not None:
            return int(variant.quantity or 0)
        return int(self.quantity or 0)

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "price": str(self.price),
            "quantity": self.quantity,
            "unit": self.unit,
            "status": self.status,
            "category": self.category.as_api() if self.category else None,
            "variants": [v.as_api() for v in self.variants],
        }

class ProductVariant(db.Model):
    __tablename__ = "product_variant"
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    name = db.Column(db.String(120))
    price = db.Column(db.Numeric(12, 2), nullable=True)   # None -> product price
    quantity = db.Column(db.Integer, nullable=True)       # None -> product stock

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price) if self.price is not None else None,
            "quantity": self.quantity,
        }
