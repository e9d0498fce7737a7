# storefront/model/category.py
from ..extensions import db

class Category(db.Model):
    """Shelf category; campaigns and coupons can be scoped to its id."""
    __tablename__ = "category"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    products = db.relationship("Product", backref="category", lazy=True)

    def as_api(self):
        return {"id": self.id, "name": self.name}
