# ------ storefront/model/__init__.py ------

from .category import Category
from .product import Product, ProductVariant
from .campaign import Campaign
from .coupon import Coupon, CouponUsage
from .settings import StoreSettings

__all__ = [
    "Category",
    "Product",
    "ProductVariant",
    "Campaign",
    "Coupon",
    "CouponUsage",
    "StoreSettings",
]
