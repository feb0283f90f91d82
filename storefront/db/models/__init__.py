"""Database models for the storefront."""
from storefront.db.models.product import Product, Gender, ProductType
from storefront.db.models.variant import Variant
from storefront.db.models.cart import Cart, CartItem
from storefront.db.models.order import (
    Order,
    OrderItem,
    OrderStatusHistory,
    OrderStatus,
    PaymentStatus,
    ShippingMethod,
    CANCELLABLE_STATUSES,
)

__all__ = [
    # Catalog
    "Product",
    "Gender",
    "ProductType",
    "Variant",
    # Cart
    "Cart",
    "CartItem",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "OrderStatus",
    "PaymentStatus",
    "ShippingMethod",
    "CANCELLABLE_STATUSES",
]
