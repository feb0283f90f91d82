"""Cart service: per-user carts with frozen line-item pricing."""
from storefront.services.cart.service import CartService, UNKNOWN_PRODUCT_NAME

__all__ = ["CartService", "UNKNOWN_PRODUCT_NAME"]
