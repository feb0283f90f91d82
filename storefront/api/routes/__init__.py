"""
API Routes
==========

Route modules for the storefront service.
"""

from storefront.api.routes.cart import router as cart_router
from storefront.api.routes.orders import router as orders_router
from storefront.api.routes.products import router as products_router

__all__ = ["cart_router", "orders_router", "products_router"]
