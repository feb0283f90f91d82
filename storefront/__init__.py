"""
Storefront Service
==================

Catalog, cart and order backend for the storefront.

Features:
- Product catalog with size/color variants
- Product aggregate fields derived from active variants
- Per-user carts with frozen line-item pricing
- Checkout, payment outcome recording and cancellation with stock restore

"""

__version__ = "1.0.0"
