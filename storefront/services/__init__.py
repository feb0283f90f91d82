"""
Services
========

Business logic for the storefront.

Components:
    - aggregation: Product aggregate fields derived from active variants
    - cart: Per-user carts with frozen line pricing
    - catalog: Products and variants
    - orders: Checkout, payment outcomes and cancellation
    - cache: Best-effort Redis product cache
"""
