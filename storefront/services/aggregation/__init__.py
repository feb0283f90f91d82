"""Product aggregation service.

This module provides services for calculating and maintaining
aggregate fields on products from their active variants:
    - price: Lowest variant override price (0 if none)
    - total_stock: Sum of active variant stock
    - available_sizes / images / main_image: Derived media and size sets
    - is_active: TRUE if any variant is active

Key Components:
    - compute_product_aggregates: Pure calculation
    - recompute_product_aggregates: Core single-product recompute
    - recompute_all_product_aggregates: Collect-and-continue batch recompute
"""
from storefront.services.aggregation.service import (
    BatchRecomputeResult,
    ProductAggregates,
    compute_product_aggregates,
    product_has_variants,
    recompute_product_aggregates,
    recompute_all_product_aggregates,
)

__all__ = [
    "BatchRecomputeResult",
    "ProductAggregates",
    "compute_product_aggregates",
    "product_has_variants",
    "recompute_product_aggregates",
    "recompute_all_product_aggregates",
]
