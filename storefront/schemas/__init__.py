"""
Schemas
=======

Pydantic request and response models for the HTTP API.
"""

from storefront.schemas.requests import (
    AddToCartRequest,
    CheckoutRequest,
    PaymentResultRequest,
    ProductCreateRequest,
    UpdateCartItemRequest,
    VariantCreateRequest,
    VariantUpdateRequest,
)
from storefront.schemas.responses import (
    BatchRecomputeResponse,
    CartItemResponse,
    CartResponse,
    ErrorResponse,
    OrderResponse,
    ProductAggregatesResponse,
    ProductListResponse,
    ProductResponse,
    SuccessResponse,
    VariantResponse,
)

__all__ = [
    "AddToCartRequest",
    "CheckoutRequest",
    "PaymentResultRequest",
    "ProductCreateRequest",
    "UpdateCartItemRequest",
    "VariantCreateRequest",
    "VariantUpdateRequest",
    "BatchRecomputeResponse",
    "CartItemResponse",
    "CartResponse",
    "ErrorResponse",
    "OrderResponse",
    "ProductAggregatesResponse",
    "ProductListResponse",
    "ProductResponse",
    "SuccessResponse",
    "VariantResponse",
]
