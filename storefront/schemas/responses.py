"""
Pydantic Response Models
========================

API response schemas for storefront endpoints.
Ensures consistent response structure across all endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.db.models import Gender, OrderStatus, PaymentStatus, ProductType, ShippingMethod


class CartItemResponse(BaseModel):
    """
    A cart line as shown to the customer.

    Attributes:
        id: Line item identifier
        product_id: Referenced product
        variant_id: Referenced variant (if any)
        quantity: Units
        price: Unit price frozen at add time
        product_name: Product name, or a placeholder if the product is gone
        variant_name: "color, size" label (if any)
        image: Product main image (if any)
    """

    id: UUID
    product_id: UUID
    variant_id: UUID | None = None
    quantity: int
    price: Decimal
    product_name: str
    variant_name: str | None = None
    image: str | None = None


class CartResponse(BaseModel):
    """
    Full cart view. Totals are computed from the lines on every read.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total_items": 0,
                "subtotal": "0",
            }
        }
    )

    items: list[CartItemResponse]
    total_items: Annotated[int, Field(ge=0, description="Sum of line quantities")]
    subtotal: Annotated[Decimal, Field(ge=0, description="Sum of price x quantity")]


class SuccessResponse(BaseModel):
    """Plain success marker."""

    success: bool = True


class VariantResponse(BaseModel):
    """Variant representation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    sku: str
    size: str | None
    color: str | None
    color_hex: str | None
    price: Decimal | None
    stock: int
    is_active: bool
    image: str | None
    created_at: datetime
    updated_at: datetime


class ProductResponse(BaseModel):
    """Product representation including aggregate fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sku: str
    slug: str
    name: str
    description: str | None
    category: str
    tags: list[str]
    gender: Gender | None
    product_type: ProductType
    price: Decimal
    total_stock: int
    main_image: str | None
    images: list[str]
    is_active: bool
    available_sizes: list[str]
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Paginated product list."""

    items: list[ProductResponse]
    total: int
    limit: int
    offset: int


class ProductAggregatesResponse(BaseModel):
    """Result of a single-product aggregate recompute."""

    product_id: UUID
    price: Decimal
    total_stock: int
    available_sizes: list[str]
    images: list[str]
    is_active: bool
    main_image: str | None


class RecomputeFailure(BaseModel):
    """A product whose recompute failed during a batch."""

    product_id: UUID
    error: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class BatchRecomputeResponse(BaseModel):
    """Result of recomputing every product."""

    updated: list[UUID]
    failed: list[RecomputeFailure]
    success_count: int
    error_count: int


class OrderItemResponse(BaseModel):
    """Order line snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    variant_id: UUID | None
    product_name: str
    variant_name: str | None
    sku: str
    quantity: int
    price: Decimal
    total: Decimal


class OrderHistoryResponse(BaseModel):
    """Order status history entry."""

    model_config = ConfigDict(from_attributes=True)

    status: OrderStatus
    comment: str | None
    user_id: int | None
    created_at: datetime


class OrderResponse(BaseModel):
    """Order representation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    currency: str
    shipping_method: ShippingMethod
    shipping_address: str
    notes: str | None
    payment_reference: str | None
    paid_at: datetime | None
    created_at: datetime
    items: list[OrderItemResponse]
    history: list[OrderHistoryResponse]


class ErrorResponse(BaseModel):
    """Error body returned for every handled application error."""

    success: bool = False
    error: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
