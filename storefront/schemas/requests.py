"""
Pydantic Request Models
=======================

API request schemas for storefront endpoints.
All incoming data validated via these models.
"""

from decimal import Decimal
from typing import Annotated, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.db.models import Gender, ProductType, ShippingMethod


class AddToCartRequest(BaseModel):
    """
    Request body for POST /cart/items.

    Attributes:
        product_id: Product to add
        variant_id: Specific variant (optional)
        quantity: Units to add, at least 1
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "product_id": "123e4567-e89b-12d3-a456-426614174000",
                "variant_id": "9b2f4c1e-7d3a-4e8b-a0c5-1f2e3d4c5b6a",
                "quantity": 2,
            }
        }
    )

    product_id: Annotated[UUID, Field(description="Product identifier")]
    variant_id: Annotated[
        UUID | None,
        Field(default=None, description="Variant identifier (optional)"),
    ] = None
    quantity: Annotated[int, Field(default=1, ge=1, description="Units to add")] = 1


class UpdateCartItemRequest(BaseModel):
    """
    Request body for PUT /cart/items/{item_id}.

    A quantity of zero or less removes the line.
    """

    quantity: Annotated[int, Field(description="New quantity; <= 0 removes the item")]


class ProductCreateRequest(BaseModel):
    """
    Request body for POST /products.

    Aggregate fields (price, stock, images, sizes, active flag) are not
    accepted here; they are derived from variants.
    """

    sku: Annotated[str, Field(min_length=1, max_length=100)]
    slug: Annotated[str, Field(min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")]
    name: Annotated[str, Field(min_length=1, max_length=500)]
    description: str | None = None
    category: Annotated[str, Field(min_length=1, max_length=100)]
    tags: list[str] = Field(default_factory=list)
    gender: Gender | None = None
    product_type: ProductType = ProductType.ACCESSORY


class VariantCreateRequest(BaseModel):
    """Request body for POST /products/{id}/variants."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "size": "M",
                "color": "Navy Blue",
                "price": "450000.00",
                "stock": 12,
                "is_active": True,
                "image": "https://cdn.example.com/p/navy-m.jpg",
            }
        }
    )

    size: Annotated[str, Field(min_length=1, max_length=50, description="Size label")]
    color: Annotated[str | None, Field(default=None, max_length=100)] = None
    color_hex: Annotated[str | None, Field(default=None, max_length=20)] = None
    price: Annotated[Decimal | None, Field(default=None, ge=0, description="Price override")] = None
    stock: Annotated[int, Field(default=0, ge=0, description="Units on hand")] = 0
    is_active: bool = True
    image: Annotated[str | None, Field(default=None, max_length=1000)] = None
    sku: Annotated[str | None, Field(default=None, max_length=100)] = None


class VariantUpdateRequest(BaseModel):
    """
    Request body for PATCH /products/{id}/variants/{variant_id}.

    Only fields present in the body are changed. Explicit nulls clear
    nullable fields.
    """

    size: Annotated[str | None, Field(default=None, min_length=1, max_length=50)] = None
    color: Annotated[str | None, Field(default=None, max_length=100)] = None
    color_hex: Annotated[str | None, Field(default=None, max_length=20)] = None
    price: Annotated[Decimal | None, Field(default=None, ge=0)] = None
    stock: Annotated[int | None, Field(default=None, ge=0)] = None
    is_active: bool | None = None
    image: Annotated[str | None, Field(default=None, max_length=1000)] = None
    sku: Annotated[str | None, Field(default=None, max_length=100)] = None

    @model_validator(mode="after")
    def validate_non_nullable_fields(self) -> Self:
        """Reject explicit nulls for columns that cannot be NULL."""
        for name in ("stock", "is_active", "sku"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)


class CheckoutRequest(BaseModel):
    """Request body for POST /orders/checkout."""

    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    shipping_address: Annotated[str, Field(min_length=5, max_length=2000)]
    notes: Annotated[str | None, Field(default=None, max_length=2000)] = None


class PaymentResultRequest(BaseModel):
    """
    Request body for POST /orders/{id}/payment.

    Records a payment outcome already decided by the gateway integration.
    """

    succeeded: bool
    reference: Annotated[str | None, Field(default=None, max_length=100)] = None

    @model_validator(mode="after")
    def validate_reference(self) -> Self:
        """A successful payment must carry the gateway reference."""
        if self.succeeded and not self.reference:
            raise ValueError("reference is required for a successful payment")
        return self
