"""
Cart Routes
===========

Endpoints for the caller's shopping cart.

Endpoints:
- GET /cart - Current cart with totals
- POST /cart/items - Add a product or variant
- PUT /cart/items/{item_id} - Change a line's quantity (<= 0 removes it)
- DELETE /cart/items/{item_id} - Remove a line
- DELETE /cart/clear - Remove every line
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from storefront.api.dependencies import CurrentUser, get_cart_service
from storefront.schemas.requests import AddToCartRequest, UpdateCartItemRequest
from storefront.schemas.responses import CartResponse, ErrorResponse, SuccessResponse
from storefront.services.cart import CartService

router = APIRouter()

CartServiceDep = Annotated[CartService, Depends(get_cart_service)]


@router.get(
    "",
    response_model=CartResponse,
    summary="Get cart",
    responses={401: {"model": ErrorResponse, "description": "Missing user identity"}},
)
async def get_cart(user_id: CurrentUser, cart_service: CartServiceDep) -> CartResponse:
    """Return the caller's cart, creating an empty one on first access."""
    return await cart_service.get_cart(user_id)


@router.post(
    "/items",
    response_model=CartResponse,
    summary="Add item to cart",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid quantity or unavailable variant"},
        404: {"model": ErrorResponse, "description": "Product or variant not found"},
    },
)
async def add_to_cart(
    request: AddToCartRequest,
    user_id: CurrentUser,
    cart_service: CartServiceDep,
) -> CartResponse:
    """
    Add a product to the cart.

    Adding a product/variant that is already in the cart increases that
    line's quantity instead of creating a second line.
    """
    return await cart_service.add_to_cart(
        user_id,
        product_id=request.product_id,
        variant_id=request.variant_id,
        quantity=request.quantity,
    )


@router.put(
    "/items/{item_id}",
    response_model=CartResponse,
    summary="Update cart item quantity",
    responses={404: {"model": ErrorResponse, "description": "Item not in cart"}},
)
async def update_cart_item(
    item_id: UUID,
    request: UpdateCartItemRequest,
    user_id: CurrentUser,
    cart_service: CartServiceDep,
) -> CartResponse:
    return await cart_service.update_cart_item(user_id, item_id, request.quantity)


@router.delete(
    "/items/{item_id}",
    response_model=CartResponse,
    summary="Remove cart item",
    responses={404: {"model": ErrorResponse, "description": "Item not in cart"}},
)
async def remove_from_cart(
    item_id: UUID,
    user_id: CurrentUser,
    cart_service: CartServiceDep,
) -> CartResponse:
    return await cart_service.remove_from_cart(user_id, item_id)


@router.delete(
    "/clear",
    response_model=SuccessResponse,
    summary="Clear cart",
)
async def clear_cart(user_id: CurrentUser, cart_service: CartServiceDep) -> SuccessResponse:
    """Remove every line from the cart. Clearing an empty cart succeeds."""
    result = await cart_service.clear_cart(user_id)
    return SuccessResponse(**result)
