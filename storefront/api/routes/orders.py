"""
Order Routes
============

Checkout and order lifecycle endpoints.

Endpoints:
- POST /orders/checkout - Place an order from the caller's cart
- GET /orders - Caller's orders (all orders for admins)
- GET /orders/{order_id} - Order detail
- POST /orders/{order_id}/cancel - Cancel and restock
- POST /orders/{order_id}/payment - Record a payment outcome (admin)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from storefront.api.dependencies import AdminUser, CurrentUser, get_order_service, is_admin
from storefront.schemas.requests import CheckoutRequest, PaymentResultRequest
from storefront.schemas.responses import ErrorResponse, OrderResponse
from storefront.services.orders import OrderService

router = APIRouter()

OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
IsAdmin = Annotated[bool, Depends(is_admin)]


@router.post(
    "/checkout",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Checkout",
    responses={
        400: {"model": ErrorResponse, "description": "Empty cart, unavailable variant or insufficient stock"},
        404: {"model": ErrorResponse, "description": "A cart product no longer exists"},
    },
)
async def checkout(
    request: CheckoutRequest,
    user_id: CurrentUser,
    orders: OrderServiceDep,
) -> OrderResponse:
    """
    Create an order from the cart.

    Prices, names and SKUs are snapshotted onto the order lines, stock is
    decremented and the cart is emptied.
    """
    order = await orders.checkout(
        user_id,
        shipping_address=request.shipping_address,
        shipping_method=request.shipping_method,
        notes=request.notes,
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse], summary="List orders")
async def list_orders(
    user_id: CurrentUser,
    admin: IsAdmin,
    orders: OrderServiceDep,
) -> list[OrderResponse]:
    result = await orders.list_orders(None if admin else user_id)
    return [OrderResponse.model_validate(o) for o in result]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
    responses={404: {"model": ErrorResponse, "description": "Order not found"}},
)
async def get_order(
    order_id: UUID,
    user_id: CurrentUser,
    admin: IsAdmin,
    orders: OrderServiceDep,
) -> OrderResponse:
    order = await orders.get_order(order_id, None if admin else user_id)
    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    summary="Cancel order",
    responses={
        400: {"model": ErrorResponse, "description": "Order can no longer be cancelled"},
        404: {"model": ErrorResponse, "description": "Order not found"},
    },
)
async def cancel_order(
    order_id: UUID,
    user_id: CurrentUser,
    admin: IsAdmin,
    orders: OrderServiceDep,
) -> OrderResponse:
    """Cancel a pending or processing order and return its stock."""
    order = await orders.cancel_order(
        order_id,
        user_id=None if admin else user_id,
        actor_id=user_id,
    )
    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/payment",
    response_model=OrderResponse,
    summary="Record payment outcome",
    responses={
        404: {"model": ErrorResponse, "description": "Order not found"},
        409: {"model": ErrorResponse, "description": "Order is not awaiting payment"},
    },
)
async def record_payment(
    order_id: UUID,
    request: PaymentResultRequest,
    admin_id: AdminUser,
    orders: OrderServiceDep,
) -> OrderResponse:
    order = await orders.apply_payment_result(
        order_id,
        succeeded=request.succeeded,
        reference=request.reference,
        actor_id=admin_id,
    )
    return OrderResponse.model_validate(order)
