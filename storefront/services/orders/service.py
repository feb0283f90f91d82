"""
Order Service
=============

Checkout, payment outcome recording and cancellation.

Stock handling:
- Checkout decrements stock with guarded UPDATEs (stock >= quantity), per
  line: the variant's stock when a variant was chosen, otherwise the
  product's total_stock. The product-level path is only taken for
  products without variants, whose total_stock is not derived.
- Cancellation restores exactly what checkout took, attributed the same way.
  A product-level line is not restocked once the product has variants.
- Any variant stock change is followed by an aggregate recompute of the
  owning product.
"""

import secrets
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.config.settings import Settings, get_settings
from storefront.db.base import utcnow
from storefront.db.models import (
    CANCELLABLE_STATUSES,
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    PaymentStatus,
    Product,
    ShippingMethod,
    Variant,
)
from storefront.services.aggregation import product_has_variants, recompute_product_aggregates
from storefront.services.cache import ProductCache
from storefront.services.cart import CartService
from storefront.utils.errors import ConflictError, NotFoundError, ValidationError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)


class OrderService:
    """Order lifecycle operations for a single request."""

    def __init__(
        self,
        session: AsyncSession,
        cache: ProductCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _generate_order_number(self) -> str:
        stamp = utcnow().strftime("%Y%m%d%H%M%S")
        return f"{self._settings.order_number_prefix}-{stamp}-{secrets.token_hex(3).upper()}"

    def _shipping_cost(self, method: ShippingMethod) -> Decimal:
        if method is ShippingMethod.EXPRESS:
            return self._settings.shipping_cost_express
        return self._settings.shipping_cost_standard

    async def _load_order(self, order_id: UUID, user_id: int | None = None) -> Order:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items), selectinload(Order.history))
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        order = (await self._session.execute(query)).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found", details={"order_id": str(order_id)})
        return order

    async def _adjust_variant_stock(self, variant_id: UUID, delta: int) -> bool:
        """Add delta to a variant's stock; a negative delta never drives it below zero."""
        stmt = update(Variant).where(Variant.id == variant_id)
        if delta < 0:
            stmt = stmt.where(Variant.stock >= -delta)
        result = await self._session.execute(
            stmt.values(stock=Variant.stock + delta).execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def _adjust_product_stock(self, product_id: UUID, delta: int) -> bool:
        """Add delta to a product's total_stock; a negative delta never drives it below zero."""
        stmt = update(Product).where(Product.id == product_id)
        if delta < 0:
            stmt = stmt.where(Product.total_stock >= -delta)
        result = await self._session.execute(
            stmt.values(total_stock=Product.total_stock + delta, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def _recompute(self, product_ids: set[UUID], trigger: str) -> None:
        for product_id in sorted(product_ids, key=str):
            await recompute_product_aggregates(self._session, product_id, trigger=trigger)
        if product_ids and self._cache is not None:
            await self._cache.revalidate_products()

    # -------------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------------

    async def checkout(
        self,
        user_id: int,
        shipping_address: str,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
        notes: str | None = None,
    ) -> Order:
        """
        Turn the user's cart into an order.

        Order lines snapshot the current price (variant override, else
        product price), name, variant label and SKU. All checks run before
        any write, and the stock guard rejects concurrent oversells, so a
        failed checkout leaves cart and stock untouched when the caller
        rolls back.

        Raises:
            ValidationError: empty cart, inactive variant, a variant-less line
                for a product that has variants, or insufficient stock
            NotFoundError: a product or variant in the cart no longer exists
        """
        log = logger.bind(user_id=user_id)

        cart = (
            await self._session.execute(select(Cart).where(Cart.user_id == user_id))
        ).scalar_one_or_none()
        lines: Sequence[CartItem] = []
        if cart is not None:
            lines = (
                await self._session.execute(
                    select(CartItem)
                    .where(CartItem.cart_id == cart.id)
                    .options(selectinload(CartItem.product), selectinload(CartItem.variant))
                    .order_by(CartItem.created_at, CartItem.id)
                    .execution_options(populate_existing=True)
                )
            ).scalars().all()

        if not lines:
            raise ValidationError("Cart is empty", details={"user_id": user_id})

        order_items: list[OrderItem] = []
        for line in lines:
            product = line.product
            if product is None:
                raise NotFoundError("Product not found", details={"product_id": str(line.product_id)})

            variant = line.variant
            if line.variant_id is not None:
                if variant is None:
                    raise NotFoundError(
                        "Variant not found",
                        details={"variant_id": str(line.variant_id)},
                    )
                if not variant.is_active:
                    raise ValidationError(
                        "Variant is not available",
                        details={"variant_id": str(variant.id)},
                    )
                available = variant.stock
            elif await product_has_variants(self._session, product.id):
                raise ValidationError(
                    f"A variant must be selected for {product.name}",
                    details={"product_id": str(product.id), "item_id": str(line.id)},
                )
            else:
                available = product.total_stock

            if available < line.quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}",
                    details={
                        "product_id": str(product.id),
                        "variant_id": str(line.variant_id) if line.variant_id else None,
                        "requested": line.quantity,
                        "available": available,
                    },
                )

            price = variant.price if variant is not None and variant.price is not None else product.price
            order_items.append(
                OrderItem(
                    product_id=product.id,
                    variant_id=line.variant_id,
                    product_name=product.name,
                    variant_name=variant.label if variant is not None else None,
                    sku=variant.sku if variant is not None else product.sku,
                    quantity=line.quantity,
                    price=price,
                    total=price * line.quantity,
                )
            )

        touched_products: set[UUID] = set()
        for item in order_items:
            if item.variant_id is not None:
                ok = await self._adjust_variant_stock(item.variant_id, -item.quantity)
                touched_products.add(item.product_id)
            else:
                ok = await self._adjust_product_stock(item.product_id, -item.quantity)
            if not ok:
                raise ValidationError(
                    f"Insufficient stock for {item.product_name}",
                    details={"product_id": str(item.product_id), "requested": item.quantity},
                )

        subtotal = sum((item.total for item in order_items), Decimal("0"))
        shipping_cost = self._shipping_cost(shipping_method)

        order = Order(
            order_number=self._generate_order_number(),
            user_id=user_id,
            status=OrderStatus.PENDING_PAYMENT,
            payment_status=PaymentStatus.PENDING,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=subtotal + shipping_cost,
            currency=self._settings.currency,
            shipping_method=shipping_method,
            shipping_address=shipping_address,
            notes=notes,
            items=order_items,
            history=[
                OrderStatusHistory(
                    status=OrderStatus.PENDING_PAYMENT,
                    comment="Order created",
                    user_id=user_id,
                )
            ],
        )
        self._session.add(order)
        await self._session.flush()

        await self._recompute(touched_products, trigger="checkout")
        await CartService(self._session).clear_cart(user_id)

        log.info(
            "order_created",
            order_id=str(order.id),
            order_number=order.order_number,
            items=len(order_items),
            total=str(order.total),
        )
        return await self._load_order(order.id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_order(self, order_id: UUID, user_id: int | None = None) -> Order:
        """
        Raises:
            NotFoundError: unknown order, or not owned by user_id when given
        """
        return await self._load_order(order_id, user_id)

    async def list_orders(self, user_id: int | None = None) -> Sequence[Order]:
        """Orders newest first, optionally restricted to one user."""
        query = (
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.history))
            .order_by(Order.created_at.desc(), Order.id)
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        return (await self._session.execute(query)).scalars().all()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def cancel_order(
        self,
        order_id: UUID,
        user_id: int | None = None,
        actor_id: int | None = None,
    ) -> Order:
        """
        Cancel an order and put its stock back.

        Args:
            order_id: Order to cancel
            user_id: Restrict to this owner (customers); None for admins
            actor_id: Who cancelled, for the history entry

        Raises:
            NotFoundError: unknown order
            ValidationError: order is not in a cancellable status
        """
        order = await self._load_order(order_id, user_id)

        if order.status not in CANCELLABLE_STATUSES:
            raise ValidationError(
                f"Order in status {order.status.value} cannot be cancelled",
                details={
                    "current_status": order.status.value,
                    "valid_statuses": [s.value for s in CANCELLABLE_STATUSES],
                },
            )

        touched_products: set[UUID] = set()
        for item in order.items:
            if item.variant_id is not None:
                if await self._adjust_variant_stock(item.variant_id, item.quantity):
                    touched_products.add(item.product_id)
                else:
                    logger.warning(
                        "cancel_restock_variant_missing",
                        order_id=str(order_id),
                        variant_id=str(item.variant_id),
                    )
            elif await product_has_variants(self._session, item.product_id):
                logger.warning(
                    "cancel_restock_product_has_variants",
                    order_id=str(order_id),
                    product_id=str(item.product_id),
                )
            elif not await self._adjust_product_stock(item.product_id, item.quantity):
                logger.warning(
                    "cancel_restock_product_missing",
                    order_id=str(order_id),
                    product_id=str(item.product_id),
                )

        order.status = OrderStatus.CANCELLED
        order.history.append(
            OrderStatusHistory(
                status=OrderStatus.CANCELLED,
                comment="Order cancelled",
                user_id=actor_id if actor_id is not None else user_id,
            )
        )
        await self._session.flush()

        await self._recompute(touched_products, trigger="order_cancel")

        logger.info("order_cancelled", order_id=str(order_id), restocked_products=len(touched_products))
        return await self._load_order(order_id)

    async def apply_payment_result(
        self,
        order_id: UUID,
        succeeded: bool,
        reference: str | None = None,
        actor_id: int | None = None,
    ) -> Order:
        """
        Record a payment outcome decided by the gateway integration.

        Raises:
            NotFoundError: unknown order
            ConflictError: order is no longer awaiting payment
        """
        order = await self._load_order(order_id)

        if order.status is not OrderStatus.PENDING_PAYMENT:
            raise ConflictError(
                "Order is not awaiting payment",
                details={"order_id": str(order_id), "current_status": order.status.value},
            )

        if succeeded:
            order.status = OrderStatus.PAYMENT_RECEIVED
            order.payment_status = PaymentStatus.COMPLETED
            order.payment_reference = reference
            order.paid_at = utcnow()
            comment = "Payment received"
        else:
            order.status = OrderStatus.FAILED
            order.payment_status = PaymentStatus.FAILED
            comment = "Payment failed"

        order.history.append(
            OrderStatusHistory(status=order.status, comment=comment, user_id=actor_id)
        )
        await self._session.flush()

        logger.info(
            "order_payment_recorded",
            order_id=str(order_id),
            succeeded=succeeded,
            status=order.status.value,
        )
        return await self._load_order(order_id)
