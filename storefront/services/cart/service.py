"""
Cart Service
============

Per-user cart with frozen line-item pricing.

Provides:
- Lazy cart creation on first read or write
- Add / update / remove / clear of line items
- Cart view with subtotal and item count computed on every read

Line-item prices are captured when an item is first added and are never
re-synced with later catalog price changes. Totals are never stored; the
CartResponse built by get_cart is the only place they exist.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.db.models import Cart, CartItem, Product, Variant
from storefront.schemas.responses import CartItemResponse, CartResponse
from storefront.services.aggregation import product_has_variants
from storefront.utils.errors import ConflictError, NotFoundError, ValidationError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_PRODUCT_NAME = "Unknown Product"


class CartService:
    """
    Cart operations for a single request.

    Mutations are flushed to the session but not committed; the caller
    owns the transaction boundary.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize service with async session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    # -------------------------------------------------------------------------
    # Cart lookup
    # -------------------------------------------------------------------------

    async def _find_cart(self, user_id: int) -> Cart | None:
        result = await self._session.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalar_one_or_none()

    async def _get_or_create_cart(self, user_id: int) -> Cart:
        """
        Return the user's cart, creating it when absent.

        The insert runs in a savepoint. If a concurrent request created the
        cart first, the unique constraint on user_id rejects our row and
        the existing cart is read instead.
        """
        cart = await self._find_cart(user_id)
        if cart is not None:
            return cart

        try:
            async with self._session.begin_nested():
                cart = Cart(user_id=user_id)
                self._session.add(cart)
            logger.info("cart_created", user_id=user_id, cart_id=str(cart.id))
            return cart
        except IntegrityError:
            logger.info("cart_create_race_lost", user_id=user_id)

        cart = await self._find_cart(user_id)
        if cart is None:
            raise ConflictError(
                "Cart could not be created",
                details={"user_id": user_id},
            )
        return cart

    async def _find_item(self, cart: Cart, item_id: UUID) -> CartItem:
        result = await self._session.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart.id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("Item not found in cart", details={"item_id": str(item_id)})
        return item

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    async def get_cart(self, user_id: int) -> CartResponse:
        """
        Build the current cart view.

        Args:
            user_id: Owner of the cart

        Returns:
            CartResponse with lines, total_items and subtotal
        """
        cart = await self._get_or_create_cart(user_id)

        result = await self._session.execute(
            select(CartItem)
            .where(CartItem.cart_id == cart.id)
            .options(selectinload(CartItem.product), selectinload(CartItem.variant))
            .order_by(CartItem.created_at, CartItem.id)
            .execution_options(populate_existing=True)
        )
        rows = result.scalars().all()

        items = [
            CartItemResponse(
                id=row.id,
                product_id=row.product_id,
                variant_id=row.variant_id,
                quantity=row.quantity,
                price=row.price,
                product_name=row.product.name if row.product else UNKNOWN_PRODUCT_NAME,
                variant_name=row.variant.label if row.variant else None,
                image=row.product.main_image if row.product else None,
            )
            for row in rows
        ]

        return CartResponse(
            items=items,
            total_items=sum(item.quantity for item in items),
            subtotal=sum((item.price * item.quantity for item in items), Decimal("0")),
        )

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    async def add_to_cart(
        self,
        user_id: int,
        product_id: UUID,
        variant_id: UUID | None = None,
        quantity: int = 1,
    ) -> CartResponse:
        """
        Add a product (optionally a specific variant) to the cart.

        Adding an existing (product, variant) line increases its quantity
        through update_cart_item. A new line is priced at the variant
        override when there is one, else at the product's current price.

        Raises:
            ValidationError: quantity < 1, the variant is inactive, or no
                variant was given for a product that has variants
            NotFoundError: unknown product, or variant not of this product
        """
        log = logger.bind(user_id=user_id, product_id=str(product_id))

        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})

        product = await self._session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": str(product_id)})

        variant = None
        if variant_id is not None:
            result = await self._session.execute(
                select(Variant).where(Variant.id == variant_id, Variant.product_id == product_id)
            )
            variant = result.scalar_one_or_none()
            if variant is None:
                raise NotFoundError(
                    "Variant not found for this product",
                    details={"product_id": str(product_id), "variant_id": str(variant_id)},
                )
            if not variant.is_active:
                raise ValidationError(
                    "Variant is not available",
                    details={"variant_id": str(variant_id)},
                )
        elif await product_has_variants(self._session, product_id):
            raise ValidationError(
                "A variant must be selected for this product",
                details={"product_id": str(product_id)},
            )

        cart = await self._get_or_create_cart(user_id)

        variant_clause = (
            CartItem.variant_id.is_(None) if variant_id is None else CartItem.variant_id == variant_id
        )
        result = await self._session.execute(
            select(CartItem).where(
                CartItem.cart_id == cart.id,
                CartItem.product_id == product_id,
                variant_clause,
            )
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            log.debug("cart_item_exists_incrementing", item_id=str(existing.id))
            return await self.update_cart_item(user_id, existing.id, existing.quantity + quantity)

        price = variant.price if variant is not None and variant.price is not None else product.price

        item = CartItem(
            cart_id=cart.id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            price=price,
        )
        self._session.add(item)
        await self._session.flush()

        log.info("cart_item_added", item_id=str(item.id), quantity=quantity, price=str(price))
        return await self.get_cart(user_id)

    async def update_cart_item(self, user_id: int, item_id: UUID, quantity: int) -> CartResponse:
        """
        Replace a line's quantity. A quantity <= 0 removes the line.

        Raises:
            NotFoundError: the item is not in this user's cart
        """
        cart = await self._get_or_create_cart(user_id)
        item = await self._find_item(cart, item_id)

        if quantity <= 0:
            return await self.remove_from_cart(user_id, item_id)

        item.quantity = quantity
        await self._session.flush()

        logger.info("cart_item_updated", user_id=user_id, item_id=str(item_id), quantity=quantity)
        return await self.get_cart(user_id)

    async def remove_from_cart(self, user_id: int, item_id: UUID) -> CartResponse:
        """
        Delete a line from the cart.

        Raises:
            NotFoundError: the item is not in this user's cart
        """
        cart = await self._get_or_create_cart(user_id)
        item = await self._find_item(cart, item_id)

        await self._session.delete(item)
        await self._session.flush()

        logger.info("cart_item_removed", user_id=user_id, item_id=str(item_id))
        return await self.get_cart(user_id)

    async def clear_cart(self, user_id: int) -> dict[str, bool]:
        """Delete every line of the user's cart. Idempotent."""
        cart = await self._get_or_create_cart(user_id)

        result = await self._session.execute(
            delete(CartItem)
            .where(CartItem.cart_id == cart.id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.flush()

        logger.info("cart_cleared", user_id=user_id, items_removed=result.rowcount)
        return {"success": True}
