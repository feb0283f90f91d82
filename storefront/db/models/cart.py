"""Cart and CartItem ORM models."""
from sqlalchemy import ForeignKey, Integer, Numeric, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.db.base import Base, UUIDMixin, TimestampMixin
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from storefront.db.models.product import Product
    from storefront.db.models.variant import Variant


class Cart(Base, UUIDMixin, TimestampMixin):
    """One cart per user, created lazily on first access.

    The unique constraint on user_id is what resolves concurrent
    first-access races.
    """

    __tablename__ = "carts"

    user_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)

    items: Mapped[List["CartItem"]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Cart(id={self.id}, user_id={self.user_id})>"


class CartItem(Base, UUIDMixin, TimestampMixin):
    """Cart line item.

    Attributes:
        cart_id: Owning cart
        product_id: Referenced product
        variant_id: Referenced variant (optional)
        quantity: Units, always >= 1 while the row exists
        price: Unit price frozen when the line was first added
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', 'variant_id', name='unique_cart_product_variant'),
        CheckConstraint('quantity >= 1', name='check_cart_item_quantity_positive'),
        CheckConstraint('price >= 0', name='check_cart_item_price_non_negative'),
    )

    cart_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("carts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    variant_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("variants.id", ondelete="CASCADE"),
        nullable=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    cart: Mapped["Cart"] = relationship(back_populates="items")
    product: Mapped[Optional["Product"]] = relationship()
    variant: Mapped[Optional["Variant"]] = relationship()

    def __repr__(self) -> str:
        return f"<CartItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
