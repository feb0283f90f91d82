"""Order, OrderItem and OrderStatusHistory ORM models."""
from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, DateTime, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.db.base import Base, UUIDMixin, TimestampMixin, utcnow
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import List
import uuid


class OrderStatus(PyEnum):
    """Order lifecycle status.

    State Transitions:
        - pending_payment → payment_received (payment succeeded)
        - pending_payment → failed (payment failed)
        - pending_payment → cancelled (customer/admin cancel, stock restored)
        - processing → cancelled (customer/admin cancel, stock restored)
    """
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class PaymentStatus(PyEnum):
    """Payment state of an order."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class ShippingMethod(PyEnum):
    """Supported shipping methods."""
    STANDARD = "STANDARD"
    EXPRESS = "EXPRESS"


CANCELLABLE_STATUSES = (OrderStatus.PENDING_PAYMENT, OrderStatus.PROCESSING)


class Order(Base, UUIDMixin, TimestampMixin):
    """Order placed from a cart at checkout.

    Attributes:
        order_number: Human-facing unique order number
        user_id: Customer id
        status: Lifecycle status
        payment_status: Payment state
        subtotal: Sum of item totals
        shipping_cost: Shipping cost for the chosen method
        total: subtotal + shipping_cost
        currency: Currency label
        shipping_method: Chosen shipping method
        shipping_address: Free-form delivery address
        notes: Customer notes (optional)
        payment_reference: Gateway reference id once paid
        paid_at: Payment timestamp
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint('subtotal >= 0', name='check_order_subtotal_non_negative'),
        CheckConstraint('total >= 0', name='check_order_total_non_negative'),
    )

    order_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=OrderStatus.PENDING_PAYMENT,
        index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(
            PaymentStatus,
            name="payment_status",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    shipping_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(20), nullable=False, default="Rials")
    shipping_method: Mapped[ShippingMethod] = mapped_column(
        SQLEnum(
            ShippingMethod,
            name="shipping_method",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=ShippingMethod.STANDARD,
    )
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )
    history: Mapped[List["OrderStatusHistory"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.created_at",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status.value}')>"


class OrderItem(Base, UUIDMixin, TimestampMixin):
    """Order line with product/variant data snapshotted at checkout.

    product_id and variant_id are plain references rather than foreign keys
    so that orders outlive catalog deletions.
    """

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='check_order_item_quantity_positive'),
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    variant_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    product_name: Mapped[str] = mapped_column(String(500), nullable=False)
    variant_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")


class OrderStatusHistory(Base, UUIDMixin):
    """Append-only record of order status changes."""

    __tablename__ = "order_status_history"

    order_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    order: Mapped["Order"] = relationship(back_populates="history")
