"""Variant ORM model: a purchasable size/color option of a product."""
from sqlalchemy import String, ForeignKey, Numeric, Boolean, Integer, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.db.base import Base, UUIDMixin, TimestampMixin
from decimal import Decimal
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from storefront.db.models.product import Product


class Variant(Base, UUIDMixin, TimestampMixin):
    """Variant model.

    Attributes:
        product_id: Owning product
        sku: Unique variant SKU
        size: Size label (optional)
        color: Color name (optional)
        color_hex: Color swatch (optional)
        price: Price override; NULL means "use the product price"
        stock: Units on hand
        is_active: Whether the variant is sellable
        image: Variant image URL (optional)

    Any change to is_active, stock, price or image must be followed by a
    recompute of the owning product's aggregates.
    """

    __tablename__ = "variants"
    __table_args__ = (
        UniqueConstraint('product_id', 'size', 'color', name='unique_product_size_color'),
        CheckConstraint('stock >= 0', name='check_variant_stock_non_negative'),
        CheckConstraint('price IS NULL OR price >= 0', name='check_variant_price_non_negative'),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(100), nullable=True)
    color_hex: Mapped[str | None] = mapped_column(String(20), nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    product: Mapped["Product"] = relationship(back_populates="variants")

    @property
    def label(self) -> str | None:
        """Display label built from the non-empty color and size parts."""
        parts = [part for part in (self.color, self.size) if part]
        return ", ".join(parts) if parts else None

    def __repr__(self) -> str:
        return f"<Variant(id={self.id}, sku='{self.sku}', size={self.size!r}, color={self.color!r})>"
