"""Product ORM model with catalog fields and variant-derived aggregate fields.

The aggregate fields (price, total_stock, main_image, images, is_active,
available_sizes) are owned by the aggregation service and recomputed from
the product's active variants.
"""
from sqlalchemy import String, Text, Numeric, Boolean, Integer, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from storefront.db.base import Base, UUIDMixin, TimestampMixin, JSONType
from enum import Enum as PyEnum
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.db.models.variant import Variant


class Gender(PyEnum):
    """Target audience of a product."""
    MEN = "MEN"
    WOMEN = "WOMEN"
    UNISEX = "UNISEX"
    KIDS = "KIDS"


class ProductType(PyEnum):
    """Product type, also used to build variant SKUs."""
    T_SHIRT = "T_SHIRT"
    HOODIE = "HOODIE"
    SWEATSHIRT = "SWEATSHIRT"
    POLO = "POLO"
    TANK_TOP = "TANK_TOP"
    LONGSLEEVE = "LONGSLEEVE"
    MUG = "MUG"
    SOCKS = "SOCKS"
    HAT = "HAT"
    TOTE_BAG = "TOTE_BAG"
    ACCESSORY = "ACCESSORY"


class Product(Base, UUIDMixin, TimestampMixin):
    """Product model representing a catalog entry.

    Attributes:
        sku: Unique product SKU
        slug: Unique URL slug
        name: Display name
        description: Long description (optional)
        category: Category slug
        tags: Free-form tag list
        gender: Target audience (optional)
        product_type: Product type used for variant SKU generation
        price: Minimum price among active variants (aggregate)
        total_stock: Sum of active variant stock (aggregate)
        main_image: First variant image (aggregate)
        images: De-duplicated variant images (aggregate)
        is_active: TRUE if the product has at least one active variant (aggregate)
        available_sizes: De-duplicated sizes of active variants (aggregate)

    Relationships:
        variants: All variants of the product
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
        CheckConstraint('total_stock >= 0', name='check_product_total_stock_non_negative'),
    )

    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # values_callable keeps enum VALUES in the database instead of enum NAMES
    gender: Mapped[Gender | None] = mapped_column(
        SQLEnum(
            Gender,
            name="gender",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=True,
    )
    product_type: Mapped[ProductType] = mapped_column(
        SQLEnum(
            ProductType,
            name="product_type",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=ProductType.ACCESSORY,
    )

    # Aggregate fields calculated from active variants
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Lowest override price among active variants, 0 if none"
    )
    total_stock: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Sum of active variant stock"
    )
    main_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    images: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        doc="TRUE if at least one variant is active"
    )
    available_sizes: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    variants: Mapped[List["Variant"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku='{self.sku}', active={self.is_active})>"
