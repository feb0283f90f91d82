"""
Catalog Service
===============

Product and variant management.

Every variant mutation is followed, in the same request, by a synchronous
recompute of the owning product's aggregate fields and a best-effort
product cache revalidation.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Product, Variant
from storefront.schemas.requests import (
    ProductCreateRequest,
    VariantCreateRequest,
    VariantUpdateRequest,
)
from storefront.schemas.responses import ProductResponse
from storefront.services.aggregation import (
    BatchRecomputeResult,
    ProductAggregates,
    recompute_all_product_aggregates,
    recompute_product_aggregates,
)
from storefront.services.cache import ProductCache
from storefront.services.catalog.sku import generate_sku
from storefront.utils.errors import ConflictError, NotFoundError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class CatalogService:
    """Catalog reads and writes for a single request."""

    def __init__(self, session: AsyncSession, cache: ProductCache | None = None) -> None:
        self._session = session
        self._cache = cache

    async def _flush_or_conflict(self, message: str, details: dict[str, Any]) -> None:
        """Flush pending changes in a savepoint, mapping unique violations to ConflictError."""
        try:
            async with self._session.begin_nested():
                await self._session.flush()
        except IntegrityError as e:
            logger.warning("catalog_unique_violation", error=str(e.orig), **details)
            raise ConflictError(message, details=details) from e

    async def _after_variant_change(self, product_id: UUID, trigger: str) -> None:
        await recompute_product_aggregates(self._session, product_id, trigger=trigger)
        if self._cache is not None:
            await self._cache.revalidate_products()

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def create_product(self, data: ProductCreateRequest) -> Product:
        """
        Create a product with empty aggregate fields.

        Raises:
            ConflictError: sku or slug already taken
        """
        product = Product(**data.model_dump())
        self._session.add(product)
        await self._flush_or_conflict(
            "Product with this SKU or slug already exists",
            {"sku": data.sku, "slug": data.slug},
        )

        logger.info("product_created", product_id=str(product.id), sku=product.sku)
        if self._cache is not None:
            await self._cache.revalidate_products()
        return product

    async def get_product(self, product_id: UUID) -> Product:
        """
        Raises:
            NotFoundError: unknown product
        """
        product = await self._session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": str(product_id)})
        return product

    async def get_product_detail(self, product_id: UUID) -> ProductResponse:
        """
        Product view served from the cache when possible.

        Raises:
            NotFoundError: unknown product
        """
        if self._cache is not None:
            cached = await self._cache.get_product(product_id)
            if cached is not None:
                return ProductResponse.model_validate(cached)

        detail = ProductResponse.model_validate(await self.get_product(product_id))
        if self._cache is not None:
            await self._cache.set_product(product_id, detail.model_dump(mode="json"))
        return detail

    async def list_products(
        self,
        category: str | None = None,
        search: str | None = None,
        active_only: bool = True,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> tuple[Sequence[Product], int]:
        """
        List products newest first.

        Returns:
            (products, total matching count)
        """
        conditions = []
        if category:
            conditions.append(Product.category == category)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(
                or_(func.lower(Product.name).like(pattern), func.lower(Product.sku).like(pattern))
            )
        if active_only:
            conditions.append(Product.is_active.is_(True))

        total = (
            await self._session.execute(select(func.count(Product.id)).where(*conditions))
        ).scalar_one()

        result = await self._session.execute(
            select(Product)
            .where(*conditions)
            .order_by(Product.created_at.desc(), Product.id)
            .limit(min(limit, MAX_PAGE_SIZE))
            .offset(offset)
        )
        return result.scalars().all(), total

    # -------------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------------

    async def _get_variant(self, product_id: UUID, variant_id: UUID) -> Variant:
        result = await self._session.execute(
            select(Variant).where(Variant.id == variant_id, Variant.product_id == product_id)
        )
        variant = result.scalar_one_or_none()
        if variant is None:
            raise NotFoundError(
                "Variant not found for this product",
                details={"product_id": str(product_id), "variant_id": str(variant_id)},
            )
        return variant

    async def _ensure_unique_option(
        self,
        product_id: UUID,
        size: str | None,
        color: str | None,
        exclude_variant_id: UUID | None = None,
    ) -> None:
        query = select(Variant.id).where(
            Variant.product_id == product_id,
            Variant.size.is_(None) if size is None else Variant.size == size,
            Variant.color.is_(None) if color is None else Variant.color == color,
        )
        if exclude_variant_id is not None:
            query = query.where(Variant.id != exclude_variant_id)

        if (await self._session.execute(query.limit(1))).first() is not None:
            raise ConflictError(
                "A variant with this size and color already exists",
                details={"product_id": str(product_id), "size": size, "color": color},
            )

    async def list_variants(self, product_id: UUID) -> Sequence[Variant]:
        """
        Raises:
            NotFoundError: unknown product
        """
        await self.get_product(product_id)
        result = await self._session.execute(
            select(Variant)
            .where(Variant.product_id == product_id)
            .order_by(Variant.created_at, Variant.id)
        )
        return result.scalars().all()

    async def create_variant(self, product_id: UUID, data: VariantCreateRequest) -> Variant:
        """
        Add a variant and recompute the product's aggregates.

        Raises:
            NotFoundError: unknown product
            ConflictError: (size, color) or SKU already used
        """
        product = await self.get_product(product_id)
        await self._ensure_unique_option(product_id, data.size, data.color)

        values = data.model_dump()
        values["sku"] = data.sku or generate_sku(product.product_type, data.color, data.size)

        variant = Variant(product_id=product_id, **values)
        self._session.add(variant)
        await self._flush_or_conflict(
            "Variant SKU or option already exists",
            {"product_id": str(product_id), "sku": values["sku"]},
        )

        logger.info("variant_created", product_id=str(product_id), variant_id=str(variant.id))
        await self._after_variant_change(product_id, trigger="variant_create")
        return variant

    async def update_variant(
        self,
        product_id: UUID,
        variant_id: UUID,
        data: VariantUpdateRequest,
    ) -> Variant:
        """
        Apply a partial update and recompute the product's aggregates.

        Raises:
            NotFoundError: variant is not one of the product's
            ConflictError: new (size, color) collides with another variant
        """
        variant = await self._get_variant(product_id, variant_id)
        changes = data.changes()

        if "size" in changes or "color" in changes:
            await self._ensure_unique_option(
                product_id,
                changes.get("size", variant.size),
                changes.get("color", variant.color),
                exclude_variant_id=variant_id,
            )

        for name, value in changes.items():
            setattr(variant, name, value)

        await self._flush_or_conflict(
            "Variant SKU or option already exists",
            {"product_id": str(product_id), "variant_id": str(variant_id)},
        )

        logger.info(
            "variant_updated",
            product_id=str(product_id),
            variant_id=str(variant_id),
            fields=sorted(changes),
        )
        await self._after_variant_change(product_id, trigger="variant_update")
        return variant

    async def delete_variant(self, product_id: UUID, variant_id: UUID) -> None:
        """
        Delete a variant and recompute the product's aggregates.

        Raises:
            NotFoundError: variant is not one of the product's
        """
        variant = await self._get_variant(product_id, variant_id)
        await self._session.delete(variant)
        await self._session.flush()

        logger.info("variant_deleted", product_id=str(product_id), variant_id=str(variant_id))
        await self._after_variant_change(product_id, trigger="variant_delete")

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def recompute_aggregates(self, product_id: UUID) -> ProductAggregates:
        """
        Recompute one product's aggregate fields on demand.

        Raises:
            NotFoundError: unknown product
        """
        aggregates = await recompute_product_aggregates(self._session, product_id, trigger="manual")
        if self._cache is not None:
            await self._cache.revalidate_products()
        return aggregates

    async def recompute_all_aggregates(self) -> BatchRecomputeResult:
        """Recompute every product, continuing past per-product failures."""
        outcome = await recompute_all_product_aggregates(self._session, trigger="batch")
        if self._cache is not None and outcome.updated:
            await self._cache.revalidate_products()
        return outcome
