"""Product aggregation service for variant-derived product fields.

A product's price, total stock, available sizes, images, main image and
active flag are derived from its active variants. Every code path that
mutates a variant calls recompute_product_aggregates synchronously
afterwards; there is no deferred queue and no database trigger.

Key Functions:
    - compute_product_aggregates: Pure calculation from a list of variants
    - recompute_product_aggregates: Recalculate and persist for one product
    - recompute_all_product_aggregates: Recalculate every product, collecting failures
    - product_has_variants: Whether a product's stock is variant-derived
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.base import utcnow
from storefront.db.models import Product, Variant
from storefront.utils.errors import NotFoundError, StorefrontError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProductAggregates:
    """Derived product fields computed from the active variant set."""

    price: Decimal
    total_stock: int
    available_sizes: List[str]
    images: List[str]
    is_active: bool
    main_image: Optional[str]

    def as_update_values(self) -> Dict[str, Any]:
        """Column values for a single UPDATE.

        main_image is always present, so None clears the column instead of
        leaving it untouched.
        """
        return {
            "price": self.price,
            "total_stock": self.total_stock,
            "available_sizes": list(self.available_sizes),
            "images": list(self.images),
            "is_active": self.is_active,
            "main_image": self.main_image,
        }


@dataclass
class BatchRecomputeResult:
    """Outcome of a batch recompute: successes and per-product failures."""

    updated: List[UUID] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.updated)

    @property
    def error_count(self) -> int:
        return len(self.failed)


EMPTY_AGGREGATES = ProductAggregates(
    price=Decimal("0"),
    total_stock=0,
    available_sizes=[],
    images=[],
    is_active=False,
    main_image=None,
)


def _unique_non_empty(values: Iterable[Optional[str]]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    return list(seen)


def compute_product_aggregates(variants: Iterable[Variant]) -> ProductAggregates:
    """Calculate aggregate fields from variants.

    Inactive variants are ignored. Only variants that carry a price
    override take part in the minimum; when none do, the price is 0.

    Args:
        variants: Variants of a single product (any activity state)

    Returns:
        ProductAggregates for the active subset
    """
    active = [v for v in variants if v.is_active]
    if not active:
        return EMPTY_AGGREGATES

    prices = [v.price for v in active if v.price is not None]
    images = _unique_non_empty(v.image for v in active)

    return ProductAggregates(
        price=min(prices) if prices else Decimal("0"),
        total_stock=sum(v.stock or 0 for v in active),
        available_sizes=_unique_non_empty(v.size for v in active),
        images=images,
        is_active=True,
        main_image=images[0] if images else None,
    )


async def product_has_variants(session: AsyncSession, product_id: UUID) -> bool:
    """Whether any variant (active or not) exists for the product.

    Stock of such a product is derived, so cart and order flows must go
    through a variant instead of the product's total_stock.
    """
    result = await session.execute(
        select(exists().where(Variant.product_id == product_id))
    )
    return bool(result.scalar())


async def recompute_product_aggregates(
    session: AsyncSession,
    product_id: UUID,
    trigger: str = "manual",
) -> ProductAggregates:
    """Recalculate and persist aggregate fields for a single product.

    All derived fields and updated_at are written by one UPDATE statement,
    so readers never observe a half-recomputed product. Safe to call
    repeatedly: the result depends only on the current variant rows.

    Args:
        session: AsyncSession for database operations
        product_id: UUID of the product to update
        trigger: What triggered the recalculation (variant_update, checkout, ...)

    Returns:
        The aggregates that were written

    Raises:
        NotFoundError: If the product does not exist
    """
    log = logger.bind(product_id=str(product_id), trigger=trigger)
    log.debug("recomputing_product_aggregates")

    result = await session.execute(
        select(Variant).where(
            Variant.product_id == product_id,
            Variant.is_active.is_(True),
        )
    )
    variants = result.scalars().all()
    aggregates = compute_product_aggregates(variants)

    update_stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(**aggregates.as_update_values(), updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    update_result = await session.execute(update_stmt)

    if update_result.rowcount == 0:
        log.warning("product_not_found_for_aggregate_update")
        raise NotFoundError(
            "Product not found",
            details={"product_id": str(product_id)},
        )

    log.info(
        "product_aggregates_updated",
        price=str(aggregates.price),
        total_stock=aggregates.total_stock,
        is_active=aggregates.is_active,
        active_variants=len(variants),
    )
    return aggregates


async def recompute_all_product_aggregates(
    session: AsyncSession,
    trigger: str = "batch",
) -> BatchRecomputeResult:
    """Recalculate aggregates for every product.

    Each product runs inside its own savepoint, so a failure rolls back
    only that product. Failures are recorded and the loop continues.

    Args:
        session: AsyncSession for database operations
        trigger: What triggered the recalculation

    Returns:
        BatchRecomputeResult with updated ids and failure records
    """
    product_ids = (await session.execute(select(Product.id))).scalars().all()

    log = logger.bind(product_count=len(product_ids), trigger=trigger)
    log.info("recomputing_all_product_aggregates")

    outcome = BatchRecomputeResult()
    for product_id in product_ids:
        try:
            async with session.begin_nested():
                await recompute_product_aggregates(session, product_id, trigger=trigger)
            outcome.updated.append(product_id)
        except Exception as e:
            log.error(
                "product_aggregate_recompute_failed",
                product_id=str(product_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            failure = e.to_dict() if isinstance(e, StorefrontError) else {
                "error": "internal",
                "message": str(e),
                "details": {},
            }
            outcome.failed.append({"product_id": product_id, **failure})

    log.info(
        "product_aggregates_batch_completed",
        success_count=outcome.success_count,
        error_count=outcome.error_count,
    )
    return outcome
