"""
Product Routes
==============

Catalog reads, admin product/variant management and aggregate recompute.

Endpoints:
- GET /products - Paginated product list
- GET /products/{product_id} - Product detail (cached)
- POST /products - Create product (admin)
- GET /products/{product_id}/variants - List variants
- POST /products/{product_id}/variants - Create variant (admin)
- PATCH /products/{product_id}/variants/{variant_id} - Update variant (admin)
- DELETE /products/{product_id}/variants/{variant_id} - Delete variant (admin)
- POST /products/{product_id}/aggregates - Recompute one product (admin)
- POST /products/aggregates/recompute - Recompute every product (admin)

Every variant write recomputes the owning product's aggregate fields
before responding.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from storefront.api.dependencies import AdminUser, get_catalog_service, is_admin
from storefront.schemas.requests import (
    ProductCreateRequest,
    VariantCreateRequest,
    VariantUpdateRequest,
)
from storefront.schemas.responses import (
    BatchRecomputeResponse,
    ErrorResponse,
    ProductAggregatesResponse,
    ProductListResponse,
    ProductResponse,
    RecomputeFailure,
    VariantResponse,
)
from storefront.services.catalog import CatalogService
from storefront.services.catalog.service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------


@router.get("", response_model=ProductListResponse, summary="List products")
async def list_products(
    catalog: CatalogServiceDep,
    admin: Annotated[bool, Depends(is_admin)],
    category: Annotated[str | None, Query(max_length=100)] = None,
    q: Annotated[str | None, Query(max_length=200, description="Name or SKU search")] = None,
    include_inactive: Annotated[bool, Query(description="Admins only")] = False,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ProductListResponse:
    """
    List products newest first.

    Customers only ever see active products; admins may pass
    include_inactive=true.
    """
    products, total = await catalog.list_products(
        category=category,
        search=q,
        active_only=not (admin and include_inactive),
        limit=limit,
        offset=offset,
    )
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    responses={409: {"model": ErrorResponse, "description": "SKU or slug already exists"}},
)
async def create_product(
    request: ProductCreateRequest,
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> ProductResponse:
    logger.info("Product creation requested", admin_id=admin_id, sku=request.sku)
    product = await catalog.create_product(request)
    return ProductResponse.model_validate(product)


@router.post(
    "/aggregates/recompute",
    response_model=BatchRecomputeResponse,
    summary="Recompute aggregates for every product",
)
async def recompute_all_aggregates(
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> BatchRecomputeResponse:
    """
    Recompute every product's aggregate fields.

    A failure on one product is reported in ``failed`` and does not stop
    the others.
    """
    logger.info("Batch aggregate recompute requested", admin_id=admin_id)
    outcome = await catalog.recompute_all_aggregates()
    return BatchRecomputeResponse(
        updated=outcome.updated,
        failed=[RecomputeFailure(**failure) for failure in outcome.failed],
        success_count=outcome.success_count,
        error_count=outcome.error_count,
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def get_product(product_id: UUID, catalog: CatalogServiceDep) -> ProductResponse:
    return await catalog.get_product_detail(product_id)


@router.post(
    "/{product_id}/aggregates",
    response_model=ProductAggregatesResponse,
    summary="Recompute product aggregates",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def recompute_aggregates(
    product_id: UUID,
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> ProductAggregatesResponse:
    aggregates = await catalog.recompute_aggregates(product_id)
    return ProductAggregatesResponse(product_id=product_id, **aggregates.as_update_values())


# -----------------------------------------------------------------------------
# Variants
# -----------------------------------------------------------------------------


@router.get(
    "/{product_id}/variants",
    response_model=list[VariantResponse],
    summary="List variants",
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
)
async def list_variants(product_id: UUID, catalog: CatalogServiceDep) -> list[VariantResponse]:
    variants = await catalog.list_variants(product_id)
    return [VariantResponse.model_validate(v) for v in variants]


@router.post(
    "/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create variant",
    responses={
        404: {"model": ErrorResponse, "description": "Product not found"},
        409: {"model": ErrorResponse, "description": "Duplicate size/color or SKU"},
    },
)
async def create_variant(
    product_id: UUID,
    request: VariantCreateRequest,
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> VariantResponse:
    variant = await catalog.create_variant(product_id, request)
    return VariantResponse.model_validate(variant)


@router.patch(
    "/{product_id}/variants/{variant_id}",
    response_model=VariantResponse,
    summary="Update variant",
    responses={
        404: {"model": ErrorResponse, "description": "Variant not found for this product"},
        409: {"model": ErrorResponse, "description": "Duplicate size/color or SKU"},
    },
)
async def update_variant(
    product_id: UUID,
    variant_id: UUID,
    request: VariantUpdateRequest,
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> VariantResponse:
    variant = await catalog.update_variant(product_id, variant_id, request)
    return VariantResponse.model_validate(variant)


@router.delete(
    "/{product_id}/variants/{variant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete variant",
    responses={404: {"model": ErrorResponse, "description": "Variant not found for this product"}},
)
async def delete_variant(
    product_id: UUID,
    variant_id: UUID,
    admin_id: AdminUser,
    catalog: CatalogServiceDep,
) -> None:
    await catalog.delete_variant(product_id, variant_id)
