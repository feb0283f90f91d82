"""
API Dependencies
================

Request-scoped session, caller identity and service factories.

Identity is taken from trusted headers set by the upstream gateway:
``X-User-Id`` (numeric customer id) and ``X-User-Role`` (``admin`` for
catalog and payment management).
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.connection import DatabaseManager
from storefront.services.cache import ProductCache, get_product_cache
from storefront.services.cart import CartService
from storefront.services.catalog import CatalogService
from storefront.services.orders import OrderService

ADMIN_ROLE = "admin"


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session committed after the endpoint returns, rolled back if it raises."""
    async with DatabaseManager.get_session() as session:
        yield session


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """
    Resolve the calling customer.

    Raises:
        HTTPException: 401 if the header is missing or not a positive integer
    """
    if x_user_id is None or not x_user_id.isdigit() or int(x_user_id) <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return int(x_user_id)


def require_admin(
    user_id: Annotated[int, Depends(get_current_user_id)],
    x_user_role: Annotated[str | None, Header()] = None,
) -> int:
    """
    Resolve the calling admin.

    Raises:
        HTTPException: 403 if the caller is not an admin
    """
    if (x_user_role or "").lower() != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user_id


def is_admin(x_user_role: Annotated[str | None, Header()] = None) -> bool:
    return (x_user_role or "").lower() == ADMIN_ROLE


def get_cart_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CartService:
    return CartService(session)


def get_catalog_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    cache: Annotated[ProductCache, Depends(get_product_cache)],
) -> CatalogService:
    return CatalogService(session, cache)


def get_order_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    cache: Annotated[ProductCache, Depends(get_product_cache)],
) -> OrderService:
    return OrderService(session, cache)


CurrentUser = Annotated[int, Depends(get_current_user_id)]
AdminUser = Annotated[int, Depends(require_admin)]
