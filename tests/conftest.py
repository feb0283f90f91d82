"""Pytest configuration and fixtures for test suite.

This is the root-level conftest.py that provides:
- Environment variable defaults (set before any storefront import)
- A per-test SQLite database with savepoint support
- Small factories for catalog rows
"""
import os
from decimal import Decimal
from typing import Any

# Settings are cached on first use, so defaults must exist before imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.db.base import Base
from storefront.db.models import Product, ProductType, Variant


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine over a fresh SQLite file with all tables created.

    pysqlite's own transaction handling breaks SAVEPOINT, so BEGIN is
    emitted by SQLAlchemy instead.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Session shaped like the application's: no autoflush, no expire on commit."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


_counter = {"value": 0}


def _next_suffix() -> int:
    _counter["value"] += 1
    return _counter["value"]


@pytest.fixture
def make_product(session):
    """Factory fixture: await make_product(name=..., price=...)."""

    async def _make(**overrides: Any) -> Product:
        suffix = _next_suffix()
        values: dict[str, Any] = {
            "sku": f"PRD-{suffix}",
            "slug": f"product-{suffix}",
            "name": f"Product {suffix}",
            "category": "apparel",
            "product_type": ProductType.T_SHIRT,
        }
        values.update(overrides)
        product = Product(**values)
        session.add(product)
        await session.flush()
        return product

    return _make


@pytest.fixture
def make_variant(session):
    """Factory fixture: await make_variant(product, size="M", price=Decimal("10"))."""

    async def _make(product: Product, **overrides: Any) -> Variant:
        suffix = _next_suffix()
        values: dict[str, Any] = {
            "sku": f"VAR-{suffix}",
            "size": f"S{suffix}",
            "stock": 0,
            "is_active": True,
        }
        values.update(overrides)
        variant = Variant(product_id=product.id, **values)
        session.add(variant)
        await session.flush()
        return variant

    return _make


@pytest.fixture
def money():
    """Decimal shorthand: money("19.99")."""
    return lambda value: Decimal(str(value))
