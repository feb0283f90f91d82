"""Fixtures for route tests: app, client and header helpers."""
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from storefront.api.main import create_app
from storefront.db.models import Gender, OrderStatus, PaymentStatus, ProductType, ShippingMethod

CUSTOMER_HEADERS = {"X-User-Id": "42"}
ADMIN_HEADERS = {"X-User-Id": "1", "X-User-Role": "admin"}


@pytest.fixture
def app():
    """Create FastAPI app instance."""
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    with TestClient(app) as client:
        yield client


def make_product_row(**overrides):
    now = datetime.now(timezone.utc)
    values = {
        "id": uuid4(),
        "sku": "TEE-001",
        "slug": "classic-tee",
        "name": "Classic Tee",
        "description": None,
        "category": "t-shirts",
        "tags": [],
        "gender": Gender.UNISEX,
        "product_type": ProductType.T_SHIRT,
        "price": Decimal("0"),
        "total_stock": 0,
        "main_image": None,
        "images": [],
        "is_active": False,
        "available_sizes": [],
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_variant_row(product_id, **overrides):
    now = datetime.now(timezone.utc)
    values = {
        "id": uuid4(),
        "product_id": product_id,
        "sku": "TEE-M",
        "size": "M",
        "color": None,
        "color_hex": None,
        "price": None,
        "stock": 0,
        "is_active": True,
        "image": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_order_row(**overrides):
    now = datetime.now(timezone.utc)
    values = {
        "id": uuid4(),
        "order_number": "ORD-20240501142530-A1B2C3",
        "user_id": 42,
        "status": OrderStatus.PENDING_PAYMENT,
        "payment_status": PaymentStatus.PENDING,
        "subtotal": Decimal("40"),
        "shipping_cost": Decimal("0"),
        "total": Decimal("40"),
        "currency": "Rials",
        "shipping_method": ShippingMethod.STANDARD,
        "shipping_address": "12 Example Street",
        "notes": None,
        "payment_reference": None,
        "paid_at": None,
        "created_at": now,
        "items": [
            SimpleNamespace(
                id=uuid4(),
                product_id=uuid4(),
                variant_id=None,
                product_name="Classic Tee",
                variant_name=None,
                sku="TEE-001",
                quantity=2,
                price=Decimal("20"),
                total=Decimal("40"),
            )
        ],
        "history": [
            SimpleNamespace(status=OrderStatus.PENDING_PAYMENT, comment="Order created", user_id=42, created_at=now)
        ],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def customer():
    """Headers identifying customer 42."""
    return dict(CUSTOMER_HEADERS)


@pytest.fixture
def admin():
    """Headers identifying admin 1."""
    return dict(ADMIN_HEADERS)


@pytest.fixture
def product_row():
    return make_product_row


@pytest.fixture
def variant_row():
    return make_variant_row


@pytest.fixture
def order_row():
    return make_order_row
