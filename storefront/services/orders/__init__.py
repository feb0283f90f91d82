"""Order service: checkout, payment outcomes and cancellation."""
from storefront.services.orders.service import OrderService

__all__ = ["OrderService"]
