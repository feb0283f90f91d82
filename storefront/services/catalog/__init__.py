"""Catalog service: products, variants and SKU generation."""
from storefront.services.catalog.service import CatalogService
from storefront.services.catalog.sku import generate_sku

__all__ = ["CatalogService", "generate_sku"]
