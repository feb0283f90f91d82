"""HTTP API for the storefront service."""
