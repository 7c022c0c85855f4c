"""Storefront: catalog and order management backend."""

__version__ = "0.1.0"
