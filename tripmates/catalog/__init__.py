"""
Localized reference catalogs.
"""

from tripmates.catalog.services.catalog_service import CatalogService, CATALOG_KINDS

__all__ = [
    "CatalogService",
    "CATALOG_KINDS",
]
