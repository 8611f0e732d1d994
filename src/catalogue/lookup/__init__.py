"""Catalogue lookup factory.

Provides get_catalog() / set_catalog() to swap implementations:
- InMemoryCatalog for development and testing
- HttpCatalog for a deployed product service
"""

from catalogue.lookup.port import CatalogLookup

_current_catalog: CatalogLookup | None = None


def get_catalog() -> CatalogLookup:
    """Return the current catalogue lookup, built from settings on first use."""
    global _current_catalog
    if _current_catalog is None:
        from ordering.utils import settings

        if settings.CATALOG_BACKEND == "http":
            from catalogue.lookup.http_adapter import HttpCatalog

            _current_catalog = HttpCatalog(settings.CATALOG_SERVICE_URL)
        else:
            from catalogue.lookup.memory_adapter import InMemoryCatalog

            _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogLookup) -> None:
    """Override the active catalogue lookup (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to default catalogue lookup."""
    global _current_catalog
    _current_catalog = None
