"""Catalogue lookup port (abstract interface).

The ordering context never reads the catalogue's storage directly. It asks a
lookup adapter to resolve a product reference (and optional variant label)
at the moment of the call, and treats the answer as authoritative. There is
no caching.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductResolution:
    """Result of resolving a product (and optional variant) in the catalogue."""

    found: bool
    is_active: bool = False
    unit_price: float | None = None
    stock: int | None = None
    variant_found: bool = True


class CatalogLookup(ABC):
    """Abstract catalogue lookup interface."""

    @abstractmethod
    def resolve(self, product_ref: str, variant_label: str | None = None) -> ProductResolution:
        """Resolve a product reference to existence, active flag, price and stock.

        When ``variant_label`` is given, ``unit_price`` and ``stock`` are the
        variant's, and ``variant_found`` reports whether the variant exists.
        """
        ...
