"""In-memory catalogue for development and testing.

Products are seeded explicitly with ``add_product``. Resolution follows the
product model of the storefront: a base price and stock, plus optional named
variants each carrying their own price and stock.
"""

from catalogue.lookup.port import CatalogLookup, ProductResolution


class InMemoryCatalog(CatalogLookup):
    """Catalogue lookup backed by a plain dict."""

    def __init__(self) -> None:
        self.products: dict[str, dict] = {}
        self.calls: list[dict] = []

    def add_product(
        self,
        product_id: str,
        price: float,
        stock: int = 100,
        is_active: bool = True,
        variants: dict[str, dict] | None = None,
    ) -> None:
        """Seed a product.

        Args:
            variants: Mapping of variant name to ``{"price": ..., "stock": ...}``.
        """
        self.products[str(product_id)] = {
            "price": price,
            "stock": stock,
            "is_active": is_active,
            "variants": variants or {},
        }

    def set_active(self, product_id: str, is_active: bool) -> None:
        self.products[str(product_id)]["is_active"] = is_active

    def resolve(self, product_ref: str, variant_label: str | None = None) -> ProductResolution:
        self.calls.append({"product_ref": str(product_ref), "variant_label": variant_label})

        product = self.products.get(str(product_ref))
        if product is None:
            return ProductResolution(found=False)

        if variant_label is None:
            return ProductResolution(
                found=True,
                is_active=product["is_active"],
                unit_price=product["price"],
                stock=product["stock"],
            )

        variant = product["variants"].get(variant_label)
        if variant is None:
            return ProductResolution(found=True, is_active=product["is_active"], variant_found=False)

        return ProductResolution(
            found=True,
            is_active=product["is_active"],
            unit_price=variant["price"],
            stock=variant.get("stock"),
        )

    def reset(self) -> None:
        self.products.clear()
        self.calls.clear()
