"""HTTP catalogue adapter — resolves products against a remote product service.

Expects ``GET {base_url}/products/{id}`` to answer with the product document
(``price``, ``stock``, ``isActive``, ``variants: [{name, price, stock}]``) and
404 for unknown products. Transport errors are retried with exponential
backoff before surfacing as ``UpstreamUnavailable``.
"""

import requests
import structlog
from requests import RequestException
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from catalogue.lookup.port import CatalogLookup, ProductResolution
from ordering.errors import UpstreamUnavailable

logger = structlog.get_logger(__name__)


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(RequestException),
    )


class HttpCatalog(CatalogLookup):
    def __init__(self, base_url: str, timeout: float = 2.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _fetch(self, product_ref: str) -> dict | None:
        url = f"{self.base_url}/products/{product_ref}"
        logger.debug("Catalogue lookup", url=url)

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        body = resp.json()
        # Some services wrap the document: {"success": true, "data": {...}}
        return body.get("data", body) if isinstance(body, dict) else body

    def resolve(self, product_ref: str, variant_label: str | None = None) -> ProductResolution:
        try:
            product = self._fetch(str(product_ref))
        except RequestException as exc:
            logger.warning("Catalogue service unreachable", product_ref=str(product_ref), error=str(exc))
            raise UpstreamUnavailable("Catalogue service is unavailable") from exc

        if product is None:
            return ProductResolution(found=False)

        is_active = bool(product.get("isActive", product.get("is_active", True)))

        if variant_label is None:
            return ProductResolution(
                found=True,
                is_active=is_active,
                unit_price=product.get("price"),
                stock=product.get("stock"),
            )

        variant = next((v for v in product.get("variants") or [] if v.get("name") == variant_label), None)
        if variant is None:
            return ProductResolution(found=True, is_active=is_active, variant_found=False)

        return ProductResolution(
            found=True,
            is_active=is_active,
            unit_price=variant.get("price"),
            stock=variant.get("stock"),
        )
