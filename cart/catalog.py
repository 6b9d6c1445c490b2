"""HTTP client for the catalog service.

Only transport concerns live here: building requests, tenant headers,
timeouts and mapping failures to domain errors. Pricing rules are in
`cart.pricing`.
"""

import logging
from typing import Any, Optional

import httpx
from common.errors import CatalogUnavailable, PriceNotAvailable, ProductNotFound, UpstreamError

logger = logging.getLogger("cartflow.pricing")

API_PREFIX = "/api/v1"
TENANT_HEADER = "X-Tenant-ID"


class CatalogClient:
    """Synchronous catalog API client, one instance per process.

    `transport` lets tests plug in an `httpx.MockTransport`.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, tenant_code: str, json: Any = None) -> httpx.Response:
        try:
            return self._client.request(
                method,
                f"{API_PREFIX}{path}",
                json=json,
                headers={TENANT_HEADER: tenant_code},
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "catalog.unavailable",
                extra={"event": "catalog.unavailable", "path": path, "tenant": tenant_code, "error": str(exc)},
            )
            raise CatalogUnavailable(f"catalog request failed: {exc}")

    @staticmethod
    def _decode(response: httpx.Response, what: str):
        try:
            return response.json()
        except ValueError:
            raise UpstreamError(f"failed to parse {what} response")

    @staticmethod
    def _unwrap(body, what: str):
        if not isinstance(body, dict) or "data" not in body:
            raise UpstreamError(f"unexpected {what} response")
        return body["data"]

    def get_product(self, *, tenant_code: str, lookup_id) -> dict:
        response = self._request("GET", f"/products/{lookup_id}", tenant_code=tenant_code)
        if response.status_code != httpx.codes.OK:
            raise ProductNotFound()
        data = self._unwrap(self._decode(response, "product"), "product")
        if not isinstance(data, dict):
            raise UpstreamError("unexpected product response")
        return data

    def get_prices(self, *, tenant_code: str, lookup_id) -> list:
        response = self._request("GET", f"/products/{lookup_id}/prices", tenant_code=tenant_code)
        if response.status_code != httpx.codes.OK:
            raise PriceNotAvailable()
        data = self._unwrap(self._decode(response, "prices"), "prices")
        return data if isinstance(data, list) else []

    def _calculate(self, path: str, *, tenant_code: str, payload: dict, what: str) -> dict:
        response = self._request("POST", path, tenant_code=tenant_code, json=payload)
        if response.status_code != httpx.codes.OK:
            raise PriceNotAvailable(
                f"{what} price calculation failed with status {response.status_code}: {response.text}"
            )
        body = self._decode(response, f"{what} price")
        if not isinstance(body, dict):
            raise UpstreamError(f"unexpected {what} price response")
        return body

    def calculate_bundle_price(self, *, tenant_code: str, lookup_id, payload: dict) -> dict:
        return self._calculate(
            f"/bundles/{lookup_id}/calculate-price", tenant_code=tenant_code, payload=payload, what="bundle"
        )

    def calculate_parametric_price(self, *, tenant_code: str, lookup_id, payload: dict) -> dict:
        return self._calculate(
            f"/products/{lookup_id}/calculate-price", tenant_code=tenant_code, payload=payload, what="parametric"
        )
