"""Printful REST client.

Thin wrapper over `httpx` for the three calls the shop makes: listing store
products, reading one sync product with its variants, and submitting an
order. Responses are unwrapped from Printful's `{"code", "result"}`
envelope. Connection failures are retried by the transport; HTTP error
statuses are not retried and surface as `PrintfulError`.
"""

import logging

import httpx
from common.exceptions import UpstreamError
from django.conf import settings

logger = logging.getLogger("kso.fulfillment")


class PrintfulError(UpstreamError):
    """A Printful request failed or returned an error status."""

    default_detail = "Printful API error"

    def __init__(self, detail: str | None = None, *, status_code: int | None = None):
        super().__init__(detail)
        self.upstream_status = status_code


class PrintfulClient:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        api_key = api_key if api_key is not None else settings.PRINTFUL_API_KEY
        if not api_key:
            raise PrintfulError("Printful API key not configured")
        if transport is None:
            transport = httpx.HTTPTransport(
                retries=retries if retries is not None else settings.PRINTFUL_RETRIES,
            )
        self._client = httpx.Client(
            base_url=base_url or settings.PRINTFUL_API_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=timeout if timeout is not None else settings.PRINTFUL_TIMEOUT,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "printful.request_failed",
                extra={"event": "printful.request_failed", "method": method, "path": path, "error": str(exc)},
            )
            raise PrintfulError(f"Printful request failed: {exc}") from exc

        if response.is_error:
            logger.error(
                "printful.error_status",
                extra={
                    "event": "printful.error_status",
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "body": response.text[:500],
                },
            )
            raise PrintfulError(
                f"Printful API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(
                "printful.invalid_body",
                extra={"event": "printful.invalid_body", "method": method, "path": path, "body": response.text[:500]},
            )
            raise PrintfulError("Printful returned an unreadable response", status_code=response.status_code) from exc
        if isinstance(payload, dict) and "result" in payload:
            return payload["result"]
        return payload

    def get_store_products(self) -> list[dict]:
        """Return every sync product in the store, following offset pagination."""

        products: list[dict] = []
        offset = 0
        while True:
            page = self._request("GET", "/store/products", params={"offset": offset, "limit": 100})
            if not page:
                break
            products.extend(page)
            if len(page) < 100:
                break
            offset += len(page)
        return products

    def get_sync_product(self, product_id) -> dict:
        """Return `{"sync_product": ..., "sync_variants": [...]}` for one store product."""
        return self._request("GET", f"/store/products/{product_id}")

    def create_order(self, order: dict) -> dict:
        """Submit an order and return Printful's order object (carries `id`)."""

        result = self._request("POST", "/orders", json=order)
        logger.info(
            "printful.order_created",
            extra={
                "event": "printful.order_created",
                "printful_order_id": result.get("id") if isinstance(result, dict) else None,
                "external_id": order.get("external_id"),
            },
        )
        return result
