"""
Read-only client for the remote shipment store.

Fetches one JSON document per shipment identifier with a single,
unauthenticated GET. Nothing is cached and nothing is retried.
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
from httpx import HTTPStatusError, TimeoutException

from blockship.core.config import StoreConfig
from blockship.core.exceptions import DecodeError, InvalidInputError, TransportError
from blockship.core.logging import store_logger as logger
from blockship.utils.reliability import track_performance


class ShipmentStoreClient:
    """
    Async HTTP client for `<store>/shipments/<id><suffix>` documents.
    """

    def __init__(
        self,
        config: StoreConfig,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout), follow_redirects=True
        )

        logger.info("Shipment store client initialized", store_url=config.url)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ShipmentStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def shipment_url(self, shipment_id: str) -> str:
        """
        Deterministic location of a shipment document.

        Raises:
            InvalidInputError: The identifier cannot be encoded as UTF-8
        """
        try:
            segment = quote(shipment_id, safe="")
        except UnicodeEncodeError as e:
            raise InvalidInputError(
                f"Shipment ID cannot be encoded: {e.reason}",
                details={"position": e.start},
            ) from e
        return f"{self.config.url}/shipments/{segment}{self.config.suffix}"

    @track_performance("shipment_store_fetch")
    async def fetch(self, shipment_id: str) -> Optional[Any]:
        """
        Fetch the raw JSON document for a shipment.

        Args:
            shipment_id: Opaque, case-sensitive identifier

        Returns:
            Decoded JSON body, or None when the body is empty or `null`

        Raises:
            InvalidInputError: The identifier cannot be encoded into a URL
            TransportError: On non-success status, timeout or network failure
            DecodeError: When the body is not JSON
        """
        url = self.shipment_url(shipment_id)

        try:
            logger.debug("Fetching shipment document", shipment_id=shipment_id, url=url)
            response = await self.client.get(url)
            response.raise_for_status()

        except HTTPStatusError as e:
            status_text = e.response.reason_phrase
            logger.error(
                "Shipment store HTTP error",
                shipment_id=shipment_id,
                status_code=e.response.status_code,
                status_text=status_text,
            )
            raise TransportError(
                f"Error fetching data: {status_text}",
                status_code=e.response.status_code,
                status_text=status_text,
                details={"url": url},
            )

        except TimeoutException as e:
            logger.error("Shipment store timeout", shipment_id=shipment_id, error=str(e))
            raise TransportError(f"Shipment store timeout: {e}", details={"url": url})

        except httpx.HTTPError as e:
            logger.error(
                "Shipment store request failed",
                shipment_id=shipment_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TransportError(f"Shipment store request failed: {e}", details={"url": url})

        if not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error("Shipment store returned invalid JSON", shipment_id=shipment_id)
            raise DecodeError(
                f"Shipment store returned invalid JSON: {e}", details={"url": url}
            )

    async def health_check(self) -> dict:
        """Check that the store is reachable; any non-5xx answer counts as up."""
        response = await self.client.get(
            f"{self.config.url}/shipments{self.config.suffix}", params={"shallow": "true"}
        )
        if response.status_code >= 500:
            raise TransportError(
                f"Shipment store unhealthy: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )
        return {"status_code": response.status_code, "store_url": self.config.url}
