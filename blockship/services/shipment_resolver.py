"""
Shipment resolver.

Turns a user-supplied identifier into a validated ShipmentRecord with one
store lookup, classifying every way that can fail.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from blockship.core.exceptions import DecodeError, InvalidInputError, ShipmentNotFoundError
from blockship.core.models import ShipmentRecord
from blockship.data.shipment_store import ShipmentStoreClient

logger = structlog.get_logger(__name__)


def decode_shipment(raw) -> ShipmentRecord:
    """
    Validate a raw store document into a ShipmentRecord.

    Raises:
        DecodeError: If the document is not an object or misses required fields
    """
    if not isinstance(raw, dict):
        raise DecodeError(
            "Shipment document is not a JSON object", details={"type": type(raw).__name__}
        )
    try:
        return ShipmentRecord.model_validate(raw)
    except PydanticValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise DecodeError(
            f"Shipment document failed validation: {', '.join(fields)}",
            details={"fields": fields},
        ) from e


class ShipmentResolver:
    """Resolves shipment identifiers against the remote store."""

    def __init__(self, store: ShipmentStoreClient):
        self.store = store

    async def resolve(self, shipment_id: str) -> ShipmentRecord:
        """
        Resolve an identifier with exactly one store read.

        Raises:
            InvalidInputError: Empty, whitespace-only or unencodable identifier (no remote call)
            ShipmentNotFoundError: The store holds no record for the identifier
            TransportError: The store call failed
            DecodeError: The store returned something that is not a shipment
        """
        if not shipment_id or not shipment_id.strip():
            raise InvalidInputError("Please provide a valid shipment ID.")

        raw = await self.store.fetch(shipment_id)
        if raw is None:
            logger.info("No shipment found", shipment_id=shipment_id)
            raise ShipmentNotFoundError(shipment_id)

        record = decode_shipment(raw)
        logger.info(
            "Shipment resolved",
            shipment_id=record.shipment_id,
            has_document=record.has_document,
            has_token=record.has_token,
        )
        return record

    async def find(self, shipment_id: str) -> Optional[ShipmentRecord]:
        """Like resolve(), but returns None when no record exists."""
        try:
            return await self.resolve(shipment_id)
        except ShipmentNotFoundError:
            return None
