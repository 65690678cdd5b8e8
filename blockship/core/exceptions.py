"""
Custom exceptions for the Blockship receiver.

Provides a hierarchy of exceptions so every failure in the disclosure flow
can be classified and turned into a user-facing notification.
"""

from typing import Any, Dict, Optional


class BlockshipError(Exception):
    """Base exception for all Blockship errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(BlockshipError):
    """Raised when there are configuration issues."""

    pass


class InvalidInputError(BlockshipError):
    """Raised for user input that is rejected before any remote call."""

    pass


class DataAccessError(BlockshipError):
    """Base class for shipment store errors."""

    pass


class ShipmentNotFoundError(DataAccessError):
    """The store answered successfully but holds no record for the identifier."""

    def __init__(self, shipment_id: str, **kwargs):
        super().__init__(f"No shipment found with ID {shipment_id!r}", **kwargs)
        self.shipment_id = shipment_id


class TransportError(DataAccessError):
    """The store call failed: non-success status, timeout or network fault."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.status_text = status_text


class DecodeError(DataAccessError):
    """The store returned a body that is not a valid shipment record."""

    pass


class AuthError(BlockshipError):
    """Identity or wallet provider operation failed."""

    pass


class WalletError(AuthError):
    """Wallet provider missing, locked, or the user rejected the request."""

    pass


class RenderError(BlockshipError):
    """Raised when a view cannot be rendered."""

    pass
