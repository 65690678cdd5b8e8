"""
Data models and type definitions for the Blockship receiver.

Provides type-safe data structures with validation for shipment records,
session state and the renderable disclosure view.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DisclosureState(str, Enum):
    """Observable states of the disclosure flow."""

    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND_OR_ERROR = "not_found_or_error"
    CLAIMING = "claiming"
    CLAIMED = "claimed"


class ClaimStatus(str, Enum):
    """Claim progress held in the session."""

    UNCLAIMED = "unclaimed"
    CLAIMING = "claiming"
    CLAIMED = "claimed"


class NotificationVariant(str, Enum):
    """Visual category of a notification."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


# Shipment Models


class ShipmentRecord(BaseModel):
    """A shipment as stored by the upstream shipper, keyed by its opaque ID."""

    shipment_id: str = Field(..., alias="shipmentId", min_length=1)
    source: str
    destination: str
    contents: str
    document_url: Optional[str] = Field(None, alias="documentUrl")
    ipfs_hash: Optional[str] = Field(None, alias="ipfsHash")
    nft_token_id: Optional[str] = Field(None, alias="nftTokenId")
    timestamp: Optional[str] = None
    status: Optional[str] = None
    receiver_id: Optional[str] = Field(None, alias="receiverId")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("shipment_id", "nft_token_id", "timestamp", mode="before")
    @classmethod
    def coerce_scalars(cls, v):
        """Stores may hand back numeric IDs and epoch timestamps."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def has_document(self) -> bool:
        return bool(self.document_url)

    @property
    def has_token(self) -> bool:
        return bool(self.nft_token_id)


# Session Models


class WalletInfo(BaseModel):
    """A wallet address bound to the session."""

    address: str

    model_config = ConfigDict(frozen=True)

    @property
    def display(self) -> str:
        return format_address(self.address)


class SessionState(BaseModel):
    """Ephemeral identity and wallet state for the running client."""

    account_authenticated: bool = False
    wallet_address: Optional[str] = None
    claim_status: ClaimStatus = ClaimStatus.UNCLAIMED

    @property
    def wallet_connected(self) -> bool:
        return self.wallet_address is not None


class Notification(BaseModel):
    """Transient, dismissible user-facing message."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def destructive(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE


class DisclosureView(BaseModel):
    """Everything the receiver portal can render at a point in time."""

    state: DisclosureState = DisclosureState.IDLE
    search_text: str = ""
    searching: bool = False
    record: Optional[ShipmentRecord] = None

    # Authentication panels
    account_authenticated: bool = False
    wallet_connected: bool = False
    wallet_display: Optional[str] = None
    wallet_loading: bool = False

    notifications: List[Notification] = Field(default_factory=list)

    @property
    def show_document_action(self) -> bool:
        return self.record is not None

    @property
    def show_token_action(self) -> bool:
        return self.record is not None and self.record.has_token


def format_address(address: str) -> str:
    """Truncate an address to its first 6 and last 4 characters."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
