"""
Identity and wallet gates for the receiver portal.

Each gate exposes a boolean readiness state derived from an injected provider.
"""

from .identity import IdentityGate
from .providers import (
    BrowsingContext,
    HeadlessIdentityProvider,
    IdentityProvider,
    SystemBrowser,
    WalletProvider,
)
from .wallet import WalletGate, normalize_address

__all__ = [
    "IdentityGate",
    "WalletGate",
    "normalize_address",
    "IdentityProvider",
    "WalletProvider",
    "BrowsingContext",
    "HeadlessIdentityProvider",
    "SystemBrowser",
]
