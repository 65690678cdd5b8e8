"""
Wallet gate: tracks whether a blockchain wallet address is bound to the session.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from blockship.core.exceptions import WalletError
from blockship.core.logging import wallet_logger as logger
from blockship.core.models import WalletInfo
from blockship.gates.providers import WalletProvider

DEFAULT_WALLET_ERROR = "Please make sure your wallet is installed and unlocked"
NO_PROVIDER_ERROR = "No wallet provider detected"
REJECTED_ERROR = "Wallet connection request was rejected"

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001


def normalize_address(address: str) -> str:
    """Canonical form used for storage and equality checks."""
    return address.strip().lower()


def classify_wallet_failure(error: Exception) -> str:
    """Human-readable message for a failed wallet operation."""
    if getattr(error, "code", None) == USER_REJECTED_CODE:
        return REJECTED_ERROR
    return str(error) or DEFAULT_WALLET_ERROR


class WalletGate:
    """
    Binds at most one wallet address to the session.

    The provider is optional: environments without an injected wallet simply
    never become connected.
    """

    def __init__(self, provider: Optional[WalletProvider] = None):
        self.provider = provider
        self._wallet: Optional[WalletInfo] = None
        self._loading = False
        self._closed = False
        self._pending: Optional[asyncio.Future] = None

    @property
    def wallet(self) -> Optional[WalletInfo]:
        return self._wallet

    @property
    def connected(self) -> bool:
        return self._wallet is not None

    @property
    def loading(self) -> bool:
        return self._loading

    def close(self) -> None:
        """Stop applying results; in-flight provider calls are not cancelled."""
        self._closed = True

    def _bind(self, accounts: List[str]) -> Optional[WalletInfo]:
        candidates = [a for a in accounts if isinstance(a, str) and a.strip()]
        if not candidates:
            return None
        wallet = WalletInfo(address=normalize_address(candidates[0]))
        self._wallet = wallet
        return wallet

    async def check_existing_connection(self) -> Optional[WalletInfo]:
        """
        Silently look for an already-authorized account.

        Never prompts and never raises: a missing provider, an empty account
        list or a provider failure all resolve to None.
        """
        if self.provider is None:
            logger.debug("No wallet provider injected")
            return None

        try:
            accounts = await self.provider.list_authorized_accounts()
        except Exception as e:
            logger.error(
                "Error checking wallet connection", error=str(e), error_type=type(e).__name__
            )
            return None

        if self._closed:
            logger.debug("Dropping wallet result after teardown")
            return None

        wallet = self._bind(accounts or [])
        if wallet:
            logger.info("Existing wallet connection found", address=wallet.display)
        return wallet

    async def connect(self) -> Optional[WalletInfo]:
        """
        Ask the provider for access and bind the resulting address.

        Returns the current wallet without prompting when already connected.
        Concurrent calls share one pending request, so the user is prompted
        at most once. Returns None when the gate is closed.

        Raises:
            WalletError: Provider missing, user rejection, locked wallet
        """
        if self._wallet is not None:
            return self._wallet
        if self._closed:
            return None

        if self.provider is None:
            raise WalletError(NO_PROVIDER_ERROR)

        if self._pending is None:
            self._loading = True
            self._pending = asyncio.ensure_future(self._request_access())
        return await self._pending

    async def _request_access(self) -> Optional[WalletInfo]:
        try:
            await self.provider.request_access()
            accounts = await self.provider.list_authorized_accounts()
        except Exception as e:
            message = classify_wallet_failure(e)
            logger.error("Wallet connection error", error=message, error_type=type(e).__name__)
            raise WalletError(message, details={"provider_error": type(e).__name__}) from e
        finally:
            self._loading = False
            self._pending = None

        if self._closed:
            logger.debug("Dropping wallet result after teardown")
            return None

        wallet = self._bind(accounts or [])
        if wallet is None:
            logger.error("Wallet returned no authorized account")
            raise WalletError(DEFAULT_WALLET_ERROR)

        logger.info("Wallet connected", address=wallet.display)
        return wallet
