"""
Disclosure controller for the receiver portal.

Composes the identity gate, the wallet gate and the shipment resolver into
the state machine deciding what the recipient can see: the search box, the
shipment summary, the custody document action and the custody token action.
Every success and failure of a user action produces a notification.

Gate state is advisory here: searching and disclosure are not blocked by a
missing login or wallet. Only the reserved claim transition is guarded.
"""

from __future__ import annotations

from typing import Optional

import httpx

from blockship.core.config import ExplorerConfig, Settings
from blockship.core.exceptions import AuthError, BlockshipError, ShipmentNotFoundError
from blockship.core.logging import disclosure_logger as logger
from blockship.core.models import (
    ClaimStatus,
    DisclosureState,
    DisclosureView,
    SessionState,
    ShipmentRecord,
    WalletInfo,
)
from blockship.data.shipment_store import ShipmentStoreClient
from blockship.gates.identity import IdentityGate
from blockship.gates.providers import (
    BrowsingContext,
    IdentityProvider,
    SystemBrowser,
    WalletProvider,
)
from blockship.gates.wallet import WalletGate
from blockship.services.notifications import NotificationCenter
from blockship.services.shipment_resolver import ShipmentResolver

MISSING_ID_MESSAGE = "Please enter a shipment ID"
NOT_FOUND_MESSAGE = "No shipment found with this ID"
FETCH_FAILED_MESSAGE = "Failed to fetch shipment data. Please try again."
NO_DOCUMENT_MESSAGE = "Document URL not available"
NO_TOKEN_MESSAGE = "NFT information not available"
CLAIM_DISABLED_MESSAGE = "Claiming shipments is not enabled yet"


def token_explorer_url(explorer: ExplorerConfig, nft_token_id: str) -> str:
    """Explorer page for a custody token of the configured contract."""
    return f"{explorer.url}/token/{explorer.contract_address}?a={nft_token_id}"


class DisclosureController:
    """
    Orchestrates search and disclosure for one client session.

    Overlapping searches are ordered by a request token: only the response to
    the most recently issued search is applied. After `close()` no result
    changes state.
    """

    def __init__(
        self,
        resolver: ShipmentResolver,
        identity: IdentityGate,
        wallet: WalletGate,
        browser: BrowsingContext,
        explorer: ExplorerConfig,
        notifications: Optional[NotificationCenter] = None,
    ):
        self.resolver = resolver
        self.identity = identity
        self.wallet = wallet
        self.browser = browser
        self.explorer = explorer
        self.notifications = notifications or NotificationCenter()

        self._state = DisclosureState.IDLE
        self._record: Optional[ShipmentRecord] = None
        self._search_text = ""
        self._searching = False
        self._latest_request = 0
        self._claim_status = ClaimStatus.UNCLAIMED
        self._closed = False

    # Lifecycle

    async def mount(self) -> None:
        """Start the identity subscription and look for an existing wallet."""
        self.identity.mount()
        await self.wallet.check_existing_connection()
        logger.info(
            "Disclosure controller mounted",
            authenticated=self.identity.authenticated,
            wallet_connected=self.wallet.connected,
        )

    def close(self) -> None:
        self._closed = True
        self.identity.close()
        self.wallet.close()
        logger.debug("Disclosure controller closed")

    async def __aenter__(self) -> "DisclosureController":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # Read side

    @property
    def state(self) -> DisclosureState:
        return self._state

    @property
    def record(self) -> Optional[ShipmentRecord]:
        return self._record

    @property
    def session(self) -> SessionState:
        wallet = self.wallet.wallet
        return SessionState(
            account_authenticated=self.identity.authenticated,
            wallet_address=wallet.address if wallet else None,
            claim_status=self._claim_status,
        )

    def view(self) -> DisclosureView:
        wallet = self.wallet.wallet
        return DisclosureView(
            state=self._state,
            search_text=self._search_text,
            searching=self._searching,
            record=self._record,
            account_authenticated=self.identity.authenticated,
            wallet_connected=wallet is not None,
            wallet_display=wallet.display if wallet else None,
            wallet_loading=self.wallet.loading,
            notifications=self.notifications.active,
        )

    # Identity and wallet actions

    async def sign_in(self) -> bool:
        try:
            await self.identity.sign_in()
        except AuthError as e:
            if not self._closed:
                self.notifications.fail("Login failed", e.message)
            return False

        if self._closed:
            return False
        self.notifications.notify("Login successful", "You have been successfully logged in")
        return True

    async def connect_wallet(self) -> Optional[WalletInfo]:
        """
        Connect a wallet and report the outcome.

        A call made while a connection is already pending is ignored.
        """
        if self.wallet.connected:
            return self.wallet.wallet
        if self.wallet.loading:
            logger.info("Wallet connection already in progress")
            return None

        try:
            wallet = await self.wallet.connect()
        except AuthError as e:
            if not self._closed:
                self.notifications.fail("Wallet connection failed", e.message)
            return None

        if wallet is None or self._closed:
            return None
        self.notifications.notify(
            "Wallet connected", "Your wallet has been successfully connected"
        )
        return wallet

    # Search

    async def search(self, shipment_id: str) -> Optional[ShipmentRecord]:
        """
        Resolve a shipment and move to FOUND or NOT_FOUND_OR_ERROR.

        Returns the record applied by this call, or None when the search
        failed or was superseded by a later one.
        """
        self._search_text = shipment_id

        if not shipment_id or not shipment_id.strip():
            self.notifications.fail("Error", MISSING_ID_MESSAGE)
            return None

        self._latest_request += 1
        request = self._latest_request
        self._state = DisclosureState.SEARCHING
        self._searching = True
        logger.info("Searching shipment", shipment_id=shipment_id, request=request)

        try:
            record = await self.resolver.resolve(shipment_id)
        except Exception as e:
            if self._is_stale(request):
                return None
            self._apply_failure(shipment_id, e)
            return None

        if self._is_stale(request):
            return None

        self._searching = False
        self._record = record
        self._state = DisclosureState.FOUND
        self._claim_status = ClaimStatus.UNCLAIMED
        self.notifications.notify("Shipment found", f"Shipment ID: {record.shipment_id}")
        return record

    def _is_stale(self, request: int) -> bool:
        if self._closed:
            logger.debug("Dropping search result after teardown", request=request)
            return True
        if request != self._latest_request:
            logger.info(
                "Discarding superseded search result",
                request=request,
                latest=self._latest_request,
            )
            return True
        return False

    def _apply_failure(self, shipment_id: str, error: Exception) -> None:
        self._searching = False
        self._record = None
        self._state = DisclosureState.NOT_FOUND_OR_ERROR

        if isinstance(error, ShipmentNotFoundError):
            self.notifications.fail("Error", NOT_FOUND_MESSAGE)
            return

        if isinstance(error, BlockshipError):
            logger.error(
                "Error fetching shipment data",
                shipment_id=shipment_id,
                error=error.message,
                error_type=type(error).__name__,
            )
        else:
            logger.exception(
                "Unexpected error fetching shipment data",
                shipment_id=shipment_id,
                error_type=type(error).__name__,
            )
        self.notifications.fail("Error", FETCH_FAILED_MESSAGE)

    # Disclosure actions

    def open_document(self) -> bool:
        if self._record is None or not self._record.has_document:
            self.notifications.fail("Error", NO_DOCUMENT_MESSAGE)
            return False

        self.browser.open_new(self._record.document_url)
        return True

    def token_url(self) -> Optional[str]:
        if self._record is None or not self._record.has_token:
            return None
        return token_explorer_url(self.explorer, self._record.nft_token_id)

    def open_token(self) -> bool:
        url = self.token_url()
        if url is None:
            self.notifications.fail("Error", NO_TOKEN_MESSAGE)
            return False

        self.browser.open_new(url)
        return True

    # Claim (reserved)

    def claim_blockers(self) -> list:
        """Preconditions still missing before a claim may start."""
        blockers = []
        if self._state != DisclosureState.FOUND:
            blockers.append("find a shipment first")
        if not self.identity.authenticated:
            blockers.append("sign in")
        if not self.wallet.connected:
            blockers.append("connect a wallet")
        return blockers

    @property
    def can_claim(self) -> bool:
        return not self.claim_blockers()

    async def claim(self) -> bool:
        """
        Claim the found shipment for the connected wallet.

        The guard is enforced but there is no claim backend yet, so this
        always reports the claim as unavailable and stays in FOUND.
        """
        blockers = self.claim_blockers()
        if blockers:
            self.notifications.fail("Claim unavailable", f"Please {' and '.join(blockers)}")
            return False

        # TODO: submit the claim once the store exposes a claim endpoint and move
        # through CLAIMING/CLAIMED here.
        logger.info("Claim requested but not enabled", shipment_id=self._record.shipment_id)
        self.notifications.fail("Claim unavailable", CLAIM_DISABLED_MESSAGE)
        return False


def create_disclosure_controller(
    settings: Settings,
    identity_provider: IdentityProvider,
    wallet_provider: Optional[WalletProvider] = None,
    browser: Optional[BrowsingContext] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> DisclosureController:
    """
    Factory function wiring a controller from settings and injected providers.

    The caller owns the store client and should `await
    controller.resolver.store.aclose()` when done.
    """
    store = ShipmentStoreClient(
        settings.store, timeout=settings.request_timeout, client=http_client
    )
    return DisclosureController(
        resolver=ShipmentResolver(store),
        identity=IdentityGate(identity_provider),
        wallet=WalletGate(wallet_provider),
        browser=browser or SystemBrowser(),
        explorer=settings.explorer,
    )
