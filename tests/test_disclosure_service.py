"""
Test suite for the disclosure controller.

Covers the search state machine, notifications, document/token actions,
stale-response handling and the guarded claim extension point.
"""

import asyncio

import httpx

from blockship.core.config import Settings
from blockship.core.exceptions import DecodeError, ShipmentNotFoundError, TransportError
from blockship.core.models import ClaimStatus, DisclosureState, ShipmentRecord
from blockship.data.shipment_store import ShipmentStoreClient
from blockship.gates.identity import IdentityGate
from blockship.gates.wallet import WalletGate
from blockship.services.disclosure_service import (
    CLAIM_DISABLED_MESSAGE,
    FETCH_FAILED_MESSAGE,
    MISSING_ID_MESSAGE,
    NO_DOCUMENT_MESSAGE,
    NO_TOKEN_MESSAGE,
    NOT_FOUND_MESSAGE,
    DisclosureController,
    create_disclosure_controller,
)
from blockship.services.shipment_resolver import ShipmentResolver
from tests.sample_data import (
    SHIPMENT_WITH_TOKEN,
    SHIPMENT_WITHOUT_TOKEN,
    FakeIdentityProvider,
    FakeUser,
    FakeWalletProvider,
    GatedResolver,
    RecordingBrowser,
    RecordingStore,
    explorer_config,
    static_client,
    store_config,
)

ADDRESS = "0x1234567890ABCDEF1234567890abcdef12345678"


def build_controller(
    client: httpx.AsyncClient = None,
    resolver=None,
    identity_provider=None,
    wallet_provider=None,
):
    browser = RecordingBrowser()
    if resolver is None:
        store = ShipmentStoreClient(store_config(), client=client or RecordingStore().client())
        resolver = ShipmentResolver(store)
    controller = DisclosureController(
        resolver=resolver,
        identity=IdentityGate(identity_provider or FakeIdentityProvider()),
        wallet=WalletGate(wallet_provider),
        browser=browser,
        explorer=explorer_config(),
    )
    return controller, browser


def last_notification(controller):
    return controller.notifications.active[-1]


class TestSearch:
    """Test the Idle -> Searching -> Found / NotFoundOrError transitions."""

    def test_initial_state_is_idle(self):
        controller, _ = build_controller()

        view = controller.view()

        assert view.state == DisclosureState.IDLE
        assert view.record is None
        assert view.search_text == ""
        assert view.account_authenticated is False
        assert view.wallet_connected is False

    def test_found_record_without_token(self):
        controller, _ = build_controller()

        record = asyncio.run(controller.search("SHIP-001"))

        view = controller.view()
        assert record.shipment_id == "SHIP-001"
        assert view.state == DisclosureState.FOUND
        assert view.searching is False
        assert view.record.document_url == "https://store.example/doc1"
        assert view.show_document_action is True
        assert view.show_token_action is False

        notification = last_notification(controller)
        assert notification.title == "Shipment found"
        assert notification.description == "Shipment ID: SHIP-001"
        assert notification.destructive is False

    def test_found_record_with_token(self):
        controller, _ = build_controller()

        asyncio.run(controller.search("SHIP-002"))

        view = controller.view()
        assert view.show_document_action is True
        assert view.show_token_action is True

    def test_empty_token_id_renders_no_token_action(self):
        store = RecordingStore({"SHIP-E": dict(SHIPMENT_WITH_TOKEN, shipmentId="SHIP-E", nftTokenId="")})
        controller, _ = build_controller(client=store.client())

        asyncio.run(controller.search("SHIP-E"))

        assert controller.view().show_token_action is False

    def test_not_found_keeps_search_text(self):
        controller, _ = build_controller()

        result = asyncio.run(controller.search("SHIP-404"))

        view = controller.view()
        assert result is None
        assert view.state == DisclosureState.NOT_FOUND_OR_ERROR
        assert view.search_text == "SHIP-404"
        assert view.record is None
        assert view.searching is False

        notification = last_notification(controller)
        assert notification.description == NOT_FOUND_MESSAGE
        assert notification.destructive is True

    def test_server_error_reaches_generic_failure_path(self):
        controller, _ = build_controller(client=static_client(httpx.Response(500)))

        asyncio.run(controller.search("SHIP-001"))

        assert controller.state == DisclosureState.NOT_FOUND_OR_ERROR
        notification = last_notification(controller)
        assert notification.destructive is True
        assert notification.description == FETCH_FAILED_MESSAGE

    def test_malformed_record_reaches_generic_failure_path(self):
        store = RecordingStore({"SHIP-BAD": {"shipmentId": "SHIP-BAD"}})
        controller, _ = build_controller(client=store.client())

        asyncio.run(controller.search("SHIP-BAD"))

        assert controller.state == DisclosureState.NOT_FOUND_OR_ERROR
        assert last_notification(controller).description == FETCH_FAILED_MESSAGE

    def test_unencodable_identifier_reaches_generic_failure_path(self):
        store = RecordingStore()
        controller, _ = build_controller(client=store.client())

        asyncio.run(controller.search("SHIP-\udcff"))

        assert controller.state == DisclosureState.NOT_FOUND_OR_ERROR
        assert controller.view().searching is False
        assert store.requests == []
        assert last_notification(controller).description == FETCH_FAILED_MESSAGE

    def test_blank_search_is_rejected_locally(self):
        store = RecordingStore()
        controller, _ = build_controller(client=store.client())

        asyncio.run(controller.search("   "))

        assert controller.state == DisclosureState.IDLE
        assert store.requests == []
        notification = last_notification(controller)
        assert notification.description == MISSING_ID_MESSAGE
        assert notification.destructive is True

    def test_failure_after_success_clears_record(self):
        controller, _ = build_controller()

        async def run():
            await controller.search("SHIP-001")
            await controller.search("SHIP-404")

        asyncio.run(run())

        assert controller.state == DisclosureState.NOT_FOUND_OR_ERROR
        assert controller.record is None

    def test_search_is_not_gated_on_identity_or_wallet(self):
        controller, _ = build_controller(wallet_provider=None)

        asyncio.run(controller.search("SHIP-002"))

        assert controller.session.account_authenticated is False
        assert controller.session.wallet_connected is False
        assert controller.state == DisclosureState.FOUND


class TestOverlappingSearches:
    """Only the latest search may update state."""

    def test_stale_success_is_discarded(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)
        first = ShipmentRecord.model_validate(SHIPMENT_WITHOUT_TOKEN)
        second = ShipmentRecord.model_validate(SHIPMENT_WITH_TOKEN)

        async def run():
            task_a = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            task_b = asyncio.create_task(controller.search("SHIP-002"))
            await asyncio.sleep(0)
            assert controller.view().searching is True

            resolver.release("SHIP-002", second)
            result_b = await task_b
            resolver.release("SHIP-001", first)
            result_a = await task_a
            return result_a, result_b

        result_a, result_b = asyncio.run(run())

        assert result_a is None
        assert result_b.shipment_id == "SHIP-002"
        assert controller.record.shipment_id == "SHIP-002"
        assert controller.state == DisclosureState.FOUND

    def test_stale_failure_is_discarded(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)
        latest = ShipmentRecord.model_validate(SHIPMENT_WITH_TOKEN)

        async def run():
            task_a = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            task_b = asyncio.create_task(controller.search("SHIP-002"))
            await asyncio.sleep(0)

            resolver.release("SHIP-001", error=TransportError("boom", status_code=502))
            await task_a
            assert controller.view().searching is True
            assert controller.state == DisclosureState.SEARCHING

            resolver.release("SHIP-002", latest)
            await task_b

        asyncio.run(run())

        assert controller.state == DisclosureState.FOUND
        assert all(not n.destructive for n in controller.notifications.active)

    def test_result_after_close_is_dropped(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)

        async def run():
            task = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            controller.close()
            resolver.release("SHIP-001", error=ShipmentNotFoundError("SHIP-001"))
            return await task

        assert asyncio.run(run()) is None
        assert controller.notifications.active == []
        assert controller.state == DisclosureState.SEARCHING

    def test_decode_error_from_resolver_is_classified(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)

        async def run():
            task = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            resolver.release("SHIP-001", error=DecodeError("bad record"))
            await task

        asyncio.run(run())

        assert last_notification(controller).description == FETCH_FAILED_MESSAGE

    def test_unexpected_resolver_error_returns_to_interactive_state(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)

        async def run():
            task = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            resolver.release("SHIP-001", error=RuntimeError("resolver crashed"))
            return await task

        assert asyncio.run(run()) is None
        assert controller.state == DisclosureState.NOT_FOUND_OR_ERROR
        assert controller.view().searching is False
        assert controller.record is None
        notification = last_notification(controller)
        assert notification.description == FETCH_FAILED_MESSAGE
        assert notification.destructive is True

    def test_search_after_unexpected_error_succeeds(self):
        resolver = GatedResolver()
        controller, _ = build_controller(resolver=resolver)
        record = ShipmentRecord.model_validate(SHIPMENT_WITH_TOKEN)

        async def run():
            task = asyncio.create_task(controller.search("SHIP-001"))
            await asyncio.sleep(0)
            resolver.release("SHIP-001", error=KeyError("shipmentId"))
            await task

            task = asyncio.create_task(controller.search("SHIP-002"))
            await asyncio.sleep(0)
            resolver.release("SHIP-002", record)
            await task

        asyncio.run(run())

        assert controller.state == DisclosureState.FOUND
        assert controller.record.shipment_id == "SHIP-002"


class TestDisclosureActions:
    """Test document and token actions."""

    def test_open_document(self):
        controller, browser = build_controller()
        asyncio.run(controller.search("SHIP-001"))

        assert controller.open_document() is True
        assert browser.opened == ["https://store.example/doc1"]

    def test_open_document_without_url_notifies(self):
        controller, browser = build_controller()
        asyncio.run(controller.search("SHIP-NODOC"))

        assert controller.open_document() is False
        assert browser.opened == []
        notification = last_notification(controller)
        assert notification.description == NO_DOCUMENT_MESSAGE
        assert notification.destructive is True

    def test_open_document_without_record_notifies(self):
        controller, browser = build_controller()

        assert controller.open_document() is False
        assert browser.opened == []

    def test_open_token_uses_explorer_template(self):
        controller, browser = build_controller()
        asyncio.run(controller.search("SHIP-002"))

        assert controller.open_token() is True
        assert browser.opened == ["https://explorer.example/token/0xContract?a=17"]

    def test_open_token_without_token_notifies(self):
        controller, browser = build_controller()
        asyncio.run(controller.search("SHIP-001"))

        assert controller.open_token() is False
        assert browser.opened == []
        assert last_notification(controller).description == NO_TOKEN_MESSAGE


class TestIdentityAndWallet:
    """Test user-facing identity and wallet actions."""

    def test_mount_reads_existing_session_and_wallet(self):
        controller, _ = build_controller(
            identity_provider=FakeIdentityProvider(initial_user=FakeUser()),
            wallet_provider=FakeWalletProvider(authorized=[ADDRESS]),
        )

        asyncio.run(controller.mount())

        session = controller.session
        assert session.account_authenticated is True
        assert session.wallet_connected is True
        assert session.wallet_address == ADDRESS.lower()
        assert controller.view().wallet_display == "0x1234...5678"

    def test_mount_without_wallet_provider(self):
        controller, _ = build_controller(wallet_provider=None)

        asyncio.run(controller.mount())

        view = controller.view()
        assert view.wallet_connected is False
        assert view.wallet_display is None
        assert controller.notifications.active == []

    def test_async_context_manager_tears_down_identity(self):
        provider = FakeIdentityProvider()
        controller, _ = build_controller(identity_provider=provider)

        async def run():
            async with controller:
                assert provider.listeners

        asyncio.run(run())

        assert provider.unsubscribe_calls == 1

    def test_sign_in_success_notifies(self):
        controller, _ = build_controller()

        async def run():
            await controller.mount()
            return await controller.sign_in()

        assert asyncio.run(run()) is True
        assert controller.session.account_authenticated is True
        assert last_notification(controller).title == "Login successful"

    def test_sign_in_failure_notifies(self):
        controller, _ = build_controller(
            identity_provider=FakeIdentityProvider(sign_in_error=RuntimeError("popup blocked"))
        )

        assert asyncio.run(controller.sign_in()) is False
        notification = last_notification(controller)
        assert notification.title == "Login failed"
        assert notification.description == "popup blocked"
        assert notification.destructive is True

    def test_connect_wallet_success_notifies(self):
        controller, _ = build_controller(wallet_provider=FakeWalletProvider(grant=[ADDRESS]))

        wallet = asyncio.run(controller.connect_wallet())

        assert wallet.address == ADDRESS.lower()
        assert last_notification(controller).title == "Wallet connected"

    def test_connect_wallet_when_connected_is_silent(self):
        provider = FakeWalletProvider(authorized=[ADDRESS])
        controller, _ = build_controller(wallet_provider=provider)

        async def run():
            await controller.mount()
            return await controller.connect_wallet()

        wallet = asyncio.run(run())

        assert wallet.address == ADDRESS.lower()
        assert provider.access_calls == 0
        assert controller.notifications.active == []

    def test_overlapping_connect_wallet_prompts_once(self):
        provider = FakeWalletProvider(grant=[ADDRESS])
        controller, _ = build_controller(wallet_provider=provider)

        async def run():
            return await asyncio.gather(controller.connect_wallet(), controller.connect_wallet())

        first, second = asyncio.run(run())

        assert provider.access_calls == 1
        assert first.address == ADDRESS.lower()
        assert second is None
        assert [n.title for n in controller.notifications.active] == ["Wallet connected"]
        assert controller.view().wallet_loading is False

    def test_connect_wallet_after_close_is_silent(self):
        provider = FakeWalletProvider(grant=[ADDRESS])
        controller, _ = build_controller(wallet_provider=provider)
        grant = provider.request_access

        async def closing_request_access():
            await grant()
            controller.close()

        provider.request_access = closing_request_access

        assert asyncio.run(controller.connect_wallet()) is None
        assert controller.wallet.connected is False
        assert controller.notifications.active == []

    def test_connect_wallet_failure_notifies(self):
        controller, _ = build_controller(wallet_provider=None)

        assert asyncio.run(controller.connect_wallet()) is None
        notification = last_notification(controller)
        assert notification.title == "Wallet connection failed"
        assert notification.destructive is True
        assert controller.view().wallet_loading is False


class TestClaim:
    """The claim transition is guarded but not yet backed by a remote call."""

    def test_claim_requires_found_login_and_wallet(self):
        controller, _ = build_controller()

        assert controller.can_claim is False
        assert controller.claim_blockers() == [
            "find a shipment first",
            "sign in",
            "connect a wallet",
        ]
        assert asyncio.run(controller.claim()) is False
        assert last_notification(controller).title == "Claim unavailable"

    def test_claim_with_all_preconditions_is_disabled(self):
        controller, _ = build_controller(
            identity_provider=FakeIdentityProvider(initial_user=FakeUser()),
            wallet_provider=FakeWalletProvider(authorized=[ADDRESS]),
        )

        async def run():
            await controller.mount()
            await controller.search("SHIP-002")
            return await controller.claim()

        assert asyncio.run(run()) is False
        assert controller.can_claim is True
        assert controller.state == DisclosureState.FOUND
        assert controller.session.claim_status == ClaimStatus.UNCLAIMED
        assert last_notification(controller).description == CLAIM_DISABLED_MESSAGE


class TestFactory:
    """Test wiring from settings."""

    def test_create_disclosure_controller(self, monkeypatch):
        monkeypatch.setenv("SHIPMENT_STORE_URL", "https://store.example/")
        monkeypatch.setenv("TOKEN_EXPLORER_URL", "https://explorer.example")
        settings = Settings()
        store = RecordingStore()

        controller = create_disclosure_controller(
            settings,
            FakeIdentityProvider(),
            browser=RecordingBrowser(),
            http_client=store.client(),
        )
        record = asyncio.run(controller.search("SHIP-001"))

        assert record.shipment_id == "SHIP-001"
        assert str(store.requests[0].url) == "https://store.example/shipments/SHIP-001.json"
        assert controller.explorer.url == "https://explorer.example"
