"""
Capability interfaces for the external collaborators of the receiver.

Providers are constructed once at process start and passed explicitly to the
gates and the disclosure controller, so tests can substitute fakes.
"""

from __future__ import annotations

import webbrowser
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

# A provider-specific user object; only its presence matters to the gates.
SessionUser = Any
Unsubscribe = Callable[[], None]


@runtime_checkable
class IdentityProvider(Protocol):
    """Account session provider (e.g. an OAuth-backed login)."""

    def subscribe(self, on_change: Callable[[Optional[SessionUser]], None]) -> Unsubscribe:
        """Register for session changes; returns a callable releasing the subscription."""
        ...

    async def interactive_sign_in(self) -> None:
        """Run the provider's interactive sign-in; raises on failure."""
        ...


@runtime_checkable
class WalletProvider(Protocol):
    """Injected blockchain wallet (EIP-1193 style)."""

    async def list_authorized_accounts(self) -> List[str]:
        """Accounts already authorized for this client, without prompting."""
        ...

    async def request_access(self) -> None:
        """Ask the user to authorize this client; may prompt."""
        ...


@runtime_checkable
class BrowsingContext(Protocol):
    """Somewhere a URL can be opened for the user."""

    def open_new(self, url: str) -> None:
        ...


class HeadlessIdentityProvider:
    """
    Identity provider for terminal sessions with no login flow.

    Reports no user on subscribe; interactive sign-in always fails.
    """

    def subscribe(self, on_change: Callable[[Optional[SessionUser]], None]) -> Unsubscribe:
        on_change(None)
        return lambda: None

    async def interactive_sign_in(self) -> None:
        raise RuntimeError("Interactive sign-in is not available in this environment")


class SystemBrowser:
    """Opens URLs in a new tab of the system web browser."""

    def open_new(self, url: str) -> None:
        logger.info("Opening URL in browser", url=url)
        webbrowser.open_new_tab(url)
