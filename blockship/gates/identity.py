"""
Identity gate: tracks whether the user holds an account session.
"""

from __future__ import annotations

from typing import Optional

from blockship.core.exceptions import AuthError
from blockship.core.logging import identity_logger as logger
from blockship.gates.providers import IdentityProvider, SessionUser, Unsubscribe

DEFAULT_SIGN_IN_ERROR = "Unknown error occurred"


class IdentityGate:
    """
    Boolean view of the identity provider's session.

    The gate holds a live subscription between `mount()` and `close()`;
    session events delivered outside that window are ignored.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._authenticated = False
        self._unsubscribe: Optional[Unsubscribe] = None
        self._closed = False

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> None:
        """Subscribe to session changes. Mounting twice is a no-op."""
        if self._closed:
            raise RuntimeError("IdentityGate cannot be mounted after close()")
        if self._unsubscribe is not None:
            return
        # Set before subscribing so providers that emit synchronously are heard
        self._unsubscribe = lambda: None
        self._unsubscribe = self.provider.subscribe(self._on_session_change)
        logger.debug("Identity subscription established")

    def close(self) -> None:
        """Release the subscription."""
        self._closed = True
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()
            logger.debug("Identity subscription released")

    def __enter__(self) -> "IdentityGate":
        self.mount()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _on_session_change(self, user: Optional[SessionUser]) -> None:
        if self._closed or self._unsubscribe is None:
            logger.debug("Ignoring session change after teardown")
            return
        self._authenticated = user is not None
        logger.info("Session changed", authenticated=self._authenticated)

    async def sign_in(self) -> None:
        """
        Run the provider's interactive sign-in once.

        Raises:
            AuthError: With the provider's message, or a generic one
        """
        try:
            await self.provider.interactive_sign_in()
        except Exception as e:
            message = str(e) or DEFAULT_SIGN_IN_ERROR
            logger.warning("Sign-in failed", error=message, error_type=type(e).__name__)
            raise AuthError(message, details={"provider_error": type(e).__name__}) from e

        logger.info("Sign-in completed")
