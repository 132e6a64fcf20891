"""
In-Process Identity Provider

Accounts live in memory for the lifetime of the process. Used for local
development (identity_backend="memory") and for tests. It is NOT an
authentication system: passwords do not survive a restart, so every
restart means signing up again. User ids are derived from the email, so
the same address always reaches the same remote record.
"""

import hashlib
import hmac
import os
from typing import Callable, Optional
from uuid import NAMESPACE_URL, uuid5

import structlog

from haseela.services.identity.interface import (
    IdentityError,
    IdentityProvider,
    Session,
    SessionEvent,
    SessionListener,
)


MIN_PASSWORD_LENGTH = 6

# Fixed namespace so an email maps to the same user id in every process
USER_ID_NAMESPACE = uuid5(NAMESPACE_URL, "https://haseela.app/users")

logger = structlog.get_logger(__name__)


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)


def user_id_for(email: str) -> str:
    """Stable user id for a normalized email address."""
    return str(uuid5(USER_ID_NAMESPACE, email))


class InMemoryIdentityProvider(IdentityProvider):
    """Email/password accounts held in a dict."""

    def __init__(self):
        # email -> (user_id, salt, password_hash)
        self._accounts: dict[str, tuple[str, bytes, bytes]] = {}
        self._session: Optional[Session] = None
        self._listeners: list[SessionListener] = []

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def _notify(self, event: SessionEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception("session_listener_failed", session_event=event.value)

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        email = self._normalize_email(email)
        if "@" not in email:
            raise IdentityError("A valid email address is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise IdentityError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if email in self._accounts:
            raise IdentityError("An account with this email already exists")

        salt = os.urandom(16)
        self._accounts[email] = (user_id_for(email), salt, _hash_password(password, salt))
        return await self.sign_in(email, password)

    async def sign_in(self, email: str, password: str) -> Session:
        email = self._normalize_email(email)
        account = self._accounts.get(email)
        if account is None:
            raise IdentityError("Invalid email or password")

        user_id, salt, expected = account
        if not hmac.compare_digest(_hash_password(password or "", salt), expected):
            raise IdentityError("Invalid email or password")

        self._session = Session(user_id=user_id, email=email)
        self._notify(SessionEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._notify(SessionEvent.SIGNED_OUT, None)

    async def get_current_session(self) -> Optional[Session]:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def expire_session(self) -> None:
        """End the session from the provider's side (token expiry, revocation)."""
        if self._session is None:
            return
        self._session = None
        self._notify(SessionEvent.SIGNED_OUT, None)
