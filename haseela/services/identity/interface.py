"""
Identity Provider Interface

Authentication is delegated to an external provider and treated as a
black box. The sync layer only needs three things from it:
1. Is there a session right now?
2. Which user id does it belong to?
3. Tell me when the session ends.

Sign-up / sign-in / sign-out are exposed for the UI, which shows any
IdentityError to the user as a message.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field


class SessionEvent(str, Enum):
    """Session change notifications."""
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


class Session(BaseModel):
    """An authenticated identity session."""

    user_id: str = Field(..., min_length=1)
    email: str
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


SessionListener = Callable[[SessionEvent, Optional[Session]], None]


class IdentityError(Exception):
    """Sign-in, sign-up or session lookup failed."""
    pass


class IdentityProvider(ABC):
    """Abstract interface for an identity provider."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        """
        Register a new account.

        Returns:
            The new session, or None if the provider requires a
            confirmation step before the first sign-in

        Raises:
            IdentityError: If registration fails
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        """
        Start a session with email and password.

        Raises:
            IdentityError: On bad credentials or provider failure
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session (no-op if there is none)."""
        pass

    @abstractmethod
    async def get_current_session(self) -> Optional[Session]:
        """The active session, or None."""
        pass

    @abstractmethod
    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a session change listener.

        Returns:
            A callable that removes the listener
        """
        pass
