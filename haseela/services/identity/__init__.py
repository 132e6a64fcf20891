"""Identity provider package."""

from haseela.services.identity.interface import (
    IdentityError,
    IdentityProvider,
    Session,
    SessionEvent,
    SessionListener,
)
from haseela.services.identity.memory import InMemoryIdentityProvider

__all__ = [
    "IdentityError",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "Session",
    "SessionEvent",
    "SessionListener",
]
