"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the remote store.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the sync policy decoupled from the backend

The remote store is deliberately dumb: one record per identity holding
the whole state document, replaced wholesale on every write. There is
no merge and no version check (last writer wins).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from haseela.models.ledger import AppState


class StoredState(BaseModel):
    """A state document as held by the remote store."""

    user_id: str
    state: AppState
    updated_at: datetime


class StateStorageInterface(ABC):
    """
    Abstract interface for the remote state store.

    Any backend (Google Sheets, PostgreSQL, etc.) must implement these
    methods.
    """

    @abstractmethod
    async def load_state(self, user_id: str) -> Optional[StoredState]:
        """
        Read the state record for an identity.

        Args:
            user_id: The authenticated identity's id

        Returns:
            The stored record, or None if the identity has none

        Raises:
            StorageError: If the backend cannot be read or the record
                          is malformed
        """
        pass

    @abstractmethod
    async def save_state(self, user_id: str, state: AppState) -> bool:
        """
        Insert or fully replace the state record for an identity.

        Args:
            user_id: The authenticated identity's id
            state: The complete state to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CacheCorruptedError(StorageError):
    """The local cache holds data that cannot be used."""
    pass


class RemoteStoreError(StorageError):
    """The remote store failed or returned unusable data."""
    pass


class ConnectionError(RemoteStoreError):
    """Could not connect to storage backend."""
    pass


class ConfigurationError(RemoteStoreError):
    """The backend is misconfigured; retrying will not help."""
    pass
