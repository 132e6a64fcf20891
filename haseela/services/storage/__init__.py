"""
Storage Services Package

Provides the local cache, the abstract remote store interface, and a
Google Sheets implementation of the remote store.
"""

from haseela.services.storage.interface import (
    CacheCorruptedError,
    ConfigurationError,
    ConnectionError,
    RemoteStoreError,
    StateStorageInterface,
    StorageError,
    StoredState,
)
from haseela.services.storage.local_cache import LocalStateCache
from haseela.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsStateStorage,
)

__all__ = [
    # Interfaces
    "StateStorageInterface",
    "StoredState",
    # Exceptions
    "CacheCorruptedError",
    "ConfigurationError",
    "ConnectionError",
    "RemoteStoreError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsStateStorage",
    "LocalStateCache",
]
