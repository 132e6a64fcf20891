"""Services package."""

from haseela.services.backup import (
    InvalidDocumentError,
    backup_filename,
    export_document,
    parse_document,
)
from haseela.services.identity import (
    IdentityError,
    IdentityProvider,
    InMemoryIdentityProvider,
    Session,
    SessionEvent,
)
from haseela.services.storage import (
    CacheCorruptedError,
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsStateStorage,
    LocalStateCache,
    RemoteStoreError,
    StateStorageInterface,
    StorageError,
    StoredState,
)

__all__ = [
    # Backup
    "InvalidDocumentError",
    "backup_filename",
    "export_document",
    "parse_document",
    # Identity
    "IdentityError",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "Session",
    "SessionEvent",
    # Storage services
    "CacheCorruptedError",
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsStateStorage",
    "LocalStateCache",
    "RemoteStoreError",
    "StateStorageInterface",
    "StorageError",
    "StoredState",
]
