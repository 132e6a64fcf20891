"""Backup export/import package."""

from haseela.services.backup.documents import (
    BACKUP_MIME_TYPE,
    InvalidDocumentError,
    backup_filename,
    export_document,
    parse_document,
)

__all__ = [
    "BACKUP_MIME_TYPE",
    "InvalidDocumentError",
    "backup_filename",
    "export_document",
    "parse_document",
]
