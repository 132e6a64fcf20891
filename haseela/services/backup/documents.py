"""
Backup Documents

Export writes the complete state as pretty-printed JSON; import reads
such a file back. The format is the same camelCase document used by the
local cache and the remote store, so backups written by earlier
releases (camelCase field names) import unchanged.

Import is all-or-nothing: the document is parsed, schema-checked and
fully validated into an AppState before anything is replaced.
"""

import json
from datetime import date
from typing import Optional, Union

from pydantic import ValidationError

from haseela.models.ledger import AppState
from haseela.validation import DocumentValidator


BACKUP_FILENAME_TEMPLATE = "haseela_backup_{day}.json"
BACKUP_MIME_TYPE = "application/json"


class InvalidDocumentError(Exception):
    """An import document could not be accepted."""
    pass


def backup_filename(today: Optional[date] = None) -> str:
    """Download name for an export taken today."""
    return BACKUP_FILENAME_TEMPLATE.format(day=(today or date.today()).isoformat())


def export_document(state: AppState) -> str:
    """Serialize the whole state losslessly."""
    return json.dumps(state.to_document(), ensure_ascii=False, indent=2)


def parse_document(content: Union[str, bytes]) -> AppState:
    """
    Parse and validate an import document.

    Raises:
        InvalidDocumentError: If the content is not JSON, fails the
                              minimal schema check, or fails validation
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InvalidDocumentError(f"File is not UTF-8 text: {e}")

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidDocumentError(f"File is not valid JSON: {e}")

    result = DocumentValidator().validate(document)
    if not result.is_valid:
        raise InvalidDocumentError("; ".join(result.messages))

    try:
        return AppState.from_document(document)
    except ValidationError as e:
        raise InvalidDocumentError(
            f"File contents are invalid ({e.error_count()} problems): {e}"
        )
