"""
Local State Cache

A single key-value slot on disk: one JSON file whose `storage_key`
entry holds the full state document. This is the fast, always-available
copy; it is read once at startup and rewritten after every mutation.

Writes are atomic (temp file in the same directory, then os.replace),
so a crash mid-write leaves the previous document intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from haseela.config import get_settings
from haseela.models.ledger import AppState
from haseela.services.storage.interface import CacheCorruptedError, StorageError
from haseela.validation import DocumentValidator


class LocalStateCache:
    """JSON-file backed cache with exactly one state slot."""

    def __init__(
        self,
        path: Optional[Path] = None,
        storage_key: Optional[str] = None,
    ):
        if path is None or storage_key is None:
            settings = get_settings().local_cache
            path = path or settings.path
            storage_key = storage_key or settings.storage_key
        self._path = Path(path).expanduser()
        self._key = storage_key
        self._validator = DocumentValidator()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def storage_key(self) -> str:
        return self._key

    def _read_slots(self) -> dict:
        """Read every slot in the file; {} if the file does not exist."""
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptedError(f"Cannot read local cache {self._path}: {e}")
        if not isinstance(raw, dict):
            raise CacheCorruptedError(f"Local cache {self._path} is not a JSON object")
        return raw

    def _write_slots(self, slots: dict) -> None:
        content = json.dumps(slots, ensure_ascii=False, indent=2)
        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp_file:
                tmp_path = tmp_file.name
                tmp_file.write(content)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write local cache {self._path}: {e}")

    def load(self) -> Optional[AppState]:
        """
        Read the cached state.

        Returns None when nothing has been cached yet.

        Raises:
            CacheCorruptedError: If the slot exists but is unusable
        """
        document = self._read_slots().get(self._key)
        if document is None:
            return None

        result = self._validator.validate(document)
        if not result.is_valid:
            raise CacheCorruptedError("; ".join(result.messages))

        try:
            return AppState.from_document(document)
        except ValidationError as e:
            raise CacheCorruptedError(f"Cached state failed validation: {e}")

    def save(self, state: AppState) -> None:
        """
        Overwrite the slot with the given state.

        Other keys in the file are preserved if the file is readable.
        """
        try:
            slots = self._read_slots()
        except CacheCorruptedError:
            slots = {}
        slots[self._key] = state.to_document()
        self._write_slots(slots)

    def clear(self) -> None:
        """Remove the slot; delete the file if nothing else is in it."""
        try:
            slots = self._read_slots()
        except CacheCorruptedError:
            slots = {}

        slots.pop(self._key, None)
        if slots:
            self._write_slots(slots)
            return

        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear local cache {self._path}: {e}")
