"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the remote store because:
1. Users can see (and back up) their own data directly in Sheets
2. No database setup required
3. Built-in durability (Google's infrastructure)

LAYOUT: one worksheet, one row per identity:
    user_id | updated_at | state_json | state_json (cont.) | ...

A cell holds at most 50,000 characters, so the JSON document is split
into chunks of STATE_CHUNK_SIZE written to consecutive cells and joined
back on read. A ledger of any realistic size fits in one row.

TRADEOFFS:
- No transactions: an upsert is a read followed by a row write, and
  two devices writing at once simply race (last writer wins)

gspread is synchronous, so every call runs in a worker thread to keep
remote pushes from blocking the event loop.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from haseela.config import get_settings
from haseela.models.ledger import AppState
from haseela.services.storage.interface import (
    ConfigurationError,
    ConnectionError,
    RemoteStoreError,
    StateStorageInterface,
    StoredState,
)
from haseela.validation import DocumentValidator


# Column mappings for the state sheet; state_json spills into the
# columns to its right when the document outgrows one cell
STATE_COLUMNS = [
    "user_id",
    "updated_at",
    "state_json",
]

STATE_CHUNK_SIZE = 45_000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and the state worksheet. Retries live in the
    storage layer.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication. A missing or
        unreadable credentials file raises ConfigurationError.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConfigurationError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except ValueError as e:
                raise ConfigurationError(f"Invalid Google credentials file: {e}")
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConfigurationError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_state_sheet(self) -> gspread.Worksheet:
        """Get or create the state worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.state_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.state_sheet_name,
                rows=100,
                cols=len(STATE_COLUMNS),
            )
            sheet.append_row(STATE_COLUMNS)
        return sheet


class GoogleSheetsStateStorage(StateStorageInterface):
    """
    Google Sheets implementation of the remote state store.

    The state document is stored JSON-serialized across one or more
    cells of the identity's row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._validator = DocumentValidator()

    def _state_to_row(
        self,
        user_id: str,
        state: AppState,
        updated_at: datetime,
    ) -> list:
        """Convert a state to a spreadsheet row."""
        state_json = json.dumps(
            state.to_document(),
            ensure_ascii=False,
            separators=(",", ":"),
        )
        chunks = [
            state_json[start:start + STATE_CHUNK_SIZE]
            for start in range(0, len(state_json), STATE_CHUNK_SIZE)
        ]
        return [user_id, updated_at.isoformat(), *chunks]

    def _row_to_stored(self, row: list) -> Optional[StoredState]:
        """
        Convert a spreadsheet row to a StoredState.

        A row with a blank state cell counts as no record.
        """
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        state_json = "".join(
            cell for cell in row[len(STATE_COLUMNS) - 1:] if cell
        ).strip()
        if not state_json:
            return None

        try:
            document = json.loads(state_json)
        except json.JSONDecodeError as e:
            raise RemoteStoreError(f"Stored state is not valid JSON: {e}")

        result = self._validator.validate(document)
        if not result.is_valid:
            raise RemoteStoreError("; ".join(result.messages))

        updated_raw = safe_get(1)
        try:
            return StoredState(
                user_id=safe_get(0),
                state=AppState.from_document(document),
                updated_at=(
                    datetime.fromisoformat(updated_raw)
                    if updated_raw
                    else datetime.fromtimestamp(0, tz=timezone.utc)
                ),
            )
        except (ValidationError, ValueError) as e:
            raise RemoteStoreError(f"Stored state failed validation: {e}")

    def _find_row(self, rows: list[list], user_id: str) -> Optional[int]:
        """1-based sheet row index of the user's record (row 1 is the header)."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == user_id:
                return idx
        return None

    def _read_record(self, user_id: str) -> Optional[StoredState]:
        try:
            rows = self._client.get_state_sheet().get_all_values()
        except RemoteStoreError:
            raise
        except Exception as e:
            raise ConnectionError(f"Failed to read state: {e}")

        idx = self._find_row(rows, user_id)
        if idx is None:
            return None
        return self._row_to_stored(rows[idx - 1])

    def _write_record(self, user_id: str, state: AppState) -> bool:
        try:
            sheet = self._client.get_state_sheet()
            row = self._state_to_row(user_id, state, datetime.now(timezone.utc))

            rows = sheet.get_all_values()
            idx = self._find_row(rows, user_id)
            if idx is not None:
                # Blank out chunks left over from a longer previous document
                previous_width = len(rows[idx - 1])
                row += [""] * (previous_width - len(row))

            if sheet.col_count < len(row):
                sheet.add_cols(len(row) - sheet.col_count)

            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    values=[row],
                    range_name=f"A{idx}:{rowcol_to_a1(idx, len(row))}",
                    value_input_option="RAW",
                )
            return True
        except RemoteStoreError:
            raise
        except Exception as e:
            raise RemoteStoreError(f"Failed to save state: {e}")

    @retry(
        retry=retry_if_exception_type(ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def load_state(self, user_id: str) -> Optional[StoredState]:
        """
        Read the identity's state record.

        Transient connection failures are retried. Configuration errors
        and malformed records are raised straight away.
        """
        return await asyncio.to_thread(self._read_record, user_id)

    async def save_state(self, user_id: str, state: AppState) -> bool:
        """
        Upsert the identity's state record.

        Attempted once: a failed push is dropped, and the next mutation
        pushes the full state again anyway.
        """
        return await asyncio.to_thread(self._write_record, user_id, state)
