"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a synced backend because:
1. Users can look at their ledger data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Another device can write the sheet and fire a reload

Each logical key is one row: key | value_json | updated_at.

TRADEOFFS:
- Whole collections are stored as JSON in one cell (fine for personal use)
- Multi-key writes go out as one batch_update request
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_ledger.config import GoogleSheetsSettings, get_settings
from finance_ledger.services.storage.interface import (
    ConnectionError,
    CorruptDataError,
    EntityStoreInterface,
    StorageError,
)


# Column mappings for the store sheet
STORE_COLUMNS = [
    "key",
    "value_json",
    "updated_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
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
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
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
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.worksheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.worksheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsEntityStore(EntityStoreInterface):
    """
    Google Sheets implementation of the entity store.

    Values are JSON-serialized into the value_json column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _index_rows(self, sheet: gspread.Worksheet) -> tuple[dict[str, tuple[int, str]], int]:
        """
        Map each key to (row_number, value_json).

        Also returns the number of rows in use, header included.
        """
        all_rows = sheet.get_all_values()
        index = {}
        # Start from 2 (row 1 is header)
        for row_number, row in enumerate(all_rows[1:], start=2):
            if row and row[0]:
                index[row[0]] = (row_number, row[1] if len(row) > 1 else "")
        return index, len(all_rows)

    @retry(
        retry=retry_if_not_exception_type(CorruptDataError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def load(self, key: str) -> Optional[Any]:
        """Load a key's JSON value from its row."""
        try:
            sheet = self._client.get_store_sheet()
            index, _ = self._index_rows(sheet)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {key}: {e}")

        entry = index.get(key)
        if entry is None or not entry[1]:
            return None

        try:
            return json.loads(entry[1])
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Stored value for {key} is not valid JSON: {e}")

    async def save(self, key: str, value: Any) -> None:
        await self.save_many({key: value})

    async def save_many(self, items: dict[str, Any]) -> None:
        """Write every key in a single batch_update request."""
        try:
            payloads = {
                key: json.dumps(value, ensure_ascii=False)
                for key, value in items.items()
            }
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value is not JSON serializable: {e}")

        await self._write_payloads(payloads)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _write_payloads(self, payloads: dict[str, str]) -> None:
        try:
            sheet = self._client.get_store_sheet()
            index, used_rows = self._index_rows(sheet)
            updated_at = datetime.now(timezone.utc).isoformat()

            next_row = used_rows + 1
            data = []
            for key, payload in payloads.items():
                if key in index:
                    row_number = index[key][0]
                else:
                    row_number = next_row
                    next_row += 1
                data.append({
                    "range": f"A{row_number}:C{row_number}",
                    "values": [[key, payload, updated_at]],
                })

            last_row = next_row - 1
            if last_row > sheet.row_count:
                sheet.add_rows(last_row - sheet.row_count)

            if data:
                sheet.batch_update(data, value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {', '.join(payloads)}: {e}")

    async def delete(self, key: str) -> None:
        """Delete a key's row if it exists."""
        try:
            sheet = self._client.get_store_sheet()
            index, _ = self._index_rows(sheet)
            if key in index:
                sheet.delete_rows(index[key][0])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {key}: {e}")
