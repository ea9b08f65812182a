"""
Google Sheets backend

The persistent option for personal use: the user can open the
spreadsheet and read every record, and no database has to be run.
The ledger writes affected records one after another; Sheets offers
no multi-row transaction, and all filtering happens in Python.

Each collection lives in its own worksheet. A row holds the record id,
the record serialized as JSON and the time of the last write, so the
sheet layout never changes when a model gains a field.
"""

from datetime import datetime
from typing import Optional, Type

import gspread
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import get_settings
from finance_tracker.log import get_logger
from finance_tracker.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    EntityStorageInterface,
    NotFoundError,
    StorageError,
    T,
)


# Column layout shared by every collection worksheet
RECORD_COLUMNS = [
    "id",
    "payload_json",
    "updated_at",
]

logger = get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet for a collection."""
        title = self._settings.sheet_name_for(collection)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(RECORD_COLUMNS),
            )
            sheet.append_row(RECORD_COLUMNS)
        return sheet


class GoogleSheetsEntityStorage(EntityStorageInterface[T]):
    """
    Google Sheets implementation of a collection repository.

    One record per row; the record body is stored as JSON.
    """

    def __init__(
        self,
        collection: str,
        model: Type[T],
        client: Optional[GoogleSheetsClient] = None,
    ):
        self.collection = collection
        self._model = model
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: T) -> list:
        return [
            record.id,
            record.model_dump_json(),
            datetime.utcnow().isoformat(),
        ]

    def _row_to_record(self, row: list) -> T:
        return self._model.model_validate_json(row[1])

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_collection_sheet(self.collection)

    def _find_row_index(self, rows: list[list], record_id: str) -> Optional[int]:
        """1-based sheet row index for a record id (row 1 is the header)."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == record_id:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
        reraise=True,
    )
    def save(self, record: T) -> T:
        try:
            sheet = self._sheet()
            if self._find_row_index(sheet.get_all_values(), record.id):
                raise DuplicateError(
                    f"{self.collection}: record {record.id} already exists"
                )
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self.collection} record: {e}")

    def get(self, record_id: str) -> Optional[T]:
        try:
            rows = self._sheet().get_all_values()
            idx = self._find_row_index(rows, record_id)
            if idx is None:
                return None
            return self._row_to_record(rows[idx - 1])
        except Exception as e:
            raise StorageError(f"Failed to get {self.collection} record: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type((DuplicateError, NotFoundError)),
        reraise=True,
    )
    def update(self, record: T) -> T:
        try:
            sheet = self._sheet()
            idx = self._find_row_index(sheet.get_all_values(), record.id)
            if idx is None:
                raise NotFoundError(f"{self.collection}: record {record.id} not found")

            row = self._record_to_row(record)
            # One write per row keeps payload and updated_at together
            cell_range = f"A{idx}:{rowcol_to_a1(idx, len(row))}"
            sheet.update(range_name=cell_range, values=[row], value_input_option="RAW")
            return record
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self.collection} record: {e}")

    def list_all(self) -> list[T]:
        try:
            rows = self._sheet().get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list {self.collection}: {e}")

        records = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                records.append(self._row_to_record(row))
            except ValueError as e:
                logger.warning(
                    "storage_row_unreadable",
                    collection=self.collection,
                    record_id=row[0],
                    error=str(e),
                )
        return records

    def clear(self) -> None:
        try:
            sheet = self._sheet()
            sheet.clear()
            sheet.append_row(RECORD_COLUMNS)
        except Exception as e:
            raise StorageError(f"Failed to clear {self.collection}: {e}")
