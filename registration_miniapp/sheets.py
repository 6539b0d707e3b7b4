from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol, Sequence

import google_auth_httplib2
import httplib2
from google.oauth2.service_account import Credentials as GoogleServiceAccountCredentials
from googleapiclient.discovery import build as google_build

from registration_miniapp.config import DEFAULT_REQUEST_TIMEOUT, AppConfig

LOGGER = logging.getLogger(__name__)


class RowStore(Protocol):
    """Row-oriented store: read one column, append one row."""

    def read_column(self, range_name: str) -> list[str]:
        ...

    def append_row(self, range_name: str, values: Sequence[Any]) -> None:
        ...


class GoogleSheetsStore:
    """Registrations sheet backed by the Google Sheets v4 API.

    httplib2 is not thread-safe, so every executor thread gets its own
    service and ``Http``.  The socket timeout on that ``Http`` bounds each
    call; an aborted append raises instead of completing in the background.
    """

    SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

    def __init__(
        self,
        spreadsheet_id: str,
        credentials: GoogleServiceAccountCredentials,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.timeout = timeout
        self._credentials = credentials
        self._local = threading.local()

    @classmethod
    def from_config(cls, config: AppConfig) -> Optional["GoogleSheetsStore"]:
        if not config.spreadsheet_id or not config.service_account_info:
            return None
        try:
            credentials = GoogleServiceAccountCredentials.from_service_account_info(
                config.service_account_info,
                scopes=cls.SCOPES,
            )
        except (ValueError, TypeError) as exc:
            raise RuntimeError(f"Invalid Google service account credentials: {exc}") from exc
        return cls(config.spreadsheet_id, credentials, timeout=config.request_timeout)

    @property
    def url(self) -> str:
        return f"https://docs.google.com/spreadsheets/d/{self.spreadsheet_id}/edit"

    def read_column(self, range_name: str) -> list[str]:
        response = (
            self._build_service()
            .spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=range_name)
            .execute()
        )
        rows = response.get("values") or []
        return [str(row[0]) if row else "" for row in rows]

    def append_row(self, range_name: str, values: Sequence[Any]) -> None:
        self._build_service().spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=range_name,
            valueInputOption="RAW",
            body={"values": [list(values)]},
        ).execute()

    def authorized_http(self) -> google_auth_httplib2.AuthorizedHttp:
        # credentials are refreshed by AuthorizedHttp before each request
        return google_auth_httplib2.AuthorizedHttp(
            self._credentials,
            http=httplib2.Http(timeout=self.timeout),
        )

    def _build_service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            service = google_build(
                "sheets",
                "v4",
                http=self.authorized_http(),
                cache_discovery=False,
            )
            self._local.service = service
        return service


class InMemoryRowStore:
    """Process-local store for tests and explicit local development."""

    def __init__(self) -> None:
        self._sheets: dict[str, list[list[Any]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _sheet_and_column(range_name: str) -> tuple[str, int]:
        sheet, _, cells = range_name.partition("!")
        column = cells.split(":", 1)[0].rstrip("0123456789") if cells else "A"
        index = 0
        for char in column.upper():
            index = index * 26 + (ord(char) - ord("A") + 1)
        return sheet.strip("'"), max(index - 1, 0)

    def rows(self, sheet: str) -> list[list[Any]]:
        with self._lock:
            return [list(row) for row in self._sheets.get(sheet, [])]

    def read_column(self, range_name: str) -> list[str]:
        sheet, column = self._sheet_and_column(range_name)
        with self._lock:
            return [
                str(row[column]) if len(row) > column else ""
                for row in self._sheets.get(sheet, [])
            ]

    def append_row(self, range_name: str, values: Sequence[Any]) -> None:
        sheet, _ = self._sheet_and_column(range_name)
        with self._lock:
            self._sheets.setdefault(sheet, []).append(list(values))


def build_row_store(config: AppConfig) -> RowStore:
    store = GoogleSheetsStore.from_config(config)
    if store is not None:
        LOGGER.info("Registrations are written to %s", store.url)
        return store
    if config.use_memory_store:
        LOGGER.warning(
            "REGISTRATION_STORE=memory: registrations are kept in memory and lost on restart."
        )
        return InMemoryRowStore()
    raise RuntimeError(
        "Google Sheets is not configured. Set GOOGLE_SHEET_ID and service account "
        "credentials, or REGISTRATION_STORE=memory for local development."
    )


__all__ = ["RowStore", "GoogleSheetsStore", "InMemoryRowStore", "build_row_store"]
