"""
Google Sheets append-only client using gspread with service-account credentials.
"""
import asyncio
from typing import List

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from loguru import logger

from jurisdiction_finder.config import (
    GOOGLE_SHEETS_SPREADSHEET_ID,
    GOOGLE_SHEETS_CLIENT_EMAIL,
    GOOGLE_SHEETS_PRIVATE_KEY,
    GOOGLE_SHEETS_RANGE,
)
from jurisdiction_finder.errors import ConfigurationMissing, SheetExportFailed

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetsClient:
    """Appends rows to the first worksheet of the configured spreadsheet."""

    def __init__(self):
        if not (GOOGLE_SHEETS_SPREADSHEET_ID and GOOGLE_SHEETS_CLIENT_EMAIL and GOOGLE_SHEETS_PRIVATE_KEY):
            raise ConfigurationMissing("Google Sheets の設定が不足しています")
        self.spreadsheet_id = GOOGLE_SHEETS_SPREADSHEET_ID
        # Keys pasted into .env keep their newlines escaped
        private_key = GOOGLE_SHEETS_PRIVATE_KEY.replace("\\n", "\n")
        self.credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": GOOGLE_SHEETS_CLIENT_EMAIL,
                "private_key": private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            },
            scopes=SCOPES,
        )

    def _append(self, rows: List[List[str]]) -> None:
        gc = gspread.authorize(self.credentials)
        spreadsheet = gc.open_by_key(self.spreadsheet_id)
        spreadsheet.values_append(
            GOOGLE_SHEETS_RANGE,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": rows},
        )

    async def append_rows(self, rows: List[List[str]]) -> None:
        """
        Append rows to range A:H without blocking the event loop.

        Raises:
            SheetExportFailed: If authorization or the append call fails.
        """
        try:
            await asyncio.to_thread(self._append, rows)
        except (gspread.exceptions.GSpreadException, GoogleAuthError, ValueError, OSError) as e:
            logger.error(f"❌ Google Sheets append failed: {e}")
            raise SheetExportFailed() from e
