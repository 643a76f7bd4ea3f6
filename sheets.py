import asyncio
import base64
import json
import logging
import re

import gspread
from google.oauth2.service_account import Credentials

from result import Result

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/spreadsheets', 'https://www.googleapis.com/auth/drive']
COLUMN_RANGE = 'A:F'
NOT_READY_MESSAGE = 'Google Sheets API not initialized or spreadsheet ID not found.'


def get_spreadsheet_id(url):
    """Pull the spreadsheet key out of a docs.google.com URL"""
    match = re.search(r'/d/([a-zA-Z0-9_-]+)', url or '')
    return match.group(1) if match else None


def load_credentials(service_account_file=None, service_account_json=None):
    """Build service account credentials from an env JSON blob or a key file"""
    if service_account_json:
        # Handle potential base64 encoding
        if not service_account_json.strip().startswith('{'):
            service_account_json = base64.b64decode(service_account_json).decode('utf-8')
            logger.info("🔓 Decoded base64 credentials")
        info = json.loads(service_account_json)
        logger.info("✅ Using service account credentials from environment")
        return Credentials.from_service_account_info(info, scopes=SCOPES)

    logger.info(f"✅ Using service account file {service_account_file}")
    return Credentials.from_service_account_file(service_account_file, scopes=SCOPES)


class ExpenseSheet:
    """The single worksheet that holds every expense row"""

    def __init__(self, spreadsheet_id, worksheet_name='Sheet1', worksheet=None):
        self.spreadsheet_id = spreadsheet_id
        self.worksheet_name = worksheet_name
        self.worksheet = worksheet

    @property
    def range_name(self):
        return f"{self.worksheet_name}!{COLUMN_RANGE}"

    def connect(self, credentials):
        """Authorize and open the worksheet; errors propagate since nothing works without it"""
        if not self.spreadsheet_id:
            raise ValueError(NOT_READY_MESSAGE)
        gc = gspread.authorize(credentials)
        spreadsheet = gc.open_by_key(self.spreadsheet_id)
        self.worksheet = spreadsheet.worksheet(self.worksheet_name)
        logger.info(f"✅ Google Sheets authenticated, using {self.range_name}")
        return self.worksheet

    async def _run(self, func, *args, **kwargs):
        # gspread is blocking; keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    async def append_row(self, record):
        """Append one expense row, letting Sheets detect numbers and dates"""
        if self.worksheet is None:
            return Result.failure(NOT_READY_MESSAGE)
        try:
            await self._run(
                self.worksheet.append_row,
                record.to_row(),
                value_input_option='USER_ENTERED',
                table_range=COLUMN_RANGE,
            )
            logger.info(f"✅ Added expense to sheet: ₹{record.amount} at {record.merchant}")
            return Result.success()
        except Exception as e:
            logger.error(f"❌ Error adding expense to sheet: {e}")
            return Result.failure(e)

    async def read_all_rows(self):
        """Every row of the expense columns, header included, as strings"""
        if self.worksheet is None:
            return Result.failure(NOT_READY_MESSAGE)
        try:
            rows = await self._run(self.worksheet.get_values, COLUMN_RANGE)
            return Result.success([[str(cell) for cell in row] for row in rows or []])
        except Exception as e:
            logger.error(f"❌ Error reading expenses from sheet: {e}")
            return Result.failure(e)
