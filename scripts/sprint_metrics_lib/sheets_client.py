"""
Google Sheets writer for sprint rows (gspread)
"""

import logging
from pathlib import Path
from typing import List, Iterable, Union

import gspread

from .models import SheetRow

logger = logging.getLogger(__name__)

# How the data is structured
MAJOR_DIMENSION = "ROWS"
# How the input data should be interpreted, formulas included
VALUE_INPUT_OPTION = "USER_ENTERED"
# How the input data should be inserted
INSERT_DATA_OPTION = "INSERT_ROWS"


class SpreadsheetError(Exception):
    """Writing to the spreadsheet failed"""
    pass


def rows_to_values(rows: Iterable[SheetRow]) -> List[list]:
    """Convert rows to the list-of-lists shape the Sheets API expects"""
    return [row.to_values() for row in rows]


class SpreadsheetWriter:
    """Appends rows to and resets formatting of one spreadsheet"""

    def __init__(self, spreadsheet: gspread.Spreadsheet):
        self.spreadsheet = spreadsheet

    @classmethod
    def from_service_account(cls, credentials_file: Union[str, Path], spreadsheet_id: str) -> 'SpreadsheetWriter':
        """Authorize with a service account key file and open the spreadsheet"""
        try:
            client = gspread.service_account(filename=str(credentials_file))
            return cls(client.open_by_key(spreadsheet_id))
        except (gspread.exceptions.GSpreadException, OSError, ValueError) as e:
            raise SpreadsheetError(f"Could not open spreadsheet {spreadsheet_id}: {e}") from e

    def append(self, write_range: str, values: List[list]) -> dict:
        """Append rows after the last row of the given range"""
        if not values:
            logger.info(f"Nothing to append to {write_range}")
            return {}

        logger.debug(f"Appending {len(values)} rows to {write_range}")
        try:
            return self.spreadsheet.values_append(
                write_range,
                params={
                    "valueInputOption": VALUE_INPUT_OPTION,
                    "insertDataOption": INSERT_DATA_OPTION,
                },
                body={
                    "majorDimension": MAJOR_DIMENSION,
                    "values": values,
                },
            )
        except gspread.exceptions.GSpreadException as e:
            raise SpreadsheetError(f"Append to {write_range} failed: {e}") from e

    def reset_format(self, gid: int, start_row_index: int = 1, start_column_index: int = 0) -> dict:
        """Reset the user format of a sheet from the given row on (row 0 is the header)"""
        body = {
            "requests": [{
                "repeatCell": {
                    "fields": "userEnteredFormat",
                    "range": {
                        "sheetId": gid,
                        "startRowIndex": start_row_index,
                        "startColumnIndex": start_column_index,
                    },
                }
            }]
        }
        try:
            return self.spreadsheet.batch_update(body)
        except gspread.exceptions.GSpreadException as e:
            raise SpreadsheetError(f"Format reset of sheet {gid} failed: {e}") from e
