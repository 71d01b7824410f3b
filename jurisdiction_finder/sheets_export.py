from datetime import datetime, timedelta, timezone
from typing import List, Optional

from loguru import logger

from jurisdiction_finder.business_types import display_name
from jurisdiction_finder.clients import SheetsClient

JST = timezone(timedelta(hours=9))


def build_sheet_row(
    business_type: str,
    prefecture: str,
    city: str,
    jurisdiction: str,
    jurisdiction_detail: str,
    summary: str,
    guideline_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[str]:
    """
    Flatten one search result into the A:H export columns.

    Args:
        business_type (str): Raw business type value; shown by display name.
        now (Optional[datetime]): Export time, defaults to the current time.

    Returns:
        List[str]: [JST timestamp, business type, prefecture, city,
                    jurisdiction, detail, summary, guideline URL].
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.astimezone(JST).strftime("%Y-%m-%d %H:%M:%S")
    return [
        timestamp,
        display_name(business_type),
        prefecture,
        city,
        jurisdiction,
        jurisdiction_detail,
        summary,
        guideline_url or "",
    ]


async def append_to_sheet(row: List[str]) -> None:
    """Append one row to the export spreadsheet."""
    client = SheetsClient()
    await client.append_rows([row])
    logger.info(f"Exported {row[2]}{row[3]} ({row[1]}) to Google Sheets")
