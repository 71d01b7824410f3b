import os
import asyncio
import pandas as pd
import csv
from dataclasses import dataclass
from typing import List, Optional
import sys
from loguru import logger

from jurisdiction_finder.models import FALLBACK_DISCLAIMER, BusinessType, SearchRequest
from jurisdiction_finder.errors import JurisdictionFinderError
from jurisdiction_finder.resolvers.search_pipeline import build_search_request, run_search
from jurisdiction_finder.config import INPUT_CSV, OUTPUT_CSV, BATCH_SIZE, LOG_LEVEL
from jurisdiction_finder.clients import PerplexityClient

OUTPUT_COLUMNS = [
    "prefecture",
    "city",
    "business_type",
    "jurisdiction",
    "fallback",
    "steps",
    "summary",
    "guideline_url",
    "error",
]


@dataclass
class BatchRow:
    """One line of the batch output CSV."""
    prefecture: str
    city: str
    business_type: str
    jurisdiction: str = ""
    fallback: bool = False
    steps: int = 0
    summary: str = ""
    guideline_url: str = ""
    error: str = ""


def load_requests_from_csv(file_path: str, nrows: int = None) -> List[SearchRequest]:
    """Load municipalities from CSV and convert to SearchRequest objects. Invalid rows are skipped."""
    df = pd.read_csv(file_path, nrows=nrows, dtype=str)
    requests = []
    for _, row in df.iterrows():
        def safe_get(col) -> Optional[str]:
            if col not in row.index or pd.isna(row[col]):
                return None
            return row[col]

        try:
            requests.append(build_search_request(
                safe_get("prefecture"),
                safe_get("city"),
                safe_get("business_type"),
            ))
        except JurisdictionFinderError as e:
            logger.warning(f"Skipping row {row.to_dict()}: {e.message}")
    return requests


def batch_iter(requests: List[SearchRequest], batch_size: int):
    """
    Yield index and SearchRequest slices of size `batch_size` for batched processing.
    """
    n = len(requests)
    for i in range(0, n, batch_size):
        yield i, requests[i:i+batch_size]


async def process_request(request: SearchRequest) -> BatchRow:
    """
    Run the full two-phase research for one municipality.

    Failures are recorded on the row instead of stopping the batch.
    """
    row = BatchRow(
        prefecture=request.prefecture,
        city=request.city,
        business_type=BusinessType.parse(request.business_type).value,
    )
    try:
        result = await run_search(request)
    except JurisdictionFinderError as e:
        row.error = e.message
        return row

    row.jurisdiction = result.jurisdiction
    row.fallback = FALLBACK_DISCLAIMER in (result.jurisdiction_detail or "")
    row.steps = len(result.flow)
    row.summary = result.summary
    row.guideline_url = result.guideline_url or ""
    return row


async def main():
    """
    Research every municipality listed in INPUT_CSV.

    - Loads input CSV rows as search requests.
    - Processes each batch concurrently; rows are independent pipeline runs.
    - Writes results incrementally to OUTPUT_CSV.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    all_requests = load_requests_from_csv(INPUT_CSV)

    # Initialize output file
    output_path = OUTPUT_CSV
    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_COLUMNS)

    try:
        for start_idx, batch_requests in batch_iter(all_requests, BATCH_SIZE):
            logger.info(f"Processing rows {start_idx}..{start_idx + len(batch_requests) - 1}")

            results = await asyncio.gather(*[process_request(request) for request in batch_requests])

            with open(output_path, "a", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                for result in results:
                    writer.writerow([getattr(result, column) for column in OUTPUT_COLUMNS])
    finally:
        # Cleanup: close the AI client's HTTP pool
        if PerplexityClient._initialized:
            await PerplexityClient().close()

if __name__ == "__main__":
    asyncio.run(main())
