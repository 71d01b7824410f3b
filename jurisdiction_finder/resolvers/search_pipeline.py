# jurisdiction_finder/resolvers/search_pipeline.py

from typing import Optional

from loguru import logger

from jurisdiction_finder.business_types import get_business_config
from jurisdiction_finder.errors import MissingParameter
from jurisdiction_finder.models import BusinessType, SearchRequest, SearchResult
from jurisdiction_finder.resolvers.ai_gateway import fetch_application_details, verify_jurisdiction
from jurisdiction_finder.resolvers.response_normalizer import normalize_search_result


def build_search_request(
    prefecture: Optional[str],
    city: Optional[str],
    business_type: Optional[str] = None,
) -> SearchRequest:
    """
    Trim and validate raw request parameters.

    Raises:
        MissingParameter: If prefecture or city is empty after trimming.
    """
    prefecture = (prefecture or "").strip()
    city = (city or "").strip()
    if not prefecture:
        raise MissingParameter("都道府県名が指定されていません")
    if not city:
        raise MissingParameter("市区町村名が指定されていません")
    return SearchRequest(
        prefecture=prefecture,
        city=city,
        business_type=BusinessType.parse(business_type),
    )


async def run_search(request: SearchRequest) -> SearchResult:
    """
    Run the two-phase research for one municipality.

    1) Verify the jurisdiction (never fails; falls back to the rule table).
    2) Fetch the procedure for the confirmed jurisdiction (fails hard).
    The payload from step 2 is normalized before it is returned. Nothing is
    persisted here.

    Args:
        request (SearchRequest): Validated request.

    Returns:
        SearchResult: Normalized result.
    """
    config = get_business_config(request.business_type)

    logger.info(f"Step 1: verifying {config.name} jurisdiction for {request.prefecture}{request.city}")
    decision = await verify_jurisdiction(request.prefecture, request.city, request.business_type)
    logger.info(f"Jurisdiction confirmed: {decision.jurisdiction}")

    logger.info(f"Step 2: fetching application procedure from {decision.jurisdiction}")
    payload = await fetch_application_details(
        decision,
        request.prefecture,
        request.city,
        request.business_type,
    )

    return normalize_search_result(payload, request.business_type, decision.jurisdiction)


async def search_jurisdiction(
    prefecture: Optional[str],
    city: Optional[str],
    business_type: Optional[str] = None,
) -> SearchResult:
    """Validate raw parameters and run the pipeline."""
    request = build_search_request(prefecture, city, business_type)
    return await run_search(request)
