"""
Turns the untrusted detail-fetch payload into a stable SearchResult.

Required fields are validated and rejected when wrong; optional fields that
come back malformed are coerced to safe defaults.
"""
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from jurisdiction_finder.business_types import get_business_config
from jurisdiction_finder.errors import MalformedUpstreamResponse
from jurisdiction_finder.models import BusinessType, FlowStep, SearchResult

DEFAULT_REFERENCE_NAME = "参考情報"


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_documents(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [doc for doc in value if isinstance(doc, str) and doc.strip()]


def migrate_legacy_flow(flow: List[Any], legacy_documents: Any) -> List[Any]:
    """
    Convert an old-style flow of plain strings into step objects.

    The first step inherits the payload's top-level `documents` list, which is
    where older answers put every required document.

    Args:
        flow (List[Any]): Raw flow array.
        legacy_documents (Any): Raw top-level `documents` value, if any.

    Returns:
        List[Any]: Flow with string entries replaced by step dicts. Entries
                   that are not strings are left for filter_flow to judge.
    """
    if not flow or not isinstance(flow[0], str):
        return flow
    first_documents = _coerce_documents(legacy_documents)
    migrated = []
    for index, entry in enumerate(flow):
        if isinstance(entry, str):
            migrated.append({"step": entry, "documents": first_documents if index == 0 else []})
        else:
            migrated.append(entry)
    return migrated


def filter_flow(flow: List[Any], block_keywords: Sequence[str]) -> List[FlowStep]:
    """
    Keep well-formed steps that mention none of the block keywords, in order.

    Entries without step text are dropped. A malformed `documents` field does
    not drop the entry; it becomes an empty list.
    """
    steps: List[FlowStep] = []
    for entry in flow:
        if not isinstance(entry, dict):
            continue
        step = _optional_text(entry.get("step"))
        if step is None:
            continue
        if any(keyword in step for keyword in block_keywords):
            logger.debug(f"Dropping out-of-scope step: {step}")
            continue
        steps.append(FlowStep(step=step, documents=_coerce_documents(entry.get("documents"))))
    return steps


def backfill_references(result: SearchResult, jurisdiction: str) -> SearchResult:
    """Fill guideline and source-name fields that the model left empty."""
    if not result.guideline_url and result.reference_url:
        result.guideline_url = result.reference_url
        result.guideline_name = result.reference_name or f"{jurisdiction}公式情報"

    if not result.guideline_name and result.guideline_url:
        result.guideline_name = f"{jurisdiction}公式ガイドライン"
    if not result.reference_name and result.reference_url:
        result.reference_name = DEFAULT_REFERENCE_NAME
    return result


def normalize_search_result(
    payload: Dict[str, Any],
    business_type: BusinessType,
    jurisdiction: str,
) -> SearchResult:
    """
    Validate, repair and filter a detail-fetch payload.

    Args:
        payload (Dict[str, Any]): Decoded JSON object from the AI service.
        business_type (BusinessType): Selects the block keywords.
        jurisdiction (str): Confirmed jurisdiction, used for default names.

    Returns:
        SearchResult: Normalized result. Normalizing `result.to_dict()` again
                      yields an equal result.

    Raises:
        MalformedUpstreamResponse: If `flow` is not a list or `summary` is empty.
    """
    flow = payload.get("flow")
    summary = _optional_text(payload.get("summary"))
    if not isinstance(flow, list) or summary is None:
        logger.error(
            f"❌ Malformed search result: flow={type(flow).__name__}, summary present={summary is not None}"
        )
        raise MalformedUpstreamResponse()

    config = get_business_config(business_type)
    flow = migrate_legacy_flow(flow, payload.get("documents"))

    result = SearchResult(
        jurisdiction=_optional_text(payload.get("jurisdiction")) or jurisdiction,
        flow=filter_flow(flow, config.block_keywords),
        summary=summary,
        jurisdiction_detail=_optional_text(payload.get("jurisdiction_detail")),
        reference_url=_optional_text(payload.get("reference_url")),
        reference_name=_optional_text(payload.get("reference_name")),
        guideline_url=_optional_text(payload.get("guideline_url")),
        guideline_name=_optional_text(payload.get("guideline_name")),
    )
    return backfill_references(result, jurisdiction)
