"""
Structured queries against the AI search service.

Both phases send a system prompt plus a short search query and expect a single
JSON object back. The answer is untrusted: it is parsed into a plain dict and
validated field by field before anything else sees it.
"""
import json
import re
from typing import Any, Dict

from loguru import logger

from jurisdiction_finder.business_types import get_business_config
from jurisdiction_finder.clients import PerplexityClient
from jurisdiction_finder.config import PERPLEXITY_MODEL
from jurisdiction_finder.errors import (
    ConfigurationMissing,
    ProcedureFetchFailed,
    UpstreamError,
    UpstreamMalformed,
)
from jurisdiction_finder.models import BusinessType, JurisdictionDecision
from jurisdiction_finder.prompts import build_detail_prompt, build_verify_prompt
from jurisdiction_finder.resolvers.jurisdiction_resolver import resolve

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```$")


def strip_code_fence(content: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker, if present."""
    text = content.strip()
    if text.startswith("```"):
        text = _LEADING_FENCE.sub("", text, count=1)
        text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def extract_json_object(content: str) -> Dict[str, Any]:
    """
    Parse the model's free-text answer into a JSON object.

    Args:
        content (str): Raw message content, optionally fenced.

    Returns:
        Dict[str, Any]: The decoded object.

    Raises:
        UpstreamMalformed: If the content is empty, not JSON, or not an object.
    """
    if not content or not content.strip():
        raise UpstreamMalformed("AI検索サービスの応答が空でした")
    try:
        data = json.loads(strip_code_fence(content))
    except json.JSONDecodeError as e:
        raise UpstreamMalformed("AI検索サービスの応答を解析できませんでした") from e
    if not isinstance(data, dict):
        raise UpstreamMalformed("AI検索サービスの応答を解析できませんでした")
    return data


async def _complete(system_prompt: str, query: str) -> Dict[str, Any]:
    """
    Run one chat completion and decode its content.

    Raises:
        ConfigurationMissing: If no API key is configured. Raised before any network call.
        UpstreamUnavailable: On transport or non-2xx failure.
        UpstreamMalformed: On empty or unparseable content.
    """
    client = PerplexityClient()
    resp = await client.chat_completions_create(
        model=PERPLEXITY_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": query},
        ],
    )
    message = resp.choices[0].message if resp.choices else None
    content = getattr(message, "content", None)
    return extract_json_object(content or "")


def _parse_decision(data: Dict[str, Any]) -> JurisdictionDecision:
    jurisdiction = data.get("jurisdiction")
    is_city = data.get("is_city")
    reason = data.get("reason")
    if not isinstance(jurisdiction, str) or not jurisdiction.strip():
        raise UpstreamMalformed("申請先が応答に含まれていません")
    if not isinstance(is_city, bool):
        raise UpstreamMalformed("is_cityの形式が正しくありません")
    if not isinstance(reason, str) or not reason.strip():
        raise UpstreamMalformed("判定理由が応答に含まれていません")

    source_url = data.get("source_url")
    return JurisdictionDecision(
        jurisdiction=jurisdiction.strip(),
        is_city=is_city,
        reason=reason.strip(),
        source_url=source_url if isinstance(source_url, str) and source_url else None,
    )


async def verify_jurisdiction(
    prefecture: str,
    city: str,
    business_type: BusinessType,
) -> JurisdictionDecision:
    """
    Phase 1: confirm the jurisdiction against the prefecture's official site.

    Any failure of the AI call degrades to the rule-based pre-judgment with a
    disclaimer appended to its reason.

    Args:
        prefecture (str): Prefecture name.
        city (str): Municipality name.
        business_type (BusinessType): Business being opened.

    Returns:
        JurisdictionDecision: Confirmed or fallback decision.

    Raises:
        ConfigurationMissing: If the AI service has no API key configured.
    """
    config = get_business_config(business_type)
    pre_judgment = resolve(business_type, prefecture, city)
    system_prompt, query = build_verify_prompt(prefecture, city, config, pre_judgment)

    # Fails fast on missing credentials instead of falling back
    PerplexityClient()

    try:
        data = await _complete(system_prompt, query)
        return _parse_decision(data)
    except UpstreamError as e:
        logger.warning(f"⚠️ Jurisdiction verification for {prefecture}{city} fell back to rules: {e.message}")
    except Exception as e:
        logger.warning(f"⚠️ Jurisdiction verification for {prefecture}{city} failed unexpectedly: {e!r}")
    return pre_judgment.with_disclaimer()


async def fetch_application_details(
    decision: JurisdictionDecision,
    prefecture: str,
    city: str,
    business_type: BusinessType,
) -> Dict[str, Any]:
    """
    Phase 2: fetch steps, documents and references from the confirmed jurisdiction.

    Args:
        decision (JurisdictionDecision): Decision confirmed in phase 1.
        prefecture (str): Prefecture name.
        city (str): Municipality name.
        business_type (BusinessType): Business being opened.

    Returns:
        Dict[str, Any]: Raw search result payload with `jurisdiction` and
                        `jurisdiction_detail` taken from `decision`. Still needs
                        normalize_search_result before use.

    Raises:
        ProcedureFetchFailed: On any failure; there is no fallback procedure.
        ConfigurationMissing: If the AI service has no API key configured.
    """
    config = get_business_config(business_type)
    system_prompt, query = build_detail_prompt(prefecture, city, config, decision)

    try:
        data = await _complete(system_prompt, query)
    except UpstreamMalformed as e:
        logger.error(f"❌ Procedure detail for {decision.jurisdiction} unusable: {e.message}")
        raise ProcedureFetchFailed("詳細情報が取得できませんでした") from e
    except UpstreamError as e:
        logger.error(f"❌ Procedure detail request for {decision.jurisdiction} failed: {e.message}")
        raise ProcedureFetchFailed("詳細情報の取得に失敗しました") from e
    except ConfigurationMissing:
        raise
    except Exception as e:
        logger.error(f"❌ Procedure detail request for {decision.jurisdiction} failed unexpectedly: {e!r}")
        raise ProcedureFetchFailed("詳細情報の取得に失敗しました") from e

    # The phase 1 decision is authoritative over whatever the model echoed
    data["jurisdiction"] = decision.jurisdiction
    data["jurisdiction_detail"] = decision.reason
    return data
