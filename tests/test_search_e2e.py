import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from jurisdiction_finder.errors import (
    ConfigurationMissing,
    MalformedUpstreamResponse,
    MissingParameter,
    ProcedureFetchFailed,
    UpstreamUnavailable,
)
from jurisdiction_finder.models import FALLBACK_DISCLAIMER, BusinessType, SearchResult
from jurisdiction_finder.resolvers.search_pipeline import build_search_request, search_jurisdiction


def _patch_client(mock_cls, side_effect):
    instance = MagicMock()
    instance.chat_completions_create = AsyncMock(side_effect=side_effect)
    mock_cls.return_value = instance
    return instance


@pytest.mark.parametrize("prefecture, city, message", [
    ("", "厚木市", "都道府県名が指定されていません"),
    ("神奈川県", "", "市区町村名が指定されていません"),
    ("神奈川県", "   ", "市区町村名が指定されていません"),
    (None, None, "都道府県名が指定されていません"),
])
def test_build_search_request_rejects_missing_parameters(prefecture, city, message):
    with pytest.raises(MissingParameter) as exc_info:
        build_search_request(prefecture, city)
    assert exc_info.value.message == message
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("raw, expected", [
    (None, BusinessType.RESIDENTIAL_HOME),
    ("", BusinessType.RESIDENTIAL_HOME),
    ("group_home", BusinessType.RESIDENTIAL_HOME),
    ("visiting_care", BusinessType.VISITING_CARE),
])
def test_build_search_request_defaults_business_type(raw, expected):
    request = build_search_request(" 神奈川県 ", " 厚木市 ", raw)
    assert request.prefecture == "神奈川県"
    assert request.city == "厚木市"
    assert request.business_type is expected


@pytest.mark.asyncio
async def test_search_runs_both_phases(completion, detail_payload):
    verify_answer = {"jurisdiction": "神奈川県", "is_city": False, "reason": "県の手引きに記載"}
    with patch("jurisdiction_finder.resolvers.ai_gateway.PerplexityClient") as mock_cls:
        instance = _patch_client(mock_cls, [completion(verify_answer), completion(detail_payload)])

        result = await search_jurisdiction("神奈川県", "厚木市", "visiting_nursing")

    assert isinstance(result, SearchResult)
    assert result.jurisdiction == "神奈川県"
    assert result.jurisdiction_detail == "県の手引きに記載"
    assert [s.step for s in result.flow] == ["事前相談", "指定申請書の提出"]
    assert instance.chat_completions_create.await_count == 2

    detail_prompt = instance.chat_completions_create.await_args_list[1].kwargs["messages"][0]["content"]
    assert "申請先は「神奈川県」です" in detail_prompt


@pytest.mark.asyncio
async def test_search_uses_rule_fallback_when_verification_fails(completion, detail_payload):
    with patch("jurisdiction_finder.resolvers.ai_gateway.PerplexityClient") as mock_cls:
        _patch_client(mock_cls, [UpstreamUnavailable("down"), completion(detail_payload)])

        result = await search_jurisdiction("神奈川県", "相模原市", "visiting_care")

    assert result.jurisdiction == "相模原市"
    assert result.jurisdiction_detail.endswith(FALLBACK_DISCLAIMER)


@pytest.mark.asyncio
async def test_search_fails_when_detail_fetch_fails(completion):
    verify_answer = {"jurisdiction": "川口市", "is_city": True, "reason": "中核市"}
    with patch("jurisdiction_finder.resolvers.ai_gateway.PerplexityClient") as mock_cls:
        _patch_client(mock_cls, [completion(verify_answer), UpstreamUnavailable("down")])

        with pytest.raises(ProcedureFetchFailed):
            await search_jurisdiction("埼玉県", "川口市", "residential_home")


@pytest.mark.asyncio
async def test_search_rejects_malformed_detail(completion):
    verify_answer = {"jurisdiction": "川口市", "is_city": True, "reason": "中核市"}
    with patch("jurisdiction_finder.resolvers.ai_gateway.PerplexityClient") as mock_cls:
        _patch_client(mock_cls, [completion(verify_answer), completion({"flow": "x", "summary": "y"})])

        with pytest.raises(MalformedUpstreamResponse):
            await search_jurisdiction("埼玉県", "川口市", "residential_home")


@pytest.mark.asyncio
async def test_missing_parameter_is_raised_before_any_call():
    with patch("jurisdiction_finder.resolvers.ai_gateway.PerplexityClient") as mock_cls:
        with pytest.raises(MissingParameter):
            await search_jurisdiction("神奈川県", "", "visiting_care")
    mock_cls.assert_not_called()


@pytest.mark.asyncio
async def test_missing_credentials_stop_the_pipeline(monkeypatch):
    monkeypatch.setattr("jurisdiction_finder.clients.perplexity_client.PERPLEXITY_API_KEY", None)
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)

    with patch("jurisdiction_finder.clients.perplexity_client.AsyncOpenAI") as mock_openai:
        with pytest.raises(ConfigurationMissing):
            await search_jurisdiction("神奈川県", "厚木市", "visiting_care")
    mock_openai.assert_not_called()
