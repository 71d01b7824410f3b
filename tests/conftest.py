import json
import pytest
from unittest.mock import MagicMock

from jurisdiction_finder.clients import perplexity_client as pplx_client_module


@pytest.fixture(autouse=True)
def reset_perplexity_singleton():
    """Every test starts without a cached client instance."""
    pplx_client_module.PerplexityClient._instance = None
    pplx_client_module.PerplexityClient._initialized = False
    yield
    pplx_client_module.PerplexityClient._instance = None
    pplx_client_module.PerplexityClient._initialized = False


@pytest.fixture
def completion():
    """Build a chat completion response object whose message content is `content`."""
    def _make(content):
        if not isinstance(content, str) and content is not None:
            content = json.dumps(content, ensure_ascii=False)
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = content
        return response
    return _make


@pytest.fixture
def detail_payload():
    return {
        "jurisdiction": "AIが返した申請先",
        "jurisdiction_detail": "AIが返した理由",
        "flow": [
            {"step": "事前相談", "documents": ["事前相談票"]},
            {"step": "指定申請書の提出", "documents": ["指定申請書", "運営規程"]},
        ],
        "summary": "訪問看護事業所の指定申請は事前相談の上、開設予定日の前々月末までに提出します。",
        "reference_url": "https://www.wam.go.jp/",
        "reference_name": "WAM NET",
        "guideline_url": "https://www.pref.kanagawa.jp/guide.html",
        "guideline_name": "神奈川県公式サイト",
    }
