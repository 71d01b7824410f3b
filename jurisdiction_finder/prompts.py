from typing import Tuple

from jurisdiction_finder.models import BusinessTypeConfig, JurisdictionDecision

VERIFY_PROMPT_TEMPLATE = """あなたは日本の行政手続きに詳しい専門家です。{prefecture}{city}で{business_name}を新規開設する場合の「申請先・届出先」を、{prefecture}の公式サイトの情報を基に調査してください。

【調査のポイント】
1. {prefecture}の公式サイトで「{jurisdiction_search_terms}」に関するページを検索
2. 政令指定都市・中核市とそれ以外の市町村で申請先が異なるかを確認
3. {city}がどちらに該当するかを特定

【一般的なルール（参考）】
- 介護保険サービス事業者の指定申請：政令指定都市・中核市は市が指定権者、それ以外は都道府県
- 有料老人ホームの届出：都道府県または政令指定都市・中核市

【事前判定結果（参考）】
{pre_judgment}

この事前判定が正しいか、{prefecture}の公式サイトで確認し、以下のJSON形式で回答してください。マークダウン形式は含めず、純粋なJSON文字列のみを返してください。

{{
  "jurisdiction": "確認した申請先（例：神奈川県、相模原市）",
  "is_city": true または false（市が申請先ならtrue、県が申請先ならfalse）,
  "reason": "この申請先と判断した根拠（公式サイトの記載内容を引用）",
  "source_url": "確認した公式サイトのURL"
}}"""

DETAIL_PROMPT_TEMPLATE = """あなたは日本の行政手続きに詳しい専門家です。

【確定した申請先】
{prefecture}{city}で{business_name}を新規開設する場合、申請先は「{jurisdiction}」です。
理由：{reason}

{jurisdiction}の公式サイトから、{business_name}の申請に必要な情報を検索し、以下のJSON形式で回答してください。マークダウン形式は含めず、純粋なJSON文字列のみを返してください。

{detail_note}

{{
  "jurisdiction": "{jurisdiction}",
  "jurisdiction_detail": "{reason}",
  "flow": [
    {{
      "step": "申請手順のステップ（例：事前相談、申請書類の準備、申請書の提出など）",
      "documents": ["必要書類1", "必要書類2"]
    }}
  ],
  "summary": "{business_name}の手続き概要と注意点（200文字程度）",
  "reference_url": "参考URL",
  "reference_name": "参考情報の情報源名（例：厚生労働省、WAM NET）",
  "guideline_url": "{jurisdiction}が公表している設置指針・ガイドライン・手引きのURL",
  "guideline_name": "ガイドラインの情報源名（例：{jurisdiction}公式サイト）"
}}"""


def build_verify_prompt(
    prefecture: str,
    city: str,
    config: BusinessTypeConfig,
    pre_judgment: JurisdictionDecision,
) -> Tuple[str, str]:
    """
    Build the (system prompt, search query) pair for jurisdiction verification.
    The rule-based pre-judgment is passed to the model as a hint.
    """
    system_prompt = VERIFY_PROMPT_TEMPLATE.format(
        prefecture=prefecture,
        city=city,
        business_name=config.name,
        jurisdiction_search_terms=config.jurisdiction_search_terms,
        pre_judgment=pre_judgment.reason,
    )
    query = f"{prefecture} {city} {config.jurisdiction_search_terms} 公式サイト"
    return system_prompt, query


def build_detail_prompt(
    prefecture: str,
    city: str,
    config: BusinessTypeConfig,
    decision: JurisdictionDecision,
) -> Tuple[str, str]:
    """Build the (system prompt, search query) pair for the procedure detail fetch."""
    system_prompt = DETAIL_PROMPT_TEMPLATE.format(
        prefecture=prefecture,
        city=city,
        business_name=config.name,
        jurisdiction=decision.jurisdiction,
        reason=decision.reason,
        detail_note=config.detail_note,
    )
    query = f"{decision.jurisdiction} {config.search_terms} 申請 必要書類 公式サイト"
    return system_prompt, query
