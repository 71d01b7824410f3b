from typing import Dict

from jurisdiction_finder.models import BusinessType, BusinessTypeConfig

BUSINESS_TYPE_CONFIG: Dict[BusinessType, BusinessTypeConfig] = {
    BusinessType.RESIDENTIAL_HOME: BusinessTypeConfig(
        name="住宅型有料老人ホーム",
        search_terms="住宅型有料老人ホーム 届出 設置 手引き",
        jurisdiction_search_terms="有料老人ホーム 届出 届出先 窓口",
        # Tenant operators are not involved in these construction-side steps
        block_keywords=("建築確認", "指導事項", "完成検査"),
        detail_note=(
            "【注意】建築確認申請、指導事項への対応・改善報告、完成検査などテナントが関与しない工程は含めないでください。"
        ),
    ),
    BusinessType.VISITING_NURSING: BusinessTypeConfig(
        name="訪問看護事業所",
        search_terms="訪問看護事業所 指定申請 開設 手引き 介護保険",
        jurisdiction_search_terms="訪問看護 指定申請 申請先 窓口 介護保険",
    ),
    BusinessType.VISITING_CARE: BusinessTypeConfig(
        name="訪問介護事業所",
        search_terms="訪問介護事業所 指定申請 開設 手引き 介護保険",
        jurisdiction_search_terms="訪問介護 指定申請 申請先 窓口 介護保険",
    ),
}


def get_business_config(business_type: BusinessType) -> BusinessTypeConfig:
    return BUSINESS_TYPE_CONFIG[BusinessType.parse(business_type)]


def display_name(business_type: str) -> str:
    """Display name for a raw business type value; unknown values pass through."""
    try:
        return BUSINESS_TYPE_CONFIG[BusinessType(business_type)].name
    except ValueError:
        return business_type
