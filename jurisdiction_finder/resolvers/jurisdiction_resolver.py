from typing import Tuple

from jurisdiction_finder.models import (
    BusinessType,
    JurisdictionDecision,
    MunicipalityClassification,
)
from jurisdiction_finder.resolvers.municipal_classifier import classify

# Kanagawa handles home-visit nursing/care designation itself except in these cities
KANAGAWA_PREFECTURE = "神奈川県"
KANAGAWA_SPECIAL_CITIES: Tuple[str, ...] = ("横浜市", "川崎市", "相模原市", "横須賀市")
KANAGAWA_OVERRIDE_TYPES = (BusinessType.VISITING_NURSING, BusinessType.VISITING_CARE)


def determine_jurisdiction(prefecture: str, city: str) -> JurisdictionDecision:
    """
    General rule: designated and core cities regulate themselves,
    every other municipality falls under its prefecture.
    """
    classification = classify(city)
    if classification is MunicipalityClassification.DESIGNATED_CITY:
        return JurisdictionDecision(
            jurisdiction=city,
            is_city=True,
            reason=f"{city}は政令指定都市のため、市が指定権者となります",
        )
    if classification is MunicipalityClassification.CORE_CITY:
        return JurisdictionDecision(
            jurisdiction=city,
            is_city=True,
            reason=f"{city}は中核市のため、市が指定権者となります",
        )
    return JurisdictionDecision(
        jurisdiction=prefecture,
        is_city=False,
        reason=f"{city}は政令指定都市・中核市ではないため、{prefecture}が指定権者となります",
    )


def _is_kanagawa_special_city(city: str) -> bool:
    return any(c == city or c in city for c in KANAGAWA_SPECIAL_CITIES)


def resolve(business_type: BusinessType, prefecture: str, city: str) -> JurisdictionDecision:
    """
    Compute the rule-based pre-judgment for a business type and municipality.

    This is the guaranteed fallback of the AI verification step, so it
    performs no I/O and never raises.

    Args:
        business_type (BusinessType): Business being opened.
        prefecture (str): Prefecture name, e.g. "神奈川県".
        city (str): Municipality name, e.g. "厚木市".

    Returns:
        JurisdictionDecision: Jurisdiction, whether it is the city, and a
                              generated justification sentence.
    """
    business_type = BusinessType.parse(business_type)
    if business_type in KANAGAWA_OVERRIDE_TYPES and prefecture == KANAGAWA_PREFECTURE:
        if _is_kanagawa_special_city(city):
            return JurisdictionDecision(
                jurisdiction=city,
                is_city=True,
                reason=(
                    f"{city}は政令指定都市（横浜/川崎/相模原）または中核市（横須賀）に"
                    "該当するため市が申請先です。"
                ),
            )
        return JurisdictionDecision(
            jurisdiction=prefecture,
            is_city=False,
            reason=f"{city}は政令指定都市・中核市ではないため{prefecture}が申請先です。",
        )

    return determine_jurisdiction(prefecture, city)
