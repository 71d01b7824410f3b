from typing import FrozenSet

from jurisdiction_finder.models import MunicipalityClassification

# 政令指定都市
DESIGNATED_CITIES: FrozenSet[str] = frozenset({
    # 北海道・東北
    "札幌市", "仙台市",
    # 関東
    "さいたま市", "千葉市", "横浜市", "川崎市", "相模原市",
    # 中部
    "新潟市", "静岡市", "浜松市", "名古屋市",
    # 近畿
    "京都市", "大阪市", "堺市", "神戸市",
    # 中国・四国
    "岡山市", "広島市",
    # 九州
    "北九州市", "福岡市", "熊本市",
})

# 中核市
CORE_CITIES: FrozenSet[str] = frozenset({
    # 北海道・東北
    "旭川市", "函館市", "青森市", "八戸市", "盛岡市",
    "秋田市", "山形市", "福島市", "郡山市", "いわき市",
    # 関東
    "水戸市", "宇都宮市", "前橋市", "高崎市", "川越市", "越谷市",
    "川口市", "船橋市", "柏市", "八王子市", "横須賀市",
    # 中部
    "富山市", "金沢市", "福井市", "甲府市", "長野市", "松本市",
    "岐阜市", "豊橋市", "岡崎市", "豊田市", "一宮市", "春日井市",
    # 近畿
    "津市", "四日市市", "大津市", "豊中市", "吹田市", "高槻市",
    "枚方市", "八尾市", "寝屋川市", "東大阪市", "姫路市", "尼崎市",
    "明石市", "西宮市", "奈良市", "和歌山市",
    # 中国・四国
    "鳥取市", "松江市", "倉敷市", "呉市", "福山市", "下関市",
    "高松市", "松山市", "高知市",
    # 九州・沖縄
    "久留米市", "長崎市", "佐世保市", "大分市", "宮崎市", "鹿児島市", "那覇市",
})

CITY_SUFFIX = "市"


def _matches(candidate: str, city: str) -> bool:
    """
    Loose name match between a table entry and user input.

    Args:
        candidate (str): Name from one of the city tables, e.g. "横浜市".
        city (str): Trimmed user input, e.g. "横浜" or "横浜市中区".

    Returns:
        bool: True on exact match, when the input contains the candidate, or
              when the candidate contains the input with a trailing "市" removed.
    """
    if candidate == city or candidate in city:
        return True
    stem = city[:-len(CITY_SUFFIX)] if city.endswith(CITY_SUFFIX) else city
    return bool(stem) and stem in candidate


def _in_table(city: str, table: FrozenSet[str]) -> bool:
    city = (city or "").strip()
    if not city:
        return False
    return any(_matches(candidate, city) for candidate in table)


def is_designated_city(city: str) -> bool:
    return _in_table(city, DESIGNATED_CITIES)


def is_core_city(city: str) -> bool:
    return _in_table(city, CORE_CITIES)


def has_own_jurisdiction(city: str) -> bool:
    """Designated and core cities act as their own regulator."""
    return is_designated_city(city) or is_core_city(city)


def classify(city: str) -> MunicipalityClassification:
    """Classify a municipality name. Designated membership wins over core."""
    if is_designated_city(city):
        return MunicipalityClassification.DESIGNATED_CITY
    if is_core_city(city):
        return MunicipalityClassification.CORE_CITY
    return MunicipalityClassification.ORDINARY
