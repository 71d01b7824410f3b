import pytest

from jurisdiction_finder.models import MunicipalityClassification
from jurisdiction_finder.resolvers.municipal_classifier import (
    CORE_CITIES,
    DESIGNATED_CITIES,
    classify,
    has_own_jurisdiction,
    is_core_city,
    is_designated_city,
)


def test_table_sizes():
    assert len(DESIGNATED_CITIES) == 20
    assert len(CORE_CITIES) == 65
    assert DESIGNATED_CITIES.isdisjoint(CORE_CITIES)


@pytest.mark.parametrize("city", sorted(DESIGNATED_CITIES))
def test_every_designated_city_is_designated(city):
    assert classify(city) is MunicipalityClassification.DESIGNATED_CITY


@pytest.mark.parametrize("city", sorted(c for c in CORE_CITIES if not is_designated_city(c)))
def test_every_core_city_is_core(city):
    assert classify(city) is MunicipalityClassification.CORE_CITY


def test_higashiosaka_matches_osaka_designated_entry():
    # 東大阪市 contains 大阪市, and the designated table is checked first
    assert is_core_city("東大阪市")
    assert is_designated_city("東大阪市")
    assert classify("東大阪市") is MunicipalityClassification.DESIGNATED_CITY


@pytest.mark.parametrize("city", ["厚木市", "藤沢市", "所沢市", "軽井沢町", "檜原村"])
def test_other_municipalities_are_ordinary(city):
    assert classify(city) is MunicipalityClassification.ORDINARY
    assert has_own_jurisdiction(city) is False


@pytest.mark.parametrize("city", ["横浜", "横浜市", " 横浜市 ", "横浜市中区"])
def test_fuzzy_match_tolerates_naming_variation(city):
    assert classify(city) is MunicipalityClassification.DESIGNATED_CITY


def test_core_city_without_suffix():
    assert is_core_city("川口")
    assert not is_designated_city("川口")


def test_empty_input_is_ordinary():
    assert classify("") is MunicipalityClassification.ORDINARY
    assert classify("市") is MunicipalityClassification.ORDINARY
