import pytest
from herbcalc.catalog import Catalog, CatalogError, definition_category

def test_from_yaml_text(catalog):
    assert [h.name for h in catalog.herbs][:3] == ["시호", "황금", "인삼"]
    assert catalog.herbs[0].unit == "g"
    assert catalog.definitions[0].alias == "소시호"
    assert catalog.definitions[1].category is None

def test_missing_sections_are_empty():
    cat = Catalog.from_yaml_text("")
    assert cat.herbs == [] and cat.definitions == []

def test_malformed_entries_raise():
    with pytest.raises(CatalogError):
        Catalog.from_yaml_dict({"definitions": [{"composition": "시호:1"}]})
    with pytest.raises(CatalogError):
        Catalog.from_yaml_dict({"herbs": [{"name": "시호"}]})
    with pytest.raises(CatalogError):
        Catalog.from_yaml_dict({"herbs": [{"id": "x", "name": "시호"}]})

def test_find_definition_prefers_name_over_alias():
    cat = Catalog.from_yaml_dict({"definitions": [
        {"name": "가", "alias": "나", "composition": "시호:1"},
        {"name": "나", "composition": "황금:1"},
    ]})
    assert cat.find_definition("나").composition == "황금:1"
    assert cat.find_definition("가").name == "가"
    assert cat.find_definition("다") is None

def test_herb_id_lookup(catalog):
    lookup = catalog.herb_id_lookup()
    assert lookup("반하") == 4
    assert lookup("녹용") is None
    assert catalog.herb_id("건강") == 9

def test_definition_category_fallbacks(catalog):
    assert [definition_category(d) for d in catalog.definitions] == ["화해제", "상한론"]
    cat = Catalog.from_yaml_dict({"definitions": [{"name": "가", "composition": ""}]})
    assert definition_category(cat.definitions[0]) == "기타"

def test_filter_definitions(sample_catalog):
    names = lambda defs: [d.name for d in defs]
    assert names(sample_catalog.filter_definitions("반하 황금")) == ["소시호탕", "반하사심탕"]
    assert names(sample_catalog.filter_definitions("이중")) == ["인삼탕"]
    assert names(sample_catalog.filter_definitions("택사")) == ["오령산"]
    assert names(sample_catalog.filter_definitions("", "해표제")) == ["계지탕"]
    assert names(sample_catalog.filter_definitions("시호,작약")) == []

def test_category_stats(sample_catalog):
    stats = sample_catalog.category_stats()
    assert stats["all"] == 7
    assert stats["화해제"] == 3
    assert stats["세의득효방"] == 1

def test_list_definitions(sample_catalog):
    rows = sample_catalog.list_definitions()
    assert rows[5]["name"] == "시령탕" and rows[5]["category"] == "세의득효방"
