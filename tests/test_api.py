import pytest
from fastapi.testclient import TestClient
from api.main import app

client = TestClient(app)

def test_health():
    assert client.get("/health").json() == {"ok": True}

def test_catalog_listing():
    data = client.get("/catalog").json()
    assert data["count"] == 7
    shiryeong = next(i for i in data["items"] if i["name"] == "시령탕")
    assert {h["herb_name"] for h in shiryeong["herbs"]} >= {"시호", "택사"}
    assert shiryeong["warnings"] == []

def test_catalog_search():
    data = client.get("/catalog/search", params={"q": "시호"}).json()
    assert [i["name"] for i in data["items"]] == ["소시호탕", "시호계지탕"]
    assert client.get("/catalog/search", params={"q": "시"}).json()["count"] == 0

def test_definitions_filter():
    data = client.get("/definitions", params={"q": "반하 황금"}).json()
    assert [i["name"] for i in data["items"]] == ["소시호탕", "반하사심탕"]
    assert data["categories"]["all"] == 7

def test_parse_suffix_match():
    r = client.post("/parse", json={"formula": "인삼"})
    assert r.status_code == 200
    assert r.json()["total_per_dose_weight"] == pytest.approx(36)

def test_parse_errors_are_422():
    r = client.post("/parse", json={"formula": "시"})
    assert r.status_code == 422
    assert r.json()["detail"]["error_kind"] == "ambiguous"
    assert r.json()["detail"]["ambiguous"][0]["candidates"] == ["시령탕", "시호계지탕"]
    r = client.post("/parse", json={"formula": "없는처방"})
    assert r.json()["detail"]["not_found"] == ["없는처방"]

def test_prescribe_with_pack_volume_in_liters():
    r = client.post("/prescribe", json={
        "formula": "소시호", "total_doses": 10, "days": 10, "doses_per_day": 2,
        "pack_volume": 0.1, "pack_volume_unit": "liter",
    })
    data = r.json()
    assert data["ok"]
    q = data["quantities"]
    assert q["total_batch_weight"] == 480
    assert q["water_volume_ml"] == 2976
    assert q["water_volume_l"] == pytest.approx(2.976)
    assert data["final_herbs"][0] == {"herb_id": 1, "herb_name": "시호", "amount": 120}

def test_prescribe_failure_payload():
    data = client.post("/prescribe", json={"formula": "소시호 없는처방"}).json()
    assert data["ok"] is False
    assert data["error_kind"] == "not_found"
    assert data["quantities"] is None

@pytest.mark.parametrize("unit", ["bogus_unit", "gram", "ml)", "(", "1/"])
def test_prescribe_bad_unit(unit):
    r = client.post("/prescribe", json={"formula": "소시호", "pack_volume": 1, "pack_volume_unit": unit})
    assert r.status_code == 400

@pytest.mark.parametrize("field,value", [
    ("days", -3), ("doses_per_day", 0), ("total_doses", -1), ("pack_volume", -50),
])
def test_prescribe_rejects_non_positive_dosing(field, value):
    r = client.post("/prescribe", json={"formula": "소시호", field: value})
    assert r.status_code == 422

def test_recommend():
    assert client.post("/recommend", json={"total_per_dose_weight": 120, "days": 15}).json() == {"recommended_doses": 12.5}

def test_records():
    r = client.post("/records", json={"formula": "소시호", "patient_name": "홍길동"})
    assert r.status_code == 200
    body = r.json()
    assert body["record"]["status"] == "issued"
    assert isinstance(body["row"]["merged_herbs"], str)
    assert client.post("/records", json={"formula": " "}).status_code == 422
