import json
import pytest
from herbcalc.models import PrescriptionRecord, RecordError, build_record
from herbcalc.prescriber import Prescriber
from herbcalc.types import DosingParameters

DOSING = DosingParameters(total_doses=10, days=10, doses_per_day=2, pack_volume_ml=100)

def test_build_record_and_row(catalog):
    res = Prescriber(catalog).prescribe("소시호", DOSING, "+감초2")
    rec = build_record(res, DOSING, "+감초2", notes="식후", patient_name="홍길동")
    assert rec.status == "issued"
    assert rec.total_packs == 20
    assert rec.final_total_amount == 482
    assert rec.water_amount == res.quantities.water_volume_ml
    row = rec.to_row()
    assert isinstance(row["merged_herbs"], str)
    assert json.loads(row["final_herbs"])[0] == {"herb_id": 1, "name": "시호", "amount": 120}
    assert "시호" in row["merged_herbs"]
    assert PrescriptionRecord.from_row(row) == rec

def test_blank_formula_cannot_be_saved(catalog):
    res = Prescriber(catalog).prescribe("", DOSING)
    with pytest.raises(RecordError):
        build_record(res, DOSING)

def test_failed_parse_cannot_be_saved(catalog):
    res = Prescriber(catalog).prescribe("없는처방", DOSING)
    with pytest.raises(RecordError, match="valid"):
        build_record(res, DOSING)

def test_status_is_validated():
    with pytest.raises(Exception):
        PrescriptionRecord(formula="소시호", status="archived")
