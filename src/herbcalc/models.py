# -----------------------------------------------------------------------------
# Prescription record
# Purpose:
#   Pydantic shape of a saved prescription (what the storage layer persists),
#   built from a successful PrescriptionResult. Herb lists are stored as JSON
#   array strings, one column each.
# -----------------------------------------------------------------------------

from __future__ import annotations
import json
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from .prescriber import PrescriptionResult
from .types import DosingParameters

Status = Literal["draft", "issued", "completed"]

class RecordError(Exception): pass

class HerbLine(BaseModel):
    herb_name: str
    dosage: float
    unit: str = "g"

class FinalHerbLine(BaseModel):
    herb_id: int
    name: str
    amount: float

class PrescriptionRecord(BaseModel):
    formula: str
    merged_herbs: List[HerbLine] = Field(default_factory=list)
    final_herbs: List[FinalHerbLine] = Field(default_factory=list)
    total_doses: float = 15
    days: int = 15
    doses_per_day: int = 2
    total_packs: int = 30
    pack_volume: int = 100
    water_amount: Optional[int] = None
    herb_adjustment: Optional[str] = None
    total_dosage: float = 0
    final_total_amount: float = 0
    notes: Optional[str] = None
    patient_name: str = ""
    status: Status = "issued"

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump()
        row["merged_herbs"] = json.dumps(row["merged_herbs"], ensure_ascii=False)
        row["final_herbs"] = json.dumps(row["final_herbs"], ensure_ascii=False)
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PrescriptionRecord":
        data = dict(row)
        for key in ("merged_herbs", "final_herbs"):
            if isinstance(data.get(key), str):
                data[key] = json.loads(data[key] or "[]")
        return cls(**data)

def build_record(
    result: PrescriptionResult,
    dosing: DosingParameters,
    adjustment: str = "",
    notes: str = "",
    patient_name: str = "",
    status: Status = "issued",
) -> PrescriptionRecord:
    """
    Save guard: a blank formula, a failed parse, or a formula that merged no
    herbs cannot be saved.
    """
    if not (result.formula or "").strip():
        raise RecordError("Enter a prescription formula.")
    if not result.ok or not result.merged_herbs or result.quantities is None:
        raise RecordError("Enter a valid prescription formula.")
    q = result.quantities
    return PrescriptionRecord(
        formula=result.formula,
        merged_herbs=[HerbLine(herb_name=h.herb_name, dosage=h.dosage) for h in result.merged_herbs],
        final_herbs=[FinalHerbLine(herb_id=f.herb_id, name=f.herb_name, amount=f.amount)
                     for f in result.final_herbs],
        total_doses=dosing.total_doses,
        days=dosing.days,
        doses_per_day=dosing.doses_per_day,
        total_packs=q.total_packs,
        pack_volume=dosing.pack_volume_ml,
        water_amount=q.water_volume_ml,
        herb_adjustment=adjustment or None,
        total_dosage=q.total_per_dose_weight,
        final_total_amount=q.total_batch_weight,
        notes=notes or None,
        patient_name=patient_name or "",
        status=status,
    )
