# --- herbcalc: Prescription Calculator API (FastAPI) --------------------------
# Purpose: Minimal API over the prescription engine: (1) browse/search the
# formula catalog, (2) parse a typed formula into merged herbs, and (3) compute
# the final batch (adjustments, packs, water volume) for the prescription screen.
# ------------------------------------------------------------------------------

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from herbcalc.catalog import Catalog
from herbcalc.dosage import recommend_doses
from herbcalc.models import PrescriptionRecord, RecordError, Status, build_record
from herbcalc.prescriber import Prescriber, PrescriptionResult
from herbcalc.selector import FormulaParseError, parse_formula, search_templates
from herbcalc.types import DosingParameters
from herbcalc.units import UnitError, UnitSession, to_liters, to_milliliters

# Load .env for external configuration (catalog path, log level, dosing defaults)
load_dotenv()
CATALOG_PATH = os.getenv("CATALOG_PATH", str(Path(__file__).resolve().parent.parent / "examples" / "catalog_herbs.yaml"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
DEFAULT_TOTAL_DOSES = float(os.getenv("DEFAULT_TOTAL_DOSES", "15"))
DEFAULT_DAYS = int(os.getenv("DEFAULT_DAYS", "15"))
DEFAULT_DOSES_PER_DAY = int(os.getenv("DEFAULT_DOSES_PER_DAY", "2"))
DEFAULT_PACK_VOLUME = float(os.getenv("DEFAULT_PACK_VOLUME", "100"))

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="herbcalc Prescription API")

# Initialize catalog + prescriber from YAML; templates are resolved once here
_catalog = Catalog.from_file(CATALOG_PATH)
_prescriber = Prescriber(_catalog)
_units = UnitSession()
logger.info("catalog loaded: %d definitions, %d herbs from %s",
            len(_catalog.definitions), len(_catalog.herbs), CATALOG_PATH)

# ----------------------------- Schemas ----------------------------------------
class ParseRequest(BaseModel):
    # Formula text as typed, e.g. "소시호 반하사심*0.5"
    formula: str

class PrescribeRequest(ParseRequest):
    # Dosing parameters fall back to the configured defaults when omitted.
    total_doses: float | None = Field(default=None, gt=0)
    days: int | None = Field(default=None, gt=0)
    doses_per_day: int | None = Field(default=None, gt=0)
    pack_volume: float | None = Field(default=None, gt=0)
    pack_volume_unit: str = "milliliter"
    herb_adjustment: str = ""

class RecommendRequest(BaseModel):
    total_per_dose_weight: float = Field(ge=0)
    days: int = Field(gt=0)

class RecordRequest(PrescribeRequest):
    notes: str = ""
    patient_name: str = ""
    status: Status = "issued"

def _dosing(req: PrescribeRequest) -> DosingParameters:
    """Build DosingParameters, normalising the pack volume to millilitres."""
    volume = req.pack_volume if req.pack_volume is not None else DEFAULT_PACK_VOLUME
    try:
        pack_ml = to_milliliters(_units, volume, req.pack_volume_unit)
    except UnitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DosingParameters(
        total_doses=req.total_doses if req.total_doses is not None else DEFAULT_TOTAL_DOSES,
        days=req.days if req.days is not None else DEFAULT_DAYS,
        doses_per_day=req.doses_per_day if req.doses_per_day is not None else DEFAULT_DOSES_PER_DAY,
        pack_volume_ml=pack_ml,
    )

def _herbs_json(items) -> List[Dict[str, Any]]:
    return [vars(h).copy() for h in items]

def _result_payload(res: PrescriptionResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": res.ok,
        "formula": res.formula,
        "merged_herbs": _herbs_json(res.merged_herbs),
        "final_herbs": _herbs_json(res.final_herbs),
        "quantities": None,
        "warnings": res.warnings,
        "trace": res.full_trace,
    }
    if res.quantities is not None:
        q = vars(res.quantities).copy()
        q["water_volume_l"] = to_liters(_units, res.quantities.water_volume_ml)
        payload["quantities"] = q
    if not res.ok:
        payload["error"] = res.error
        payload["error_kind"] = res.error_kind
        payload["ambiguous"] = res.ambiguous
        payload["not_found"] = res.not_found
    return payload

# ----------------------------- Routes -----------------------------------------
@app.get("/health")
def health(): return {"ok": True}

@app.get("/catalog")
def list_catalog():
    """
    Resolved templates with their per-dose herbs and any data-quality
    warnings raised while resolving compositions.
    """
    items = [{
        "name": t.name, "alias": t.alias,
        "herbs": _herbs_json(t.herbs), "warnings": t.warnings,
    } for t in _prescriber.templates]
    return {"count": len(items), "items": items}

@app.get("/catalog/search")
def search_catalog(q: str = ""):
    """Template picker: substring search on name/alias (two characters minimum)."""
    hits = search_templates(_prescriber.templates, q)
    return {"count": len(hits), "items": [{"name": t.name, "alias": t.alias} for t in hits]}

@app.get("/definitions")
def list_definitions(q: str = "", category: str = "all"):
    """Formula study screen: filtered definitions plus per-category counts."""
    defs = _catalog.filter_definitions(q, category)
    names = {d.name for d in defs}
    items = [d for d in _catalog.list_definitions() if d["name"] in names]
    return {"count": len(items), "items": items, "categories": _catalog.category_stats()}

@app.post("/parse")
def parse(req: ParseRequest):
    """
    Formula → merged per-dose herbs. Ambiguous or unknown names are a 422
    carrying the candidate lists so the caller can ask the user to pick.
    """
    try:
        merged = parse_formula(req.formula, _prescriber.templates)
    except FormulaParseError as e:
        raise HTTPException(status_code=422, detail={
            "error_kind": e.kind,
            "message": str(e),
            "ambiguous": [{"name": a.search_name, "candidates": a.candidates} for a in e.ambiguous],
            "not_found": e.not_found,
        })
    return {"merged_herbs": _herbs_json(merged), "total_per_dose_weight": sum(h.dosage for h in merged)}

@app.post("/prescribe")
def prescribe(req: PrescribeRequest):
    """
    Full pipeline: parse, merge, scale, adjust, derive quantities.
    Parse failures come back as ok=False with error_kind and the trace.
    """
    res = _prescriber.prescribe(req.formula, _dosing(req), req.herb_adjustment)
    return _result_payload(res)

@app.post("/recommend")
def recommend(req: RecommendRequest):
    return {"recommended_doses": recommend_doses(req.total_per_dose_weight, req.days)}

@app.post("/records")
def create_record(req: RecordRequest):
    """
    Build the persisted shape of a prescription (herb lists as JSON columns).
    Storage itself belongs to the caller.
    """
    dosing = _dosing(req)
    res = _prescriber.prescribe(req.formula, dosing, req.herb_adjustment)
    try:
        record: PrescriptionRecord = build_record(res, dosing, req.herb_adjustment,
                                                  req.notes, req.patient_name, req.status)
    except RecordError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "error_kind": res.error_kind})
    return {"record": record.model_dump(), "row": record.to_row()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
