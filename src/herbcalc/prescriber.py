# -----------------------------------------------------------------------------
# Prescriber: End-to-end prescription pipeline
# Responsibilities:
#   • Resolve the catalog once into an immutable template snapshot
#   • Match the typed formula against the snapshot (all-or-nothing)
#   • Merge matched templates into one per-dose herb list
#   • Scale to the batch, apply herb adjustments, derive quantities
#   • Funnel parse failures into a typed result with a full trace
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .catalog import Catalog
from .dosage import compute_final, parse_adjustments
from .merger import merge_herbs
from .resolver import build_catalog
from .selector import FormulaParseError, normalize_formula, resolve_matches
from .tracer import Tracer
from .types import DosingParameters, FinalHerb, MergedHerb, Quantities, ResolvedTemplate

logger = logging.getLogger(__name__)


@dataclass
class PrescriptionResult:
    # Structured response used by the API layer and the save path
    ok: bool
    formula: str
    merged_herbs: List[MergedHerb]
    final_herbs: List[FinalHerb]
    quantities: Quantities | None
    full_trace: List[Dict[str, Any]]
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    error: str | None = None
    error_kind: str | None = None  # "ambiguous" | "not_found"
    ambiguous: List[Dict[str, Any]] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)


class Prescriber:
    def __init__(self, catalog: Catalog):
        # Snapshot: a catalog change means constructing a new Prescriber
        self.catalog = catalog
        self.templates: List[ResolvedTemplate] = build_catalog(catalog)
        self._herb_id = catalog.herb_id_lookup()

    def catalog_warnings(self) -> Dict[str, List[str]]:
        return {t.name: list(t.warnings) for t in self.templates if t.warnings}

    def prescribe(
        self,
        formula: str,
        dosing: Optional[DosingParameters] = None,
        adjustment: str = "",
    ) -> PrescriptionResult:
        """
        Main orchestration:
          1) Normalize and parse the formula; ambiguity/unknown names abort.
          2) Merge the matched templates (max dose per herb).
          3) Compute final batch amounts and quantities.
        Blank formulas succeed with empty lists (nothing typed yet).
        """
        dosing = dosing or DosingParameters()
        trace = Tracer()
        trace.add("inputs_raw", {
            "formula": formula,
            "dosing": {
                "total_doses": dosing.total_doses, "days": dosing.days,
                "doses_per_day": dosing.doses_per_day, "pack_volume_ml": dosing.pack_volume_ml,
            },
            "adjustment": adjustment,
        })
        trace.add("normalized", {"formula": normalize_formula(formula)})

        try:
            matches = resolve_matches(formula, self.templates)
        except FormulaParseError as e:
            logger.info("formula %r rejected (%s)", formula, e.kind)
            trace.add("error", {"kind": e.kind, "message": str(e)})
            return PrescriptionResult(
                ok=False,
                formula=formula,
                merged_herbs=[],
                final_herbs=[],
                quantities=None,
                full_trace=trace.steps(),
                error=str(e),
                error_kind=e.kind,
                ambiguous=[{"name": a.search_name, "candidates": a.candidates} for a in e.ambiguous],
                not_found=list(e.not_found),
            )

        trace.add("matches", {"items": [
            {"template": m.template.name, "multiplier": m.multiplier} for m in matches
        ]})
        for m in matches:
            trace.warn(m.template.name, m.template.warnings)

        merged = merge_herbs(matches)
        trace.add("merged", {"herbs": [{"herb_name": h.herb_name, "dosage": h.dosage} for h in merged]})
        adjustments = parse_adjustments(adjustment)
        if adjustments:
            trace.add("adjustments", {"items": [
                {"herb_name": a.herb_name, "amount": a.amount, "is_add": a.is_add} for a in adjustments
            ]})

        computed = compute_final(merged, dosing, adjustment, self._herb_id)
        q = computed.quantities
        trace.add("final", {
            "herbs": len(computed.final_herbs),
            "total_batch_weight": q.total_batch_weight,
            "total_packs": q.total_packs,
            "water_volume_ml": q.water_volume_ml,
            "recommended_doses": q.recommended_doses,
        })
        return PrescriptionResult(
            ok=True,
            formula=formula,
            merged_herbs=merged,
            final_herbs=computed.final_herbs,
            quantities=q,
            full_trace=trace.steps(),
            warnings=trace.warnings(),
        )
