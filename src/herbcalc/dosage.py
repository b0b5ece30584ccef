# -----------------------------------------------------------------------------
# Dosage & Quantity Calculator
# Purpose:
#   Scale the merged per-dose herb list to a batch, apply the free-text herb
#   adjustments ("+감초4 -대조6"), and derive batch quantities:
#     per-dose weight → batch weight → pack count → decoction water volume.
# All functions are total: bad adjustment text simply yields no adjustments.
# -----------------------------------------------------------------------------

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from .notation import round_half_up
from .types import DosingParameters, FinalHerb, HerbAdjustment, MergedHerb, Quantities

# Grams per dose above which fewer doses are suggested
TARGET_DOSE_WEIGHT = 100
# Herb id for names missing from the herb table; sorts after every real herb
UNKNOWN_HERB_ID = 99999
# Decoction water: absorption per gram of dry herb, plus a fixed base volume
WATER_ABSORPTION_FACTOR = 1.2
WATER_BASE_ML = 300

# [sign][Hangul herb name][grams]
_ADJUSTMENT = re.compile(r"([+-]?)([가-힣]+)([0-9]+(?:\.[0-9]+)?)")

@dataclass
class FinalComputation:
    final_herbs: List[FinalHerb]
    quantities: Quantities

def recommend_doses(total_per_dose_weight: float, days: int) -> Optional[float]:
    """
    Suggested dose count (one decimal) when a dose would exceed the target
    weight; None otherwise. Advisory only, never applied automatically.
    e.g. 120 g per dose over 15 days → 12.5
    """
    if total_per_dose_weight <= TARGET_DOSE_WEIGHT:
        return None
    return round_half_up((days * TARGET_DOSE_WEIGHT / total_per_dose_weight) * 10) / 10

def parse_adjustments(text: str) -> List[HerbAdjustment]:
    if not (text or "").strip():
        return []
    return [
        HerbAdjustment(herb_name=m.group(2), amount=float(m.group(3)), is_add=m.group(1) != "-")
        for m in _ADJUSTMENT.finditer(text)
    ]

def apply_adjustments(amounts: Dict[str, float], adjustments: List[HerbAdjustment]) -> Dict[str, float]:
    """
    Apply adjustments in order to a name → grams map (a copy is returned).
    Adding to an unknown herb introduces it; subtracting to zero or below
    removes the herb.
    """
    out = dict(amounts)
    for adj in adjustments:
        current = out.get(adj.herb_name, 0)
        if adj.is_add:
            out[adj.herb_name] = current + adj.amount
            continue
        remaining = current - adj.amount
        if remaining <= 0:
            out.pop(adj.herb_name, None)
        else:
            out[adj.herb_name] = remaining
    return out

def water_volume(total_batch_weight: float, pack_volume_ml: int, total_packs: int) -> int:
    # one extra pack volume covers brewing loss
    return round_half_up(total_batch_weight * WATER_ABSORPTION_FACTOR
                         + pack_volume_ml * (total_packs + 1)
                         + WATER_BASE_ML)

def compute_final(
    merged: List[MergedHerb],
    dosing: DosingParameters,
    adjustment_text: str,
    herb_id_lookup: Callable[[str], Optional[int]],
) -> FinalComputation:
    per_dose = sum(h.dosage for h in merged)

    amounts: Dict[str, float] = {}
    for h in merged:
        amounts[h.herb_name] = float(round_half_up(h.dosage * dosing.total_doses))
    amounts = apply_adjustments(amounts, parse_adjustments(adjustment_text))

    final = [
        FinalHerb(herb_id=herb_id_lookup(name) or UNKNOWN_HERB_ID, herb_name=name, amount=amount)
        for name, amount in amounts.items()
    ]
    final.sort(key=lambda f: f.herb_id)

    batch = sum(f.amount for f in final)
    packs = dosing.days * dosing.doses_per_day
    return FinalComputation(
        final_herbs=final,
        quantities=Quantities(
            total_per_dose_weight=per_dose,
            total_batch_weight=batch,
            total_packs=packs,
            water_volume_ml=water_volume(batch, dosing.pack_volume_ml, packs),
            recommended_doses=recommend_doses(per_dose, dosing.days),
        ),
    )
