# -----------------------------------------------------------------------------
# Herb Merger
# Purpose: Combine the herbs of every matched template into one per-dose list.
# Overlapping herbs keep the strongest scaled dose (never summed).
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Dict, List
from .types import Matched, MergedHerb

def merge_herbs(matches: List[Matched]) -> List[MergedHerb]:
    merged: Dict[str, MergedHerb] = {}
    for m in matches:
        for herb in m.template.herbs:
            scaled = herb.dosage * m.multiplier
            existing = merged.get(herb.herb_name)
            # strict '>' so the first source keeps exact ties
            if existing is None or scaled > existing.dosage:
                merged[herb.herb_name] = MergedHerb(herb_name=herb.herb_name, dosage=scaled)
    # stable sort: equal dosages stay in first-seen order
    return sorted(merged.values(), key=lambda h: h.dosage, reverse=True)
