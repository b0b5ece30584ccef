# -----------------------------------------------------------------------------
# Notation helpers
# Purpose: Small, total parsing/rounding primitives for the compact formula
# notation shared by the resolver, selector and dosage calculator.
#   - "name*0.5"   → ("name", 0.5)
#   - "12g"        → 12.0 (leading numeric prefix; garbage → 0.0)
#   - whole-gram rounding with halves rounded up
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import re
from typing import Tuple

# "<reference>*<number>", number as in "2", "0.5", ".5"
_MULTIPLIER = re.compile(r"^(.+)\*(\d*\.?\d+)$")

# Leading numeric literal, as accepted at the start of a dosage field
_LEADING_NUM = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")

def parse_number(text: str | None) -> float:
    """
    Read the leading number of `text` ("12", "7.5g", " 3 ").
    Returns 0.0 when there is none.
    """
    if not text:
        return 0.0
    m = _LEADING_NUM.match(text)
    if not m:
        return 0.0
    try:
        return float(m.group(0))
    except ValueError:
        return 0.0

def split_multiplier(segment: str) -> Tuple[str, float]:
    """
    Split an optional trailing '*<number>' off a formula segment.
    A multiplier that parses to 0 falls back to 1.0.
    """
    m = _MULTIPLIER.match(segment)
    if not m:
        return segment, 1.0
    return m.group(1).strip(), (float(m.group(2)) or 1.0)

def round_half_up(x: float) -> int:
    # 2.5 → 3; amounts here are never negative
    return int(math.floor(x + 0.5))
