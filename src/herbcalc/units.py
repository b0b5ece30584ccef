# -----------------------------------------------------------------------------
# Units
# Purpose:
#   Thin pint wrapper used at the edges: caller-supplied pack volumes may come
#   in any volume unit ("0.12 L", "120 ml", "4 fluid_ounce") and are normalised
#   to whole millilitres; water volumes can be reported in litres.
# Safety:
#   - Raises UnitError on unknown or malformed units and non-volume quantities.
# -----------------------------------------------------------------------------

from __future__ import annotations
from tokenize import TokenError
from typing import Tuple
from pint import UnitRegistry
from pint.errors import DimensionalityError, PintError, UndefinedUnitError
from .notation import round_half_up

class UnitError(Exception): pass

_UR = UnitRegistry()
_Q_ = _UR.Quantity

class UnitSession:
    def __init__(self):
        self.ur = _UR

    def q(self, value: float, unit: str):
        try:
            return _Q_(value, unit)
        except UndefinedUnitError as e:
            raise UnitError(f"Unknown unit: {unit}") from e
        # pint's expression parser surfaces syntax errors ("ml)", "(", "1/") raw
        except (PintError, TokenError, AssertionError, ValueError) as e:
            raise UnitError(f"Malformed unit: {unit}") from e

    def to(self, quantity, unit: str):
        try:
            return quantity.to(unit)
        except DimensionalityError as e:
            raise UnitError(f"Cannot convert {quantity.units} to {unit}") from e

def convert_scalar(us: UnitSession, value: float, from_unit: str, to_unit: str) -> Tuple[float, str]:
    q = us.q(value, from_unit)
    tgt = us.to(q, to_unit)
    return float(tgt.magnitude), f"{tgt.units}"

def to_milliliters(us: UnitSession, value: float, unit: str = "milliliter") -> int:
    ml, _ = convert_scalar(us, value, unit, "milliliter")
    return round_half_up(ml)

def to_liters(us: UnitSession, value_ml: float) -> float:
    liters, _ = convert_scalar(us, value_ml, "milliliter", "liter")
    return liters
