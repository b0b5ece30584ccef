# -----------------------------------------------------------------------------
# Types module: Shared dataclasses for the prescription engine
# Purpose:
#   Define structured representations for herbs, formula definitions, resolved
#   templates, match outcomes and the computed herb lists used across the
#   catalog, resolver, selector, merger and dosage calculator.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union

@dataclass
class HerbRecord:
    """
    Reference entry from the herb table.
    - id: storage id, also the dispensing sort key for final herb lists
    - name: unique herb name (exact join key)
    """
    id: int
    name: str
    unit: str = "g"

@dataclass
class FormulaDefinition:
    """
    Raw formula as stored in the catalog.
    composition is either a '+'-joined list of formula references
    ("소시호*0.5+반하사심") or a '/'-joined list of herb:dosage entries
    ("시호:12/황금:8").
    """
    name: str
    composition: str
    alias: str | None = None
    category: str | None = None
    source: str | None = None
    description: str | None = None
    id: int | None = None

@dataclass
class ResolvedHerb:
    herb_name: str
    dosage: float     # grams per single dose
    unit: str = "g"

@dataclass
class Resolution:
    # Partial herb list plus every reference that was skipped on the way.
    herbs: List[ResolvedHerb] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

@dataclass
class ResolvedTemplate:
    name: str
    alias: str | None
    herbs: List[ResolvedHerb]
    warnings: List[str] = field(default_factory=list)

@dataclass
class FormulaToken:
    search_name: str
    multiplier: float = 1.0

@dataclass
class Matched:
    template: ResolvedTemplate
    multiplier: float = 1.0

@dataclass
class Ambiguous:
    search_name: str
    candidates: List[str]

@dataclass
class NotFound:
    search_name: str

MatchResult = Union[Matched, Ambiguous, NotFound]

@dataclass
class MergedHerb:
    herb_name: str
    dosage: float     # grams per dose, max over all sources

@dataclass
class HerbAdjustment:
    herb_name: str
    amount: float
    is_add: bool = True

@dataclass
class FinalHerb:
    herb_id: int
    herb_name: str
    amount: float     # grams for the whole batch

@dataclass
class DosingParameters:
    """
    Caller-supplied batch parameters.
    total_doses may be fractional (e.g. an applied recommendation of 12.5).
    """
    total_doses: float = 15
    days: int = 15
    doses_per_day: int = 2
    pack_volume_ml: int = 100

@dataclass
class Quantities:
    total_per_dose_weight: float
    total_batch_weight: float
    total_packs: int
    water_volume_ml: int
    recommended_doses: Optional[float] = None
