# -----------------------------------------------------------------------------
# Composition Resolver
# Purpose: Expand a stored composition expression into a flat list of
# (herb, grams-per-dose) pairs, following "formula of formulas" references
# recursively with multipliers, and build the resolved template catalog.
# Behaviour:
#   - '+' form: references to other definitions (by name or alias), each with
#     an optional '*N' multiplier; overlapping herbs keep the larger dosage.
#   - '/' form: leaf "herb:dosage" entries, kept in file order as written.
#   - Cyclic, unknown or empty references are skipped and reported as
#     warnings; resolution never raises, so one bad definition cannot block
#     the rest of the catalog.
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Dict, FrozenSet, List, Optional
from .catalog import Catalog
from .notation import parse_number, split_multiplier
from .types import ResolvedHerb, Resolution, ResolvedTemplate

logger = logging.getLogger(__name__)

def _resolve_leaf(composition: str, multiplier: float) -> Resolution:
    herbs: List[ResolvedHerb] = []
    warnings: List[str] = []
    for part in composition.split("/"):
        if not part.strip():
            continue
        name, sep, dosage_text = part.partition(":")
        name, dosage_text = name.strip(), dosage_text.strip()
        if not sep or not name or not dosage_text:
            warnings.append(f"malformed herb entry: {part.strip()}")
            continue
        herbs.append(ResolvedHerb(herb_name=name, dosage=parse_number(dosage_text) * multiplier))
    return Resolution(herbs=herbs, warnings=warnings)

def resolve_composition(
    composition: str,
    catalog: Catalog,
    multiplier: float = 1.0,
    visited: Optional[FrozenSet[str]] = None,
) -> Resolution:
    """
    Resolve one composition string against `catalog`.

    Parameters
    ----------
    composition : str
        Raw expression, e.g. "소시호*0.5+반하사심" or "시호:12/황금:8".
    multiplier : float
        Scale applied to every herb produced (accumulated down the recursion).
    visited : frozenset of reference names on the current path
        Only ancestors' marks are visible; siblings get independent copies.

    Returns
    -------
    Resolution
        herbs plus human-readable warnings for skipped references.
    """
    if not composition:
        return Resolution()
    visited = visited or frozenset()

    if "+" not in composition:
        return _resolve_leaf(composition, multiplier)

    # Insertion order of first occurrence; dosage = max over sources
    dosages: Dict[str, float] = {}
    warnings: List[str] = []
    for segment in (s.strip() for s in composition.split("+")):
        if not segment:
            continue
        ref, local = split_multiplier(segment)
        if ref in visited:
            warnings.append(f"cyclic reference skipped: {ref}")
            continue
        found = catalog.find_definition(ref)
        if found is None:
            warnings.append(f"unresolved reference: {ref}")
            continue
        if not found.composition:
            warnings.append(f"empty composition: {ref}")
            continue
        child = resolve_composition(found.composition, catalog, multiplier * local, visited | {ref})
        warnings.extend(child.warnings)
        for h in child.herbs:
            existing = dosages.get(h.herb_name)
            dosages[h.herb_name] = h.dosage if existing is None else max(existing, h.dosage)

    herbs = [ResolvedHerb(herb_name=n, dosage=d) for n, d in dosages.items()]
    return Resolution(herbs=herbs, warnings=warnings)

def build_catalog(catalog: Catalog) -> List[ResolvedTemplate]:
    """
    Resolve every definition once; the result is the immutable snapshot the
    selector matches against. Rebuild wholesale when the catalog changes.
    """
    templates: List[ResolvedTemplate] = []
    flagged = 0
    for fd in catalog.definitions:
        res = resolve_composition(fd.composition, catalog)
        if res.warnings:
            flagged += 1
            logger.debug("definition %s resolved with warnings: %s", fd.name, res.warnings)
        templates.append(ResolvedTemplate(name=fd.name, alias=fd.alias,
                                          herbs=res.herbs, warnings=res.warnings))
    if flagged:
        logger.warning("%d of %d definitions resolved with warnings", flagged, len(templates))
    return templates
