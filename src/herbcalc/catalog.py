# -----------------------------------------------------------------------------
# Catalog loader & accessor
# Purpose: Parse a flat YAML catalog (herbs + formula definitions) into typed
# objects used by the prescription pipeline, and answer the lookups the
# resolver, calculator and browsing screens need.
# - Depends on .types (HerbRecord, FormulaDefinition) for typed payloads.
# -----------------------------------------------------------------------------

from __future__ import annotations
import re
import yaml
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from .types import HerbRecord, FormulaDefinition

# Domain-specific error to signal malformed catalog files (missing fields, etc.)
class CatalogError(Exception): pass

# Bucket used when a definition carries neither category nor source
UNCATEGORIZED = "기타"

def definition_category(d: FormulaDefinition) -> str:
    # Browsing groups by category, falling back to the source text.
    return d.category or d.source or UNCATEGORIZED

def _opt_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None

@dataclass
class Catalog:
    # Herb reference table (id/name/unit)
    herbs: List[HerbRecord]
    # Formula definitions in catalog order; order is the tie-break everywhere
    definitions: List[FormulaDefinition]

    @staticmethod
    def from_yaml_dict(d: Dict[str, Any] | None) -> "Catalog":
        """
        Build a Catalog from a pre-parsed YAML dictionary.
        Expected YAML high-level shape:
          herbs:
            - { id: 1, name: "인삼", unit: "g" }
          definitions:
            - name: "소시호탕"
              alias: "소시호"          # optional
              category: "상한론"       # optional
              source: "상한론"         # optional
              composition: "시호:12/황금:8/..."
        Composition text is not validated here; the resolver degrades
        gracefully on malformed compositions.
        """
        d = d or {}
        herbs: List[HerbRecord] = []
        # ---- Parse herbs ------------------------------------------------------
        for i, h in enumerate(d.get("herbs") or []):
            if not isinstance(h, dict) or "id" not in h or not h.get("name"):
                raise CatalogError(f"Herb entry #{i} needs 'id' and 'name'.")
            try:
                hid = int(h["id"])
            except (TypeError, ValueError):
                raise CatalogError(f"Herb entry #{i} has a non-integer id: {h['id']!r}")
            herbs.append(HerbRecord(id=hid, name=str(h["name"]).strip(),
                                    unit=str(h.get("unit") or "g")))
        defs: List[FormulaDefinition] = []
        # ---- Parse formula definitions ---------------------------------------
        for i, fd in enumerate(d.get("definitions") or []):
            if not isinstance(fd, dict) or not fd.get("name"):
                raise CatalogError(f"Definition entry #{i} needs a 'name'.")
            defs.append(FormulaDefinition(
                name=str(fd["name"]).strip(),
                composition=str(fd.get("composition") or ""),
                alias=_opt_str(fd.get("alias")),
                category=_opt_str(fd.get("category")),
                source=_opt_str(fd.get("source")),
                description=_opt_str(fd.get("description")),
                id=fd.get("id"),
            ))
        return Catalog(herbs=herbs, definitions=defs)

    @staticmethod
    def from_yaml_text(text: str) -> "Catalog":
        """
        Convenience: parse raw YAML string into a Catalog.
        Uses yaml.safe_load for security (no arbitrary object constructors).
        """
        return Catalog.from_yaml_dict(yaml.safe_load(text))

    @staticmethod
    def from_file(path: str) -> "Catalog":
        """
        Convenience: open a YAML file from disk and parse into a Catalog.
        UTF-8 is enforced; herb and formula names are Hangul.
        """
        with open(path, "r", encoding="utf-8") as f:
            return Catalog.from_yaml_text(f.read())

    # ---------------- lookups ----------------

    def find_definition(self, name: str) -> Optional[FormulaDefinition]:
        # Exact name wins over alias; first in catalog order within each.
        for fd in self.definitions:
            if fd.name == name:
                return fd
        for fd in self.definitions:
            if fd.alias and fd.alias == name:
                return fd
        return None

    def herb_id(self, name: str) -> Optional[int]:
        for h in self.herbs:
            if h.name == name:
                return h.id
        return None

    def herb_id_lookup(self) -> Callable[[str], Optional[int]]:
        # Snapshot as a dict so per-herb lookups during compute are O(1).
        # Later duplicates override earlier ones, matching a name-keyed table.
        ids = {h.name: h.id for h in self.herbs}
        return ids.get

    # ---------------- browsing ----------------

    def filter_definitions(self, search_term: str = "", category: str = "all") -> List[FormulaDefinition]:
        """
        Filter definitions for the formula study screen.
        - category: 'all' or a definition_category() value
        - search_term: split on whitespace/commas, case-insensitive.
          One keyword matches name, alias or composition;
          several keywords must all appear in the composition (herb search).
        """
        terms = [t.strip().lower() for t in re.split(r"[\s,]+", search_term or "") if t.strip()]
        out: List[FormulaDefinition] = []
        for fd in self.definitions:
            if category != "all" and definition_category(fd) != category:
                continue
            if terms:
                comp = fd.composition.lower()
                if len(terms) == 1:
                    t = terms[0]
                    hit = (t in fd.name.lower()
                           or (fd.alias is not None and t in fd.alias.lower())
                           or t in comp)
                    if not hit:
                        continue
                elif not all(t in comp for t in terms):
                    continue
            out.append(fd)
        return out

    def category_stats(self) -> Dict[str, int]:
        stats: Dict[str, int] = {"all": len(self.definitions)}
        for fd in self.definitions:
            cat = definition_category(fd)
            stats[cat] = stats.get(cat, 0) + 1
        return stats

    def list_definitions(self) -> List[Dict[str, Any]]:
        """
        Flattened, UI-friendly listing of definitions across the catalog.
        """
        out = []
        for fd in self.definitions:
            out.append({
                "id": fd.id, "name": fd.name, "alias": fd.alias,
                "category": definition_category(fd), "source": fd.source,
                "composition": fd.composition,
            })
        return out
