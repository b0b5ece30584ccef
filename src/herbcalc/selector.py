# -----------------------------------------------------------------------------
# Formula Selector
# Purpose: Turn free-text prescription input ("소시호 반하사심*0.5") into
# matched templates from the resolved catalog, using an
# exact → suffix-variant → prefix cascade, and report ambiguous or unknown
# names as one batched error.
# -----------------------------------------------------------------------------

from __future__ import annotations
import re
from typing import List
from .merger import merge_herbs
from .notation import split_multiplier
from .types import (
    Ambiguous, FormulaToken, MatchResult, Matched, MergedHerb, NotFound, ResolvedTemplate,
)

# Formula-name endings tried when the typed name has no exact hit (decoction,
# powder, pill, drink). Order matters for candidate listing.
SUFFIXES = ["탕", "산", "환", "음"]

class FormulaParseError(Exception):
    """
    Raised when any token of a formula cannot be matched to exactly one
    template. kind is "ambiguous" or "not_found"; ambiguity takes priority.
    """
    def __init__(self, kind: str, message: str,
                 ambiguous: List[Ambiguous] | None = None,
                 not_found: List[str] | None = None):
        super().__init__(message)
        self.kind = kind
        self.ambiguous = ambiguous or []
        self.not_found = not_found or []

def normalize_formula(text: str) -> str:
    s = (text or "").strip()
    if s.startswith("<"):
        s = s[1:]
    if s.endswith(">"):
        s = s[:-1]
    s = re.sub(r"\s+", "+", s)
    s = re.sub(r"\++", "+", s)
    return s.strip("+")

def tokenize(text: str) -> List[FormulaToken]:
    tokens: List[FormulaToken] = []
    for seg in normalize_formula(text).split("+"):
        seg = seg.strip()
        if not seg:
            continue
        name, mult = split_multiplier(seg)
        tokens.append(FormulaToken(search_name=name, multiplier=mult))
    return tokens

def _named(t: ResolvedTemplate, name: str) -> bool:
    return t.name == name or (bool(t.alias) and t.alias == name)

def match_token(token: FormulaToken, templates: List[ResolvedTemplate]) -> MatchResult:
    name = token.search_name

    # 1) exact name/alias
    exact = next((t for t in templates if _named(t, name)), None)
    if exact is not None:
        return Matched(template=exact, multiplier=token.multiplier)

    # 2) suffix variants; candidates de-duplicated by identity
    found: List[ResolvedTemplate] = []
    for suffix in SUFFIXES:
        hit = next((t for t in templates if _named(t, name + suffix)), None)
        if hit is not None and not any(hit is f for f in found):
            found.append(hit)

    # 3) prefix search only when no suffix variant exists
    if not found:
        for t in templates:
            if t.name.startswith(name) or (t.alias and t.alias.startswith(name)):
                if not any(t is f for f in found):
                    found.append(t)

    if len(found) == 1:
        return Matched(template=found[0], multiplier=token.multiplier)
    if len(found) > 1:
        return Ambiguous(search_name=name, candidates=[t.name for t in found])
    return NotFound(search_name=name)

def match_formula(text: str, templates: List[ResolvedTemplate]) -> List[MatchResult]:
    return [match_token(tok, templates) for tok in tokenize(text)]

def resolve_matches(text: str, templates: List[ResolvedTemplate]) -> List[Matched]:
    """
    Match every token in one pass. All-or-nothing: any ambiguous or unknown
    token raises FormulaParseError. Blank input yields an empty list.
    """
    results = match_formula(text, templates)
    ambiguous = [r for r in results if isinstance(r, Ambiguous)]
    if ambiguous:
        lines = [f'"{a.search_name}": {", ".join(a.candidates)}' for a in ambiguous]
        raise FormulaParseError(
            "ambiguous",
            "Multiple formulas matched; enter an exact name:\n" + "\n".join(lines),
            ambiguous=ambiguous,
        )
    missing = [r.search_name for r in results if isinstance(r, NotFound)]
    if missing:
        raise FormulaParseError("not_found", f"Unknown formula: {', '.join(missing)}",
                                not_found=missing)
    return [r for r in results if isinstance(r, Matched)]

def parse_formula(text: str, templates: List[ResolvedTemplate]) -> List[MergedHerb]:
    # Matched templates merged into one per-dose list; no herbs on any error
    return merge_herbs(resolve_matches(text, templates))

# ---------------- template picker ----------------

def search_templates(templates: List[ResolvedTemplate], term: str, min_length: int = 2) -> List[ResolvedTemplate]:
    # Picker list below the formula box; short terms would match everything.
    if len(term or "") < min_length:
        return []
    return [t for t in templates if term in t.name or (t.alias and term in t.alias)]

def append_to_formula(formula: str, template: ResolvedTemplate) -> str:
    name = template.alias or template.name
    current = (formula or "").strip()
    return f"{current} {name}" if current else name
