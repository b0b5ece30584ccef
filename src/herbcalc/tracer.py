# -----------------------------------------------------------------------------
# Prescription trace
# Purpose:
#   Append-only record of one prescription run: each pipeline stage as a
#   (kind, detail) step, plus the data-quality warnings of every template the
#   formula touched, so callers can show "this formula skipped X" next to the
#   result. Exports plain dicts for JSON responses.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List

@dataclass
class TraceStep:
    kind: str      # e.g. "normalized", "matches", "merged", "final", "error"
    detail: Dict[str, Any]

class Tracer:
    def __init__(self):
        self._steps: List[TraceStep] = []
        self._warnings: Dict[str, List[str]] = {}

    def add(self, kind: str, detail: Dict[str, Any]):
        self._steps.append(TraceStep(kind, detail))

    def warn(self, template_name: str, messages: List[str]):
        # Same template matched twice ("소시호 소시호*2") is reported once.
        if messages and template_name not in self._warnings:
            self._warnings[template_name] = list(messages)

    def warnings(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._warnings.items()}

    def steps(self) -> List[Dict[str, Any]]:
        out = [{"kind": s.kind, "detail": s.detail} for s in self._steps]
        if self._warnings:
            out.append({"kind": "catalog_warnings", "detail": self.warnings()})
        return out
