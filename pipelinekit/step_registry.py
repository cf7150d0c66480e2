from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Any, Iterable

from pipelinekit.step_types import StepRef


@dataclass(frozen=True)
class StepRegistry:
    _by_id: dict[str, StepRef]

    @classmethod
    def from_refs(cls, refs: Iterable[StepRef]) -> "StepRegistry":
        entries: dict[str, StepRef] = {}
        for ref in refs:
            if ref.id in entries:
                raise ValueError(f"Duplicate step id: {ref.id}")
            entries[ref.id] = ref
        return cls(_by_id=entries)

    def __contains__(self, step_id: object) -> bool:
        return isinstance(step_id, str) and step_id.strip() in self._by_id

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_id.keys()))

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for ref in sorted(self._by_id.values(), key=lambda r: r.id):
            rows.append(
                {
                    "step_id": ref.id,
                    "doc": ref.doc,
                    "source": ref.source,
                    "tags": list(ref.tags),
                }
            )
        return tuple(rows)

    def get(self, step_id: str) -> StepRef | None:
        return self._by_id.get((step_id or "").strip())

    def resolve(self, step_id: str) -> StepRef:
        if not isinstance(step_id, str) or not step_id.strip():
            raise ValueError("step_id must be a non-empty string")
        ref = self._by_id.get(step_id.strip())
        if ref is None:
            available = ", ".join(self.available()) or "<none>"
            raise KeyError(f"Unknown step id: {step_id} (available: {available})")
        return ref

    def suggest(self, step_id: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (step_id or "").strip()
        if not key:
            return ()
        return tuple(difflib.get_close_matches(key, list(self.available()), n=limit))
