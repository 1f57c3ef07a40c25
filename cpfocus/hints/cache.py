"""
Local hint cache — the last successful hint bundle for each problem.

A bundle holding the full set of hints is treated as final and is only
dropped by an explicit invalidate (the user resetting the problem).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional

from ..storage.kv import KeyValueStore
from ..timer.schedule import HINT_COUNT

HINTS_PREFIX = "hints:"


@dataclass
class HintBundle:
    problem_id: str
    hints: List[str] = field(default_factory=list)
    fetched_at: int = 0
    cached: bool = False

    @property
    def complete(self) -> bool:
        return len(self.hints) >= HINT_COUNT

    def hint(self, hint_number: int) -> Optional[str]:
        if 1 <= hint_number <= len(self.hints):
            return self.hints[hint_number - 1] or None
        return None


class HintCache:

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def get(self, problem_id: str) -> Optional[HintBundle]:
        data = self._kv.get(f"{HINTS_PREFIX}{problem_id}")
        return HintBundle(**data) if data else None

    def put(self, bundle: HintBundle) -> HintBundle:
        """Store *bundle* unless a complete one is already held. Returns the kept bundle."""
        bundle.hints = [h for h in bundle.hints if h][:HINT_COUNT]

        def _keep(existing):
            if existing and len(existing.get("hints", [])) >= HINT_COUNT:
                return existing
            return asdict(bundle)

        _, kept = self._kv.update(f"{HINTS_PREFIX}{bundle.problem_id}", _keep)
        return HintBundle(**kept)

    def invalidate(self, problem_id: str) -> bool:
        return self._kv.delete(f"{HINTS_PREFIX}{problem_id}")
