"""
Hint cache and submission history of the hint service.

Hints are cached per problem indefinitely; submissions are stored per user and
de-duplicated by submission id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..storage.kv import KeyValueStore
from .schemas import SubmissionIn

CACHE_PREFIX = "cache:"
SUBMISSION_PREFIX = "submission:"


class HintRepository:

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def get(self, problem_id: str) -> Optional[dict]:
        return self._kv.get(f"{CACHE_PREFIX}{problem_id}")

    def save(
        self, problem_id: str, hints: List[str], title: str = "", difficulty: str = ""
    ) -> dict:
        entry = {
            "hints": hints,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "title": title,
            "difficulty": difficulty,
        }
        self._kv.put(f"{CACHE_PREFIX}{problem_id}", entry)
        return entry

    def invalidate(self, problem_id: str) -> bool:
        return self._kv.delete(f"{CACHE_PREFIX}{problem_id}")

    def all(self) -> Dict[str, dict]:
        return {
            key[len(CACHE_PREFIX):]: entry
            for key, entry in self._kv.scan(CACHE_PREFIX).items()
        }


class SubmissionRepository:

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def add_many(self, username: str, submissions: List[SubmissionIn]) -> int:
        """Store *submissions*; returns how many were not already known."""
        stored = 0
        for sub in submissions:
            key = f"{SUBMISSION_PREFIX}{username}:{sub.id}"
            if self._kv.get(key) is None:
                stored += 1
            self._kv.put(key, sub.model_dump())
        return stored

    def for_user(self, username: str) -> List[dict]:
        entries = self._kv.scan(f"{SUBMISSION_PREFIX}{username}:").values()
        return sorted(entries, key=lambda s: s["timestamp"], reverse=True)
