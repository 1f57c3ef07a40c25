"""
Unlock Scheduler — decides which hints newly cross their unlock offset.

Evaluation is a pure function of the persisted ``started_at``, the wall clock
and the schedule, so the foreground tick loop and background wake triggers can
both call it in any order and converge on the same revealed state. The stored
counter is only ever raised, and each raise happens in one transaction, so an
index moves from locked to revealed exactly once per session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .schedule import UnlockSchedule
from .store import TimerStore


@dataclass(frozen=True)
class UnlockEvent:
    problem_id: str
    hint_number: int


class UnlockScheduler:

    def __init__(self, store: TimerStore):
        self._store = store

    def evaluate(
        self,
        problem_id: str,
        schedule: UnlockSchedule,
        now: Optional[int] = None,
    ) -> List[UnlockEvent]:
        session = self._store.load(problem_id)
        if session is None or not session.active:
            return []
        if now is None:
            now = self._store.now()

        eligible = schedule.eligible_count(session.elapsed_seconds(now))
        if eligible <= session.hints_revealed_count:
            return []

        before, after = self._store.mark_revealed(problem_id, eligible, len(schedule))
        return [UnlockEvent(problem_id, n) for n in range(before + 1, after + 1)]
