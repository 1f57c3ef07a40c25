"""
Wake triggers — one persisted alarm per (problem, hint), firing once at the
hint's unlock time.

An alarm carries no authority of its own: when it fires the coordinator simply
re-evaluates the session. A dropped or late alarm therefore only delays a
notification, it never loses a hint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..storage.kv import KeyValueStore
from .schedule import UnlockSchedule

ALARM_PREFIX = "alarm:"


@dataclass(frozen=True)
class Alarm:
    problem_id: str
    hint_number: int
    fire_at: int

    @property
    def key(self) -> str:
        return f"{ALARM_PREFIX}{self.problem_id}:{self.hint_number}"


class AlarmScheduler:

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def arm(
        self,
        problem_id: str,
        started_at: int,
        schedule: UnlockSchedule,
        skip: int = 0,
    ) -> List[Alarm]:
        """Create alarms for every hint after the first *skip* (already revealed)."""
        alarms = [
            Alarm(problem_id, i + 1, schedule.fire_at(started_at, i))
            for i in range(skip, len(schedule))
        ]
        for alarm in alarms:
            self._kv.put(alarm.key, {"problem_id": alarm.problem_id,
                                     "hint_number": alarm.hint_number,
                                     "fire_at": alarm.fire_at})
        return alarms

    def cancel(self, problem_id: Optional[str] = None) -> int:
        """Cancel the alarms of *problem_id*, or all alarms when None."""
        if problem_id is None:
            return self._kv.delete_prefix(ALARM_PREFIX)
        # ids may contain ":", so "a" must not sweep up alarms of "a:b"
        cancelled = 0
        for key, value in self._kv.scan(f"{ALARM_PREFIX}{problem_id}:").items():
            if value["problem_id"] == problem_id and self._kv.delete(key):
                cancelled += 1
        return cancelled

    def pending(self) -> List[Alarm]:
        return _sorted(Alarm(**v) for v in self._kv.scan(ALARM_PREFIX).values())

    def pop_due(self, now: int) -> List[Alarm]:
        """Remove and return every alarm whose fire time has passed."""
        due = [a for a in self.pending() if a.fire_at <= now]
        fired = []
        for alarm in due:
            # a concurrent sweep may already have consumed it
            if self._kv.delete(alarm.key):
                fired.append(alarm)
        return fired


def _sorted(alarms: Iterable[Alarm]) -> List[Alarm]:
    return sorted(alarms, key=lambda a: (a.fire_at, a.hint_number))
