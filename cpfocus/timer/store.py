"""
Timer Store — durable record of the active problem session and every
historical one, keyed by problem id.

Elapsed time is always derived from the persisted ``started_at`` and the wall
clock, never from an in-memory countdown, so a restarted process picks up
exactly where it left off.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional, Tuple

from ..storage.kv import KeyValueStore

ACTIVE_KEY = "timer:active"
SESSION_PREFIX = "session:"

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ProblemSession:
    problem_id: str
    started_at: int
    first_opened_at: int
    ended_at: Optional[int] = None
    hints_revealed_count: int = 0
    submitted_at: Optional[int] = None
    total_duration_ms: Optional[int] = None
    attempts: int = 1

    @property
    def active(self) -> bool:
        return self.ended_at is None

    def elapsed_seconds(self, now: int) -> int:
        end = self.ended_at if self.ended_at is not None else now
        return max(0, (end - self.started_at) // 1000)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemSession":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class TimerStatus:
    problem_id: Optional[str] = None
    started_at: Optional[int] = None
    elapsed_seconds: int = 0
    hints_revealed_count: int = 0


class TimerStore:

    def __init__(self, kv: KeyValueStore, clock: Clock = now_ms):
        self._kv = kv
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def active_problem(self) -> Optional[str]:
        return self._kv.get(ACTIVE_KEY)

    def load(self, problem_id: str) -> Optional[ProblemSession]:
        data = self._kv.get(_key(problem_id))
        return ProblemSession.from_dict(data) if data else None

    def active_session(self) -> Optional[ProblemSession]:
        problem_id = self.active_problem()
        if problem_id is None:
            return None
        session = self.load(problem_id)
        if session is None or not session.active:
            return None
        return session

    def history(self) -> Dict[str, ProblemSession]:
        return {
            key[len(SESSION_PREFIX):]: ProblemSession.from_dict(data)
            for key, data in self._kv.scan(SESSION_PREFIX).items()
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(self, problem_id: str) -> Tuple[ProblemSession, Optional[str]]:
        """
        Start (or resume) the session for *problem_id*.

        Returns the session and the id of a different problem whose session
        had to be stopped to make room, if any. Calling this again for the
        already-active problem returns the existing session untouched.
        """
        active = self.active_session()
        if active is not None and active.problem_id == problem_id:
            return active, None

        now = self._clock()
        replaced = None
        if active is not None:
            self._end(active.problem_id, now)
            replaced = active.problem_id

        previous = self.load(problem_id)
        started_at = now
        if previous is not None and started_at <= previous.started_at:
            started_at = previous.started_at + 1

        session = ProblemSession(
            problem_id=problem_id,
            started_at=started_at,
            first_opened_at=previous.first_opened_at if previous else started_at,
            attempts=previous.attempts + 1 if previous else 1,
        )
        self._kv.put(_key(problem_id), session.to_dict())
        self._kv.put(ACTIVE_KEY, problem_id)
        return session, replaced

    def stop_session(self) -> Optional[ProblemSession]:
        problem_id = self.active_problem()
        if problem_id is None:
            return None
        session = self._end(problem_id, self._clock())
        self._kv.delete(ACTIVE_KEY)
        return session

    def get_status(self) -> TimerStatus:
        session = self.active_session()
        if session is None:
            return TimerStatus()
        return TimerStatus(
            problem_id=session.problem_id,
            started_at=session.started_at,
            elapsed_seconds=session.elapsed_seconds(self._clock()),
            hints_revealed_count=session.hints_revealed_count,
        )

    def record_submission(self, problem_id: str) -> Optional[ProblemSession]:
        """Stamp the submission time on *problem_id*; None if it was never opened."""
        now = self._clock()

        def _stamp(data):
            if data is None:
                return None
            data["submitted_at"] = now
            data["total_duration_ms"] = now - data["started_at"]
            return data

        _, new = self._kv.update(_key(problem_id), _stamp)
        return ProblemSession.from_dict(new) if new else None

    def mark_revealed(self, problem_id: str, count: int, limit: int) -> Tuple[int, int]:
        """
        Raise the revealed counter of the active session to *count* (capped at
        *limit*). The counter never decreases. Returns ``(before, after)``.
        """
        target = min(count, limit)

        def _raise(data):
            if data is None or data.get("ended_at") is not None:
                return data
            data["hints_revealed_count"] = max(data.get("hints_revealed_count", 0), target)
            return data

        old, new = self._kv.update(_key(problem_id), _raise)
        if old is None or new.get("ended_at") is not None:
            return 0, 0
        return old.get("hints_revealed_count", 0), new["hints_revealed_count"]

    def forget(self, problem_id: str) -> bool:
        if self.active_problem() == problem_id:
            self._kv.delete(ACTIVE_KEY)
        return self._kv.delete(_key(problem_id))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _end(self, problem_id: str, now: int) -> Optional[ProblemSession]:
        def _close(data):
            if data is not None and data.get("ended_at") is None:
                data["ended_at"] = now
            return data

        _, new = self._kv.update(_key(problem_id), _close)
        return ProblemSession.from_dict(new) if new else None


def _key(problem_id: str) -> str:
    return f"{SESSION_PREFIX}{problem_id}"
