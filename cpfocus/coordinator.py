"""
Timer & Hint-Unlock Coordinator.

Ties the timer store, unlock scheduler, wake triggers and hint supply together
and fans unlocks out to presentation listeners. Two paths feed it:

* the foreground loop (an open view polling roughly once per second) calls
  ``tick()``;
* the background sweep calls ``fire_due_alarms()`` whenever wake triggers come
  due, whether or not any view is open.

Both end in the same ``UnlockScheduler.evaluate`` so they cannot disagree.
Nothing is cached in memory between calls; every operation re-reads the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .config import config
from .hints.cache import HintBundle, HintCache
from .hints.fallback import fallback_hint
from .hints.supplier import HintFetchError, HintSupplier
from .settings import get_settings, update_settings
from .storage.kv import KeyValueStore
from .timer.alarms import AlarmScheduler
from .timer.schedule import UnlockSchedule
from .timer.scheduler import UnlockEvent, UnlockScheduler
from .timer.store import Clock, ProblemSession, TimerStatus, TimerStore, now_ms

logger = logging.getLogger(__name__)


class HintLockedError(Exception):
    """The requested hint has not been unlocked yet."""


@dataclass(frozen=True)
class RevealedHint:
    problem_id: str
    hint_number: int
    text: str
    source: str        # cache | supplier | fallback

    def to_dict(self) -> dict:
        return {
            "problem_id": self.problem_id,
            "hint_number": self.hint_number,
            "text": self.text,
            "source": self.source,
        }


Listener = Callable[[RevealedHint], None]


class HintCoordinator:
    """
    Usage:
        coord = HintCoordinator(KeyValueStore(path), supplier)
        coord.start_session("two-sum")
        revealed = await coord.tick()
    """

    def __init__(
        self,
        kv: KeyValueStore,
        supplier: Optional[HintSupplier] = None,
        clock: Clock = now_ms,
    ):
        self._clock = clock
        self.store = TimerStore(kv, clock)
        self.alarms = AlarmScheduler(kv)
        self.hints = HintCache(kv)
        self._scheduler = UnlockScheduler(self.store)
        self._supplier = supplier
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def schedule(self) -> UnlockSchedule:
        return UnlockSchedule.build(
            get_settings()["hint_intervals"],
            config.min_first_hint_minutes,
            config.min_hint_gap_minutes,
        )

    def update_offsets(self, offsets: List[int]) -> List[int]:
        """
        Store new unlock offsets (repaired if invalid) and re-arm the pending
        alarms of the active session. Hints already revealed stay revealed.
        """
        stored = update_settings({"hint_intervals": offsets})["hint_intervals"]
        session = self.store.active_session()
        if session is not None:
            self.alarms.cancel(session.problem_id)
            self.alarms.arm(
                session.problem_id,
                session.started_at,
                self.schedule(),
                skip=session.hints_revealed_count,
            )
        return stored

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, problem_id: str) -> ProblemSession:
        current = self.store.active_session()
        if current is not None and current.problem_id == problem_id:
            return current

        session, replaced = self.store.start_session(problem_id)
        if replaced is not None:
            logger.info("session for %s replaced by %s", replaced, problem_id)
            self.alarms.cancel(replaced)
        self.alarms.cancel(problem_id)
        self.alarms.arm(problem_id, session.started_at, self.schedule())
        return session

    def get_status(self) -> TimerStatus:
        return self.store.get_status()

    def stop_session(self) -> Optional[ProblemSession]:
        session = self.store.stop_session()
        self.alarms.cancel()
        return session

    def record_submission(self, problem_id: str) -> Optional[ProblemSession]:
        session = self.store.record_submission(problem_id)
        if session is None:
            logger.info("submission for %s ignored: no session", problem_id)
        return session

    def get_history(self) -> Dict[str, ProblemSession]:
        return self.store.history()

    def reset_problem(self, problem_id: str) -> bool:
        """Forget the problem's timing history and its cached hints."""
        self.alarms.cancel(problem_id)
        self.hints.invalidate(problem_id)
        return self.store.forget(problem_id)

    # ------------------------------------------------------------------
    # Unlock evaluation
    # ------------------------------------------------------------------

    async def tick(self, problem_id: Optional[str] = None) -> List[RevealedHint]:
        """Foreground evaluation of *problem_id* (default: the active problem)."""
        problem_id = problem_id or self.store.active_problem()
        if problem_id is None:
            return []
        events = self._scheduler.evaluate(problem_id, self.schedule(), self._clock())
        return await self._publish(events)

    async def fire_due_alarms(self) -> List[RevealedHint]:
        """Background sweep: consume due wake triggers and re-evaluate their sessions."""
        revealed: List[RevealedHint] = []
        now = self._clock()
        for alarm in self.alarms.pop_due(now):
            logger.debug("alarm fired: %s hint %d", alarm.problem_id, alarm.hint_number)
            events = self._scheduler.evaluate(alarm.problem_id, self.schedule(), now)
            revealed.extend(await self._publish(events))
        return revealed

    # ------------------------------------------------------------------
    # Hint content
    # ------------------------------------------------------------------

    async def load_hints(
        self, problem_id: str, problem_data: Optional[Dict[str, Any]] = None
    ) -> Optional[HintBundle]:
        cached = self.hints.get(problem_id)
        if cached is not None and cached.complete:
            return cached
        if self._supplier is None:
            return cached
        try:
            bundle = await self._supplier.fetch_hints(problem_id, problem_data)
        except HintFetchError as e:
            logger.warning("hint fetch for %s failed (%s): %s", problem_id, e.reason, e.message)
            return cached
        if not bundle.hints:
            return cached
        return self.hints.put(bundle)

    async def hint_content(self, problem_id: str, hint_number: int) -> RevealedHint:
        """Displayable text for a hint; falls back to static text, never empty."""
        cached = self.hints.get(problem_id)
        if cached is not None and cached.hint(hint_number):
            return RevealedHint(problem_id, hint_number, cached.hint(hint_number), "cache")

        bundle = await self.load_hints(problem_id)
        if bundle is not None and bundle.hint(hint_number):
            return RevealedHint(problem_id, hint_number, bundle.hint(hint_number), "supplier")
        return RevealedHint(problem_id, hint_number, fallback_hint(hint_number), "fallback")

    async def revealed_hint(self, problem_id: str, hint_number: int) -> RevealedHint:
        """Content of a hint that has already been unlocked for *problem_id*."""
        await self.tick(problem_id)
        session = self.store.load(problem_id)
        revealed = session.hints_revealed_count if session else 0
        if hint_number > revealed:
            raise HintLockedError(f"hint {hint_number} of {problem_id} is still locked")
        return await self.hint_content(problem_id, hint_number)

    # ------------------------------------------------------------------
    # Presentation listeners
    # ------------------------------------------------------------------

    def subscribe(self, fn: Listener) -> None:
        """Register a callback(revealed_hint) called once per unlock."""
        self._listeners.append(fn)

    def unsubscribe(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _publish(self, events: List[UnlockEvent]) -> List[RevealedHint]:
        revealed = []
        for event in events:
            # the counter is already persisted; an unlock must still be shown
            try:
                hint = await self.hint_content(event.problem_id, event.hint_number)
            except Exception:
                logger.exception("hint content for %s failed", event.problem_id)
                hint = RevealedHint(
                    event.problem_id,
                    event.hint_number,
                    fallback_hint(event.hint_number),
                    "fallback",
                )
            logger.info("hint %d unlocked for %s (%s)", hint.hint_number, hint.problem_id, hint.source)
            revealed.append(hint)
            for listener in list(self._listeners):
                try:
                    listener(hint)
                except Exception:
                    logger.exception("unlock listener failed")
        return revealed
