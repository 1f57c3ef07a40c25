"""
/timer — problem session lifecycle, unlock evaluation, hint content and the
live WebSocket feed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import (
    HintLoadIn,
    HintLoadOut,
    ProblemRef,
    ProblemSessionOut,
    RevealedHintOut,
    SessionStartOut,
    SubmissionOut,
    TickOut,
    TimerStatusOut,
)
from ...coordinator import HintLockedError
from ...timer.schedule import HINT_COUNT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timer", tags=["timer"])


def _get_coordinator(request: Request):
    return request.app.state.coordinator


def _status_out(coordinator) -> TimerStatusOut:
    s = coordinator.get_status()
    return TimerStatusOut(
        problem_id=s.problem_id,
        started_at=s.started_at,
        elapsed_seconds=s.elapsed_seconds,
        hints_revealed_count=s.hints_revealed_count,
        hint_intervals=list(coordinator.schedule().offsets),
    )


# ── Session lifecycle ───────────────────────────────────────────────────────

@router.post("/start", response_model=SessionStartOut)
def start_timer(req: ProblemRef, coordinator=Depends(_get_coordinator)):
    """Start the timer for a problem; re-opening the running problem keeps its start time."""
    session = coordinator.start_session(req.problem_id)
    return SessionStartOut(problem_id=session.problem_id, started_at=session.started_at)


@router.get("/status", response_model=TimerStatusOut)
def timer_status(coordinator=Depends(_get_coordinator)):
    return _status_out(coordinator)


@router.post("/stop")
def stop_timer(coordinator=Depends(_get_coordinator)):
    coordinator.stop_session()
    return {}


@router.post("/tick", response_model=TickOut)
async def tick(coordinator=Depends(_get_coordinator)):
    """Re-evaluate the active session and return hints unlocked by this call."""
    revealed = await coordinator.tick()
    return TickOut(
        revealed=[RevealedHintOut(**h.to_dict()) for h in revealed],
        status=_status_out(coordinator),
    )


@router.post("/submission", response_model=SubmissionOut)
def record_submission(req: ProblemRef, coordinator=Depends(_get_coordinator)):
    session = coordinator.record_submission(req.problem_id)
    if session is None:
        return SubmissionOut(success=False, error="No timer data for problem")
    return SubmissionOut(success=True, total_duration_ms=session.total_duration_ms)


@router.get("/history", response_model=Dict[str, ProblemSessionOut])
def history(coordinator=Depends(_get_coordinator)):
    return {pid: ProblemSessionOut(**s.to_dict()) for pid, s in coordinator.get_history().items()}


@router.delete("/history/{problem_id}")
def reset_problem(problem_id: str, coordinator=Depends(_get_coordinator)):
    if not coordinator.reset_problem(problem_id):
        raise HTTPException(status_code=404, detail="Problem not found")
    return {"status": "removed"}


# ── Hints ───────────────────────────────────────────────────────────────────

@router.post("/hints/{problem_id}/load", response_model=HintLoadOut)
async def load_hints(problem_id: str, req: HintLoadIn, coordinator=Depends(_get_coordinator)):
    """Prefetch hints so they are ready before the first unlock."""
    bundle = await coordinator.load_hints(problem_id, req.problem)
    return HintLoadOut(
        problem_id=problem_id,
        available=len(bundle.hints) if bundle else 0,
        cached=bundle.cached if bundle else False,
    )


@router.get("/hints/{problem_id}/{hint_number}", response_model=RevealedHintOut)
async def get_hint(problem_id: str, hint_number: int, coordinator=Depends(_get_coordinator)):
    if not 1 <= hint_number <= HINT_COUNT:
        raise HTTPException(status_code=404, detail="No such hint")
    try:
        hint = await coordinator.revealed_hint(problem_id, hint_number)
    except HintLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return RevealedHintOut(**hint.to_dict())


# ── Live feed ───────────────────────────────────────────────────────────────

@router.websocket("/ws")
async def timer_websocket(websocket: WebSocket):
    """
    WebSocket stream. Pushes the timer status every second and a
    ``hint_unlocked`` message whenever a hint unlocks. The same unlock may be
    pushed more than once (tick and alarm); clients key on hint_number.
    """
    coordinator = websocket.app.state.coordinator
    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    listener = queue.put_nowait
    coordinator.subscribe(listener)
    try:
        while True:
            await coordinator.tick()
            while not queue.empty():
                hint = queue.get_nowait()
                await websocket.send_json({"type": "hint_unlocked", **hint.to_dict()})
            await websocket.send_json({"type": "status", **_status_out(coordinator).model_dump()})
            try:
                # wake once per second; a client disconnect ends the wait early
                await asyncio.wait_for(websocket.receive_text(), timeout=1)
            except asyncio.TimeoutError:
                pass
    except WebSocketDisconnect:
        pass
    finally:
        coordinator.unsubscribe(listener)
