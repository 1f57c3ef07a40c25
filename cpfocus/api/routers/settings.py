"""
/settings — read and update user preferences, including hint unlock offsets.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    enabled:              Optional[bool] = None
    block_ai:             Optional[bool] = None
    block_editorial:      Optional[bool] = None
    block_solutions:      Optional[bool] = None
    block_discussions:    Optional[bool] = None
    block_hints:          Optional[bool] = None
    block_topics:         Optional[bool] = None
    timer_enabled:        Optional[bool] = None
    show_focus_indicator: Optional[bool] = None
    hint_intervals:       Optional[List[int]] = None


def _get_coordinator(request: Request):
    return request.app.state.coordinator


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    return {"settings": get_settings(), "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch, coordinator=Depends(_get_coordinator)):
    """
    Apply a partial update. Invalid hint intervals are repaired, not rejected:
    the first is raised to the floor and later ones pushed out to keep the gap.
    """
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    intervals = data.pop("hint_intervals", None)
    if intervals is not None:
        coordinator.update_offsets(intervals)
    return {"settings": update_settings(data)}


@router.post("/block-ai/toggle")
def toggle_ai_blocking():
    s = update_settings({"block_ai": not get_settings()["block_ai"]})
    return {"success": True, "block_ai": s["block_ai"]}
