"""
Pydantic schemas for the focus engine API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# ── Timer ──────────────────────────────────────────────────────────────────

class ProblemRef(BaseModel):
    problem_id: str = Field(..., min_length=1, description="Problem slug")


class SessionStartOut(BaseModel):
    problem_id: str
    started_at: int


class TimerStatusOut(BaseModel):
    problem_id: Optional[str]
    started_at: Optional[int]
    elapsed_seconds: int
    hints_revealed_count: int
    hint_intervals: List[int]


class SubmissionOut(BaseModel):
    success: bool
    total_duration_ms: Optional[int] = None
    error: Optional[str] = None


class ProblemSessionOut(BaseModel):
    problem_id: str
    started_at: int
    first_opened_at: int
    ended_at: Optional[int]
    hints_revealed_count: int
    submitted_at: Optional[int]
    total_duration_ms: Optional[int]
    attempts: int


# ── Hints ──────────────────────────────────────────────────────────────────

class RevealedHintOut(BaseModel):
    problem_id: str
    hint_number: int
    text: str
    source: str


class TickOut(BaseModel):
    revealed: List[RevealedHintOut]
    status: TimerStatusOut


class HintLoadIn(BaseModel):
    problem: Optional[Dict[str, Any]] = Field(
        default=None, description="Problem metadata forwarded to the hint service"
    )


class HintLoadOut(BaseModel):
    problem_id: str
    available: int
    cached: bool
