"""
Pydantic schemas for the hint service API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# ── Problems & hints ───────────────────────────────────────────────────────

class TopicTag(BaseModel):
    name: str
    slug: Optional[str] = None


class ProblemData(BaseModel):
    title: str = ""
    title_slug: Optional[str] = None
    content: str = ""
    difficulty: str = ""
    hints: List[str] = Field(default_factory=list, description="Hints shipped by the site")
    topic_tags: List[TopicTag] = Field(default_factory=list)
    solution: Optional[Dict[str, Any]] = Field(
        default=None, description="Official solution payload; only its approach text is used"
    )


class HintRequest(BaseModel):
    problem_id: str = Field(..., min_length=1)
    problem: Optional[ProblemData] = None


class HintResponse(BaseModel):
    hints: List[str]
    cached: bool
    generated_at: str


class CachedProblemOut(BaseModel):
    problem_id: str
    title: str
    difficulty: str
    generated_at: str


class StatsOut(BaseModel):
    cached_problems: int
    problems: List[CachedProblemOut]


# ── Submissions ────────────────────────────────────────────────────────────

class SubmissionIn(BaseModel):
    id: str
    title: str
    title_slug: str
    timestamp: int
    status_display: str
    lang: str
    runtime: Optional[str] = None
    memory: Optional[str] = None
    url: Optional[str] = None


class SubmissionBatchIn(BaseModel):
    username: str = Field(..., min_length=1)
    submissions: List[SubmissionIn]


class SubmissionBatchOut(BaseModel):
    count: int
    stored: int
