"""
/api — hint lookup and generation, cache statistics, submission history.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .generator import HintGenerationError
from .schemas import (
    CachedProblemOut,
    HintRequest,
    HintResponse,
    StatsOut,
    SubmissionBatchIn,
    SubmissionBatchOut,
    SubmissionIn,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["hints"])


def _get_hints(request: Request):
    return request.app.state.hints


def _get_generator(request: Request):
    return request.app.state.generator


def _get_submissions(request: Request):
    return request.app.state.submissions


def _reason(code: int, reason: str, message: str) -> HTTPException:
    return HTTPException(status_code=code, detail={"error": reason, "message": message})


# ── Hints ───────────────────────────────────────────────────────────────────

@router.post("/hints", response_model=HintResponse)
async def generate_hints(
    req: HintRequest,
    repo=Depends(_get_hints),
    generator=Depends(_get_generator),
):
    """Return cached hints, generating and caching them on first request."""
    entry = repo.get(req.problem_id)
    if entry is not None:
        logger.info("cache hit for %s", req.problem_id)
        return HintResponse(hints=entry["hints"], cached=True, generated_at=entry["generated_at"])

    if req.problem is None:
        raise _reason(
            status.HTTP_400_BAD_REQUEST,
            "missing_input",
            "problem metadata is required for first-time hint generation",
        )

    logger.info("generating hints for %s", req.problem_id)
    try:
        hints = await generator.generate(req.problem)
    except HintGenerationError as e:
        raise _reason(status.HTTP_502_BAD_GATEWAY, "generation_failed", str(e))

    entry = repo.save(req.problem_id, hints, req.problem.title, req.problem.difficulty)
    logger.info("hints cached for %s", req.problem_id)
    return HintResponse(hints=hints, cached=False, generated_at=entry["generated_at"])


@router.get("/hints/{problem_id}", response_model=HintResponse)
def get_cached_hints(problem_id: str, repo=Depends(_get_hints)):
    entry = repo.get(problem_id)
    if entry is None:
        raise _reason(status.HTTP_404_NOT_FOUND, "not_found", f"no hints cached for {problem_id}")
    return HintResponse(hints=entry["hints"], cached=True, generated_at=entry["generated_at"])


@router.delete("/hints/{problem_id}")
def invalidate_hints(problem_id: str, repo=Depends(_get_hints)):
    if not repo.invalidate(problem_id):
        raise _reason(status.HTTP_404_NOT_FOUND, "not_found", f"no hints cached for {problem_id}")
    return {"status": "removed"}


@router.get("/stats", response_model=StatsOut)
def cache_stats(repo=Depends(_get_hints)):
    entries = repo.all()
    return StatsOut(
        cached_problems=len(entries),
        problems=[
            CachedProblemOut(
                problem_id=pid,
                title=e.get("title", ""),
                difficulty=e.get("difficulty", ""),
                generated_at=e["generated_at"],
            )
            for pid, e in entries.items()
        ],
    )


# ── Submissions ─────────────────────────────────────────────────────────────

@router.post("/submissions", response_model=SubmissionBatchOut)
def store_submissions(batch: SubmissionBatchIn, repo=Depends(_get_submissions)):
    stored = repo.add_many(batch.username, batch.submissions)
    logger.info("stored %d new submissions for %s", stored, batch.username)
    return SubmissionBatchOut(count=len(batch.submissions), stored=stored)


@router.get("/submissions/{username}", response_model=List[SubmissionIn])
def list_submissions(username: str, repo=Depends(_get_submissions)):
    return [SubmissionIn(**s) for s in repo.for_user(username)]
