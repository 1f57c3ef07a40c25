"""
Hint Supplier — client for the hint service.

Asks the service for its cached hints first and only requests generation
(which needs the problem metadata) on a cache miss.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from ..timer.store import now_ms
from .cache import HintBundle

logger = logging.getLogger(__name__)

MISSING_INPUT = "missing_input"
GENERATION_FAILED = "generation_failed"
NOT_FOUND = "not_found"
UNAVAILABLE = "unavailable"


class HintFetchError(Exception):
    """Hints could not be obtained; *reason* is one of the codes above."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason
        self.message = message or reason


class HintSupplier(Protocol):
    async def fetch_hints(
        self, problem_id: str, problem_data: Optional[Dict[str, Any]] = None
    ) -> HintBundle:
        ...


class HttpHintSupplier:

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def fetch_hints(
        self, problem_id: str, problem_data: Optional[Dict[str, Any]] = None
    ) -> HintBundle:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                r = await client.get(f"/api/hints/{problem_id}")
                if r.status_code == 200:
                    return _bundle(problem_id, r)
                if r.status_code != 404:
                    raise _error(r)
                if problem_data is None:
                    raise HintFetchError(NOT_FOUND, f"no cached hints for {problem_id}")

                logger.info("requesting hint generation for %s", problem_id)
                r = await client.post(
                    "/api/hints",
                    json={"problem_id": problem_id, "problem": problem_data},
                )
                if r.status_code != 200:
                    raise _error(r)
                return _bundle(problem_id, r)
        except httpx.HTTPError as e:
            raise HintFetchError(UNAVAILABLE, f"hint service unreachable: {e}") from e


def _bundle(problem_id: str, response: httpx.Response) -> HintBundle:
    try:
        body = response.json()
    except ValueError as e:
        raise HintFetchError(GENERATION_FAILED, f"malformed hint response: {e}") from e
    if not isinstance(body, dict) or not isinstance(body.get("hints", []), list):
        raise HintFetchError(GENERATION_FAILED, "malformed hint response")
    return HintBundle(
        problem_id=problem_id,
        hints=[str(h) for h in body.get("hints", []) if h],
        fetched_at=now_ms(),
        cached=bool(body.get("cached", False)),
    )


def _error(response: httpx.Response) -> HintFetchError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail", {}) if isinstance(body, dict) else {}
    if not isinstance(detail, dict):
        detail = {"message": str(detail)}
    reason = detail.get("error") or GENERATION_FAILED
    message = detail.get("message") or f"hint service returned {response.status_code}"
    return HintFetchError(reason, message)
