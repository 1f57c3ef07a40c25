"""
FastAPI application — local focus engine API for the browser extension.
Runs on http://127.0.0.1:8770 by default.

The coordinator lives on app.state so that each call to create_app() produces
a fully independent instance with no shared module-level globals.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import config
from ..coordinator import HintCoordinator
from ..hints.supplier import HintSupplier, HttpHintSupplier
from ..storage.kv import KeyValueStore, StorageError
from ..timer.store import Clock, now_ms

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Background alarm sweep
# ---------------------------------------------------------------------------

async def _alarm_loop(coordinator: HintCoordinator, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000.0)
        try:
            await coordinator.fire_due_alarms()
        except Exception:
            logger.exception("alarm sweep failed")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    supplier: Optional[HintSupplier] = None,
    db_path: Optional[Path] = None,
    clock: Clock = now_ms,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        kv = KeyValueStore(db_path or config.data_dir / config.state_db)
        app.state.coordinator = HintCoordinator(
            kv,
            supplier or HttpHintSupplier(config.hint_service_url, config.hint_fetch_timeout_s),
            clock=clock,
        )

        sweep = asyncio.create_task(
            _alarm_loop(app.state.coordinator, config.alarm_poll_interval_ms)
        )

        yield

        sweep.cancel()
        try:
            await sweep
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title="CP Focus Engine",
        description="Per-problem timer and progressive hint unlocking",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": f"Storage unavailable: {exc}"})

    from .routers import settings, timer

    app.include_router(timer.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        coordinator = getattr(request.app.state, "coordinator", None)
        active = coordinator.get_status().problem_id if coordinator else None
        return {"status": "ok", "version": "0.1.0", "active_problem": active}

    return app


app = create_app()
