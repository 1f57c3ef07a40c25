"""
FastAPI application — hint generation and submission history service.
Runs on http://127.0.0.1:3000 by default.

Repositories and the generator live on app.state; create_app() accepts
overrides so tests can run without a model or a shared database.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import config
from ..storage.kv import KeyValueStore, StorageError
from .generator import GeminiHintGenerator, HintGenerator
from .repository import HintRepository, SubmissionRepository

logger = logging.getLogger(__name__)


def create_app(
    generator: Optional[HintGenerator] = None,
    db_path: Optional[Path] = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        kv = KeyValueStore(db_path or config.data_dir / config.service_db)
        app.state.hints = HintRepository(kv)
        app.state.submissions = SubmissionRepository(kv)
        app.state.generator = generator or GeminiHintGenerator()
        logger.info("hint service ready, %d problems cached", len(app.state.hints.all()))
        yield

    app = FastAPI(
        title="CP Focus Hint Service",
        description="Generates and caches progressive hints for competitive-programming problems",
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
        return JSONResponse(
            status_code=503,
            content={"detail": {"error": "storage_unavailable", "message": str(exc)}},
        )

    from .routes import router

    app.include_router(router)

    @app.get("/health")
    def health(request: Request):
        return {
            "status": "ok",
            "cached_problems": len(request.app.state.hints.all()),
        }

    return app
