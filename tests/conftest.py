"""
Shared pytest fixtures and configuration.
"""

from __future__ import annotations

from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import cpfocus.settings as settings_mod
from cpfocus.api.app import create_app as create_engine_app
from cpfocus.config import config
from cpfocus.coordinator import HintCoordinator
from cpfocus.hints.cache import HintBundle
from cpfocus.service.app import create_app as create_service_app
from cpfocus.service.generator import HintGenerationError
from cpfocus.storage.kv import KeyValueStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond wall clock that only moves when told to."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> int:
        self.now += int((minutes * 60 + seconds) * 1000)
        return self.now

    def set_elapsed(self, since: int, minutes: float = 0, seconds: float = 0) -> int:
        self.now = since + int((minutes * 60 + seconds) * 1000)
        return self.now


class StubSupplier:
    def __init__(self):
        self.hints: List[str] = ["Look at the pairs.", "Use a hash map.", "Store complements."]
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []

    async def fetch_hints(self, problem_id, problem_data=None):
        self.calls.append((problem_id, problem_data))
        if self.error is not None:
            raise self.error
        return HintBundle(problem_id, list(self.hints), fetched_at=START_MS, cached=False)


class StubGenerator:
    def __init__(self):
        self.hints = ["Sort first.", "Two pointers.", "Skip duplicates."]
        self.fail = False
        self.calls = 0

    async def generate(self, problem):
        self.calls += 1
        if self.fail:
            raise HintGenerationError("quota exceeded")
        return list(self.hints)


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def tmp_settings_file(tmp_path, monkeypatch):
    """
    Redirect the settings store to a fresh temp file for each test and reset
    the in-memory cache so each test starts from the defaults.
    """
    fake_file = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_FILE", fake_file)
    monkeypatch.setattr(settings_mod, "_current", {})
    yield fake_file
    monkeypatch.setattr(settings_mod, "_current", {})


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def kv(tmp_path):
    return KeyValueStore(tmp_path / "state.db")


@pytest.fixture()
def supplier():
    return StubSupplier()


@pytest.fixture()
def generator():
    return StubGenerator()


@pytest.fixture()
def coordinator(kv, supplier, clock):
    return HintCoordinator(kv, supplier, clock=clock)


@pytest_asyncio.fixture()
async def client(tmp_path, supplier, clock, monkeypatch):
    """Async HTTP client wired directly to the focus engine app (no server needed)."""
    # keep the background sweep out of the way; tests drive alarms explicitly
    monkeypatch.setattr(config, "alarm_poll_interval_ms", 3_600_000)
    app = create_engine_app(supplier=supplier, db_path=tmp_path / "engine.db", clock=clock)
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac


@pytest.fixture()
def service_app(tmp_path, generator):
    return create_service_app(generator=generator, db_path=tmp_path / "service.db")


@pytest_asyncio.fixture()
async def service_client(service_app):
    async with service_app.router.lifespan_context(service_app):
        async with AsyncClient(
            transport=ASGITransport(app=service_app), base_url="http://test"
        ) as ac:
            yield ac
