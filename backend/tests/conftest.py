"""Shared fixtures: in-memory store, engines, controllable clocks, seeded projects."""

import asyncio
import json

import pytest
import pytest_asyncio

from specdrive.models.domain import Project, utcnow
from specdrive.orchestrator import Orchestrator
from specdrive.services.report_store import ReportStore
from specdrive.services.store import InMemoryStore
from specdrive.validators import ValidationEngine


class InstantClock:
    """Think-time waits yield to the loop once and return."""

    def now(self):
        return utcnow()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(0)


class ManualClock:
    """Sleeps block until the test calls release()."""

    def __init__(self):
        self._sleepers: list[asyncio.Future] = []

    def now(self):
        return utcnow()

    async def sleep(self, seconds: float) -> None:
        sleeper = asyncio.get_running_loop().create_future()
        self._sleepers.append(sleeper)
        await sleeper

    @property
    def pending(self) -> int:
        return sum(1 for s in self._sleepers if not s.done())

    def release(self) -> None:
        for sleeper in self._sleepers:
            if not sleeper.done():
                sleeper.set_result(None)

    async def wait_for_sleepers(self, count: int = 1) -> None:
        for _ in range(1000):
            if self.pending >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} pending sleeper(s), have {self.pending}")


def make_project(**overrides) -> Project:
    data = {
        "slug": "task-tracker",
        "name": "Task Tracker",
        "description": "Track tasks across small teams",
        "idea": "A lightweight shared task board",
    }
    data.update(overrides)
    return Project(**data)


def api_spec(paths: dict) -> str:
    return json.dumps({"openapi": "3.0.0", "paths": paths})


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def report_store(store):
    return ReportStore(store)


@pytest.fixture
def engine(report_store):
    return ValidationEngine(report_store)


@pytest_asyncio.fixture
async def project(store):
    project = make_project()
    await store.save_project(project)
    return project


@pytest_asyncio.fixture
async def orchestrator(store):
    orchestrator = Orchestrator(store, think_time=0, clock=InstantClock())
    yield orchestrator
    await orchestrator.shutdown()


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest_asyncio.fixture
async def manual_orchestrator(store, manual_clock):
    orchestrator = Orchestrator(store, think_time=1.5, clock=manual_clock)
    yield orchestrator
    await orchestrator.shutdown()
