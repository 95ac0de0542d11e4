"""
Pytest configuration and fixtures for the lifecycle engine tests.

This module provides:
- An in-memory report store seeded with admins, workers and citizens
- A LifecycleEngine bound to that store
- Actor helpers
- A FastAPI test client wired to the same engine
"""

import os

# Must be set before app settings are imported
os.environ.setdefault("USE_MOCK_DB", "true")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.report import ReportCreate, ReportType
from app.models.user import Actor, UserRole
from app.models.vote import VotePolarity
from app.services.lifecycle_engine import LifecycleEngine, get_lifecycle_engine
from app.stores.memory_store import InMemoryReportStore
from app.stores.registry import set_report_store
from app.utils.geo import PlanarDistance

ADMINS = ["admin-1", "admin-2"]
WORKERS = ["worker-1", "worker-2", "worker-3"]
CREATOR = "citizen-c"
VOTERS = [f"voter-{i}" for i in range(1, 8)]

REPORT_LAT = 12.0
REPORT_LON = 77.0


@pytest.fixture
def store():
    """In-memory store with the standard set of users."""
    memory_store = InMemoryReportStore()
    for admin_id in ADMINS:
        memory_store.save_user(admin_id, UserRole.ADMIN.value, name=admin_id.title())
    for worker_id in WORKERS:
        memory_store.save_user(worker_id, UserRole.WORKER.value, name=worker_id.title())
    for citizen_id in [CREATOR] + VOTERS:
        memory_store.save_user(citizen_id, UserRole.CITIZEN.value)
    return memory_store


@pytest.fixture
def engine(store):
    return LifecycleEngine(store=store, distance_strategy=PlanarDistance(), escalation_threshold=5)


def citizen(user_id: str = CREATOR) -> Actor:
    return Actor(user_id=user_id, role=UserRole.CITIZEN)


def worker(user_id: str = "worker-1") -> Actor:
    return Actor(user_id=user_id, role=UserRole.WORKER)


def admin(user_id: str = "admin-1") -> Actor:
    return Actor(user_id=user_id, role=UserRole.ADMIN)


def make_report(engine, report_type: ReportType = ReportType.ILLEGAL_DUMPING, creator: str = CREATOR):
    """Create a report at the standard test coordinate."""
    return engine.create_report(
        citizen(creator),
        ReportCreate(
            title="Garbage pile near market",
            description="Trash left at the corner for a week.",
            type=report_type,
            latitude=REPORT_LAT,
            longitude=REPORT_LON,
        ),
    )


def escalate(engine, report_id: str, votes: int = 5):
    """Cast support votes from distinct voters."""
    for voter_id in VOTERS[:votes]:
        engine.cast_vote(report_id, citizen(voter_id), VotePolarity.SUPPORT)


@pytest.fixture
def client(engine, store):
    """Test client sharing the engine and store of the other fixtures."""
    app.dependency_overrides[get_lifecycle_engine] = lambda: engine
    set_report_store(store)
    yield TestClient(app)
    app.dependency_overrides.clear()
    set_report_store(None)


def headers(user_id: str, role: UserRole) -> dict:
    return {"X-User-ID": user_id, "X-User-Role": role.value}
