"""Unit tests for the seed script."""

import json

import pytest

from app.stores.memory_store import InMemoryReportStore
from scripts.seed_db import load_seed, write_to_store

SEED = {
    "users": [
        {"id": "admin-9", "role": "admin", "name": "Asha"},
        {"id": "worker-9", "role": "WORKER"},
    ],
    "worker_locations": [
        {"worker_id": "worker-9", "latitude": "12.5", "longitude": 77.5},
    ],
}


def test_dry_run_writes_nothing():
    store = InMemoryReportStore()

    assert write_to_store(store, SEED) == 0
    assert store.get_user("admin-9") is None
    assert store.list_worker_locations() == []


def test_apply_writes_users_and_locations():
    store = InMemoryReportStore()

    assert write_to_store(store, SEED, apply=True) == 3
    assert store.get_user("admin-9")["role"] == "ADMIN"
    assert store.list_worker_locations()[0]["latitude"] == 12.5


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        write_to_store(InMemoryReportStore(), {"users": [{"id": "x", "role": "mayor"}]}, apply=True)


def test_load_seed(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(SEED), encoding="utf-8")

    assert load_seed(str(path)) == SEED
