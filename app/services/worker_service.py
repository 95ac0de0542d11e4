"""
Worker Service - field worker location snapshots.
One row per worker; each update replaces the previous position.
"""

from typing import Dict, List, Optional
import logging

from app.stores.base import ReportStore
from app.stores.registry import get_report_store

logger = logging.getLogger(__name__)


class WorkerService:

    def __init__(self, store: Optional[ReportStore] = None):
        self.store = store or get_report_store()

    def update_location(self, worker_id: str, latitude: float, longitude: float) -> Dict:
        location = self.store.upsert_worker_location(worker_id, latitude, longitude)
        logger.debug(f"Worker {worker_id} location updated to ({latitude}, {longitude})")
        return location

    def list_locations(self) -> List[Dict]:
        """All current worker locations, with the worker's name when known."""
        locations = []
        for location in self.store.list_worker_locations():
            user = self.store.get_user(location["worker_id"])
            location["worker_name"] = (user or {}).get("name") or "Worker"
            locations.append(location)

        locations.sort(key=lambda loc: loc["worker_id"])
        return locations
