"""
In-memory ReportStore for local development (USE_MOCK_DB=true) and tests.

A single re-entrant lock stands in for the database's transactions: every
read-modify-write runs entirely under it, and mutations are applied to a
copy that is only committed when the callback returns without raising.
"""

import copy
import threading
import uuid
from typing import Dict, List, Optional

from app.core.errors import DuplicateVoteError, NotFoundError
from app.stores.base import (
    ReportGuard,
    ReportMutator,
    ReportStore,
    utcnow,
    vote_key,
)


class InMemoryReportStore(ReportStore):

    backend = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._reports: Dict[str, Dict] = {}
        self._votes: Dict[str, Dict] = {}
        self._worker_locations: Dict[str, Dict] = {}
        self._users: Dict[str, Dict] = {}
        self._notifications: Dict[str, Dict] = {}

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # Reports

    def create_report(self, data: Dict) -> Dict:
        with self._lock:
            report_id = self._new_id()
            report = copy.deepcopy(data)
            report["id"] = report_id
            self._reports[report_id] = report
            return copy.deepcopy(report)

    def get_report(self, report_id: str) -> Optional[Dict]:
        with self._lock:
            report = self._reports.get(report_id)
            return copy.deepcopy(report) if report else None

    def list_reports(
        self,
        created_by_id: Optional[str] = None,
        exclude_created_by_id: Optional[str] = None,
        assigned_worker_id: Optional[str] = None,
        min_support_count: Optional[int] = None,
    ) -> List[Dict]:
        with self._lock:
            reports = [copy.deepcopy(r) for r in reversed(list(self._reports.values()))]

        if created_by_id is not None:
            reports = [r for r in reports if r.get("created_by_id") == created_by_id]
        if exclude_created_by_id is not None:
            reports = [r for r in reports if r.get("created_by_id") != exclude_created_by_id]
        if assigned_worker_id is not None:
            reports = [r for r in reports if r.get("assigned_worker_id") == assigned_worker_id]
        if min_support_count is not None:
            reports = [r for r in reports if r.get("support_count", 0) >= min_support_count]

        # Stable sort over newest-inserted first keeps ties newest first
        reports.sort(key=lambda r: r["created_at"], reverse=True)
        return reports

    def update_report(self, report_id: str, mutator: ReportMutator) -> Dict:
        with self._lock:
            current = self._reports.get(report_id)
            if current is None:
                raise NotFoundError(f"Report {report_id} not found")

            updated = copy.deepcopy(current)
            updates = mutator(copy.deepcopy(current)) or {}
            updated.update(updates)
            self._reports[report_id] = updated
            return copy.deepcopy(updated)

    def delete_report(self, report_id: str, guard: ReportGuard) -> Dict:
        with self._lock:
            current = self._reports.get(report_id)
            if current is None:
                raise NotFoundError(f"Report {report_id} not found")

            guard(copy.deepcopy(current))

            del self._reports[report_id]
            for key in [k for k, v in self._votes.items() if v["report_id"] == report_id]:
                del self._votes[key]
            return copy.deepcopy(current)

    # Votes

    def record_vote(self, report_id: str, voter_id: str, support: bool, guard: ReportGuard) -> Dict:
        with self._lock:
            report = self._reports.get(report_id)
            if report is None:
                raise NotFoundError(f"Report {report_id} not found")

            guard(copy.deepcopy(report))

            key = vote_key(report_id, voter_id)
            if key in self._votes:
                raise DuplicateVoteError("You have already voted on this report")

            now = utcnow()
            vote = {
                "report_id": report_id,
                "voter_id": voter_id,
                "support": support,
                "created_at": now,
            }
            self._votes[key] = vote

            counter = "support_count" if support else "opposition_count"
            report[counter] = report.get(counter, 0) + 1
            report["updated_at"] = now
            return copy.deepcopy(vote)

    def get_vote(self, report_id: str, voter_id: str) -> Optional[Dict]:
        with self._lock:
            vote = self._votes.get(vote_key(report_id, voter_id))
            return copy.deepcopy(vote) if vote else None

    def list_votes(self, report_id: str) -> List[Dict]:
        with self._lock:
            return [copy.deepcopy(v) for v in self._votes.values() if v["report_id"] == report_id]

    def count_votes(self, report_id: str, support: Optional[bool] = None) -> int:
        with self._lock:
            return sum(
                1
                for v in self._votes.values()
                if v["report_id"] == report_id and (support is None or v["support"] == support)
            )

    # Worker locations

    def upsert_worker_location(self, worker_id: str, latitude: float, longitude: float) -> Dict:
        with self._lock:
            location = {
                "worker_id": worker_id,
                "latitude": latitude,
                "longitude": longitude,
                "updated_at": utcnow(),
            }
            self._worker_locations[worker_id] = location
            return copy.deepcopy(location)

    def list_worker_locations(self) -> List[Dict]:
        with self._lock:
            return [copy.deepcopy(loc) for loc in self._worker_locations.values()]

    # Users

    def save_user(self, user_id: str, role: str, name: Optional[str] = None) -> Dict:
        with self._lock:
            user = {"id": user_id, "role": role, "name": name}
            self._users[user_id] = user
            return copy.deepcopy(user)

    def get_user(self, user_id: str) -> Optional[Dict]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def list_users_by_role(self, role: str) -> List[Dict]:
        with self._lock:
            return [copy.deepcopy(u) for u in self._users.values() if u.get("role") == role]

    # Notifications

    def add_notification(self, user_id: str, report_id: Optional[str], message: str) -> Dict:
        with self._lock:
            notification = {
                "id": self._new_id(),
                "user_id": user_id,
                "report_id": report_id,
                "message": message,
                "is_read": False,
                "created_at": utcnow(),
            }
            self._notifications[notification["id"]] = notification
            return copy.deepcopy(notification)

    def get_notification(self, notification_id: str) -> Optional[Dict]:
        with self._lock:
            notification = self._notifications.get(notification_id)
            return copy.deepcopy(notification) if notification else None

    def list_notifications(self, user_id: str, limit: int) -> List[Dict]:
        with self._lock:
            items = [
                copy.deepcopy(n) for n in reversed(list(self._notifications.values())) if n["user_id"] == user_id
            ]
        items.sort(key=lambda n: n["created_at"], reverse=True)
        return items[:limit]

    def count_unread_notifications(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for n in self._notifications.values() if n["user_id"] == user_id and not n["is_read"])

    def mark_notification_read(self, notification_id: str) -> Dict:
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None:
                raise NotFoundError("Notification not found")
            notification["is_read"] = True
            return copy.deepcopy(notification)

    def mark_all_notifications_read(self, user_id: str) -> int:
        with self._lock:
            changed = 0
            for notification in self._notifications.values():
                if notification["user_id"] == user_id and not notification["is_read"]:
                    notification["is_read"] = True
                    changed += 1
            return changed

    # Diagnostics

    def ping(self) -> Dict:
        with self._lock:
            return {
                "backend": self.backend,
                "connected": True,
                "reports_count": len(self._reports),
            }
