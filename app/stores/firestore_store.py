"""
Firestore-backed ReportStore.

Collections: reports, votes, worker_locations, notifications, users.

Every guard-then-write runs inside a Firestore transaction; the SDK retries
the callback on contention, so callbacks must stay free of side effects.
Vote documents are keyed by "{report_id}_{voter_id}" and written with
transaction.create(), which fails if the document already exists.
"""

import logging
from typing import Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore_v1.base_query import FieldFilter

from app.config.firebase import get_db
from app.core.errors import DuplicateVoteError, NotFoundError
from app.stores.base import (
    NOTIFICATIONS,
    REPORTS,
    USERS,
    VOTES,
    WORKER_LOCATIONS,
    ReportGuard,
    ReportMutator,
    ReportStore,
    utcnow,
    vote_key,
)

logger = logging.getLogger(__name__)


def _to_dict(snapshot) -> Dict:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def _count(query) -> int:
    """Run a server-side count aggregation."""
    results = query.count().get()
    return int(results[0][0].value) if results else 0


class FirestoreReportStore(ReportStore):

    backend = "firestore"

    def __init__(self, db=None):
        self.db = db or get_db()

    # Reports

    def create_report(self, data: Dict) -> Dict:
        doc_ref = self.db.collection(REPORTS).document()
        doc_ref.set(data)
        created = dict(data)
        created["id"] = doc_ref.id
        return created

    def get_report(self, report_id: str) -> Optional[Dict]:
        snapshot = self.db.collection(REPORTS).document(report_id).get()
        if not snapshot.exists:
            return None
        return _to_dict(snapshot)

    def list_reports(
        self,
        created_by_id: Optional[str] = None,
        exclude_created_by_id: Optional[str] = None,
        assigned_worker_id: Optional[str] = None,
        min_support_count: Optional[int] = None,
    ) -> List[Dict]:
        query = self.db.collection(REPORTS)
        if created_by_id is not None:
            query = query.where(filter=FieldFilter("created_by_id", "==", created_by_id))
        if assigned_worker_id is not None:
            query = query.where(filter=FieldFilter("assigned_worker_id", "==", assigned_worker_id))
        if min_support_count is not None:
            query = query.where(filter=FieldFilter("support_count", ">=", min_support_count))

        reports = [_to_dict(doc) for doc in query.stream()]

        # Inequality on a second field needs a composite index; filter here instead.
        if exclude_created_by_id is not None:
            reports = [r for r in reports if r.get("created_by_id") != exclude_created_by_id]

        reports.sort(key=lambda r: r.get("created_at") or utcnow(), reverse=True)
        return reports

    def update_report(self, report_id: str, mutator: ReportMutator) -> Dict:
        doc_ref = self.db.collection(REPORTS).document(report_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _apply(transaction) -> Dict:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"Report {report_id} not found")

            current = _to_dict(snapshot)
            updates = mutator(dict(current)) or {}
            if updates:
                transaction.update(doc_ref, updates)
            current.update(updates)
            return current

        return _apply(transaction)

    def delete_report(self, report_id: str, guard: ReportGuard) -> Dict:
        doc_ref = self.db.collection(REPORTS).document(report_id)
        votes_query = self.db.collection(VOTES).where(filter=FieldFilter("report_id", "==", report_id))
        transaction = self.db.transaction()

        @firestore.transactional
        def _apply(transaction) -> Dict:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"Report {report_id} not found")

            current = _to_dict(snapshot)
            guard(dict(current))

            vote_refs = [vote.reference for vote in votes_query.stream(transaction=transaction)]
            for vote_ref in vote_refs:
                transaction.delete(vote_ref)
            transaction.delete(doc_ref)
            return current

        return _apply(transaction)

    # Votes

    def record_vote(self, report_id: str, voter_id: str, support: bool, guard: ReportGuard) -> Dict:
        report_ref = self.db.collection(REPORTS).document(report_id)
        vote_ref = self.db.collection(VOTES).document(vote_key(report_id, voter_id))
        transaction = self.db.transaction()

        @firestore.transactional
        def _apply(transaction) -> Dict:
            report_snapshot = report_ref.get(transaction=transaction)
            if not report_snapshot.exists:
                raise NotFoundError(f"Report {report_id} not found")

            guard(_to_dict(report_snapshot))

            if vote_ref.get(transaction=transaction).exists:
                raise DuplicateVoteError("You have already voted on this report")

            now = utcnow()
            vote = {
                "report_id": report_id,
                "voter_id": voter_id,
                "support": support,
                "created_at": now,
            }
            transaction.create(vote_ref, vote)

            counter = "support_count" if support else "opposition_count"
            transaction.update(report_ref, {counter: firestore.Increment(1), "updated_at": now})
            return vote

        try:
            return _apply(transaction)
        except AlreadyExists:
            logger.info(f"Concurrent duplicate vote rejected: report={report_id} voter={voter_id}")
            raise DuplicateVoteError("You have already voted on this report")

    def get_vote(self, report_id: str, voter_id: str) -> Optional[Dict]:
        snapshot = self.db.collection(VOTES).document(vote_key(report_id, voter_id)).get()
        return snapshot.to_dict() if snapshot.exists else None

    def list_votes(self, report_id: str) -> List[Dict]:
        query = self.db.collection(VOTES).where(filter=FieldFilter("report_id", "==", report_id))
        return [doc.to_dict() for doc in query.stream()]

    def count_votes(self, report_id: str, support: Optional[bool] = None) -> int:
        query = self.db.collection(VOTES).where(filter=FieldFilter("report_id", "==", report_id))
        if support is not None:
            query = query.where(filter=FieldFilter("support", "==", support))
        return _count(query)

    # Worker locations

    def upsert_worker_location(self, worker_id: str, latitude: float, longitude: float) -> Dict:
        location = {
            "worker_id": worker_id,
            "latitude": latitude,
            "longitude": longitude,
            "updated_at": utcnow(),
        }
        self.db.collection(WORKER_LOCATIONS).document(worker_id).set(location)
        return location

    def list_worker_locations(self) -> List[Dict]:
        return [doc.to_dict() for doc in self.db.collection(WORKER_LOCATIONS).stream()]

    # Users

    def save_user(self, user_id: str, role: str, name: Optional[str] = None) -> Dict:
        user = {"role": role, "name": name}
        self.db.collection(USERS).document(user_id).set(user, merge=True)
        return {"id": user_id, **user}

    def get_user(self, user_id: str) -> Optional[Dict]:
        snapshot = self.db.collection(USERS).document(user_id).get()
        return _to_dict(snapshot) if snapshot.exists else None

    def list_users_by_role(self, role: str) -> List[Dict]:
        query = self.db.collection(USERS).where(filter=FieldFilter("role", "==", role))
        return [_to_dict(doc) for doc in query.stream()]

    # Notifications

    def add_notification(self, user_id: str, report_id: Optional[str], message: str) -> Dict:
        doc_ref = self.db.collection(NOTIFICATIONS).document()
        notification = {
            "user_id": user_id,
            "report_id": report_id,
            "message": message,
            "is_read": False,
            "created_at": utcnow(),
        }
        doc_ref.set(notification)
        return {"id": doc_ref.id, **notification}

    def get_notification(self, notification_id: str) -> Optional[Dict]:
        snapshot = self.db.collection(NOTIFICATIONS).document(notification_id).get()
        return _to_dict(snapshot) if snapshot.exists else None

    def list_notifications(self, user_id: str, limit: int) -> List[Dict]:
        query = (
            self.db.collection(NOTIFICATIONS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [_to_dict(doc) for doc in query.stream()]

    def count_unread_notifications(self, user_id: str) -> int:
        query = (
            self.db.collection(NOTIFICATIONS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("is_read", "==", False))
        )
        return _count(query)

    def mark_notification_read(self, notification_id: str) -> Dict:
        doc_ref = self.db.collection(NOTIFICATIONS).document(notification_id)
        snapshot = doc_ref.get()
        if not snapshot.exists:
            raise NotFoundError("Notification not found")
        doc_ref.update({"is_read": True})
        notification = _to_dict(snapshot)
        notification["is_read"] = True
        return notification

    def mark_all_notifications_read(self, user_id: str) -> int:
        query = (
            self.db.collection(NOTIFICATIONS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("is_read", "==", False))
        )
        batch = self.db.batch()
        changed = 0
        for doc in query.stream():
            batch.update(doc.reference, {"is_read": True})
            changed += 1
        if changed:
            batch.commit()
        return changed

    # Diagnostics

    def ping(self) -> Dict:
        collections = list(self.db.collections())
        return {
            "backend": self.backend,
            "connected": True,
            "collections_count": len(collections),
        }
