"""
Report Store contract.

The lifecycle services never talk to a database directly; they go through a
ReportStore. Every read-modify-write on a report is expressed as a callback
that the store runs inside a single transaction, so the guard check and the
mutation can never be separated by a concurrent writer.

Implementations:
- FirestoreReportStore (production, firebase-admin)
- InMemoryReportStore (USE_MOCK_DB=true, tests)

Documents are plain dicts carrying their own "id" key.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

# Receives the current report, returns the field updates to apply.
# May raise a LifecycleError to abort the transaction.
ReportMutator = Callable[[Dict], Dict]

# Receives the current report; raises a LifecycleError to abort.
ReportGuard = Callable[[Dict], None]

REPORTS = "reports"
VOTES = "votes"
WORKER_LOCATIONS = "worker_locations"
NOTIFICATIONS = "notifications"
USERS = "users"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def vote_key(report_id: str, voter_id: str) -> str:
    """Deterministic vote document ID; makes (report, voter) unique at the store level."""
    return f"{report_id}_{voter_id}"


class ReportStore(ABC):
    """Persistence interface for reports, votes, worker locations, users and notifications."""

    backend: str = "abstract"

    # Reports

    @abstractmethod
    def create_report(self, data: Dict) -> Dict:
        raise NotImplementedError

    @abstractmethod
    def get_report(self, report_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def list_reports(
        self,
        created_by_id: Optional[str] = None,
        exclude_created_by_id: Optional[str] = None,
        assigned_worker_id: Optional[str] = None,
        min_support_count: Optional[int] = None,
    ) -> List[Dict]:
        """Return matching reports, newest first."""
        raise NotImplementedError

    @abstractmethod
    def update_report(self, report_id: str, mutator: ReportMutator) -> Dict:
        """
        Atomically apply mutator(current) to a report and return the result.

        Raises NotFoundError if the report does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_report(self, report_id: str, guard: ReportGuard) -> Dict:
        """
        Atomically run guard(current) and delete the report together with its votes.

        Returns the report as it was before deletion.
        """
        raise NotImplementedError

    # Votes

    @abstractmethod
    def record_vote(self, report_id: str, voter_id: str, support: bool, guard: ReportGuard) -> Dict:
        """
        Atomically run guard(report), insert the vote and bump the matching counter.

        Raises NotFoundError for a missing report and DuplicateVoteError when
        the voter already holds a vote on the report.
        """
        raise NotImplementedError

    @abstractmethod
    def get_vote(self, report_id: str, voter_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def list_votes(self, report_id: str) -> List[Dict]:
        raise NotImplementedError

    @abstractmethod
    def count_votes(self, report_id: str, support: Optional[bool] = None) -> int:
        raise NotImplementedError

    # Worker locations

    @abstractmethod
    def upsert_worker_location(self, worker_id: str, latitude: float, longitude: float) -> Dict:
        raise NotImplementedError

    @abstractmethod
    def list_worker_locations(self) -> List[Dict]:
        raise NotImplementedError

    # Users

    @abstractmethod
    def save_user(self, user_id: str, role: str, name: Optional[str] = None) -> Dict:
        raise NotImplementedError

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def list_users_by_role(self, role: str) -> List[Dict]:
        raise NotImplementedError

    # Notifications

    @abstractmethod
    def add_notification(self, user_id: str, report_id: Optional[str], message: str) -> Dict:
        raise NotImplementedError

    @abstractmethod
    def get_notification(self, notification_id: str) -> Optional[Dict]:
        raise NotImplementedError

    @abstractmethod
    def list_notifications(self, user_id: str, limit: int) -> List[Dict]:
        """Return the user's notifications, newest first."""
        raise NotImplementedError

    @abstractmethod
    def count_unread_notifications(self, user_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def mark_notification_read(self, notification_id: str) -> Dict:
        raise NotImplementedError

    @abstractmethod
    def mark_all_notifications_read(self, user_id: str) -> int:
        """Mark every unread notification of the user as read; return how many changed."""
        raise NotImplementedError

    # Diagnostics

    @abstractmethod
    def ping(self) -> Dict:
        raise NotImplementedError
