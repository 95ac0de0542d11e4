"""
Report Store adapters.

The lifecycle services depend only on the ReportStore contract; the concrete
adapter (Firestore or in-memory) is picked by get_report_store().
"""

from app.stores.base import ReportStore
from app.stores.memory_store import InMemoryReportStore
from app.stores.registry import get_report_store, set_report_store

__all__ = [
    "ReportStore",
    "InMemoryReportStore",
    "get_report_store",
    "set_report_store",
]
