"""
Resolve the active ReportStore from settings.
"""

import logging
from typing import Optional

from app.core.settings import settings
from app.stores.base import ReportStore

logger = logging.getLogger(__name__)

_store_instance: Optional[ReportStore] = None


def get_report_store() -> ReportStore:
    """
    Get or create the ReportStore singleton.

    Rules:
    - USE_MOCK_DB=true: in-memory store (nothing persisted across restarts)
    - otherwise: Firestore via firebase-admin
    """
    global _store_instance
    if _store_instance is not None:
        return _store_instance

    if settings.USE_MOCK_DB:
        from app.stores.memory_store import InMemoryReportStore

        _store_instance = InMemoryReportStore()
        logger.info("Report store initialized: memory (USE_MOCK_DB)")
    else:
        from app.stores.firestore_store import FirestoreReportStore

        _store_instance = FirestoreReportStore()
        logger.info("Report store initialized: firestore")

    return _store_instance


def set_report_store(store: Optional[ReportStore]) -> None:
    """Replace the active store (None resets resolution)."""
    global _store_instance
    _store_instance = store
