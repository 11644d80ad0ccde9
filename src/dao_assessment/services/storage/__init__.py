from __future__ import annotations

from dao_assessment.core.config import AssessmentConfig
from dao_assessment.core.errors import UnsupportedBackendError

from .base import RecordStore
from .db_store import SQLRecordStore, create_store_engine
from .memory_store import InMemoryRecordStore


def create_record_store(config: AssessmentConfig) -> RecordStore:
    """Create the record store selected in config.

    Args:
        config: Service configuration.

    Returns:
        Configured record store.
    """
    backend = config.storage.backend
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "sql":
        return SQLRecordStore.from_url(config.get_database_url())
    raise UnsupportedBackendError(backend)


__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "SQLRecordStore",
    "create_record_store",
    "create_store_engine",
]
