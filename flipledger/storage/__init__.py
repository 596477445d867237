"""Storage backends for flipledger."""

from .base import (
    AuditStore,
    LogEntry,
    RoundHistoryEntry,
    RoundHistoryItem,
    RoundPick,
    UserRecord,
    UserRecordStore,
    changed_fields,
    normalize_address,
)
from .memory import InMemoryAuditStore, InMemoryUserStore
from .oracle import OracleUserStore
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AuditStore",
    "LogEntry",
    "RoundHistoryEntry",
    "RoundHistoryItem",
    "RoundPick",
    "UserRecord",
    "UserRecordStore",
    "changed_fields",
    "normalize_address",
    "InMemoryAuditStore",
    "InMemoryUserStore",
    "OracleUserStore",
    "AsyncSQLAlchemyStorage",
]
