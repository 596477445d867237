"""In-memory storage backend for flipledger.

Records are kept in wire format and copied on every read and write, so callers
never share mutable state with the store, exactly as with a remote backend.
"""

from __future__ import annotations

import copy
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Mapping, Sequence

from .base import AuditStore, UserRecord, UserRecordStore, normalize_address


class InMemoryUserStore(UserRecordStore):
    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    async def get(self, address: str) -> UserRecord | None:
        data = self._records.get(normalize_address(address))
        if data is None:
            return None
        return UserRecord.from_dict(copy.deepcopy(data))

    async def update(self, address: str, partial: Mapping[str, Any]) -> UserRecord:
        key = normalize_address(address)
        data = self._records.setdefault(key, {"id": key})
        data.update(copy.deepcopy(dict(partial)))
        data["id"] = key
        return UserRecord.from_dict(copy.deepcopy(data))

    def addresses(self) -> list[str]:
        return sorted(self._records)


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    async def recent(self, limit: int = 20) -> Sequence[tuple[datetime, str, dict]]:
        return list(reversed(self._entries))[:limit]

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)
