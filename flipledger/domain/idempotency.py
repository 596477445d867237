"""Payment replay detection backed by the record's audit log."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from ..storage.base import LogEntry, UserRecord
from .exceptions import AlreadyProcessed, InvalidRequest


def normalize_ref(external_ref: str) -> str:
    if not isinstance(external_ref, str) or not external_ref.strip():
        raise InvalidRequest("External payment reference must be a non-empty string")
    # transaction hashes are hex; case variants name the same transaction
    return external_ref.strip().lower()


class IdempotencyLedger:
    """Track which external payment references a record has been credited for.

    Receipts live in ``record.logs`` so they are persisted in the same write
    as the credit they guard. Entries are never removed. Callers must hold
    the coordinator's per-user lock between :meth:`has_processed` and the
    persisting write.
    """

    def has_processed(self, record: UserRecord, external_ref: str) -> bool:
        ref = normalize_ref(external_ref)
        return any(entry.external_ref == ref for entry in record.logs)

    def mark_processed(
        self,
        record: UserRecord,
        external_ref: str,
        note: str,
        *,
        items: Iterable[str] = (),
        now: datetime | None = None,
    ) -> LogEntry:
        ref = normalize_ref(external_ref)
        if self.has_processed(record, ref):
            raise AlreadyProcessed(ref)
        now = now or datetime.now(timezone.utc)
        entry = LogEntry(
            date=now.date().isoformat(),
            type="purchase",
            note=note,
            external_ref=ref,
            items=tuple(items),
        )
        record.logs.append(entry)
        return entry

    def processed_refs(self, record: UserRecord) -> list[str]:
        return [entry.external_ref for entry in record.logs if entry.external_ref]
