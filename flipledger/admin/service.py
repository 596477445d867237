"""Administrative operations for flipledger deployments."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from ..domain.coordinator import LedgerCoordinator, MutationResult
from ..domain.events import EventBus
from ..storage.base import AuditStore


class AdminService:
    """Operator actions. Every write goes through the coordinator like player writes do."""

    def __init__(
        self,
        coordinator: LedgerCoordinator,
        audit_store: AuditStore,
        event_bus: EventBus,
    ) -> None:
        self._coordinator = coordinator
        self._audit_store = audit_store
        self._events = event_bus

    async def grant_points(
        self,
        user_id: str,
        *,
        bank: int = 0,
        gift: int = 0,
        reason: str | None = None,
    ) -> MutationResult:
        result = await self._coordinator.credit_points(
            user_id, bank=bank, gift=gift, note=reason or "admin-grant", log_type="system"
        )
        payload = {"user_id": result.record.user_id, "bank": bank, "gift": gift, "reason": reason}
        await self._audit("grant_points", payload)
        await self._events.publish("admin.points.granted", payload)
        return result

    async def grant_pack(
        self, user_id: str, pack_type: str = "common", count: int = 1, *, reason: str | None = None
    ) -> MutationResult:
        result = await self._coordinator.grant_packs(user_id, pack_type, count, note=reason)
        payload = {
            "user_id": result.record.user_id,
            "pack_type": pack_type,
            "count": count,
            "reason": reason,
        }
        await self._audit("grant_pack", payload)
        await self._events.publish("admin.pack.granted", payload)
        return result

    async def recent_actions(self, limit: int = 20) -> Sequence[tuple[datetime, str, dict]]:
        return await self._audit_store.recent(limit)

    async def _audit(self, action: str, payload: dict) -> None:
        await self._audit_store.add_entry(
            action,
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
        )
