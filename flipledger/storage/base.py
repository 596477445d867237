"""Storage abstractions and the user record shared by every flipledger service.

Records travel to and from stores in the wire format used by the remote record
store (camelCase keys, ISO-8601 timestamps). ``UserRecord.to_dict`` and
``UserRecord.from_dict`` are the only places that know about that format.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Protocol, Sequence

Direction = Literal["UP", "DOWN"]


def normalize_address(address: str) -> str:
    """Return the canonical (lower-case) form of a wallet address."""
    if not isinstance(address, str) or not address.strip():
        raise ValueError("Address must be a non-empty string")
    return address.strip().lower()


@dataclass(slots=True, frozen=True)
class RoundPick:
    token_id: str
    dir: Direction = "UP"
    duplicate_index: int = 0
    locked: bool = False
    p_lock: float | None = None
    points_locked: int | None = None
    start_price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tokenId": self.token_id,
            "dir": self.dir,
            "duplicateIndex": self.duplicate_index,
            "locked": self.locked,
        }
        if self.p_lock is not None:
            data["pLock"] = self.p_lock
        if self.points_locked is not None:
            data["pointsLocked"] = self.points_locked
        if self.start_price is not None:
            data["startPrice"] = self.start_price
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundPick":
        return cls(
            token_id=str(data["tokenId"]),
            dir=data.get("dir", "UP"),
            duplicate_index=int(data.get("duplicateIndex", 0)),
            locked=bool(data.get("locked", False)),
            p_lock=data.get("pLock"),
            points_locked=data.get("pointsLocked"),
            start_price=data.get("startPrice"),
        )


@dataclass(slots=True, frozen=True)
class RoundHistoryItem:
    token_id: str
    symbol: str
    dir: Direction
    duplicate_index: int
    points: int
    start_price: float | None = None
    close_price: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tokenId": self.token_id,
            "symbol": self.symbol,
            "dir": self.dir,
            "duplicateIndex": self.duplicate_index,
            "points": self.points,
        }
        if self.start_price is not None:
            data["startPrice"] = self.start_price
        if self.close_price is not None:
            data["closePrice"] = self.close_price
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundHistoryItem":
        return cls(
            token_id=str(data["tokenId"]),
            symbol=str(data.get("symbol", "")),
            dir=data.get("dir", "UP"),
            duplicate_index=int(data.get("duplicateIndex", 0)),
            points=int(data.get("points", 0)),
            start_price=data.get("startPrice"),
            close_price=data.get("closePrice"),
        )


@dataclass(slots=True, frozen=True)
class RoundHistoryEntry:
    round_number: int
    date: str
    total_points: int
    items: tuple[RoundHistoryItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "date": self.date,
            "totalPoints": self.total_points,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoundHistoryEntry":
        return cls(
            round_number=int(data["roundNumber"]),
            date=str(data.get("date", "")),
            total_points=int(data.get("totalPoints", 0)),
            items=tuple(RoundHistoryItem.from_dict(item) for item in data.get("items", ())),
        )


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One audit event. Entries carrying ``external_ref`` double as payment receipts."""

    date: str
    type: str
    note: str | None = None
    external_ref: str | None = None
    items: tuple[str, ...] = ()
    points_delta: int | None = None
    bonus_granted: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"date": self.date, "type": self.type}
        if self.note is not None:
            data["note"] = self.note
        if self.external_ref is not None:
            data["externalRef"] = self.external_ref
        if self.items:
            data["items"] = list(self.items)
        if self.points_delta is not None:
            data["dailyDelta"] = self.points_delta
        if self.bonus_granted is not None:
            data["bonusGranted"] = self.bonus_granted
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LogEntry":
        return cls(
            date=str(data.get("date", "")),
            type=str(data.get("type", "system")),
            note=data.get("note"),
            external_ref=data.get("externalRef"),
            items=tuple(map(str, data.get("items", ()))),
            points_delta=data.get("dailyDelta"),
            bonus_granted=data.get("bonusGranted"),
        )


@dataclass(slots=True)
class UserRecord:
    user_id: str
    username: str | None = None
    total_points: int = 0
    bank_points: int = 0
    gift_points: int = 0
    inventory: dict[str, int] = field(default_factory=dict)
    active_round: list[RoundPick] = field(default_factory=list)
    next_round: list[RoundPick | None] = field(default_factory=list)
    current_round: int = 1
    round_history: list[RoundHistoryEntry] = field(default_factory=list)
    logs: list[LogEntry] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def spendable_points(self) -> int:
        return self.bank_points + self.gift_points

    def copy(self) -> "UserRecord":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "username": self.username,
            "totalPoints": self.total_points,
            "bankPoints": self.bank_points,
            "giftPoints": self.gift_points,
            "inventory": dict(self.inventory),
            "activeRound": [pick.to_dict() for pick in self.active_round],
            "nextRound": [pick.to_dict() if pick else None for pick in self.next_round],
            "currentRound": self.current_round,
            "roundHistory": [entry.to_dict() for entry in self.round_history],
            "logs": [entry.to_dict() for entry in self.logs],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserRecord":
        return cls(
            user_id=normalize_address(data["id"]),
            username=data.get("username") or data.get("name"),
            total_points=int(data.get("totalPoints", 0)),
            bank_points=int(data.get("bankPoints", 0)),
            gift_points=int(data.get("giftPoints", 0)),
            inventory={str(k): int(v) for k, v in (data.get("inventory") or {}).items()},
            active_round=[RoundPick.from_dict(p) for p in data.get("activeRound") or ()],
            next_round=[RoundPick.from_dict(p) if p else None for p in data.get("nextRound") or ()],
            current_round=int(data.get("currentRound") or 1),
            round_history=[
                RoundHistoryEntry.from_dict(entry) for entry in data.get("roundHistory") or ()
            ],
            logs=[LogEntry.from_dict(entry) for entry in data.get("logs") or ()],
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )


def changed_fields(before: UserRecord | None, after: UserRecord) -> dict[str, Any]:
    """Wire-format fields of ``after`` that differ from ``before``."""
    new = after.to_dict()
    if before is None:
        return new
    old = before.to_dict()
    return {key: value for key, value in new.items() if old.get(key) != value}


def parse_timestamp(raw: Any) -> datetime | None:
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


class UserRecordStore(Protocol):
    """Remote key-value store of user records. No transactions of its own."""

    async def get(self, address: str) -> UserRecord | None:
        ...

    async def update(self, address: str, partial: Mapping[str, Any]) -> UserRecord:
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...

    async def recent(self, limit: int = 20) -> Sequence[tuple[datetime, str, dict]]:
        ...
