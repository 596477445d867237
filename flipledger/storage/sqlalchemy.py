"""SQLAlchemy storage backend for flipledger."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Mapping, Sequence

from sqlalchemy import DateTime, Integer, JSON, String, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .base import AuditStore, UserRecord, UserRecordStore, normalize_address, parse_timestamp


class Base(DeclarativeBase):
    pass


class UserTable(Base):
    __tablename__ = "flipledger_users"

    address: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    bank_points: Mapped[int] = mapped_column(Integer, default=0)
    gift_points: Mapped[int] = mapped_column(Integer, default=0)
    inventory: Mapped[dict] = mapped_column(JSON, default=dict)
    active_round: Mapped[list] = mapped_column(JSON, default=list)
    next_round: Mapped[list] = mapped_column(JSON, default=list)
    current_round: Mapped[int] = mapped_column(Integer, default=1)
    round_history: Mapped[list] = mapped_column(JSON, default=list)
    logs: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class AuditTable(Base):
    __tablename__ = "flipledger_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


# wire key -> column attribute
_COLUMNS = {
    "username": "username",
    "totalPoints": "total_points",
    "bankPoints": "bank_points",
    "giftPoints": "gift_points",
    "inventory": "inventory",
    "activeRound": "active_round",
    "nextRound": "next_round",
    "currentRound": "current_round",
    "roundHistory": "round_history",
    "logs": "logs",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
_TIMESTAMPS = {"createdAt", "updatedAt"}


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def user_store(self) -> "AsyncSQLAlchemyUserStore":
        return AsyncSQLAlchemyUserStore(self._session_factory)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory)


class AsyncSQLAlchemyUserStore(UserRecordStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, address: str) -> UserRecord | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, normalize_address(address))
            return _to_record(row) if row else None

    async def update(self, address: str, partial: Mapping[str, Any]) -> UserRecord:
        key = normalize_address(address)
        async with self._session_factory() as session:
            row = await session.get(UserTable, key)
            if row is None:
                row = UserTable(
                    address=key,
                    total_points=0,
                    bank_points=0,
                    gift_points=0,
                    inventory={},
                    active_round=[],
                    next_round=[],
                    current_round=1,
                    round_history=[],
                    logs=[],
                )
                session.add(row)
            for wire_key, value in partial.items():
                column = _COLUMNS.get(wire_key)
                if column is None:
                    continue
                if wire_key in _TIMESTAMPS:
                    value = parse_timestamp(value)
                setattr(row, column, value)
            await session.commit()
            return _to_record(row)


class AsyncSQLAlchemyAuditStore(AuditStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()

    async def recent(self, limit: int = 20) -> Sequence[tuple[datetime, str, dict]]:
        async with self._session_factory() as session:
            stmt = select(AuditTable).order_by(AuditTable.id.desc()).limit(limit)
            rows = (await session.execute(stmt)).scalars().all()
            return [(row.created_at, row.action, dict(row.payload)) for row in rows]


def _to_record(row: UserTable) -> UserRecord:
    return UserRecord.from_dict(
        {
            "id": row.address,
            "username": row.username,
            "totalPoints": row.total_points,
            "bankPoints": row.bank_points,
            "giftPoints": row.gift_points,
            "inventory": dict(row.inventory or {}),
            "activeRound": list(row.active_round or []),
            "nextRound": list(row.next_round or []),
            "currentRound": row.current_round,
            "roundHistory": list(row.round_history or []),
            "logs": list(row.logs or []),
            "createdAt": row.created_at,
            "updatedAt": row.updated_at,
        }
    )
