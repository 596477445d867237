"""Single entry point for every write to a user record."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from ..config import ShopConfig
from ..storage.base import (
    AuditStore,
    LogEntry,
    RoundPick,
    UserRecord,
    UserRecordStore,
    changed_fields,
    normalize_address,
)
from .auth import AuthProof, SignatureGateway
from .distributor import WeightedRewardDistributor
from .economy import PointsWallet
from .events import (
    INVARIANT_VIOLATED,
    MUTATION_COMMITTED,
    PAYMENT_REPLAYED,
    USER_REGISTERED,
    EventBus,
)
from .exceptions import (
    AlreadyRegistered,
    InvalidQuantity,
    InvalidRequest,
    InvariantViolation,
    UpstreamUnavailable,
    UserNotFound,
)
from .inventory import consume_item, grant_items
from .invariants import check_record, check_transition
from .locks import KeyedLock
from .operations import (
    CreditPoints,
    GrantPacks,
    OpenPack,
    Operation,
    PurchaseWithPoints,
    ReconcilePayment,
    Register,
    SavePicks,
)
from .payments import PaymentProof, PaymentReconciler, PaymentVerifier, TrustingVerifier
from .rounds import RoundPickStateMachine

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class MutationResult:
    record: UserRecord
    changed: bool = False
    granted_cards: Sequence[str] = ()
    already_processed: bool = False
    cost_points: int = 0
    consumed_packs: int = 0
    operation: str = ""


@dataclass(slots=True)
class _Outcome:
    changed: bool = False
    granted_cards: Sequence[str] = ()
    already_processed: bool = False
    cost_points: int = 0
    consumed_packs: int = 0


class LedgerCoordinator:
    """Serialize, authenticate, validate and persist ledger mutations.

    Every mutation for one address runs inside that address's critical
    section: load, apply to a working copy, check invariants, then write the
    changed fields with a single ``update`` call. A failure at any step
    leaves the stored record as it was. Payment proofs are checked with the
    verifier before the lock is taken; the replay check runs inside it so it
    is persisted together with the credit it guards.
    """

    def __init__(
        self,
        store: UserRecordStore,
        *,
        gateway: SignatureGateway,
        distributor: WeightedRewardDistributor,
        reconciler: PaymentReconciler,
        rounds: RoundPickStateMachine,
        shop: ShopConfig | None = None,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
        verifier: PaymentVerifier | None = None,
        store_timeout: float | None = 10.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._distributor = distributor
        self._reconciler = reconciler
        self._rounds = rounds
        self._shop = shop or ShopConfig()
        self._audit = audit_store
        self._events = event_bus or EventBus()
        self._verifier = verifier or TrustingVerifier()
        self._store_timeout = store_timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._locks = KeyedLock()

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    async def mutate(
        self, user_id: str, auth_proof: AuthProof | None, operation: Operation
    ) -> MutationResult:
        try:
            address = normalize_address(user_id)
        except ValueError as exc:
            raise InvalidRequest(str(exc)) from exc

        if operation.requires_signature:
            self._gateway.authenticate(address, auth_proof)

        if isinstance(operation, ReconcilePayment):
            proof = self._payment_proof(operation)
            self._reconciler.check_proof(proof)
            await self._verifier.verify(address, proof)

        async with self._locks.hold(address):
            before = await self._call_store(self._store.get(address), f"load {address}")
            if isinstance(operation, Register):
                return await self._register(address, before, operation)
            if before is None:
                raise UserNotFound(address)

            working = before.copy()
            outcome = self._apply(working, operation)
            if not outcome.changed:
                if outcome.already_processed:
                    await self._events.publish(
                        PAYMENT_REPLAYED,
                        {"user_id": address, "external_ref": getattr(operation, "external_ref", None)},
                    )
                return self._result(before, outcome, operation)

            working.updated_at = self._clock()
            violations = check_transition(before, working, round_slots=self._rounds.slots)
            await self._validate(address, operation, violations)
            partial = changed_fields(before, working)
            stored = await self._call_store(
                self._store.update(address, partial), f"update {address}"
            )

        logger.info("Committed %s for %s (%s)", operation.kind, address, ", ".join(sorted(partial)))
        await self._events.publish(
            MUTATION_COMMITTED,
            {
                "user_id": address,
                "operation": operation.kind,
                "fields": sorted(partial),
                "granted_cards": list(outcome.granted_cards),
            },
        )
        return self._result(stored, outcome, operation)

    async def save_picks(
        self,
        user_id: str,
        auth_proof: AuthProof | None,
        *,
        next_round: Sequence[RoundPick | None] | None = None,
        active_round: Sequence[RoundPick] | None = None,
        current_round: int | None = None,
    ) -> MutationResult:
        operation = SavePicks(
            next_round=next_round, active_round=active_round, current_round=current_round
        )
        return await self.mutate(user_id, auth_proof, operation)

    async def reconcile_payment(
        self,
        user_id: str,
        external_ref: str,
        *,
        claimed_amount: Decimal | None = None,
        pack_type: str = "common",
        count: int = 1,
        sender: str | None = None,
    ) -> MutationResult:
        operation = ReconcilePayment(
            external_ref=external_ref,
            pack_type=pack_type,
            count=count,
            claimed_amount=claimed_amount,
            sender=sender,
        )
        return await self.mutate(user_id, None, operation)

    async def open_pack(
        self, user_id: str, auth_proof: AuthProof | None, pack_type: str = "common", count: int = 1
    ) -> MutationResult:
        return await self.mutate(user_id, auth_proof, OpenPack(pack_type=pack_type, count=count))

    async def purchase_with_points(
        self, user_id: str, auth_proof: AuthProof | None, pack_type: str = "common", count: int = 1
    ) -> MutationResult:
        operation = PurchaseWithPoints(pack_type=pack_type, count=count)
        return await self.mutate(user_id, auth_proof, operation)

    async def register(self, address: str, username: str) -> MutationResult:
        return await self.mutate(address, None, Register(username=username))

    async def credit_points(
        self,
        user_id: str,
        *,
        bank: int = 0,
        gift: int = 0,
        note: str | None = None,
        log_type: str = "system",
    ) -> MutationResult:
        operation = CreditPoints(bank=bank, gift=gift, note=note, log_type=log_type)
        return await self.mutate(user_id, None, operation)

    async def grant_packs(
        self, user_id: str, pack_type: str = "common", count: int = 1, *, note: str | None = None
    ) -> MutationResult:
        operation = GrantPacks(pack_type=pack_type, count=count, note=note)
        return await self.mutate(user_id, None, operation)

    async def find_user(self, user_id: str) -> UserRecord | None:
        try:
            address = normalize_address(user_id)
        except ValueError as exc:
            raise InvalidRequest(str(exc)) from exc
        return await self._call_store(self._store.get(address), f"load {address}")

    async def get_user(self, user_id: str) -> UserRecord:
        record = await self.find_user(user_id)
        if record is None:
            raise UserNotFound(user_id.strip().lower())
        return record

    # internals

    async def _register(
        self, address: str, existing: UserRecord | None, operation: Register
    ) -> MutationResult:
        if existing is not None:
            raise AlreadyRegistered(f"User {address} is already registered")
        username = (operation.username or "").strip()
        if not username:
            raise InvalidRequest("Username is required")

        now = self._clock()
        record = UserRecord(
            user_id=address,
            username=username,
            next_round=self._rounds.empty_next_round(),
            created_at=now,
            updated_at=now,
        )
        if self._shop.starter_pack_count > 0:
            grant_items(record, [self._shop.starter_pack], self._shop.starter_pack_count)
        record.logs.append(
            LogEntry(date=now.date().isoformat(), type="system", note="user-registered")
        )
        await self._validate(address, operation, check_record(record, round_slots=self._rounds.slots))
        stored = await self._call_store(
            self._store.update(address, changed_fields(None, record)), f"create {address}"
        )

        logger.info("Registered %s as %s", address, username)
        await self._events.publish(USER_REGISTERED, {"user_id": address, "username": username})
        return self._result(stored, _Outcome(changed=True), operation)

    def _apply(self, record: UserRecord, operation: Operation) -> _Outcome:
        if isinstance(operation, SavePicks):
            changed = self._rounds.apply(
                record,
                next_round=operation.next_round,
                active_round=operation.active_round,
                current_round=operation.current_round,
            )
            return _Outcome(changed=changed)
        if isinstance(operation, ReconcilePayment):
            outcome = self._reconciler.reconcile(
                record, self._payment_proof(operation), now=self._clock()
            )
            return _Outcome(
                changed=not outcome.already_processed,
                granted_cards=outcome.granted_cards,
                already_processed=outcome.already_processed,
            )
        if isinstance(operation, OpenPack):
            return self._open_pack(record, operation)
        if isinstance(operation, PurchaseWithPoints):
            return self._purchase(record, operation)
        if isinstance(operation, CreditPoints):
            return self._credit(record, operation)
        if isinstance(operation, GrantPacks):
            return self._grant_packs(record, operation)
        raise InvalidRequest(f"Unsupported operation {operation!r}")

    def _open_pack(self, record: UserRecord, operation: OpenPack) -> _Outcome:
        count = _positive_count(operation.count)
        self._distributor.pack(operation.pack_type)
        consume_item(record, operation.pack_type, count)
        cards = self._distributor.draw_cards(operation.pack_type, count)
        grant_items(record, cards)
        record.logs.append(
            LogEntry(
                date=self._clock().date().isoformat(),
                type="pack",
                note=f"open-{operation.pack_type}-pack-x{count}",
                items=tuple(cards),
            )
        )
        return _Outcome(changed=True, granted_cards=tuple(cards), consumed_packs=count)

    def _purchase(self, record: UserRecord, operation: PurchaseWithPoints) -> _Outcome:
        count = _positive_count(operation.count)
        pack = self._distributor.pack(operation.pack_type)
        cost = pack.cost_points * count
        wallet = PointsWallet.of(record)
        wallet.debit(cost)
        wallet.apply_to(record)
        cards = self._distributor.draw_cards(operation.pack_type, count)
        grant_items(record, cards)
        record.logs.append(
            LogEntry(
                date=self._clock().date().isoformat(),
                type="purchase",
                note=f"buy-{operation.pack_type}-pack-x{count}",
                items=tuple(cards),
                points_delta=-cost,
            )
        )
        return _Outcome(changed=True, granted_cards=tuple(cards), cost_points=cost)

    def _credit(self, record: UserRecord, operation: CreditPoints) -> _Outcome:
        for name, value in (("bank", operation.bank), ("gift", operation.gift)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidQuantity(f"{name} credit must be a non-negative integer")
        if not operation.bank and not operation.gift:
            raise InvalidQuantity("Nothing to credit")
        wallet = PointsWallet.of(record)
        wallet.credit_bank(operation.bank)
        wallet.credit_gift(operation.gift)
        wallet.apply_to(record)
        record.logs.append(
            LogEntry(
                date=self._clock().date().isoformat(),
                type=operation.log_type,
                note=operation.note,
                points_delta=operation.bank + operation.gift,
            )
        )
        return _Outcome(changed=True)

    def _grant_packs(self, record: UserRecord, operation: GrantPacks) -> _Outcome:
        count = _positive_count(operation.count)
        self._distributor.pack(operation.pack_type)
        grant_items(record, [operation.pack_type], count)
        record.logs.append(
            LogEntry(
                date=self._clock().date().isoformat(),
                type="system",
                note=operation.note or f"grant-{operation.pack_type}-pack-x{count}",
            )
        )
        return _Outcome(changed=True)

    async def _validate(self, address: str, operation: Operation, violations: list[str]) -> None:
        if not violations:
            return
        logger.error(
            "Refusing %s for %s: %s", operation.kind, address, "; ".join(violations)
        )
        payload: dict[str, Any] = {
            "user_id": address,
            "operation": operation.kind,
            "violations": list(violations),
        }
        if self._audit is not None:
            await self._audit.add_entry("invariant_violation", payload)
        await self._events.publish(INVARIANT_VIOLATED, payload)
        raise InvariantViolation(violations)

    async def _call_store(self, call: Awaitable[T], what: str) -> T:
        try:
            if self._store_timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self._store_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Record store timed out during %s", what)
            raise UpstreamUnavailable(f"Record store timed out during {what}") from exc
        except OSError as exc:
            logger.warning("Record store unreachable during %s: %s", what, exc)
            raise UpstreamUnavailable(f"Record store unreachable during {what}") from exc

    @staticmethod
    def _payment_proof(operation: ReconcilePayment) -> PaymentProof:
        return PaymentProof(
            external_ref=operation.external_ref,
            pack_type=operation.pack_type,
            count=operation.count,
            claimed_amount=operation.claimed_amount,
            sender=operation.sender,
        )

    @staticmethod
    def _result(record: UserRecord, outcome: _Outcome, operation: Operation) -> MutationResult:
        return MutationResult(
            record=record,
            changed=outcome.changed,
            granted_cards=tuple(outcome.granted_cards),
            already_processed=outcome.already_processed,
            cost_points=outcome.cost_points,
            consumed_packs=outcome.consumed_packs,
            operation=operation.kind,
        )


def _positive_count(count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidQuantity(f"Pack count must be a positive integer, got {count!r}")
    return count
