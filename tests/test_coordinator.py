import asyncio
from random import Random

import pytest

from flipledger.app import LedgerApp
from flipledger.config import FlipLedgerConfig, LedgerConfig
from flipledger.domain.events import INVARIANT_VIOLATED, MUTATION_COMMITTED, PAYMENT_REPLAYED
from flipledger.domain.exceptions import (
    AlreadyRegistered,
    AuthenticationFailed,
    InsufficientFunds,
    InvalidQuantity,
    InvalidRequest,
    InvariantViolation,
    PackUnavailable,
    PaymentRejected,
    PickLocked,
    UnknownPack,
    UpstreamUnavailable,
    UserNotFound,
)
from flipledger.storage.base import RoundPick
from flipledger.storage.memory import InMemoryAuditStore, InMemoryUserStore
from flipledger.testing import LocalSigner, build_catalog


class RecordingStore(InMemoryUserStore):
    def __init__(self, *, delay: float = 0.0) -> None:
        super().__init__()
        self.delay = delay
        self.gets = 0
        self.updates: list[dict] = []

    async def get(self, address):
        self.gets += 1
        await asyncio.sleep(self.delay)
        return await super().get(address)

    async def update(self, address, partial):
        self.updates.append(dict(partial))
        await asyncio.sleep(self.delay)
        return await super().update(address, partial)


class RejectAll:
    async def verify(self, user_id, proof):
        raise PaymentRejected("no such transfer")


def _app(store=None, *, timeout: float = 5.0, **kwargs) -> LedgerApp:
    config = FlipLedgerConfig(ledger=LedgerConfig(store_timeout_seconds=timeout))
    return LedgerApp(
        config,
        user_store=store or RecordingStore(),
        audit_store=InMemoryAuditStore(),
        catalog=build_catalog(seed=8),
        rng=Random(8),
        **kwargs,
    )


async def _seed(app: LedgerApp, signer: LocalSigner, **fields):
    await app.coordinator.register(signer.address, "tester")
    if fields:
        record = await app.user_store.get(signer.address.lower())
        for name, value in fields.items():
            setattr(record, name, value)
        await app.user_store.update(record.user_id, record.to_dict())
    if isinstance(app.user_store, RecordingStore):
        app.user_store.gets = 0
        app.user_store.updates.clear()


@pytest.mark.asyncio()
async def test_register_creates_starter_record(signer):
    app = _app()
    result = await app.coordinator.register(signer.address, "alice")
    record = result.record
    assert record.user_id == signer.address.lower()
    assert record.username == "alice"
    assert (record.total_points, record.bank_points, record.gift_points) == (0, 0, 0)
    assert record.inventory == {"common": 1}
    assert record.next_round == [None] * 5
    assert record.active_round == []
    assert record.current_round == 1
    assert [(log.type, log.note) for log in record.logs] == [("system", "user-registered")]
    assert record.created_at is not None and record.updated_at == record.created_at
    assert len(app.user_store.updates) == 1


@pytest.mark.asyncio()
async def test_register_twice_is_rejected(signer):
    app = _app()
    await app.coordinator.register(signer.address, "alice")
    with pytest.raises(AlreadyRegistered):
        await app.coordinator.register(signer.address.upper().replace("0X", "0x"), "bob")
    record = await app.coordinator.get_user(signer.address)
    assert record.username == "alice"


@pytest.mark.asyncio()
async def test_register_requires_username_and_address(signer):
    app = _app()
    with pytest.raises(InvalidRequest):
        await app.coordinator.register(signer.address, "   ")
    with pytest.raises(InvalidRequest):
        await app.coordinator.register("  ", "alice")


@pytest.mark.asyncio()
async def test_signed_operations_fail_before_loading(signer):
    app = _app()
    await _seed(app, signer)
    with pytest.raises(AuthenticationFailed):
        await app.coordinator.open_pack(signer.address, None)
    with pytest.raises(AuthenticationFailed):
        await app.coordinator.open_pack(signer.address, LocalSigner().sign("Open Pack"))
    assert app.user_store.gets == 0
    assert app.user_store.updates == []


@pytest.mark.asyncio()
async def test_unknown_user(signer):
    app = _app()
    with pytest.raises(UserNotFound):
        await app.coordinator.save_picks(signer.address, signer.sign(), current_round=2)
    with pytest.raises(UserNotFound):
        await app.coordinator.reconcile_payment(signer.address, "0x01")
    with pytest.raises(UserNotFound):
        await app.coordinator.get_user(signer.address)


@pytest.mark.asyncio()
async def test_save_picks_persists_only_changed_fields(signer):
    app = _app()
    await _seed(app, signer)
    picks = [RoundPick(token_id="tok_a"), RoundPick(token_id="tok_b", dir="DOWN")]
    result = await app.coordinator.save_picks(signer.address, signer.sign(), next_round=picks)
    assert result.changed
    assert result.record.next_round[:2] == picks
    assert len(app.user_store.updates) == 1
    assert set(app.user_store.updates[0]) == {"nextRound", "updatedAt"}


@pytest.mark.asyncio()
async def test_save_without_changes_skips_update(signer):
    app = _app()
    await _seed(app, signer)
    result = await app.coordinator.save_picks(signer.address, signer.sign())
    assert not result.changed
    again = await app.coordinator.save_picks(signer.address, signer.sign(), current_round=1)
    assert not again.changed
    assert app.user_store.updates == []


@pytest.mark.asyncio()
async def test_locked_active_pick_survives_overwrite(signer):
    app = _app()
    await _seed(app, signer)
    locked = RoundPick(token_id="tok_a", dir="UP", locked=True, p_lock=1.25)
    await app.coordinator.save_picks(signer.address, signer.sign(), active_round=[locked])
    before = (await app.user_store.get(signer.address)).to_dict()
    app.user_store.updates.clear()

    with pytest.raises(PickLocked) as excinfo:
        await app.coordinator.save_picks(
            signer.address,
            signer.sign(),
            active_round=[RoundPick(token_id="tok_a", dir="DOWN", locked=True)],
        )

    assert excinfo.value.field == "activeRound"
    assert app.user_store.updates == []
    assert (await app.user_store.get(signer.address)).to_dict() == before


@pytest.mark.asyncio()
async def test_insufficient_points_leaves_record_untouched(signer):
    app = _app()
    await _seed(app, signer, bank_points=3000, gift_points=1000, total_points=3000)
    before = await app.coordinator.get_user(signer.address)
    with pytest.raises(InsufficientFunds) as excinfo:
        await app.coordinator.purchase_with_points(signer.address, signer.sign("Buy"), "common")
    assert excinfo.value.required == 5000
    assert excinfo.value.available == 4000
    assert await app.coordinator.get_user(signer.address) == before
    assert app.user_store.updates == []


@pytest.mark.asyncio()
async def test_purchase_debits_bank_before_gift(signer):
    app = _app()
    await _seed(app, signer, bank_points=6000, gift_points=1000, total_points=9000)
    result = await app.coordinator.purchase_with_points(signer.address, signer.sign("Buy"), "common")
    record = result.record
    assert result.cost_points == 5000
    assert len(result.granted_cards) == 5
    assert (record.bank_points, record.gift_points, record.total_points) == (1000, 1000, 9000)
    assert record.logs[-1].type == "purchase"
    assert record.logs[-1].points_delta == -5000
    assert record.logs[-1].note == "buy-common-pack-x1"
    assert len(app.user_store.updates) == 1


@pytest.mark.asyncio()
async def test_purchase_spends_gift_points_when_bank_runs_out(signer):
    app = _app()
    await _seed(app, signer, bank_points=3000, gift_points=7000, total_points=3000)
    result = await app.coordinator.purchase_with_points(signer.address, signer.sign("Buy"), "rare")
    assert (result.record.bank_points, result.record.gift_points) == (0, 0)


@pytest.mark.asyncio()
async def test_purchase_rejects_unknown_pack_and_bad_count(signer):
    app = _app()
    await _seed(app, signer, bank_points=50000, total_points=50000)
    with pytest.raises(UnknownPack):
        await app.coordinator.purchase_with_points(signer.address, signer.sign(), "mythic")
    with pytest.raises(InvalidQuantity):
        await app.coordinator.purchase_with_points(signer.address, signer.sign(), "common", 0)


@pytest.mark.asyncio()
async def test_open_pack_swaps_pack_for_cards(signer):
    app = _app()
    await _seed(app, signer)
    result = await app.coordinator.open_pack(signer.address, signer.sign("Open Pack"))
    record = result.record
    assert result.consumed_packs == 1
    assert len(result.granted_cards) == 5
    assert "common" not in record.inventory
    assert sum(record.inventory.values()) == 5
    assert all(count > 0 for count in record.inventory.values())
    assert record.logs[-1].type == "pack"


@pytest.mark.asyncio()
async def test_open_pack_without_stock(signer):
    app = _app()
    await _seed(app, signer)
    with pytest.raises(PackUnavailable):
        await app.coordinator.open_pack(signer.address, signer.sign(), "rare")
    with pytest.raises(PackUnavailable):
        await app.coordinator.open_pack(signer.address, signer.sign(), "common", 2)


@pytest.mark.asyncio()
async def test_concurrent_opens_consume_single_pack_once(signer):
    store = RecordingStore(delay=0.01)
    app = _app(store)
    await _seed(app, signer)

    results = await asyncio.gather(
        app.coordinator.open_pack(signer.address, signer.sign("Open Pack")),
        app.coordinator.open_pack(signer.address, signer.sign("Open Pack")),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1 and isinstance(failures[0], PackUnavailable)
    record = await app.coordinator.get_user(signer.address)
    assert "common" not in record.inventory
    assert sum(record.inventory.values()) == 5
    assert len(app.coordinator.locks) == 0


@pytest.mark.asyncio()
async def test_payment_replay_credits_once(signer):
    app = _app()
    await _seed(app, signer)
    replays = []

    async def on_replay(payload):
        replays.append(payload)

    app.event_bus.subscribe(PAYMENT_REPLAYED, on_replay)

    first = await app.coordinator.reconcile_payment(signer.address, "0xBEEF", count=2)
    second = await app.coordinator.reconcile_payment(signer.address, "0xbeef", count=2)

    assert len(first.granted_cards) == 10 and not first.already_processed
    assert second.granted_cards == () and second.already_processed
    assert second.record.inventory == first.record.inventory
    assert len(app.user_store.updates) == 1
    assert replays == [{"user_id": signer.address.lower(), "external_ref": "0xbeef"}]


@pytest.mark.asyncio()
async def test_concurrent_reconciliations_of_same_payment(signer):
    store = RecordingStore(delay=0.01)
    app = _app(store)
    await _seed(app, signer)

    results = await asyncio.gather(
        *(app.coordinator.reconcile_payment(signer.address, "0xcafe") for _ in range(4))
    )

    assert sum(1 for r in results if not r.already_processed) == 1
    record = await app.coordinator.get_user(signer.address)
    receipts = [log for log in record.logs if log.external_ref == "0xcafe"]
    assert len(receipts) == 1
    assert sum(record.inventory.values()) == 1 + 5


@pytest.mark.asyncio()
async def test_rejected_payment_never_touches_store(signer):
    app = _app(verifier=RejectAll())
    await _seed(app, signer)
    with pytest.raises(PaymentRejected):
        await app.coordinator.reconcile_payment(signer.address, "0x01")
    assert app.user_store.gets == 0


@pytest.mark.asyncio()
async def test_slow_store_reports_upstream_unavailable(signer):
    store = RecordingStore()
    app = _app(store, timeout=0.05)
    await _seed(app, signer)
    store.delay = 0.5
    with pytest.raises(UpstreamUnavailable) as excinfo:
        await app.coordinator.reconcile_payment(signer.address, "0x02")
    assert excinfo.value.retryable
    assert len(app.coordinator.locks) == 0


@pytest.mark.asyncio()
async def test_retry_after_upstream_failure_is_safe(signer):
    store = RecordingStore()
    app = _app(store, timeout=0.05)
    await _seed(app, signer)
    store.delay = 0.5
    with pytest.raises(UpstreamUnavailable):
        await app.coordinator.reconcile_payment(signer.address, "0x03")
    store.delay = 0.0
    await app.coordinator.reconcile_payment(signer.address, "0x03")
    replay = await app.coordinator.reconcile_payment(signer.address, "0x03")
    assert replay.already_processed
    record = await app.coordinator.get_user(signer.address)
    assert len([log for log in record.logs if log.external_ref == "0x03"]) == 1


@pytest.mark.asyncio()
async def test_credit_points(signer):
    app = _app()
    await _seed(app, signer)
    result = await app.coordinator.credit_points(signer.address, bank=1200, gift=300, note="daily")
    record = result.record
    assert (record.bank_points, record.gift_points, record.total_points) == (1200, 300, 1200)
    assert record.logs[-1].note == "daily"
    with pytest.raises(InvalidQuantity):
        await app.coordinator.credit_points(signer.address)
    with pytest.raises(InvalidQuantity):
        await app.coordinator.credit_points(signer.address, bank=-5)


@pytest.mark.asyncio()
async def test_invariant_violation_is_refused_and_audited(signer):
    app = _app()
    await _seed(app, signer, gift_points=-5)
    alerts = []

    async def on_violation(payload):
        alerts.append(payload)

    app.event_bus.subscribe(INVARIANT_VIOLATED, on_violation)

    with pytest.raises(InvariantViolation) as excinfo:
        await app.coordinator.credit_points(signer.address, bank=10)

    assert any("gift_points" in message for message in excinfo.value.violations)
    assert app.user_store.updates == []
    assert alerts and alerts[0]["operation"] == "creditPoints"
    entries = await app.audit_store.recent()
    assert entries[0][1] == "invariant_violation"


@pytest.mark.asyncio()
async def test_committed_mutations_publish_events(signer):
    app = _app()
    await _seed(app, signer)
    events = []

    async def on_commit(payload):
        events.append(payload)

    app.event_bus.subscribe(MUTATION_COMMITTED, on_commit)
    await app.coordinator.open_pack(signer.address, signer.sign())
    assert events[0]["operation"] == "openPack"
    assert len(events[0]["granted_cards"]) == 5
    assert "inventory" in events[0]["fields"]
