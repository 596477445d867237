import pytest

from flipledger.domain.exceptions import InvalidQuantity, UnknownPack, UserNotFound
from flipledger.testing import UserRecordFactory

ADDRESS = UserRecordFactory().address()


@pytest.fixture()
async def admin_app(memory_app):
    await memory_app.coordinator.register(ADDRESS, "operator-test")
    return memory_app


@pytest.mark.asyncio()
async def test_grant_points(admin_app):
    seen = []

    async def listener(payload):
        seen.append(payload)

    admin_app.event_bus.subscribe("admin.points.granted", listener)
    result = await admin_app.admin.grant_points(ADDRESS, bank=700, gift=300, reason="launch")

    assert result.record.bank_points == 700
    assert result.record.gift_points == 300
    assert result.record.total_points == 700
    assert result.record.logs[-1].note == "launch"
    assert result.record.logs[-1].points_delta == 1000
    assert seen[0]["user_id"] == ADDRESS.lower()

    actions = await admin_app.admin.recent_actions()
    assert actions[0][1] == "grant_points"
    assert actions[0][2]["reason"] == "launch"


@pytest.mark.asyncio()
async def test_grant_pack(admin_app):
    result = await admin_app.admin.grant_pack(ADDRESS, "rare", 2)
    assert result.record.inventory == {"common": 1, "rare": 2}
    assert result.record.logs[-1].note == "grant-rare-pack-x2"

    stored = await admin_app.coordinator.get_user(ADDRESS)
    assert stored.inventory["rare"] == 2


@pytest.mark.asyncio()
async def test_rejected_grants_are_not_audited(admin_app):
    with pytest.raises(InvalidQuantity):
        await admin_app.admin.grant_points(ADDRESS)
    with pytest.raises(UnknownPack):
        await admin_app.admin.grant_pack(ADDRESS, "legendary")
    with pytest.raises(UserNotFound):
        await admin_app.admin.grant_points(UserRecordFactory().address(), bank=1)
    assert await admin_app.admin.recent_actions() == []
