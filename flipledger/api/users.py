"""User record reads and pack endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from ..domain.coordinator import MutationResult
from .deps import Coordinator
from .schemas import OpenPackRequest, PackResponse, PurchasePackRequest, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def me(
    coordinator: Coordinator,
    user_id: str = Query(..., alias="userId", min_length=1),
) -> UserResponse:
    record = await coordinator.get_user(user_id)
    return UserResponse(user=record.to_dict())


@router.post("/openPack", response_model=PackResponse)
async def open_pack(body: OpenPackRequest, coordinator: Coordinator) -> PackResponse:
    """Consume held pack tokens and draw their cards."""
    result = await coordinator.open_pack(
        body.user_id, body.auth_proof(), pack_type=body.pack_type, count=body.count
    )
    return _pack_response(result, body.pack_type)


@router.post("/purchasePack", response_model=PackResponse)
async def purchase_pack(body: PurchasePackRequest, coordinator: Coordinator) -> PackResponse:
    """Buy packs with points, or open held ones when ``useInventory`` is set."""
    if body.use_inventory:
        result = await coordinator.open_pack(
            body.user_id, body.auth_proof(), pack_type=body.pack_type, count=body.count
        )
    else:
        result = await coordinator.purchase_with_points(
            body.user_id, body.auth_proof(), pack_type=body.pack_type, count=body.count
        )
    return _pack_response(result, body.pack_type)


def _pack_response(result: MutationResult, pack_type: str) -> PackResponse:
    return PackResponse(
        user=result.record.to_dict(),
        new_cards=list(result.granted_cards),
        pack_type=pack_type,
        cost=result.cost_points,
        consumed_packs=result.consumed_packs,
    )
