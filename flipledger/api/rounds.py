from __future__ import annotations

from fastapi import APIRouter

from .deps import Coordinator
from .schemas import SavePicksRequest, SaveResponse

router = APIRouter(prefix="/api/round", tags=["round"])


@router.post("/save", response_model=SaveResponse)
async def save_picks(body: SavePicksRequest, coordinator: Coordinator) -> SaveResponse:
    result = await coordinator.save_picks(
        body.user_id,
        body.auth_proof(),
        next_round=body.next_round_picks(),
        active_round=body.active_round_picks(),
        current_round=body.current_round,
    )
    return SaveResponse(changed=result.changed)
