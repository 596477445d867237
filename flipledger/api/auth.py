"""Registration and account lookup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from .deps import Coordinator
from .schemas import CheckResponse, RegisterRequest, RegisterResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
async def register(body: RegisterRequest, coordinator: Coordinator) -> RegisterResponse:
    """Create a record for a new wallet and grant the starter pack."""
    result = await coordinator.register(body.address, body.username)
    return RegisterResponse(user=result.record.to_dict())


@router.get("/check", response_model=CheckResponse, response_model_exclude_none=True)
async def check(coordinator: Coordinator, address: str = Query(..., min_length=1)) -> CheckResponse:
    record = await coordinator.find_user(address)
    if record is None:
        return CheckResponse(exists=False)
    return CheckResponse(exists=True, user=record.to_dict())
