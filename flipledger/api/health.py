from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from ..app import LedgerApp
from .deps import get_ledger

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(ledger: Annotated[LedgerApp, Depends(get_ledger)]) -> dict[str, Any]:
    """Liveness check. Does not touch the record store."""
    snapshot = ledger.snapshot()
    return {"status": "healthy", "storage": snapshot["storage"], "packs": snapshot["packs"]}
